"""
Error Boundary - failure isolation for per-element work.

A batch operation runs each unit of work inside a boundary so that one
failing unit is logged with its traceback without aborting the rest.
The boundary keeps no state, so one instance can serve concurrent requests.
"""

import logging
from typing import Callable, Optional, TypeVar, ParamSpec

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


class ModuleErrorBoundary:
    """
    Runs functions with crash isolation.

    Usage:
        boundary = ModuleErrorBoundary("copy")
        new_uid = boundary.execute(copy_one, uid)  # None on failure
    """

    def __init__(self, module_name: str):
        self.module_name = module_name

    def execute(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> Optional[T]:
        """Execute a function, logging and swallowing any exception it raises."""
        try:
            return func(*args, **kwargs)
        except Exception as e:
            _LOGGER.error(
                "[%s] Error in %s: %s",
                self.module_name, getattr(func, "__name__", "execution"), e,
                exc_info=True,
            )
            return None


__all__ = ["ModuleErrorBoundary"]
