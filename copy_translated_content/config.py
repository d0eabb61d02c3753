"""Service configuration from options.json and environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

_LOGGER = logging.getLogger(__name__)

OPTIONS_PATH = "/data/options.json"
DEFAULT_DB_PATH = "/data/copy_translated_content.db"
DEFAULT_PORT = 8910

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _safe_int(value, default: int, minimum: int = 1, maximum: int = 65535) -> int:
    """Parse an int config value with bounds checking."""
    try:
        return max(minimum, min(maximum, int(value)))
    except (TypeError, ValueError):
        return default


def _safe_bool(value, default: bool) -> bool:
    """Parse a bool config value; unknown strings keep the default."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def load_options(path: str | None = None) -> dict:
    """Load options.json; a missing or broken file yields an empty dict."""
    path = path or os.environ.get("COPY_CONTENT_OPTIONS_PATH", OPTIONS_PATH)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data: Any = json.load(fh) or {}
    except FileNotFoundError:
        return {}
    except (OSError, ValueError):
        _LOGGER.warning("Could not read options from %s", path, exc_info=True)
        return {}
    return data if isinstance(data, dict) else {}


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    hide_at_copy: bool = True
    container_support: bool = True
    log_level: str = "INFO"
    port: int = DEFAULT_PORT

    @classmethod
    def from_options(cls, options: dict | None = None) -> "Settings":
        """Build settings; environment variables win over options."""
        options = options or {}
        env = os.environ

        log_level = str(env.get("LOG_LEVEL") or options.get("log_level") or "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            log_level = "INFO"

        return cls(
            db_path=env.get("COPY_CONTENT_DB_PATH") or options.get("db_path") or DEFAULT_DB_PATH,
            hide_at_copy=_safe_bool(
                env.get("COPY_CONTENT_HIDE_AT_COPY", options.get("hide_at_copy")), True
            ),
            container_support=_safe_bool(
                env.get("COPY_CONTENT_CONTAINER_SUPPORT", options.get("container_support")), True
            ),
            log_level=log_level,
            port=_safe_int(env.get("PORT", options.get("port")), DEFAULT_PORT),
        )


def load_settings(path: str | None = None) -> Settings:
    return Settings.from_options(load_options(path))
