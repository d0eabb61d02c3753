"""Runtime version reported by ``/version`` and the startup log."""

from __future__ import annotations

import os
from importlib import metadata

from . import __version__

DISTRIBUTION_NAME = "copy-translated-content"


def get_runtime_version() -> str:
    """Deployment override first, then the installed distribution, then the package."""
    override = os.environ.get("COPY_CONTENT_VERSION", "").strip()
    if override:
        return override
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return __version__
