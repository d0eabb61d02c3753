"""Content element listing and copying."""

from .copier import CopyContext, CopyOrchestrator
from .query import ElementQueryService

__all__ = ["CopyContext", "CopyOrchestrator", "ElementQueryService"]
