"""Record storage backends."""

from .record_store import RecordStore

__all__ = ["RecordStore"]
