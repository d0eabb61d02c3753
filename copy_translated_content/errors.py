"""Error taxonomy for the copy service.

- InvalidArgument: malformed or missing numeric parameters (HTTP 400)
- PermissionDenied: actor lacks read/edit rights on a page (HTTP 500)
- RecordNotFound: a referenced record does not exist or is deleted
- CopyFailure: a single element could not be copied (logged, batch continues)
"""


class CopyContentError(Exception):
    """Base class for all errors raised by this package."""


class InvalidArgument(CopyContentError, ValueError):
    """A required parameter is missing or out of range."""


class PermissionDenied(CopyContentError):
    """The acting backend user may not read or edit a page."""


class RecordNotFound(CopyContentError):
    """Raised when a record lookup by uid finds nothing."""

    def __init__(self, table: str, uid: int):
        super().__init__(f"Record {table}:{uid} not found")
        self.table = table
        self.uid = uid


class CopyFailure(CopyContentError):
    """One content element failed to copy."""

    def __init__(self, source_uid: int, errors: list[str] | None = None):
        self.source_uid = source_uid
        self.errors = list(errors or [])
        detail = "; ".join(self.errors) if self.errors else "no record produced"
        super().__init__(f"Copy of tt_content:{source_uid} failed: {detail}")


__all__ = [
    "CopyContentError",
    "InvalidArgument",
    "PermissionDenied",
    "RecordNotFound",
    "CopyFailure",
]
