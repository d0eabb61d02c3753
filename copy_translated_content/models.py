"""Data models for content elements and copy requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import InvalidArgument

CONTENT_TABLE = "tt_content"
PAGES_TABLE = "pages"
USERS_TABLE = "be_users"

# Column that marks an element as nested inside a container element.
CONTAINER_PARENT_FIELD = "tx_container_parent"


@dataclass(frozen=True)
class ContentElement:
    """A single content element as listed for selection."""
    uid: int
    pid: int
    language_id: int
    col_pos: int
    header: str = ""
    ctype: str = ""
    sorting: int = 0
    hidden: bool = False
    container_parent: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ContentElement":
        return cls(
            uid=int(row["uid"]),
            pid=int(row["pid"]),
            language_id=int(row["sys_language_uid"]),
            col_pos=int(row["colPos"]),
            header=row.get("header") or "",
            ctype=row.get("CType") or "",
            sorting=int(row.get("sorting") or 0),
            hidden=bool(row.get("hidden")),
            container_parent=int(row.get(CONTAINER_PARENT_FIELD) or 0),
        )

    def to_dict(self) -> dict:
        """Shape used by the element listing response."""
        return {
            "uid": self.uid,
            "header": self.header,
            "CType": self.ctype,
            "colPos": self.col_pos,
        }


def _normalize_uids(uids: Optional[Iterable[Any]]) -> Tuple[int, ...]:
    if not uids:
        return ()
    seen: Dict[int, None] = {}
    for raw in uids:
        try:
            uid = int(raw)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Invalid element uid: {raw!r}") from None
        if uid <= 0:
            raise InvalidArgument(f"Invalid element uid: {raw!r}")
        seen.setdefault(uid, None)
    return tuple(seen)


@dataclass(frozen=True)
class CopyRequest:
    """Parameters of one copy invocation.

    ``target_language_id`` defaults to ``language_id``. An empty
    ``element_uids`` means every element of the source page and language.
    """
    source_pid: int
    target_pid: int
    language_id: int
    target_language_id: Optional[int] = None
    element_uids: Tuple[int, ...] = ()
    never_hide_at_copy: bool = True

    def __post_init__(self):
        if self.target_language_id is None:
            object.__setattr__(self, "target_language_id", self.language_id)
        object.__setattr__(self, "element_uids", _normalize_uids(self.element_uids))

        if self.source_pid <= 0 or self.target_pid <= 0:
            raise InvalidArgument("Invalid parameters: page ids must be positive")
        if self.language_id < 0 or self.target_language_id < 0:
            raise InvalidArgument("Invalid parameters: language ids must not be negative")

    @property
    def changes_language(self) -> bool:
        return self.target_language_id != self.language_id


@dataclass
class CopyResult:
    """Outcome of a copy invocation."""
    copied: Dict[int, int] = field(default_factory=dict)
    failed: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.copied)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "copied": {str(k): v for k, v in self.copied.items()},
            "failedUids": list(self.failed),
        }
