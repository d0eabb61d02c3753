"""Backend users and page permission checks.

Page records carry an owner user, an owner group and three permission
bitmasks (user, group, everybody). A user's effective bits on a page are
the union of the masks that apply to them; admins bypass the check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, FrozenSet, Mapping, Optional


class Permission(IntFlag):
    PAGE_SHOW = 1
    PAGE_EDIT = 2
    PAGE_DELETE = 4
    PAGE_NEW = 8
    CONTENT_EDIT = 16


ALL_PERMISSIONS = (
    Permission.PAGE_SHOW
    | Permission.PAGE_EDIT
    | Permission.PAGE_DELETE
    | Permission.PAGE_NEW
    | Permission.CONTENT_EDIT
)


def _parse_groups(value: Any) -> FrozenSet[int]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
    else:
        parts = list(value)
    groups = set()
    for part in parts:
        try:
            groups.add(int(part))
        except (TypeError, ValueError):
            continue
    return frozenset(groups)


@dataclass(frozen=True)
class BackendUser:
    """The acting editor. Passed explicitly into every service call."""
    uid: int
    username: str = ""
    admin: bool = False
    groups: FrozenSet[int] = field(default_factory=frozenset)
    workspace: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BackendUser":
        return cls(
            uid=int(row["uid"]),
            username=row.get("username") or "",
            admin=bool(row.get("admin")),
            groups=_parse_groups(row.get("usergroup")),
            workspace=int(row.get("workspace_id") or 0),
        )


def effective_permissions(actor: BackendUser, page: Mapping[str, Any]) -> Permission:
    """Return the permission bits ``actor`` holds on ``page``."""
    if actor.admin:
        return ALL_PERMISSIONS

    bits = int(page.get("perms_everybody") or 0)
    if int(page.get("perms_userid") or 0) == actor.uid:
        bits |= int(page.get("perms_user") or 0)
    if int(page.get("perms_groupid") or 0) in actor.groups:
        bits |= int(page.get("perms_group") or 0)
    return Permission(bits & ALL_PERMISSIONS)


def has_access(actor: BackendUser, page: Optional[Mapping[str, Any]], mask: int) -> bool:
    """Check that ``actor`` holds every bit of ``mask`` on ``page``.

    A missing page record never grants access.
    """
    if page is None:
        return False
    granted = effective_permissions(actor, page)
    return (int(granted) & int(mask)) == int(mask)
