"""
Copy Orchestrator: copies content elements to another page and language.

Each element is copied with its own short-lived ``CopyContext`` holding the
copy mapping and error log of that single operation, so no state leaks from
one element to the next. The batch is not atomic: elements that were copied
before a failure stay in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..error_boundary import ModuleErrorBoundary
from ..errors import CopyFailure, PermissionDenied, RecordNotFound
from ..models import (
    CONTAINER_PARENT_FIELD,
    CONTENT_TABLE,
    PAGES_TABLE,
    CopyRequest,
    CopyResult,
)
from ..permissions import BackendUser, Permission, has_access
from ..storage import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CopyContext:
    """State of one copy operation: which source uid became which new uid."""
    store: RecordStore
    actor: BackendUser
    target_pid: int
    never_hide_at_copy: bool = True
    hide_at_copy: bool = True
    container_support: bool = False
    copy_mapping: Dict[int, int] = field(default_factory=dict)
    error_log: List[str] = field(default_factory=list)

    def _overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {"t3ver_wsid": self.actor.workspace}
        if self.never_hide_at_copy:
            overrides["hidden"] = 0
        elif self.hide_at_copy:
            overrides["hidden"] = 1
        return overrides

    def copy(self, source_uid: int) -> Optional[int]:
        """Copy ``source_uid`` (and its container children) to the target page."""
        new_uid = self._copy_one(source_uid, self._overrides())
        if new_uid is not None and self.container_support:
            self._copy_children(source_uid, new_uid)
        return new_uid

    def _copy_one(self, source_uid: int, overrides: Mapping[str, Any]) -> Optional[int]:
        try:
            new_uid = self.store.copy_record(CONTENT_TABLE, source_uid, self.target_pid, overrides)
        except RecordNotFound as e:
            self.error_log.append(str(e))
            return None
        self.copy_mapping[source_uid] = new_uid
        return new_uid

    def _copy_children(self, source_parent: int, new_parent: int) -> None:
        # Descending, because every copy lands on top of the target page.
        children = self.store.query(
            CONTENT_TABLE,
            {CONTAINER_PARENT_FIELD: source_parent},
            order=[("sorting", "DESC")],
            workspace=self.actor.workspace,
            fields=["uid"],
        )
        for child in children:
            child_uid = int(child["uid"])
            if child_uid in self.copy_mapping:
                continue
            overrides = self._overrides()
            overrides[CONTAINER_PARENT_FIELD] = new_parent
            new_child = self._copy_one(child_uid, overrides)
            if new_child is not None:
                self._copy_children(child_uid, new_child)

    def localize(self, language_id: int) -> None:
        """Move every record created by this context to ``language_id``."""
        for new_uid in self.copy_mapping.values():
            self.store.update_field(CONTENT_TABLE, new_uid, "sys_language_uid", language_id)


class CopyOrchestrator:
    """Copies a selection of content elements from one page to another."""

    def __init__(self, store: RecordStore, hide_at_copy: bool = True):
        self.store = store
        self.hide_at_copy = hide_at_copy
        self.boundary = ModuleErrorBoundary("copy_translated_content")

    @property
    def container_support(self) -> bool:
        return self.store.has_column(CONTENT_TABLE, CONTAINER_PARENT_FIELD)

    def check_access(self, request: CopyRequest, actor: BackendUser) -> None:
        """Raise PermissionDenied unless ``actor`` may read source and edit target."""
        source_page = self.store.get_record(PAGES_TABLE, request.source_pid)
        if not has_access(actor, source_page, Permission.PAGE_SHOW):
            raise PermissionDenied("No read access to source page")
        target_page = self.store.get_record(PAGES_TABLE, request.target_pid)
        if not has_access(actor, target_page, Permission.CONTENT_EDIT):
            raise PermissionDenied("No edit access to target page")

    def fetch_candidates(self, request: CopyRequest, actor: BackendUser) -> List[dict]:
        """Source rows to copy, highest sort key first."""
        filters: Dict[str, Any] = {
            "pid": request.source_pid,
            "sys_language_uid": request.language_id,
        }
        if request.element_uids:
            filters["uid"] = list(request.element_uids)
        if self.container_support:
            filters[CONTAINER_PARENT_FIELD] = 0

        return self.store.query(
            CONTENT_TABLE,
            filters,
            order=[("sorting", "DESC")],
            workspace=actor.workspace,
        )

    def copy_elements(self, request: CopyRequest, actor: BackendUser) -> CopyResult:
        """Copy the requested elements and report which ones made it."""
        self.check_access(request, actor)

        elements = self.fetch_candidates(request, actor)
        logger.debug(
            "Query returned %d content element(s): %s",
            len(elements), [row["uid"] for row in elements],
        )

        result = CopyResult()
        if not elements:
            return result

        for element in elements:
            source_uid = int(element["uid"])
            new_uid = self.boundary.execute(self._copy_element, source_uid, request, actor)
            if new_uid:
                result.copied[source_uid] = new_uid
            else:
                result.failed.append(source_uid)
                logger.error(
                    "Copy of tt_content:%d to page %d failed, continuing with next element",
                    source_uid, request.target_pid,
                )

        logger.info(
            "Copied %d of %d element(s) from page %d to page %d (language %d -> %d)",
            result.count, len(elements), request.source_pid, request.target_pid,
            request.language_id, request.target_language_id,
        )
        return result

    def _copy_element(self, source_uid: int, request: CopyRequest, actor: BackendUser) -> int:
        context = CopyContext(
            store=self.store,
            actor=actor,
            target_pid=request.target_pid,
            never_hide_at_copy=request.never_hide_at_copy,
            hide_at_copy=self.hide_at_copy,
            container_support=self.container_support,
        )
        new_uid = context.copy(source_uid)

        if context.error_log:
            logger.error(
                "Errors during copy of tt_content:%d: %s", source_uid, context.error_log
            )
        if not new_uid:
            raise CopyFailure(source_uid, context.error_log)

        if request.changes_language:
            context.localize(request.target_language_id)

        logger.debug("Copy result: tt_content:%d -> %d (%s)", source_uid, new_uid, context.copy_mapping)
        return new_uid
