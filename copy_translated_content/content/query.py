"""Element Query Service: lists content elements of a page and language."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..errors import InvalidArgument
from ..models import CONTAINER_PARENT_FIELD, CONTENT_TABLE, ContentElement
from ..permissions import BackendUser
from ..storage import RecordStore

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("uid", "pid", "sys_language_uid", "colPos", "header", "CType", "sorting", "hidden")


class ElementQueryService:
    """Read-only access to the content elements offered for copying."""

    def __init__(self, store: RecordStore):
        self.store = store

    @property
    def container_support(self) -> bool:
        return self.store.has_column(CONTENT_TABLE, CONTAINER_PARENT_FIELD)

    def list_elements(
        self,
        page_id: int,
        language_id: int,
        actor: Optional[BackendUser] = None,
    ) -> Dict[int, List[ContentElement]]:
        """Return elements of ``page_id`` in ``language_id`` grouped by column.

        Within each column elements are ordered by sort key, ascending.
        Container children are left out; they travel with their container.
        """
        if page_id <= 0 or language_id < 0:
            raise InvalidArgument("Invalid parameters")

        filters = {"pid": page_id, "sys_language_uid": language_id}
        fields = list(_LIST_FIELDS)
        if self.container_support:
            filters[CONTAINER_PARENT_FIELD] = 0
            fields.append(CONTAINER_PARENT_FIELD)

        rows = self.store.query(
            CONTENT_TABLE,
            filters,
            order=[("colPos", "ASC"), ("sorting", "ASC")],
            workspace=actor.workspace if actor else 0,
            fields=fields,
        )

        grouped: Dict[int, List[ContentElement]] = {}
        for row in rows:
            element = ContentElement.from_row(row)
            grouped.setdefault(element.col_pos, []).append(element)

        logger.debug(
            "Listed %d element(s) on page %d, language %d in %d column(s)",
            len(rows), page_id, language_id, len(grouped),
        )
        return grouped
