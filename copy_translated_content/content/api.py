"""
Copy Translated Content API endpoints.

Endpoints:
    GET|POST /copy-translated-content/get-elements  - Elements of a page+language grouped by colPos
    POST     /copy-translated-content/copy          - Copy elements to another page/language
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Blueprint, Response, g, jsonify

from ..api.schemas import CopyParams, GetElementsParams
from ..api.security import require_backend_user, require_token
from ..api.validation import validate_params
from ..errors import InvalidArgument, PermissionDenied
from ..models import CopyRequest
from ..storage import RecordStore
from .copier import CopyOrchestrator
from .query import ElementQueryService

logger = logging.getLogger(__name__)

content_bp = Blueprint("copy_translated_content", __name__, url_prefix="/copy-translated-content")

# Initialized by core_setup.register_blueprints
_store: Optional[RecordStore] = None
_query_service: Optional[ElementQueryService] = None
_orchestrator: Optional[CopyOrchestrator] = None


def init_content_api(store: RecordStore, query_service: ElementQueryService, orchestrator: CopyOrchestrator):
    """Initialize the API with service instances."""
    global _store, _query_service, _orchestrator
    _store = store
    _query_service = query_service
    _orchestrator = orchestrator


def get_store() -> RecordStore:
    if _store is None:
        raise RuntimeError("Copy content API not initialized")
    return _store


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"success": False, "message": message}), status


@content_bp.route("/get-elements", methods=["GET", "POST"])
@require_token
@require_backend_user(get_store)
@validate_params(GetElementsParams)
def get_elements(params: GetElementsParams):
    """List content elements of a page and language, grouped by column."""
    if _query_service is None:
        return _error("Error: element query service not available", 500)

    try:
        grouped = _query_service.list_elements(params.page_id, params.language_id, actor=g.backend_user)
    except InvalidArgument:
        return _error("Invalid parameters", 400)
    except Exception as e:
        logger.exception("Listing elements of page %d failed", params.page_id)
        return _error(f"Error: {e}", 500)

    return jsonify({
        "success": True,
        "contentElements": {
            str(col_pos): [element.to_dict() for element in elements]
            for col_pos, elements in grouped.items()
        },
    })


@content_bp.route("/copy", methods=["POST"])
@require_token
@require_backend_user(get_store)
@validate_params(CopyParams)
def copy_elements(params: CopyParams):
    """Copy content elements to another page, optionally into another language."""
    logger.debug("copy called: %s", params.model_dump(by_alias=True))

    if _orchestrator is None:
        return _error("Error: copy orchestrator not available", 500)

    try:
        copy_request = CopyRequest(
            source_pid=params.source_pid,
            target_pid=params.target_pid,
            language_id=params.language_id,
            target_language_id=params.target_language_uid,
            element_uids=params.element_uids,
            never_hide_at_copy=params.never_hide_at_copy,
        )
    except InvalidArgument:
        return _error("Invalid parameters", 400)

    try:
        result = _orchestrator.copy_elements(copy_request, g.backend_user)
    except PermissionDenied as e:
        logger.warning("Copy denied for user %d: %s", g.backend_user.uid, e)
        return _error(f"Error: {e}", 500)
    except Exception as e:
        logger.exception("Copy from page %d to page %d failed", params.source_pid, params.target_pid)
        return _error(f"Error: {e}", 500)

    return jsonify({
        "success": True,
        "message": f"Successfully copied {result.count} content element(s) to page {params.target_pid}",
        **result.to_dict(),
    })
