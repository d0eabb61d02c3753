"""
Core Setup - Service initialization and blueprint registration.
"""

import logging

from flask import Flask

from .config import Settings
from .content.api import content_bp, init_content_api
from .content.copier import CopyOrchestrator
from .content.query import ElementQueryService
from .storage import RecordStore

_LOGGER = logging.getLogger(__name__)


def init_services(settings: Settings = None) -> dict:
    """
    Initialize the services and return them as a dict for testing/dependency injection.
    """
    settings = settings or Settings()

    store = RecordStore(settings.db_path, container_support=settings.container_support)
    services = {
        "settings": settings,
        "record_store": store,
        "element_query_service": ElementQueryService(store),
        "copy_orchestrator": CopyOrchestrator(store, hide_at_copy=settings.hide_at_copy),
    }
    _LOGGER.info(
        "Services initialized (db=%s, container_support=%s, hide_at_copy=%s)",
        settings.db_path, settings.container_support, settings.hide_at_copy,
    )
    return services


def register_blueprints(app: Flask, services: dict) -> None:
    """
    Register the API blueprints with the Flask app.

    Args:
        app: Flask application instance
        services: Services dict from init_services()
    """
    init_content_api(
        services["record_store"],
        services["element_query_service"],
        services["copy_orchestrator"],
    )
    app.register_blueprint(content_bp)
    app.config["COPY_CONTENT_SERVICES"] = services
    _LOGGER.info("Registered copy content API (/copy-translated-content/*)")
