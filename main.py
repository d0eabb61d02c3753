"""
Copy Translated Content: application entry point.

Builds the Flask app, wires services via core_setup and serves it with waitress.
"""

import logging
import time
import uuid
from datetime import datetime, timezone

from flask import Flask, g, jsonify, request
from flask_compress import Compress
from waitress import serve

from copy_translated_content.config import Settings, load_settings
from copy_translated_content.core_setup import init_services, register_blueprints
from copy_translated_content.versioning import get_runtime_version

APP_VERSION = get_runtime_version()

_main_logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD = 2.0  # seconds


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def create_app(settings: Settings = None) -> Flask:
    """Create the Flask app with all services registered."""
    settings = settings or load_settings()

    app = Flask(__name__)
    # contentElements is keyed by column; keep the numeric colPos order.
    app.json.sort_keys = False
    Compress(app)
    app.config["COMPRESS_MIMETYPES"] = ["application/json"]
    app.config["COMPRESS_MIN_SIZE"] = 500
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024

    @app.before_request
    def _before_request():
        g.start_time = time.time()
        g.request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex[:12])

    @app.after_request
    def _after_request(response):
        duration = time.time() - getattr(g, "start_time", time.time())
        req_id = getattr(g, "request_id", "-")
        response.headers["X-Request-ID"] = req_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        if duration >= SLOW_REQUEST_THRESHOLD:
            _main_logger.warning(
                "SLOW REQUEST [%s] %s %s -> %d (%.2fs)",
                req_id, request.method, request.path, response.status_code, duration,
            )
        return response

    @app.get("/health")
    def health():
        """Liveness probe."""
        return jsonify({"ok": True, "time": _now_iso()})

    @app.get("/version")
    def version():
        return jsonify({
            "name": "copy-translated-content",
            "version": APP_VERSION,
            "time": _now_iso(),
        })

    services = init_services(settings)
    register_blueprints(app, services)
    app.config["STARTUP_TIME"] = time.time()
    return app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app = create_app(settings)
    host = "0.0.0.0"
    _main_logger.info("Starting copy-translated-content v%s on %s:%d", APP_VERSION, host, settings.port)
    serve(app, host=host, port=settings.port)


if __name__ == "__main__":
    main()
