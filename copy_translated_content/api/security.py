"""Shared authentication helpers for API blueprints."""
from __future__ import annotations

import hmac
import logging
import os
import time
from functools import wraps
from typing import Any, Callable, Optional

from flask import g, request as flask_request, jsonify

from ..config import load_options
from ..models import USERS_TABLE
from ..permissions import BackendUser

logger = logging.getLogger(__name__)

BACKEND_USER_HEADER = "X-Backend-User"

# Token cache: (token_value, timestamp)
_token_cache: tuple[str, float] = ("", 0.0)
_TOKEN_CACHE_TTL = 60.0  # seconds


def get_auth_token(options_path: Optional[str] = None) -> str:
    """Return the configured shared token, if any.

    Uses a 60-second TTL cache to avoid disk reads on every request.
    """
    global _token_cache

    now = time.monotonic()
    cached_token, cached_at = _token_cache
    if cached_token and (now - cached_at) < _TOKEN_CACHE_TTL:
        return cached_token

    token = os.environ.get("COPY_CONTENT_AUTH_TOKEN", "").strip()
    if not token:
        token = str(load_options(options_path).get("auth_token", "")).strip()

    _token_cache = (token, now)
    return token


def is_auth_required(options_path: Optional[str] = None) -> bool:
    """Check if authentication is required.

    Returns True by default. Can be disabled via:
    - Environment: COPY_CONTENT_AUTH_REQUIRED=false
    - Options: auth_required: false
    """
    env_value = os.environ.get("COPY_CONTENT_AUTH_REQUIRED", "").lower().strip()
    if env_value == "false":
        return False
    if env_value == "true":
        return True

    if load_options(options_path).get("auth_required") is False:
        return False
    return True


def validate_token(request) -> bool:
    """Validate the shared token against the incoming request.

    Returns True if token is valid or authentication is disabled.
    Returns False if token is required but invalid.
    """
    if not is_auth_required():
        return True

    token = get_auth_token()
    if not token:
        # No token configured (first run / unconfigured)
        return True

    header_token = (request.headers.get("X-Auth-Token") or "").strip()
    if header_token and hmac.compare_digest(header_token, token):
        return True

    auth_header = (request.headers.get("Authorization") or "").strip()
    if auth_header.startswith("Bearer "):
        candidate = auth_header.split(" ", 1)[1].strip()
        if candidate and hmac.compare_digest(candidate, token):
            return True

    return False


def require_token(f: Callable) -> Callable:
    """Decorator to require valid token for an endpoint."""
    @wraps(f)
    def decorated_function(*args: Any, **kwargs: Any) -> Any:
        if not validate_token(flask_request):
            return jsonify({
                "success": False,
                "message": "Valid X-Auth-Token header or Bearer token required",
            }), 401
        return f(*args, **kwargs)
    return decorated_function


def load_backend_user(store, raw_uid: Any) -> Optional[BackendUser]:
    """Look up the acting backend user by uid; None if unknown or malformed."""
    try:
        uid = int(str(raw_uid).strip())
    except (TypeError, ValueError):
        return None
    if uid <= 0:
        return None
    row = store.get_record(USERS_TABLE, uid)
    return BackendUser.from_row(row) if row else None


def require_backend_user(get_store: Callable[[], Any]) -> Callable:
    """Decorator factory resolving the acting user into ``flask.g.backend_user``.

    The user uid is read from the ``X-Backend-User`` header.
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args: Any, **kwargs: Any) -> Any:
            raw_uid = flask_request.headers.get(BACKEND_USER_HEADER)
            actor = load_backend_user(get_store(), raw_uid) if raw_uid else None
            if actor is None:
                logger.warning("Rejected request without valid backend user (%r)", raw_uid)
                return jsonify({
                    "success": False,
                    "message": "Backend user required",
                }), 401
            g.backend_user = actor
            return f(*args, **kwargs)
        return decorated_function
    return decorator
