"""Pydantic validation decorator for Flask route handlers."""
from __future__ import annotations

import functools
import logging
import re
from typing import Type

from flask import jsonify, request
from pydantic import BaseModel, ValidationError
from werkzeug.datastructures import MultiDict

logger = logging.getLogger(__name__)


_LIST_KEY = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<index>\d*)\]$")


def _flatten(data: MultiDict) -> dict:
    """Turn form/query data into a plain dict.

    ``key[]`` and indexed ``key[0]``, ``key[1]`` entries become a list under
    ``key``; indexed entries are ordered by index.
    """
    params: dict = {}
    indexed: dict[str, list[tuple[int, str]]] = {}
    for key in data.keys():
        match = _LIST_KEY.match(key)
        if match is None:
            params[key] = data.get(key)
        elif match.group("index") == "":
            name = match.group("name")
            existing = params.get(name)
            params[name] = (existing if isinstance(existing, list) else []) + data.getlist(key)
        else:
            indexed.setdefault(match.group("name"), []).append((int(match.group("index")), data.get(key)))

    for name, items in indexed.items():
        values = [value for _, value in sorted(items)]
        existing = params.get(name)
        params[name] = (existing if isinstance(existing, list) else []) + values
    return params


def collect_params() -> dict | None:
    """Merge request parameters: body values win over query string values.

    Returns None when a JSON body was sent but is not an object.
    """
    params = _flatten(request.args)

    if request.is_json:
        raw = request.get_json(silent=True)
        if raw is None:
            return params
        if not isinstance(raw, dict):
            return None
        params.update(raw)
    elif request.form:
        params.update(_flatten(request.form))
    return params


def validate_params(model: Type[BaseModel]):
    """Decorator that parses and validates body and query parameters.

    Usage::

        @bp.post("/endpoint")
        @validate_params(MyModel)
        def handle(params: MyModel):
            ...

    On validation failure returns 400 with structured error details.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            raw = collect_params()
            if raw is None:
                return jsonify({
                    "success": False,
                    "message": "Invalid parameters",
                    "errors": [{"field": "", "message": "Request body must be a JSON object"}],
                }), 400

            try:
                params = model.model_validate(raw)
            except ValidationError as exc:
                errors = []
                for err in exc.errors():
                    errors.append({
                        "field": ".".join(str(loc) for loc in err["loc"]),
                        "message": err["msg"],
                        "type": err["type"],
                    })
                logger.debug("Rejected parameters %s: %s", raw, errors)
                return jsonify({
                    "success": False,
                    "message": "Invalid parameters",
                    "errors": errors,
                }), 400

            return fn(params, *args, **kwargs)

        return wrapper

    return decorator
