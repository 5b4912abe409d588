"""Helpers for validating CSRF tokens on JSON endpoints."""

from __future__ import annotations

from typing import Mapping, MutableMapping

from flask import current_app, request
from flask_wtf.csrf import CSRFError, validate_csrf


def ensure_csrf_token(payload: MutableMapping[str, object] | Mapping[str, object] | None = None) -> None:
    """Validate CSRF token from header or JSON payload.

    Flask-WTF automatically inspects form data, but JSON APIs need custom handling.
    Clients may supply the token via header *or* a `csrf_token` field inside
    the JSON body. The field is removed from the payload once read.
    """
    if not current_app.config.get("WTF_CSRF_ENABLED", True):
        return

    token = request.headers.get("X-CSRFToken") or request.headers.get("X-CSRF-Token")
    if not token and payload and isinstance(payload, MutableMapping):
        token = payload.pop("csrf_token", None)

    if not token:
        raise CSRFError("The CSRF token is missing.")

    try:
        validate_csrf(token, secret_key=current_app.secret_key)
    except Exception as exc:
        # validate_csrf raises wtforms ValidationError
        current_app.logger.warning("CSRF token rejected: %s", exc)
        raise CSRFError(str(exc)) from exc
