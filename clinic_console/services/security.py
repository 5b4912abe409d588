"""Security helpers: headers, rate limiting, and permission wrappers."""

from __future__ import annotations

from typing import Callable

from flask import g, jsonify, request
from flask_login import current_user
from flask_limiter.errors import RateLimitExceeded

from clinic_console.auth import requires
from clinic_console.extensions import limiter


def require_permission(scope: str, *, no_store: bool = True) -> Callable:
    """Shorthand for :func:`clinic_console.auth.requires`."""

    return requires(scope, no_store=no_store)


def init_security(app) -> None:
    post_limit = app.config.get("CALENDAR_POST_RATE_LIMIT", "600 per minute")
    for bp_name in ("calendar",):
        bp = app.blueprints.get(bp_name)
        if bp is not None:
            limiter.limit(post_limit, methods=["POST"])(bp)

    @limiter.request_filter
    def skip_rate_limits() -> bool:  # type: ignore[unused-local]
        return request.endpoint in {"static"}

    @app.before_request
    def sync_current_user() -> None:
        g.nostore = False
        g.current_user = current_user if current_user.is_authenticated else None

    @app.after_request
    def apply_headers(response):
        response.headers.setdefault("Content-Security-Policy", "default-src 'self'")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), camera=(), microphone=()")
        if getattr(g, "nostore", False):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(exc: RateLimitExceeded):  # type: ignore[override]
        app.logger.warning("Rate limit exceeded on %s", request.endpoint or "global")
        return jsonify({"success": False, "errors": ["Too many requests"]}), 429
