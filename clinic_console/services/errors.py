"""Error reporting helpers for route handlers."""

from __future__ import annotations

from flask import current_app, has_request_context, request


def record_exception(where: str, exc: BaseException) -> None:
    """Log an unexpected failure with its traceback and request context."""
    context = ""
    if has_request_context():
        context = f" [{request.method} {request.path}]"
    current_app.logger.error("Unhandled error in %s%s: %s", where, context, exc, exc_info=exc)
