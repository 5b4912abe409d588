"""Authentication helpers using Flask-Login and clinic API tokens."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Iterable

from flask import abort, current_app, g, request
from flask_login import LoginManager, UserMixin, current_user, login_required

from clinic_console.services.clinic_api import ClinicApiError

logger = logging.getLogger(__name__)

login_manager = LoginManager()


class StaffUser(UserMixin):
    def __init__(self, user_id: str, email: str | None, role: str | None, permissions: Iterable[str]) -> None:
        self.id = user_id
        self.email = email
        self.role = role
        self.permissions = frozenset(permissions)

    def has_permission(self, code: str) -> bool:
        return code in self.permissions

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StaffUser":
        return cls(
            user_id=str(payload.get("id")),
            email=payload.get("email"),
            role=payload.get("role"),
            permissions=payload.get("permissions") or (),
        )


def bearer_token() -> str | None:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@login_manager.request_loader
def _load_user_from_request(req) -> StaffUser | None:
    token = bearer_token()
    if not token:
        return None
    client = current_app.extensions["clinic_api"]
    try:
        payload = client.current_user(token)
    except ClinicApiError as exc:
        logger.warning("Token validation failed, treating request as anonymous: %s", exc)
        return None
    if not payload:
        return None
    return StaffUser.from_payload(dict(payload))


@login_manager.unauthorized_handler
def _unauthorized():
    abort(401)


def requires(permission_code: str, *, no_store: bool = True) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator enforcing that the current user has the specified permission."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        @login_required
        def wrapped(*args: Any, **kwargs: Any):
            if no_store:
                g.nostore = True
            if current_app.config.get("LOGIN_DISABLED"):
                return func(*args, **kwargs)
            if not current_user.is_authenticated or not current_user.has_permission(permission_code):
                logger.info("Permission %s denied for user %s", permission_code, getattr(current_user, "id", None))
                abort(403)
            return func(*args, **kwargs)

        return wrapped

    return decorator


def current_user_has(permission_code: str) -> bool:
    if current_app.config.get("LOGIN_DISABLED"):
        return True
    return current_user.is_authenticated and current_user.has_permission(permission_code)
