"""Clinic console package exposing the Flask application factory."""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException

from .auth import login_manager
from .blueprints import register_blueprints
from .extensions import db, init_extensions
from .models import Base
from .services.clinic_api import ClinicApiClient
from .services.security import init_security

APP_HOST = "127.0.0.1"
APP_PORT = 8080

CALENDAR_SOURCES = ("api", "database", "fixture")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _default_config(base_dir: Path) -> dict[str, Any]:
    db_override = os.getenv("CLINIC_DB_PATH")
    db_path = Path(db_override) if db_override else base_dir / "data" / "clinic.db"

    database_uri = os.getenv("CLINIC_DATABASE_URL") or f"sqlite:///{db_path}"
    engine_options: dict[str, Any] = {}
    if database_uri.startswith("sqlite"):
        engine_options["connect_args"] = {"check_same_thread": False}

    return dict(
        SECRET_KEY=os.getenv("CLINIC_SECRET_KEY") or os.urandom(32),
        SESSION_COOKIE_NAME="clinic_session",
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(hours=12),
        SQLALCHEMY_DATABASE_URI=database_uri,
        SQLALCHEMY_ENGINE_OPTIONS=engine_options,
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        CLINIC_API_BASE_URL=os.getenv("CLINIC_API_BASE_URL", "http://localhost:5000/api"),
        CLINIC_API_TIMEOUT=float(os.getenv("CLINIC_API_TIMEOUT", "10")),
        CALENDAR_SOURCE=os.getenv("CALENDAR_SOURCE", "api").lower(),
        CALENDAR_START_HOUR=_int_env("CALENDAR_START_HOUR", 8),
        CALENDAR_END_HOUR=_int_env("CALENDAR_END_HOUR", 19),
        CALENDAR_MIN_VISIBLE_MINUTES=_int_env("CALENDAR_MIN_VISIBLE_MINUTES", 20),
        CALENDAR_SLOT_MINUTES=_int_env("CALENDAR_SLOT_MINUTES", 30),
        CALENDAR_MONTH_MAX_VISIBLE=_int_env("CALENDAR_MONTH_MAX_VISIBLE", 3),
        CALENDAR_POST_RATE_LIMIT=os.getenv("CALENDAR_POST_RATE_LIMIT", "600 per minute"),
    )


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    base_dir = Path(__file__).resolve().parent.parent
    app = Flask(__name__)
    app.config.update(_default_config(base_dir))
    if config:
        app.config.update(config)

    if app.config["CALENDAR_SOURCE"] not in CALENDAR_SOURCES:
        raise ValueError(
            f"CALENDAR_SOURCE must be one of {', '.join(CALENDAR_SOURCES)}, got {app.config['CALENDAR_SOURCE']!r}"
        )

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        Path(uri[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    app.extensions["clinic_api"] = ClinicApiClient(
        app.config["CLINIC_API_BASE_URL"],
        timeout=app.config["CLINIC_API_TIMEOUT"],
    )

    init_extensions(app)
    login_manager.init_app(app)
    register_blueprints(app)
    init_security(app)
    if app.config["CALENDAR_SOURCE"] == "database":
        db.create_all(Base.metadata)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning("CSRF validation failed: %s", e.description)
        return jsonify({"success": False, "errors": [f"CSRF validation failed: {e.description}"]}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "errors": [e.description]}), e.code

    return app


__all__ = ["create_app", "APP_HOST", "APP_PORT"]
