"""Shared Flask extensions: database session, CSRF protection, rate limiting."""

from __future__ import annotations

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import scoped_session, sessionmaker


class Database:
    """Engine plus a scoped session, bound when the app is created."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.session = scoped_session(sessionmaker(expire_on_commit=False))

    def init_app(self, app: Flask) -> None:
        self.engine = create_engine(
            app.config["SQLALCHEMY_DATABASE_URI"],
            **app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}),
        )
        self.session.remove()
        self.session.configure(bind=self.engine)

        @app.teardown_appcontext
        def remove_session(exc: BaseException | None = None) -> None:  # type: ignore[unused-local]
            self.session.remove()

    def create_all(self, metadata: MetaData) -> None:
        if self.engine is None:
            raise RuntimeError("Database.init_app() has not been called")
        metadata.create_all(self.engine)


db = Database()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)


def init_extensions(app: Flask) -> None:
    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
