"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

import logging
import uuid

from flask import Flask, g, session

from ..extensions import csrf_protect, db, login_manager
from .logging_config import setup_logging
from .module_registry import register_default_modules

CLIENT_ID_SESSION_KEY = "memo_client_id"


def configure_logging(app: Flask) -> None:
    """Configure application logging if no handlers are present."""

    if app.logger.handlers:
        return

    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    app.logger.addHandler(handler)
    app.logger.propagate = False

    if not app.testing:
        setup_logging(app, log_level=app.config.get("LOG_LEVEL", "INFO"), log_dir=app.config.get("LOG_DIR"))
    app.logger.info("Flask app logger configured successfully.")


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    db.init_app(app)
    login_manager.init_app(app)
    csrf_protect.init_app(app)

    from ..modules.auth.models import load_backend_user

    login_manager.user_loader(load_backend_user)


def register_client_identity(app: Flask) -> None:
    """Give every browser a stable client id; it partitions the session store."""

    @app.before_request
    def ensure_client_id() -> None:
        client_id = session.get(CLIENT_ID_SESSION_KEY)
        if not client_id:
            client_id = uuid.uuid4().hex
            session[CLIENT_ID_SESSION_KEY] = client_id
            session.permanent = True
        g.client_id = client_id


def register_blueprints(app: Flask) -> None:
    """Register all default blueprints with the app."""

    register_default_modules(app)


def initialize_database(app: Flask) -> None:
    """Create the tables used by the session store."""

    from .. import models  # noqa: F401  # register models with the metadata

    db.create_all()
    app.logger.info("Session store tables ready.")
