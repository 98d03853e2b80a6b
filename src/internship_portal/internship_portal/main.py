from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, g, session

from config import get_settings_module

from .applications.controller import register as register_applications
from .attendance.controller import register as register_attendance
from .common.responses import fail
from .container import Container, build_container
from .core.constants import DEFAULT_FEDERATED_MAX_AGE, DEFAULT_RESET_TOKEN_MAX_AGE, DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, list_tables
from .internships.controller import register as register_internships
from .logging_setup import setup_logging
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users
from .users.session import AuthSession

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    Without ``container`` the MySQL/MinIO container is built from the
    settings module selected by ``APP_ENV``.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    setup_logging(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        log_dir=getattr(settings, "LOG_DIR", None),
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        minio_config = getattr(settings, "MINIO_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            minio_config=minio_config,
            secret_key=app.secret_key,
            reset_token_max_age=int(getattr(settings, "RESET_TOKEN_MAX_AGE", DEFAULT_RESET_TOKEN_MAX_AGE)),
            federated_secret=getattr(settings, "FEDERATED_SECRET", None),
            federated_max_age=int(getattr(settings, "FEDERATED_MAX_AGE", DEFAULT_FEDERATED_MAX_AGE)),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            container.blob_store.ensure_bucket()

    @app.before_request
    def open_auth_session():
        g.auth_session = AuthSession(
            container.auth_service,
            container.profiles_repo,
            uid=session.get("uid"),
        ).open()

    @app.teardown_request
    def close_auth_session(exc):
        auth_session = g.pop("auth_session", None)
        if auth_session is not None:
            auth_session.close()

    @app.errorhandler(404)
    def not_found(e):
        return fail("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return fail("Method not allowed", 405)

    @app.errorhandler(413)
    def too_large(e):
        return fail("File is too large", 413)

    register_users(app, container)
    register_internships(app, container)
    register_applications(app, container)
    register_tasks(app, container)
    register_attendance(app, container)

    return app
