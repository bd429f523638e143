"""
Project Tracker
Flask Application Factory.

Usage:
    from tracker import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from tracker.config import config
from tracker.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    DanglingReferenceError,
    NotFoundError,
    ValidationError,
)
from tracker.middleware.logging_config import configure_logging
from tracker.middleware.timing import init_request_timing
from tracker.models import db

logger = logging.getLogger(__name__)

migrate = Migrate()


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement so ownership cascades hold in SQLite."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(NotFoundError)
    def _not_found(error: NotFoundError):
        return jsonify({"error": str(error), "resource": error.resource}), 404

    @app.errorhandler(AlreadyExistsError)
    def _already_exists(error: AlreadyExistsError):
        return jsonify({"error": str(error), "field": error.field}), 409

    @app.errorhandler(ConflictError)
    def _conflict(error: ConflictError):
        return jsonify({"error": str(error)}), 409

    @app.errorhandler(DanglingReferenceError)
    def _dangling(error: DanglingReferenceError):
        return jsonify({"error": str(error), "field": error.field}), 422

    @app.errorhandler(ValidationError)
    def _validation(error: ValidationError):
        return jsonify({"error": str(error), "details": error.details}), 400

    @app.errorhandler(404)
    def _route_not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def _server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to the APP_ENV env var, or "development".

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    init_request_timing(app)

    # ── Import all models so Alembic and create_all see them ─────────────
    from tracker.models import notes as _notes_models      # noqa: F401
    from tracker.models import people as _people_models    # noqa: F401
    from tracker.models import project as _project_models  # noqa: F401

    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(os.path.dirname(db_uri[len("sqlite:///"):]) or ".", exist_ok=True)

    with app.app_context():
        db.create_all()
        logger.debug("db.create_all() completed")

    # ── Blueprints ───────────────────────────────────────────────────────
    from tracker.blueprints.health_bp import health_bp
    from tracker.blueprints.people_bp import people_bp
    from tracker.blueprints.project_bp import project_bp
    from tracker.blueprints.resource_bp import resource_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(people_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(resource_bp)

    _register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    from tracker.cli import register_cli
    register_cli(app)

    return app
