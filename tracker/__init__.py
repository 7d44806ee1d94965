import os
import logging

import click
from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from tracker import events
from tracker.config import config_by_name
from tracker.errors import TrackerError
from tracker.extensions import db, migrate, login_manager, limiter, cors

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from tracker import models  # noqa: F401

    # --- Audit trail consumer ---
    from tracker.services.audit_service import init_audit_trail
    init_audit_trail(app)

    # --- Register blueprints ---
    from tracker.blueprints.auth import auth_bp
    from tracker.blueprints.users import users_bp
    from tracker.blueprints.projects import projects_bp
    from tracker.blueprints.bugs import bugs_bp
    from tracker.blueprints.audit import audit_bp
    from tracker.blueprints.parameters import parameters_bp
    from tracker.blueprints.messages import messages_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(bugs_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(parameters_bp)
    app.register_blueprint(messages_bp)

    # --- Health check ---
    @app.route("/api/")
    def health():
        return jsonify({"status": "ok", "message": "Tracker API is running"})

    # --- Error handlers ---
    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON API: nothing to load, nothing to frame
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_error_handlers(app):
    """Render every failure as `{"success": false, "error": ...}`.

    Anything that aborts a request also rolls back the session and drops
    staged audit events, so a failed write leaves no audit trail.
    """

    def _abort_unit_of_work():
        db.session.rollback()
        events.discard()

    @app.errorhandler(TrackerError)
    def tracker_error(e):
        _abort_unit_of_work()
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e.message}", exc_info=True)
        return jsonify({"success": False, "error": e.message}), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def store_error(e):
        _abort_unit_of_work()
        logger.error(f"Database error on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"success": False, "error": e.description}), e.code


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--username", default="admin", help="Admin username")
    @click.option("--email", default="admin@tracker.local", help="Admin email")
    @click.option("--password", default="admin123", help="Admin password")
    def seed_admin(username, email, password):
        """Create an approved admin account.

        Usage:
            flask seed-admin
            flask seed-admin --email admin@example.com --password s3cret
        """
        from tracker.errors import ConflictError
        from tracker.models.user import User
        from tracker.services import user_service

        try:
            user = user_service.create_user(username, email, password, role=User.ADMIN_ROLE)
        except ConflictError as e:
            click.echo(f"Admin not created: {e.message}")
            return
        db.session.commit()
        click.echo(f"Created admin user: {user.email} ({user.username})")

    @app.cli.command("seed-parameters")
    def seed_parameters():
        """Load the default role/phase/status/priority taxonomy."""
        from tracker.services import parameter_service

        created = parameter_service.seed_defaults()
        db.session.commit()
        click.echo(
            f"Seeded {created} parameters "
            f"(taxonomy version {parameter_service.current_version()})"
        )
