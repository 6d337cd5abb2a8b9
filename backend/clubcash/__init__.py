# backend/clubcash/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .errors import LedgerError
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.players import players_bp
    from .routes.sessions import sessions_bp
    from .routes.tables import tables_bp
    from .routes.transactions import transactions_bp
    from .routes.credits import credits_bp
    from .routes.dealers import dealers_bp
    from .routes.rake import rake_bp
    from .routes.audit import audit_bp
    from .routes.chips import chips_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(players_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(credits_bp)
    app.register_blueprint(dealers_bp)
    app.register_blueprint(rake_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(chips_bp)

    @app.errorhandler(LedgerError)
    def handle_ledger_error(exc: LedgerError):
        return jsonify({"error": str(exc), "kind": type(exc).__name__}), exc.status_code

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
