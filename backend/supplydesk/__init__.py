# backend/supplydesk/__init__.py
from __future__ import annotations

from flask import Flask, current_app, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .validation import ValidationError


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admins import admins_bp
    from .routes.schools import schools_bp
    from .routes.students import students_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.suppliers import suppliers_bp
    from .routes.purchases import purchases_bp
    from .routes.invoices import invoices_bp
    from .routes.commissions import commissions_bp
    from .routes.reports import reports_bp, dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admins_bp)
    app.register_blueprint(schools_bp)
    app.register_blueprint(students_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(commissions_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(dashboard_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return {"success": False, "message": str(exc)}, 400

    @app.errorhandler(404)
    def handle_not_found(exc):
        return {"success": False, "message": "Route not found"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return {"success": False, "message": "Method not allowed"}, 405

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        if isinstance(exc, HTTPException):
            return {"success": False, "message": exc.description}, exc.code
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return {"success": False, "message": "Internal server error"}, 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
