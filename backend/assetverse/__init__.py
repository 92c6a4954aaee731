# backend/assetverse/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Payment provider adapter; tests replace it with a fake
    from .services.payment_gateway import StripePaymentGateway
    app.extensions["payment_gateway"] = StripePaymentGateway(app.config["STRIPE_SECRET_KEY"])

    # Register blueprints
    from .routes.system import system_bp
    from .routes.users import users_bp
    from .routes.assets import assets_bp
    from .routes.requests import requests_bp
    from .routes.employees import employees_bp
    from .routes.payments import payments_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(assets_bp)
    app.register_blueprint(requests_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config["CORS_ALLOWED_ORIGINS"])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
