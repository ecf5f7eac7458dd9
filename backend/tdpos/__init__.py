# backend/tdpos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .stores import EXTENSION_KEY, SqlCatalogStore, SqlOrderStore


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Store clients are built once here and injected into the services per request
    app.extensions[EXTENSION_KEY] = {
        "catalog": SqlCatalogStore(db.session),
        "orders": SqlOrderStore(db.session),
    }

    # Register blueprints
    from .routes.system import system_bp
    from .routes.branches import branches_bp
    from .routes.products import products_bp
    from .routes.employees import employees_bp
    from .routes.orders import orders_bp
    from .routes.pos import pos_bp
    from .routes.dashboard import dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(branches_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(dashboard_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info(
        "tdpos ready (database=%s, timezone=%s)",
        app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1],
        app.config["BUSINESS_TIMEZONE"],
    )
    return app
