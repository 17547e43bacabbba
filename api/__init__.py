import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .listing import IdConverter
from .sessions import SessionFlow
from models import storage  # DBStorage singleton (scoped_session)
from models.user import Role
from utils.refresh_tokens import RefreshTokenStore
from utils.security import TokenSigner

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Clean Shop API",
        "version": "1.0.0",
        "description": "REST API for the shop: authentication, categories and products.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def _configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    _configure_logging(app.config["LOG_LEVEL"])

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    app.url_map.converters["id"] = IdConverter

    # Auth core, built once from config and shared by the blueprints
    storage.reload()
    signer = TokenSigner.from_config(app.config)
    refresh_store = RefreshTokenStore.from_config(storage, app.config)
    app.extensions["token_signer"] = signer
    app.extensions["refresh_store"] = refresh_store
    app.extensions["session_flow"] = SessionFlow(
        storage,
        signer,
        refresh_store,
        default_role=Role.parse(app.config["DEFAULT_USER_ROLE"]),
        conceal_unknown_email=app.config["LOGIN_CONCEAL_UNKNOWN_EMAIL"],
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .categories import bp as categories_bp
    from .products import bp as products_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "status": "ok",
            "docs": "/apidocs/",
            "health": "/health",
        }, 200

    return app
