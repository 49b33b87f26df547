import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .cli import register_commands
from models.db_storage import DBStorage
from services.credential_store import CredentialStore
from services.refresh_token_store import RefreshTokenStore
from services.session import SessionCoordinator
from utils.security import AccessTokenIssuer

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Dairy Auth API",
        "version": "1.0.0",
        "description": "Registration, login and refresh-token rotation for the dairy supply-chain dashboards.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
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


def configure_logging(level: str):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app(config_name: str | None = None, storage: DBStorage | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    The database handle is built here (or passed in by tests) and injected
    into the stores; nothing below reaches for a module-level connection.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    configure_logging(app.config["LOG_LEVEL"])

    if not app.config.get("JWT_ACCESS_SECRET"):
        raise RuntimeError("JWT_ACCESS_SECRET is not set")

    # Dashboards send the refresh cookie cross-origin, so origins must be explicit
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)
    register_commands(app)

    if storage is None:
        storage = DBStorage(app.config["DATABASE_URL"])
        storage.reload()

    issuer = AccessTokenIssuer(
        app.config["JWT_ACCESS_SECRET"],
        app.config["ACCESS_TOKEN_EXPIRES"],
        algorithm=app.config["JWT_ALGORITHM"],
        issuer=app.config["JWT_ISSUER"],
    )
    app.extensions["storage"] = storage
    app.extensions["auth"] = SessionCoordinator(
        CredentialStore(storage),
        RefreshTokenStore(storage),
        issuer,
        refresh_ttl_days=app.config["REFRESH_TOKEN_TTL_DAYS"],
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Dairy Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
