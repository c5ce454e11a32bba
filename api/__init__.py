import logging
import os

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models.db_storage import DBStorage
from utils.accounts import AccountManager
from utils.media import LocalMediaStore
from utils.security import CredentialHasher, SecuritySettings, TokenIssuer

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "YourTube Accounts API",
        "version": "1.0.0",
        "description": "User accounts for the video platform: registration, sessions, tokens and profile media.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the access token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
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

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None, storage: DBStorage | None = None,
               media_store=None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    `storage` and `media_store` default to a DBStorage on DATABASE_URL and a
    LocalMediaStore on MEDIA_ROOT; tests pass their own.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    config_cls = get_config(config_name)
    app.config.from_object(config_cls)

    # Cross-Origin Resource Sharing; credentials are needed for the session cookies
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    if storage is None:
        storage = DBStorage(app.config.get("DATABASE_URL"))
        storage.reload()
    if media_store is None:
        media_store = LocalMediaStore(app.config["MEDIA_ROOT"], app.config["MEDIA_BASE_URL"])
    os.makedirs(app.config["UPLOAD_TEMP_DIR"], exist_ok=True)

    settings = SecuritySettings.from_config(app.config)
    app.extensions["storage"] = storage
    app.extensions["media"] = media_store
    app.extensions["accounts"] = AccountManager(
        storage, CredentialHasher(settings), TokenIssuer(settings), media_store
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .media import bp as media_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    # media is only served here when it lives on this host
    if app.config["MEDIA_BASE_URL"].startswith("/"):
        app.register_blueprint(media_bp, url_prefix=app.config["MEDIA_BASE_URL"])

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to YourTube Accounts API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    logger.info("App created with %s", config_cls.__name__)
    return app
