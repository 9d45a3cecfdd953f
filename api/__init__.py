import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import AuthSettings, get_config
from .errors import register_error_handlers
from models import storage
from utils.security import TokenIssuer
from utils.sessions import SessionManager

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Storefront API",
        "version": "1.0.0",
        "description": "Registration, login and session refresh for the storefront.",
    },
    "basePath": "/",  # Blueprints are mounted under /api
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


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (used by tests).
    Raises ConfigurationError when the token secrets are missing.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    _configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Built once and shared by reference; startup stops here without secrets
    auth_settings = AuthSettings.from_config(app.config)
    issuer = TokenIssuer(auth_settings)

    storage.reload(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))

    app.extensions["auth_settings"] = auth_settings
    app.extensions["token_issuer"] = issuer
    app.extensions["session_manager"] = SessionManager(storage, issuer)

    # The refresh cookie is sent cross-site, so origins must be explicit
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}}, supports_credentials=True)

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Storefront API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    logging.getLogger(__name__).info("Storefront API configured (env=%s)", app.config.get("APP_ENV"))
    return app
