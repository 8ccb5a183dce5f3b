import atexit
import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from services.auth import AuthService
from services.notifications import EmailNotifier
from utils.security import TokenSigner

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Storefront API",
        "version": "1.0.0",
        "description": "Accounts and sessions for the online catalog: signup, login, token refresh and password recovery.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
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


def create_app(config_name: str | None = None, notifier=None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The signing secret, lifetimes and session policy are read once here and
    passed to the services; a bad signer configuration raises SigningError
    and the app does not start.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)
    register_error_handlers(app)

    signer = TokenSigner.from_config(app.config)

    storage.configure(
        app.config["DATABASE_URL"],
        timeout=app.config["DB_TIMEOUT_SECONDS"],
        echo=app.config.get("DB_ECHO", False),
    )
    storage.reload()

    if notifier is None:
        notifier = EmailNotifier.from_config(app.config)
        atexit.register(notifier.shutdown, wait=False)

    app.extensions["auth_service"] = AuthService(
        storage,
        signer,
        notifier,
        base_url=app.config["BASE_URL"],
        reset_token_ttl=app.config["RESET_TOKEN_EXPIRES"],
        single_session_login=app.config["SINGLE_SESSION_LOGIN"],
        revoke_sessions_on_password_change=app.config["REVOKE_SESSIONS_ON_PASSWORD_CHANGE"],
        allow_admin_signup=app.config["ALLOW_ADMIN_SIGNUP"],
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .password import bp as password_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1")
    app.register_blueprint(password_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Storefront API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
