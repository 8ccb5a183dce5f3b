"""
Environment-aware configuration.
Token lifetimes, signing, database, SMTP and session policy all live here
and are handed to the services by create_app().
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # jwt configurations
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "storefront-api")
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    RESET_TOKEN_EXPIRES = timedelta(hours=1)

    # Session policy
    SINGLE_SESSION_LOGIN = _env_bool("SINGLE_SESSION_LOGIN", True)
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = _env_bool("REVOKE_SESSIONS_ON_PASSWORD_CHANGE", True)
    ALLOW_ADMIN_SIGNUP = _env_bool("ALLOW_ADMIN_SIGNUP", False)

    # Storage
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
    DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "30"))
    DB_ECHO = False

    # Links in outgoing email point here
    BASE_URL = os.getenv("BASE_URL", "http://localhost:8080")
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)
    SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", "30"))
    FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@storefront.local")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    JWT_SECRET = "test-secret-not-for-production-0123456789abcdef"
    DATABASE_URL = "sqlite://"
    SMTP_HOST = ""
    SINGLE_SESSION_LOGIN = True
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = True
    ALLOW_ADMIN_SIGNUP = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    # No fallback: an unset secret stops the app from starting
    JWT_SECRET = os.getenv("JWT_SECRET", "")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
