"""
Environment-aware configuration.
Every key can be overridden by an environment variable of the same name
(a .env file is read on import).
"""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = "development"
    VERSION = "1.0.0"

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///library.db")
    SQL_ECHO = env_flag("SQL_ECHO", False)

    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_DISCOVERY_URL = os.getenv(
        "GOOGLE_DISCOVERY_URL", "https://accounts.google.com/.well-known/openid-configuration"
    )

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = env_flag("SESSION_COOKIE_SECURE", False)
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)

    # False: unknown payload keys are dropped; True: they are reported as errors
    STRICT_UNKNOWN_FIELDS = env_flag("STRICT_UNKNOWN_FIELDS", False)
    EXPOSE_ERROR_DETAILS = env_flag("EXPOSE_ERROR_DETAILS", True)
    EXIT_ON_UNHANDLED = env_flag("EXIT_ON_UNHANDLED", False)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "testing"
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    GOOGLE_CLIENT_ID = "test-client-id"
    GOOGLE_CLIENT_SECRET = "test-client-secret"


class ProductionConfig(BaseConfig):
    APP_ENV = "production"
    SESSION_COOKIE_SECURE = env_flag("SESSION_COOKIE_SECURE", True)
    EXIT_ON_UNHANDLED = env_flag("EXIT_ON_UNHANDLED", True)
    # Never configurable: production responses carry no diagnostics
    EXPOSE_ERROR_DETAILS = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ("prod", "production"):
        return ProductionConfig
    if env in ("test", "testing"):
        return TestingConfig
    return DevelopmentConfig
