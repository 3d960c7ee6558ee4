"""
Environment-driven configuration classes.

Each class maps to one deployment environment. Values are read from the
process environment when the module is imported; `.env` files are loaded
by `wsgi.py` before the application is created.
"""

import os


class ConfigurationError(Exception):
    """
    Raised when an invalid or unsupported configuration is requested.
    """
    pass


def _env_bool(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_list(name, default=""):
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class BaseConfig:
    """
    Base configuration shared by all environments.
    """

    # Flask
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    ENVIRONMENT = "base"

    # Application
    APP_NAME = os.getenv("APP_NAME", "Panavest Courses")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///panavest.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Paystack
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
    PAYSTACK_WEBHOOK_SECRET = os.getenv("PAYSTACK_WEBHOOK_SECRET")
    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_TIMEOUT = int(os.getenv("PAYSTACK_TIMEOUT", "10"))
    # Template with a {slug} placeholder; empty means "our own callback route"
    PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL", "")
    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GHS").upper()

    # CORS
    CORS_ORIGINS = _env_list("CORS_ORIGINS", "http://localhost:3000")
    CORS_METHODS = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS = ["Content-Type", "Authorization", "X-Request-ID"]

    # Rate limiting
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True
    CHECKOUT_RATE_LIMIT = os.getenv("CHECKOUT_RATE_LIMIT", "10 per minute")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_REQUESTS = _env_bool("LOG_REQUESTS")

    # Observability
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    @classmethod
    def validate(cls):
        """Hook for environment specific checks, run by the app factory."""
        return None


class DevelopmentConfig(BaseConfig):
    """
    Development configuration.
    """

    DEBUG = True
    ENVIRONMENT = "development"
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()


class TestingConfig(BaseConfig):
    """
    Test configuration: in-memory database, fixed gateway credentials.
    """

    TESTING = True
    ENVIRONMENT = "testing"
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URI", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PAYSTACK_SECRET_KEY = "sk_test_mock"
    PAYSTACK_WEBHOOK_SECRET = None
    PAYSTACK_BASE_URL = "https://api.paystack.test"
    PAYSTACK_CALLBACK_URL = ""
    DEFAULT_CURRENCY = "GHS"
    FRONTEND_URL = "https://courses.example.com"
    RATELIMIT_ENABLED = False
    LOG_REQUESTS = False
    SENTRY_DSN = None


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    ENVIRONMENT = "production"

    # MUST be set via environment variable in real production
    SECRET_KEY = os.getenv("SECRET_KEY")

    @classmethod
    def validate(cls):
        if not cls.SECRET_KEY:
            raise ConfigurationError("SECRET_KEY must be set in production")
        if cls.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            raise ConfigurationError("SQLite is not suitable for production")


CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name=None):
    """
    Resolve and return the configuration class for `name`, falling back
    to the APP_ENV environment variable.

    Supported values:
    - development
    - testing
    - production
    """

    env = (name or os.getenv("APP_ENV", "development")).lower()

    try:
        return CONFIGS[env]
    except KeyError:
        raise ConfigurationError(f"Invalid APP_ENV value: {env}") from None
