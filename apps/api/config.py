"""Application configuration for SeriesBoard."""

# flake8: noqa: E501


import os
from datetime import timedelta


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Config:
    """Base configuration."""

    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    ENV = "production"
    DEBUG = False
    TESTING = False

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")

    # JWT (identity provider)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 3600))
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES", 2592000))
    )

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://seriesboard.sqlite")
    DB_TYPE = os.getenv("DB_TYPE")
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
    # Directory for PyDAL migration (.table) files; defaults to the instance path
    DB_FOLDER = os.getenv("DB_FOLDER")

    # API
    API_PREFIX = "/api/v1"

    # CORS
    CORS_ORIGINS = _env_list("CORS_ORIGINS", "*")
    CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]
    CORS_SUPPORTS_CREDENTIALS = True
    CORS_EXPOSE_HEADERS = []

    # Metrics
    METRICS_ENABLED = _env_bool("METRICS_ENABLED", "true")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Secret used to encrypt database connection passwords at rest
    CONNECTION_ENCRYPTION_KEY = os.getenv("CONNECTION_ENCRYPTION_KEY")

    # Content cache for schema/table listings
    CONTENT_CACHE_TTL = int(os.getenv("CONTENT_CACHE_TTL", 300))
    CONTENT_CACHE_MAXSIZE = int(os.getenv("CONTENT_CACHE_MAXSIZE", 1024))

    # External database drivers
    DRIVER_TIMEOUT = float(os.getenv("DRIVER_TIMEOUT", 10.0))

    # Bootstrap user administrator
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    @staticmethod
    def init_app(app):
        """Hook for environment-specific initialization."""
        pass


class DevelopmentConfig(Config):
    """Development configuration."""

    ENV = "development"
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()


class TestingConfig(Config):
    """Testing configuration."""

    ENV = "testing"
    TESTING = True
    DATABASE_URL = "sqlite:memory"
    DB_POOL_SIZE = 0
    METRICS_ENABLED = False
    SECRET_KEY = "test-secret-key-for-testing-only"
    JWT_SECRET_KEY = "test-secret-key-for-testing-only"
    CONNECTION_ENCRYPTION_KEY = None
    ADMIN_EMAIL = None
    ADMIN_PASSWORD = None


class ProductionConfig(Config):
    """Production configuration."""

    @staticmethod
    def init_app(app):
        """Refuse to start with the development secret."""
        if app.config["SECRET_KEY"] == "dev-secret-key-change-me":
            raise RuntimeError("SECRET_KEY must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(config_name: str = None):
    """
    Get configuration class by name.

    Args:
        config_name: development, testing or production

    Returns:
        Configuration class
    """
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")
    return config.get(config_name, config["default"])
