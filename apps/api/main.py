"""Main Flask application for SeriesBoard."""

# flake8: noqa: E501


import logging
import os

import structlog
from flask import Flask, jsonify
from flask_cors import CORS
from prometheus_flask_exporter import PrometheusMetrics
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from apps.api.config import get_config
from apps.api.exceptions import ApiError
from apps.api.logging_config import log_error_and_respond, setup_logging
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import validation_details
from shared.database import ensure_database_ready, init_db, log_startup_status
from shared.utils.content_cache import ContentCache

# Configure standard library logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()
error_logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    config = get_config(config_name)
    app.config.from_object(config)
    config.init_app(app)

    # Setup logging (must be after config but before other initializations)
    setup_logging(app)

    _init_extensions(app)

    db_status = ensure_database_ready(app)
    log_startup_status(db_status)

    if not db_status["connected"]:
        raise RuntimeError("Cannot start application - database not available")

    init_db(app)

    _register_blueprints(app)
    _register_error_handlers(app)

    @app.route("/healthz")
    def health_check():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "service": "seriesboard"}), 200

    @app.route("/api/v1/status")
    def api_status():
        """API status endpoint for version checks and monitoring."""
        return jsonify({
            "status": "operational",
            "service": "seriesboard",
            "version": app.config.get("APP_VERSION", "0.0.0"),
            "environment": app.config.get("ENV", "production"),
        }), 200

    logger.info(
        "seriesboard_app_created",
        config=config_name,
        debug=app.config["DEBUG"],
        version=app.config["APP_VERSION"],
    )

    return app


def _init_extensions(app: Flask) -> None:
    """
    Initialize Flask extensions.

    Args:
        app: Flask application
    """
    CORS(
        app,
        origins=app.config["CORS_ORIGINS"],
        methods=app.config["CORS_METHODS"],
        allow_headers=app.config["CORS_ALLOW_HEADERS"],
        supports_credentials=app.config.get("CORS_SUPPORTS_CREDENTIALS", True),
        expose_headers=app.config.get("CORS_EXPOSE_HEADERS", []),
    )

    # Per-process cache for schema/table listings; never used for authorization
    app.extensions["content_cache"] = ContentCache(
        maxsize=app.config["CONTENT_CACHE_MAXSIZE"],
        ttl=app.config["CONTENT_CACHE_TTL"],
    )

    if app.config.get("METRICS_ENABLED"):
        metrics = PrometheusMetrics(app)
        metrics.info(
            "seriesboard_app_info", "SeriesBoard Application", version=app.config["APP_VERSION"]
        )

    logger.info("extensions_initialized")


def _register_blueprints(app: Flask) -> None:
    """
    Register Flask blueprints.

    Args:
        app: Flask application
    """
    from apps.api.api.v1 import (
        auth,
        dashboards,
        data_sources,
        database_connections,
        groups,
        profile,
        users,
    )
    from apps.api.web import routes as web

    api_prefix = app.config["API_PREFIX"]

    app.register_blueprint(auth.bp, url_prefix=f"{api_prefix}/auth")
    app.register_blueprint(users.bp, url_prefix=f"{api_prefix}/users")
    app.register_blueprint(profile.bp, url_prefix=f"{api_prefix}/profile")
    app.register_blueprint(groups.bp, url_prefix=f"{api_prefix}/groups")
    app.register_blueprint(
        database_connections.bp, url_prefix=f"{api_prefix}/database-connections"
    )
    app.register_blueprint(data_sources.bp, url_prefix=f"{api_prefix}/data-sources")
    app.register_blueprint(dashboards.bp, url_prefix=f"{api_prefix}/dashboards")

    # Public dashboard links (root routes)
    app.register_blueprint(web.bp, url_prefix="")

    logger.info(
        "blueprints_registered",
        api_prefix=api_prefix,
        blueprints=[
            "auth",
            "users",
            "profile",
            "groups",
            "database_connections",
            "data_sources",
            "dashboards",
            "web",
        ],
    )


def _register_error_handlers(app: Flask) -> None:
    """
    Register error handlers mapping failures onto the JSON error contract.

    Args:
        app: Flask application
    """

    @app.errorhandler(ApiError)
    def api_error(error):
        """Handle typed service errors."""
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def validation_error(error):
        """Handle pydantic validation raised outside request parsing."""
        return ApiResponse.validation_error(validation_details(error))

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found."""
        return ApiResponse.not_found()

    @app.errorhandler(HTTPException)
    def http_error(error):
        """Handle other HTTP errors raised by Flask/werkzeug."""
        return ApiResponse.error(error.name, error.code)

    @app.errorhandler(Exception)
    def internal_server_error(error):
        """Handle unexpected failures without leaking details."""
        if getattr(app, "db", None) is not None:
            app.db.rollback()
        return log_error_and_respond(error_logger, error, "Unhandled error", 500)

    logger.info("error_handlers_registered")


if __name__ == "__main__":
    import uvicorn

    from apps.api.asgi import asgi_app

    uvicorn.run(
        asgi_app,
        host=os.getenv("FLASK_HOST", "0.0.0.0"),
        port=int(os.getenv("FLASK_PORT", 5000)),
    )
