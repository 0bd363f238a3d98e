"""Logging setup and error-logging helpers for SeriesBoard."""

# flake8: noqa: E501


import logging

import structlog
from flask import jsonify

_NOISY_LOGGERS = ("werkzeug", "httpx", "httpcore", "urllib3")


def setup_logging(app) -> None:
    """
    Configure stdlib and structlog logging from app config.

    Args:
        app: Flask application
    """
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)

    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)

    quiet_level = logging.INFO if app.config.get("DEBUG") else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    structlog.get_logger().info(
        "logging_configured",
        level=logging.getLevelName(level),
        env=app.config.get("ENV"),
    )


def log_error_and_respond(logger, error: Exception, message: str, status_code: int = 500):
    """
    Log an unexpected error and return a generic JSON error response.

    Storage and driver details are logged but never leaked to the client.

    Args:
        logger: Logger to write to
        error: The exception that was raised
        message: Context describing the failed operation
        status_code: HTTP status to return

    Returns:
        Tuple of (response, status_code)
    """
    logger.error("%s: %s", message, error, exc_info=True)
    return jsonify({"error": "Internal server error"}), status_code
