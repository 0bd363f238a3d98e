"""Database utilities for SeriesBoard.

PyDAL owns both the schema (``migrate=True`` creates missing tables) and the
runtime queries. The DAL instance is attached to the Flask app as ``app.db``.
"""

# flake8: noqa: E501

import logging
import os

from pydal import DAL

logger = logging.getLogger(__name__)


def get_database_url(app) -> str:
    """
    Get database URL normalized for PyDAL.

    PyDAL uses postgres:// rather than postgresql://.

    Raises:
        ValueError: If DATABASE_URL not configured
    """
    database_url = app.config.get("DATABASE_URL") or os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL not configured")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgres://", 1)

    db_type = (app.config.get("DB_TYPE") or os.getenv("DB_TYPE") or "").lower()
    if db_type == "postgresql" and not database_url.startswith("postgres://"):
        logger.warning("DB_TYPE=postgresql but URL doesn't start with postgres:// for PyDAL")
    elif db_type == "sqlite" and not database_url.startswith("sqlite:"):
        logger.warning("DB_TYPE=sqlite but URL doesn't start with sqlite:")

    return database_url


def _db_folder(app) -> str:
    """Directory holding PyDAL migration files and file-based SQLite databases."""
    folder = app.config.get("DB_FOLDER") or app.instance_path
    os.makedirs(folder, exist_ok=True)
    return folder


def init_db(app):
    """
    Initialize the PyDAL DAL instance, define tables and bind per-request hooks.
    """
    database_url = get_database_url(app)

    logger.info(f"Initializing PyDAL: {database_url.split('@')[0].split('://')[0]}://***")

    folder = _db_folder(app)

    db = DAL(
        database_url,
        folder=folder,
        migrate=True,  # PyDAL creates missing tables
        pool_size=app.config.get("DB_POOL_SIZE", 10),
        fake_migrate_all=False,
    )

    app.db = db

    from shared.models.pydal_models import define_all_tables

    define_all_tables(db)

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            db.rollback()

    _create_default_admin(app, db)

    logger.info("PyDAL database initialized successfully")
    return db


def _create_default_admin(app, db):
    """Create the bootstrap user administrator when credentials are configured."""
    admin_email = app.config.get("ADMIN_EMAIL")
    admin_password = app.config.get("ADMIN_PASSWORD")
    if not admin_email or not admin_password:
        return

    existing_user = db(db.users.email == admin_email.lower()).select().first()
    if existing_user:
        return

    from werkzeug.security import generate_password_hash

    db.users.insert(
        email=admin_email.lower(),
        password_hash=generate_password_hash(admin_password),
        first_name="Admin",
        last_name="User",
        roles=["user_admin"],
    )
    db.commit()
    logger.info(f"Created default user admin: {admin_email}")


def ensure_database_ready(app):
    """Check if database is ready. Returns status dict."""
    try:
        database_url = get_database_url(app)

        test_db = DAL(database_url, folder=_db_folder(app), migrate=False, pool_size=0)
        test_db.close()

        return {
            "connected": True,
            "db_type": database_url.split(":")[0],
        }
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return {"connected": False, "error": str(e)}


def log_startup_status(status):
    """Log database startup status."""
    if status.get("connected"):
        logger.info(f"Database ready - {status.get('db_type')}")
    else:
        logger.error(f"Database not ready: {status.get('error')}")


__all__ = [
    "init_db",
    "get_database_url",
    "ensure_database_ready",
    "log_startup_status",
]
