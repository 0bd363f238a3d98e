"""PyDAL table definitions for SeriesBoard.

This module defines all PyDAL database tables. Long lines are unavoidable
due to Field() definition syntax and are suppressed from linting.
"""

# flake8: noqa: E501

import datetime

from pydal import Field
from pydal.validators import *  # noqa: F401, F403

ROLES = ["db_admin", "metadata_editor", "dashboard_creator", "user_admin", "public"]
ACCESS_LEVELS = ["view", "edit"]
DATABASE_TYPES = ["postgresql", "clickhouse"]
LEGACY_DASHBOARD_ACCESS = ["public", "private", "shared"]


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


def _timestamps():
    return [
        Field("created_at", "datetime", default=_utcnow, writable=False),
        Field("updated_at", "datetime", default=_utcnow, update=_utcnow, writable=False),
    ]


def define_all_tables(db, migrate=True):
    """Define all database tables using PyDAL.

    Tables are defined in dependency order to satisfy foreign key references.
    User references (created_by, owner, member ids) are plain integers since
    users are never hard-deleted.
    """

    # ==========================================
    # LEVEL 0: Users
    # ==========================================

    db.define_table(
        "users",
        Field("email", "string", length=255, notnull=True, unique=True, requires=IS_EMAIL()),
        Field("password_hash", "string", length=255, notnull=True),
        Field("first_name", "string", length=100, notnull=True),
        Field("last_name", "string", length=100, notnull=True),
        Field("middle_name", "string", length=100),
        Field("organization", "string", length=200),
        Field("department", "string", length=200),
        Field("roles", "list:string", default=[], requires=IS_IN_SET(ROLES, multiple=True)),
        *_timestamps(),
        migrate=migrate,
    )

    # ==========================================
    # LEVEL 1: Connections and groups
    # ==========================================

    db.define_table(
        "database_connections",
        Field("name", "string", length=255, notnull=True, requires=IS_NOT_EMPTY()),
        Field("db_type", "string", length=32, notnull=True, requires=IS_IN_SET(DATABASE_TYPES)),
        Field("host", "string", length=255, notnull=True),
        Field("port", "integer", notnull=True),
        Field("database_name", "string", length=255, notnull=True),
        Field("username", "string", length=255, notnull=True),
        Field("password_encrypted", "text", notnull=True),  # Fernet token
        Field("active", "boolean", default=True, notnull=True),
        Field("created_by", "integer", notnull=True),
        *_timestamps(),
        migrate=migrate,
    )

    db.define_table(
        "user_groups",
        Field("name", "string", length=100, notnull=True, requires=IS_NOT_EMPTY()),
        Field("description", "text", notnull=True),
        Field("role", "string", length=16, default="view", requires=IS_IN_SET(ACCESS_LEVELS)),
        Field("member_ids", "list:integer", default=[]),
        Field("owner", "integer", notnull=True),
        Field("created_by", "integer", notnull=True),
        *_timestamps(),
        migrate=migrate,
    )

    # ==========================================
    # LEVEL 2: Data sources and dashboards
    # ==========================================

    db.define_table(
        "data_sources",
        Field("connection_id", "reference database_connections", notnull=True, ondelete="CASCADE"),
        Field("table_name", "string", length=255, notnull=True),
        Field("schema_name", "string", length=255),
        Field("description", "text"),
        Field("column_metadata", "json", default=[]),  # list of column metadata dicts
        Field("created_by", "integer", notnull=True),
        *_timestamps(),
        migrate=migrate,
    )

    db.define_table(
        "dashboards",
        Field("title", "string", length=200, notnull=True, requires=IS_NOT_EMPTY()),
        Field("description", "text"),
        Field("charts", "json", default=[]),  # list of chart config dicts
        Field("group_ids", "list:integer", default=[]),
        Field("is_public", "boolean"),
        Field("access", "string", length=16, requires=IS_EMPTY_OR(IS_IN_SET(LEGACY_DASHBOARD_ACCESS))),  # legacy visibility
        Field("default_date_range", "string", length=64),
        Field("show_date_range_picker", "boolean", default=True),
        Field("layout", "json"),
        Field("created_by", "integer", notnull=True),
        *_timestamps(),
        migrate=migrate,
    )

    # ==========================================
    # LEVEL 3: Dashboard shares
    # ==========================================

    db.define_table(
        "dashboard_shares",
        Field("dashboard_id", "reference dashboards", notnull=True, ondelete="CASCADE"),
        Field("user_id", "integer", notnull=True),
        Field("access_level", "string", length=16, notnull=True, requires=IS_IN_SET(ACCESS_LEVELS)),
        Field("created_by", "integer", notnull=True),
        Field("created_at", "datetime", default=_utcnow, writable=False),
        migrate=migrate,
    )

    db.commit()
