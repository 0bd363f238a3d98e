"""Pytest configuration and fixtures for SeriesBoard tests.

Unit tests use mocks or a throwaway in-memory PyDAL database.
Integration tests build a full app per test against ``sqlite:memory`` so
every test starts from empty tables.
"""

import itertools
import os

import pytest

# Set testing environment before any app imports
os.environ.setdefault("FLASK_ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")


@pytest.fixture(scope="function")
def app(tmp_path, monkeypatch):
    """
    Create Flask application for testing.

    Returns:
        Flask app configured for testing
    """
    from apps.api.config import TestingConfig
    from apps.api.main import create_app

    # Keep PyDAL migration files out of the instance folder
    monkeypatch.setattr(TestingConfig, "DB_FOLDER", str(tmp_path))

    app = create_app("testing")

    with app.app_context():
        yield app

    app.db.close()


@pytest.fixture(scope="function")
def client(app):
    """
    Create Flask test client.

    Args:
        app: Flask application fixture

    Returns:
        Flask test client
    """
    return app.test_client()


@pytest.fixture(scope="function")
def db(app):
    """
    Provide the app's PyDAL database.

    Yields:
        PyDAL db instance
    """
    from apps.api.database import get_db

    yield get_db()


@pytest.fixture
def make_user(db):
    """
    Factory inserting committed users.

    Usage:
        admin_id = make_user(roles=["db_admin"])
    """
    from werkzeug.security import generate_password_hash

    counter = itertools.count(1)

    def _make(roles=(), email=None, password="secret123", first_name="Test"):
        n = next(counter)
        user_id = db.users.insert(
            email=email or f"user{n}@example.com",
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=f"User{n}",
            roles=list(roles),
        )
        db.commit()
        return user_id

    return _make


@pytest.fixture
def auth_header(db):
    """
    Build an Authorization header carrying a valid access token.

    Usage:
        client.get("/api/v1/profile", headers=auth_header(user_id))
    """
    from apps.api.auth import generate_token

    def _header(user_id):
        token = generate_token(db.users[user_id], "access")
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def memory_db(tmp_path):
    """
    Standalone in-memory PyDAL database with all tables defined.

    For unit tests that exercise queries without a Flask app.
    """
    from pydal import DAL

    from shared.models.pydal_models import define_all_tables

    db = DAL("sqlite:memory", folder=str(tmp_path))
    define_all_tables(db)
    yield db
    db.close()


@pytest.fixture
def mock_pydal_db(mocker):
    """
    Create a mock PyDAL database for unit tests.

    Args:
        mocker: pytest-mock fixture

    Returns:
        MagicMock configured as a PyDAL db
    """
    mock_db = mocker.MagicMock()
    mock_db.tables = []
    mock_db.commit = mocker.MagicMock()
    mock_db.rollback = mocker.MagicMock()

    return mock_db


# Markers for test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (requires database)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
