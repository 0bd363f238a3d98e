"""
Unit tests for ConnectionService encryption, ownership and caching.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from cryptography.fernet import Fernet

from apps.api.exceptions import ForbiddenError, NotFoundError
from apps.api.models.dataclasses import CurrentUser
from apps.api.models.pydantic import CreateConnectionRequest, UpdateConnectionRequest
from apps.api.services.connections.service import ConnectionService
from apps.api.services.drivers import SeriesQuery
from shared.utils.content_cache import ContentCache
from shared.utils.crypto import SecretBox

ADMIN_A = CurrentUser(id=1, email="a@example.com", roles=frozenset({"db_admin"}))
ADMIN_B = CurrentUser(id=2, email="b@example.com", roles=frozenset({"db_admin"}))
EDITOR = CurrentUser(id=3, email="e@example.com", roles=frozenset({"metadata_editor"}))


class TestConnectionService:
    """Test ConnectionService against an in-memory database."""

    @pytest.fixture
    def cache(self):
        return ContentCache(maxsize=32, ttl=300)

    @pytest.fixture
    def service(self, memory_db, cache):
        return ConnectionService(memory_db, SecretBox(Fernet.generate_key().decode()), cache=cache)

    @pytest.fixture
    def connection(self, service):
        payload = CreateConnectionRequest.model_validate(
            {
                "name": "warehouse",
                "type": "postgresql",
                "host": "pg.local",
                "port": 5432,
                "database": "metrics",
                "username": "reader",
                "password": "s3cret",
            }
        )
        return service.create_connection(payload, ADMIN_A)

    @pytest.fixture
    def fake_driver(self, mocker):
        driver = mocker.MagicMock()
        driver.__enter__.return_value = driver
        driver.list_schemas.return_value = ["public", "sales"]
        driver.list_tables.return_value = ["readings"]
        driver.test_connection.return_value = True
        get_driver = mocker.patch(
            "apps.api.services.connections.service.get_driver", return_value=driver
        )
        return get_driver, driver

    def test_password_is_encrypted_and_never_returned(self, service, memory_db, connection):
        assert "password" not in connection
        assert "password_encrypted" not in connection

        stored = memory_db.database_connections[connection["id"]].password_encrypted
        assert stored != "s3cret"
        assert service.secret_box.decrypt(stored) == "s3cret"

    def test_any_db_admin_may_update(self, service, connection):
        payload = UpdateConnectionRequest.model_validate({"host": "pg2.local"})
        updated = service.update_connection(connection["id"], payload, ADMIN_B)
        assert updated["host"] == "pg2.local"

    def test_non_admin_update_forbidden(self, service, connection):
        payload = UpdateConnectionRequest.model_validate({"host": "pg2.local"})
        with pytest.raises(ForbiddenError):
            service.update_connection(connection["id"], payload, EDITOR)

    def test_missing_connection(self, service):
        with pytest.raises(NotFoundError):
            service.get_connection(999)

    def test_driver_receives_decrypted_password(self, service, connection, fake_driver):
        get_driver, _ = fake_driver
        assert service.test_connection(connection["id"]) == {"valid": True}

        descriptor = get_driver.call_args.args[0]
        assert descriptor.password == "s3cret"
        assert descriptor.database == "metrics"

    def test_schema_listing_is_cached(self, service, connection, fake_driver):
        _, driver = fake_driver
        assert service.list_schemas(connection["id"]) == ["public", "sales"]
        assert service.list_schemas(connection["id"]) == ["public", "sales"]
        assert driver.list_schemas.call_count == 1

    def test_update_invalidates_cached_listings(self, service, connection, fake_driver, cache):
        _, driver = fake_driver
        service.list_tables(connection["id"], "public")
        assert len(cache) == 1

        service.update_connection(
            connection["id"], UpdateConnectionRequest.model_validate({"password": "rotated"}), ADMIN_B
        )
        assert len(cache) == 0

        service.list_tables(connection["id"], "public")
        assert driver.list_tables.call_count == 2

    def test_delete_cascades_data_sources(self, service, memory_db, connection):
        memory_db.data_sources.insert(
            connection_id=connection["id"], table_name="readings", column_metadata=[], created_by=1
        )
        memory_db.commit()

        service.delete_connection(connection["id"], ADMIN_B)

        assert memory_db(memory_db.data_sources).count() == 0

    def test_series_rows_are_cached_per_query(self, service, connection, fake_driver):
        _, driver = fake_driver
        driver.fetch_series.return_value = [{"x": datetime(2024, 1, 1, 12, 0), "y": Decimal("1.5")}]
        hourly = SeriesQuery(table_name="readings", x_column="ts", y_column="value", aggregate="avg", bucket="hour")
        daily = SeriesQuery(table_name="readings", x_column="ts", y_column="value", aggregate="avg", bucket="day")

        first = service.fetch_series(connection["id"], hourly)
        again = service.fetch_series(connection["id"], hourly)
        service.fetch_series(connection["id"], daily)

        assert first == again == [{"x": "2024-01-01T12:00:00", "y": 1.5}]
        assert driver.fetch_series.call_count == 2

    def test_connection_update_drops_cached_series(self, service, connection, fake_driver, cache):
        _, driver = fake_driver
        driver.fetch_series.return_value = []
        query = SeriesQuery(table_name="readings", x_column="ts", y_column="value")

        service.fetch_series(connection["id"], query)
        service.update_connection(connection["id"], UpdateConnectionRequest.model_validate({"host": "pg2"}), ADMIN_B)
        service.fetch_series(connection["id"], query)

        assert driver.fetch_series.call_count == 2
