"""
Integration tests for dashboards, charts and shares.

Covers visibility for anonymous, shared and group viewers along with the
creator-only share management.
"""

import pytest

BASE = "/api/v1/dashboards"


@pytest.fixture
def creator(make_user):
    return make_user(roles=["dashboard_creator"])


@pytest.fixture
def table_ref(db, creator):
    """A connection with one data source for charts to point at."""
    connection_id = db.database_connections.insert(
        name="warehouse",
        db_type="postgresql",
        host="pg.local",
        port=5432,
        database_name="metrics",
        username="reader",
        password_encrypted="unused",
        created_by=creator,
    )
    data_source_id = db.data_sources.insert(
        connection_id=connection_id, table_name="readings", column_metadata=[], created_by=creator
    )
    db.commit()
    return connection_id, data_source_id


def _chart(table_ref, **overrides):
    connection_id, data_source_id = table_ref
    chart = {
        "type": "line",
        "title": "Temperature",
        "connection_id": connection_id,
        "table_id": data_source_id,
        "x_axis": "ts",
        "y_axis": "value",
        "position": {"x": 0, "y": 0, "width": 6, "height": 4},
    }
    chart.update(overrides)
    return chart


def _create(client, headers, **overrides):
    body = {"title": "Ops"}
    body.update(overrides)
    response = client.post(BASE, headers=headers, json=body)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


@pytest.mark.integration
class TestDashboardVisibility:
    """Test who can see which dashboards."""

    def test_anonymous_sees_only_public(self, client, creator, auth_header):
        headers = auth_header(creator)
        public = _create(client, headers, title="Public", is_public=True)
        private = _create(client, headers, title="Private")

        listing = client.get(BASE).get_json()
        assert [d["id"] for d in listing] == [public["id"]]
        assert listing[0]["access_level"] == "view"
        assert listing[0]["can_edit"] is False

        assert client.get(f"{BASE}/{private['id']}").status_code == 404

    def test_public_link_redirects_for_private(self, client, creator, auth_header):
        headers = auth_header(creator)
        public = _create(client, headers, is_public=True)
        private = _create(client, headers)

        ok = client.get(f"/dashboards/{public['id']}/public")
        assert ok.status_code == 200
        assert ok.get_json()["id"] == public["id"]

        redirected = client.get(f"/dashboards/{private['id']}/public")
        assert redirected.status_code == 302
        assert redirected.headers["Location"].endswith("/")

        missing = client.get("/dashboards/999/public")
        assert missing.status_code == 302

    def test_legacy_access_is_accepted(self, client, creator, auth_header):
        dashboard = _create(client, auth_header(creator), access="public")
        assert dashboard["is_public"] is True
        assert client.get(f"{BASE}/{dashboard['id']}").status_code == 200

    def test_creator_gets_edit(self, client, creator, auth_header):
        dashboard = _create(client, auth_header(creator))
        assert dashboard["access_level"] == "edit"
        assert dashboard["can_edit"] is True
        assert dashboard["layout"] == {"charts_per_row": 2}

    def test_group_editor_edits_charts_but_not_settings(self, client, creator, make_user, auth_header, table_ref):
        member = make_user()
        creator_headers = auth_header(creator)
        group = client.post(
            "/api/v1/groups",
            headers=creator_headers,
            json={"name": "editors", "description": "Editors", "role": "edit", "member_ids": [member]},
        ).get_json()
        dashboard = _create(client, creator_headers, group_ids=[group["id"]])

        member_headers = auth_header(member)
        seen = client.get(f"{BASE}/{dashboard['id']}", headers=member_headers).get_json()
        assert seen["access_level"] == "edit"
        assert seen["can_edit"] is True

        added = client.post(f"{BASE}/{dashboard['id']}/charts", headers=member_headers, json=_chart(table_ref, id="cpu"))
        assert added.status_code == 201

        response = client.put(
            f"{BASE}/{dashboard['id']}",
            headers=member_headers,
            json={"is_public": True, "group_ids": [], "title": "Renamed"},
        )
        assert response.status_code == 403

        unchanged = client.get(f"{BASE}/{dashboard['id']}", headers=creator_headers).get_json()
        assert unchanged["title"] == "Ops"
        assert unchanged["is_public"] is False
        assert unchanged["group_ids"] == [group["id"]]
        assert client.get(f"{BASE}/{dashboard['id']}").status_code == 404

    def test_removed_member_loses_access(self, client, creator, make_user, auth_header):
        member = make_user()
        creator_headers = auth_header(creator)
        group_id = client.post(
            "/api/v1/groups",
            headers=creator_headers,
            json={"name": "viewers", "description": "Viewers", "member_ids": [member]},
        ).get_json()["id"]
        dashboard = _create(client, creator_headers, group_ids=[group_id])

        assert client.get(f"{BASE}/{dashboard['id']}", headers=auth_header(member)).status_code == 200

        client.put(
            f"/api/v1/groups/{group_id}",
            headers=creator_headers,
            json={"name": "viewers", "description": "Viewers", "member_ids": []},
        )

        assert client.get(f"{BASE}/{dashboard['id']}", headers=auth_header(member)).status_code == 404

    def test_unknown_group_rejected(self, client, creator, auth_header):
        response = client.post(BASE, headers=auth_header(creator), json={"title": "T", "group_ids": [404]})
        assert response.status_code == 400
        assert response.get_json()["details"][0]["field"] == "group_ids"


@pytest.mark.integration
class TestDashboardMutations:
    """Test create, update and delete rules."""

    def test_create_requires_dashboard_creator(self, client, make_user, auth_header):
        response = client.post(BASE, headers=auth_header(make_user()), json={"title": "T"})
        assert response.status_code == 403
        assert "dashboard_creator" in response.get_json()["message"]

    def test_view_grantee_cannot_edit(self, client, creator, make_user, auth_header):
        viewer = make_user()
        creator_headers = auth_header(creator)
        dashboard = _create(client, creator_headers)
        client.post(f"{BASE}/{dashboard['id']}/share", headers=creator_headers, json={"user_id": viewer, "access_level": "view"})

        response = client.put(f"{BASE}/{dashboard['id']}", headers=auth_header(viewer), json={"title": "Mine"})
        assert response.status_code == 403

    def test_stranger_update_is_not_found(self, client, creator, make_user, auth_header):
        dashboard = _create(client, auth_header(creator))
        response = client.put(f"{BASE}/{dashboard['id']}", headers=auth_header(make_user()), json={"title": "X"})
        assert response.status_code == 404

    def test_update_visibility_and_layout(self, client, creator, auth_header):
        headers = auth_header(creator)
        dashboard = _create(client, headers)

        response = client.put(
            f"{BASE}/{dashboard['id']}",
            headers=headers,
            json={"is_public": True, "layout": {"type": "column"}, "show_date_range_picker": False},
        )

        data = response.get_json()
        assert data["is_public"] is True
        assert data["layout"] == {"charts_per_row": 1}
        assert data["show_date_range_picker"] is False

    def test_delete_by_creator_removes_shares(self, client, db, creator, make_user, auth_header):
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": make_user(), "access_level": "view"})

        assert client.delete(f"{BASE}/{dashboard['id']}", headers=headers).status_code == 204
        assert db(db.dashboard_shares).count() == 0
        assert client.get(f"{BASE}/{dashboard['id']}", headers=headers).status_code == 404

    def test_edit_grantee_may_update_public_dashboard(self, client, creator, make_user, auth_header):
        editor = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers, is_public=True)
        client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": editor, "access_level": "edit"})

        response = client.put(f"{BASE}/{dashboard['id']}", headers=auth_header(editor), json={"title": "Renamed"})

        assert response.status_code == 200
        assert response.get_json()["title"] == "Renamed"

    def test_edit_grantee_may_delete(self, client, creator, make_user, auth_header):
        editor = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": editor, "access_level": "edit"})

        assert client.delete(f"{BASE}/{dashboard['id']}", headers=auth_header(editor)).status_code == 204

    def test_group_editor_may_not_delete(self, client, creator, make_user, auth_header):
        member = make_user()
        headers = auth_header(creator)
        group_id = client.post(
            "/api/v1/groups",
            headers=headers,
            json={"name": "editors", "description": "Editors", "role": "edit", "member_ids": [member]},
        ).get_json()["id"]
        dashboard = _create(client, headers, group_ids=[group_id])

        assert client.delete(f"{BASE}/{dashboard['id']}", headers=auth_header(member)).status_code == 403


@pytest.mark.integration
class TestCharts:
    """Test chart add, replace and remove."""

    def test_create_with_chart_and_grid_layout(self, client, creator, auth_header, table_ref):
        charts = [_chart(table_ref, id=f"c{i}") for i in range(4)]
        dashboard = _create(client, auth_header(creator), charts=charts, layout={"type": "grid"})

        assert [c["id"] for c in dashboard["charts"]] == ["c0", "c1", "c2", "c3"]
        assert dashboard["layout"] == {"charts_per_row": 2}

    def test_chart_must_reference_existing_data_source(self, client, creator, auth_header, table_ref):
        response = client.post(
            BASE, headers=auth_header(creator), json={"title": "T", "charts": [_chart(table_ref, table_id=999)]}
        )
        assert response.status_code == 400
        assert response.get_json()["details"][0]["field"] == "charts.0.table_id"

    def test_add_replace_remove(self, client, creator, auth_header, table_ref):
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        url = f"{BASE}/{dashboard['id']}/charts"

        added = client.post(url, headers=headers, json=_chart(table_ref, id="cpu"))
        assert added.status_code == 201
        assert [c["id"] for c in added.get_json()["charts"]] == ["cpu"]

        duplicate = client.post(url, headers=headers, json=_chart(table_ref, id="cpu"))
        assert duplicate.status_code == 400

        replaced = client.put(f"{url}/cpu", headers=headers, json=_chart(table_ref, type="bar", title="CPU bars"))
        assert replaced.status_code == 200
        chart = replaced.get_json()["charts"][0]
        assert chart["id"] == "cpu"
        assert chart["type"] == "bar"

        assert client.delete(f"{url}/missing", headers=headers).status_code == 404
        removed = client.delete(f"{url}/cpu", headers=headers)
        assert removed.status_code == 200
        assert removed.get_json()["charts"] == []

    def test_view_grantee_cannot_add_chart(self, client, creator, make_user, auth_header, table_ref):
        viewer = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": viewer, "access_level": "view"})

        response = client.post(
            f"{BASE}/{dashboard['id']}/charts", headers=auth_header(viewer), json=_chart(table_ref)
        )
        assert response.status_code == 403


@pytest.mark.integration
class TestShares:
    """Test share management."""

    def test_share_is_upserted_per_user(self, client, db, creator, make_user, auth_header):
        grantee = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        url = f"{BASE}/{dashboard['id']}/share"

        first = client.post(url, headers=headers, json={"user_id": grantee, "access_level": "view"})
        second = client.post(url, headers=headers, json={"user_id": grantee, "access_level": "edit"})

        assert first.status_code == 201
        assert second.get_json()["access_level"] == "edit"
        shares = client.get(url, headers=headers).get_json()
        assert len(shares) == 1
        assert shares[0]["access_level"] == "edit"

        seen = client.get(f"{BASE}/{dashboard['id']}", headers=auth_header(grantee)).get_json()
        assert seen["can_edit"] is True

    def test_only_creator_manages_shares(self, client, creator, make_user, auth_header):
        other_creator = make_user(roles=["dashboard_creator"])
        grantee = make_user()
        dashboard = _create(client, auth_header(creator), is_public=True)
        url = f"{BASE}/{dashboard['id']}/share"

        response = client.post(url, headers=auth_header(other_creator), json={"user_id": grantee, "access_level": "edit"})
        assert response.status_code == 403

        assert client.get(url, headers=auth_header(other_creator)).status_code == 403

    def test_share_with_unknown_user(self, client, creator, auth_header):
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        response = client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": 999, "access_level": "view"})
        assert response.status_code == 404

    def test_revoke_share(self, client, creator, make_user, auth_header):
        grantee = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        url = f"{BASE}/{dashboard['id']}/share"
        client.post(url, headers=headers, json={"user_id": grantee, "access_level": "view"})

        assert client.get(f"{BASE}/{dashboard['id']}", headers=auth_header(grantee)).status_code == 200

        assert client.delete(f"{url}/{grantee}", headers=headers).status_code == 204
        assert client.delete(f"{url}/{grantee}", headers=headers).status_code == 404
        assert client.get(f"{BASE}/{dashboard['id']}", headers=auth_header(grantee)).status_code == 404

    def test_shared_dashboard_appears_in_listing(self, client, creator, make_user, auth_header):
        grantee = make_user()
        headers = auth_header(creator)
        dashboard = _create(client, headers)
        _create(client, headers, title="Not shared")
        client.post(f"{BASE}/{dashboard['id']}/share", headers=headers, json={"user_id": grantee, "access_level": "view"})

        listing = client.get(BASE, headers=auth_header(grantee)).get_json()
        assert [d["id"] for d in listing] == [dashboard["id"]]
        assert listing[0]["access_level"] == "view"


@pytest.mark.integration
class TestChartData:
    """Test reading chart series through the dashboard."""

    @pytest.fixture
    def live_table(self, app, db, creator):
        """A connection with a decryptable password and one data source."""
        from shared.utils.crypto import SecretBox

        connection_id = db.database_connections.insert(
            name="warehouse",
            db_type="clickhouse",
            host="ch.local",
            port=8123,
            database_name="metrics",
            username="reader",
            password_encrypted=SecretBox.from_config(app.config).encrypt("pw"),
            created_by=creator,
        )
        data_source_id = db.data_sources.insert(
            connection_id=connection_id, table_name="readings", column_metadata=[], created_by=creator
        )
        db.commit()
        return connection_id, data_source_id

    @pytest.fixture
    def fake_driver(self, mocker):
        driver = mocker.MagicMock()
        driver.__enter__.return_value = driver
        driver.fetch_series.return_value = [{"x": "2024-01-01 00:00:00", "y": 21.5}]
        mocker.patch("apps.api.services.connections.service.get_driver", return_value=driver)
        return driver

    def _dashboard(self, client, creator, auth_header, live_table, **overrides):
        chart = _chart(live_table, id="temp", aggregation={"type": "avg", "column": "value", "group_by": "hour"})
        return _create(client, auth_header(creator), charts=[chart], **overrides)

    def test_view_grantee_reads_rows(self, client, creator, make_user, auth_header, live_table, fake_driver):
        viewer = make_user()
        dashboard = self._dashboard(client, creator, auth_header, live_table)
        client.post(
            f"{BASE}/{dashboard['id']}/share",
            headers=auth_header(creator),
            json={"user_id": viewer, "access_level": "view"},
        )

        response = client.get(f"{BASE}/{dashboard['id']}/charts/temp/data", headers=auth_header(viewer))

        assert response.status_code == 200
        assert response.get_json() == {"chart_id": "temp", "rows": [{"x": "2024-01-01 00:00:00", "y": 21.5}]}
        query = fake_driver.fetch_series.call_args.args[0]
        assert query.table_name == "readings"
        assert (query.aggregate, query.bucket) == ("avg", "hour")

    def test_invisible_dashboard_is_not_found(self, client, creator, make_user, auth_header, live_table, fake_driver):
        dashboard = self._dashboard(client, creator, auth_header, live_table)
        url = f"{BASE}/{dashboard['id']}/charts/temp/data"

        assert client.get(url, headers=auth_header(make_user())).status_code == 404
        assert client.get(url).status_code == 404
        fake_driver.fetch_series.assert_not_called()

    def test_anonymous_reads_public_chart(self, client, creator, auth_header, live_table, fake_driver):
        dashboard = self._dashboard(client, creator, auth_header, live_table, is_public=True)

        response = client.get(f"{BASE}/{dashboard['id']}/charts/temp/data")

        assert response.status_code == 200
        assert response.get_json()["rows"][0]["y"] == 21.5

    def test_unknown_chart(self, client, creator, auth_header, live_table, fake_driver):
        dashboard = self._dashboard(client, creator, auth_header, live_table)
        response = client.get(f"{BASE}/{dashboard['id']}/charts/nope/data", headers=auth_header(creator))
        assert response.status_code == 404

    def test_window_overrides_stored_range_and_is_cached(self, client, creator, auth_header, live_table, fake_driver):
        dashboard = self._dashboard(client, creator, auth_header, live_table)
        url = f"{BASE}/{dashboard['id']}/charts/temp/data?from=2024-01-01T00:00:00&to=2024-01-02T00:00:00Z"
        headers = auth_header(creator)

        assert client.get(url, headers=headers).status_code == 200
        assert client.get(url, headers=headers).status_code == 200

        assert fake_driver.fetch_series.call_count == 1
        query = fake_driver.fetch_series.call_args.args[0]
        assert query.date_from.isoformat() == "2024-01-01T00:00:00+00:00"
        assert query.date_to.isoformat() == "2024-01-02T00:00:00+00:00"

    def test_half_open_window_rejected(self, client, creator, auth_header, live_table, fake_driver):
        dashboard = self._dashboard(client, creator, auth_header, live_table)
        response = client.get(
            f"{BASE}/{dashboard['id']}/charts/temp/data?from=2024-01-01T00:00:00", headers=auth_header(creator)
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid input"
