"""
Smoke tests for the HTTP API.

These drive the endpoints end to end against the fake published pages
and the in-memory preference database.
"""
from unittest.mock import patch

import pytest

from sheetsearch.tests.conftest import ACCOUNTS_URL, INVENTORY_URL


@pytest.fixture()
def loaded(client):
    """Client with the inventory source set and fetched."""
    resp = client.put("/api/source", json={"url": INVENTORY_URL})
    assert resp.status_code == 200
    assert resp.json()["updated"] is True
    return client


# ============================================================================
# GET /api/health, /api/inventory
# ============================================================================

class TestInventory:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_empty_inventory(self, client):
        resp = client.get("/api/inventory")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_files"] == 0
        assert data["sheets"] == []
        assert data["status"]["source_url"] == ""

    def test_loaded_inventory(self, loaded):
        data = loaded.get("/api/inventory").json()

        assert data["total_files"] == 3
        assert data["total_size"] == 1.1
        assert data["size_unit"] == "TB"
        assert [s["sheet_name"] for s in data["sheets"]] == ["Photos", "Videos"]
        assert data["status"]["last_outcome"] == "succeeded"

    def test_sheet(self, loaded):
        resp = loaded.get("/api/inventory/sheet", params={"name": "Photos"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["mode"] == "sheet"
        assert [f["name"] for f in data["results"][0]["files"]] == ["Holiday Report Q3", "Birthday"]

    def test_sheet_not_found(self, loaded):
        resp = loaded.get("/api/inventory/sheet", params={"name": "Missing"})
        assert resp.status_code == 404

    def test_storage(self, loaded):
        resp = loaded.put("/api/settings/storage", json={"capacity": 2, "unit": "TB"})
        assert resp.status_code == 200

        data = loaded.get("/api/inventory/storage").json()
        assert data["used_tb"] == 1.1
        assert data["free_tb"] == 0.9
        assert data["used_percentage"] == 55.0

    def test_storage_bad_unit(self, client):
        resp = client.put("/api/settings/storage", json={"capacity": 2, "unit": "PB"})
        assert resp.status_code == 422


# ============================================================================
# GET /api/search
# ============================================================================

class TestSearch:

    def test_search(self, loaded):
        data = loaded.get("/api/search", params={"q": "report q3"}).json()

        assert data["mode"] == "search"
        assert data["total_files"] == 2
        assert [r["sheet_name"] for r in data["results"]] == ["Photos", "Videos"]

    def test_all_sheets(self, loaded):
        data = loaded.get("/api/search", params={"all": "true"}).json()
        assert data["mode"] == "all"
        assert data["total_files"] == 3

    def test_no_mode(self, loaded):
        data = loaded.get("/api/search").json()
        assert data["mode"] == "none"
        assert data["results"] == []

    def test_sorted(self, loaded):
        data = loaded.get("/api/search", params={"sheet": "Photos", "sort": "name"}).json()
        assert [f["name"] for f in data["results"][0]["files"]] == ["Birthday", "Holiday Report Q3"]

    def test_bad_sort_key(self, loaded):
        resp = loaded.get("/api/search", params={"all": "true", "sort": "id"})
        assert resp.status_code == 400


# ============================================================================
# /api/source
# ============================================================================

class TestSource:

    def test_invalid_url(self, client):
        resp = client.put("/api/source", json={"url": "not a url"})
        assert resp.status_code == 400

    def test_clear(self, loaded):
        resp = loaded.put("/api/source", json={"url": ""})
        assert resp.status_code == 200
        assert resp.json()["status"]["error"] is None
        assert loaded.get("/api/inventory").json()["total_files"] == 0
        assert loaded.get("/api/changes").json()["count"] == 0

    def test_refresh_without_source(self, client):
        resp = client.post("/api/source/refresh")
        assert resp.status_code == 200
        assert resp.json()["updated"] is False

    def test_refresh_error_is_reported(self, loaded, inventory_session):
        inventory_session.status_code = 502
        data = loaded.post("/api/source/refresh", json={"force": True}).json()

        assert data["updated"] is False
        assert data["status"]["error"]["type"] == "NetworkError"
        assert data["status"]["error"]["status"] == 502
        # Last good data is still served
        assert loaded.get("/api/inventory").json()["total_files"] == 3

    def test_interval(self, client):
        resp = client.put("/api/source/interval", json={"seconds": 60})
        assert resp.status_code == 200
        assert client.get("/api/settings").json()["auto_refresh_interval"] == 60

    def test_negative_interval(self, client):
        resp = client.put("/api/source/interval", json={"seconds": -5})
        assert resp.status_code == 422

    def test_scheduler_status(self, client):
        resp = client.get("/api/source/scheduler")
        assert resp.status_code == 200
        assert "jobs" in resp.json()


# ============================================================================
# /api/changes
# ============================================================================

class TestChanges:

    def test_first_load_is_all_added(self, loaded):
        data = loaded.get("/api/changes").json()
        assert data["count"] == 3
        assert {c["kind"] for c in data["changes"]} == {"added"}

    def test_change_shape(self, loaded):
        changes = loaded.get("/api/changes", params={"limit": 1}).json()["changes"]
        assert len(changes) == 1
        assert set(changes[0]) == {"id", "key", "kind", "sheet_name", "timestamp", "details"}

    def test_dismiss(self, loaded):
        change_id = loaded.get("/api/changes").json()["changes"][0]["id"]

        assert loaded.delete(f"/api/changes/{change_id}").status_code == 200
        assert loaded.delete(f"/api/changes/{change_id}").status_code == 404
        assert loaded.get("/api/changes").json()["count"] == 2

    def test_dismiss_all(self, loaded):
        assert loaded.delete("/api/changes").status_code == 200
        assert loaded.get("/api/changes").json()["count"] == 0


# ============================================================================
# /api/sheets
# ============================================================================

class TestSheets:

    def test_display_name(self, loaded):
        resp = loaded.put("/api/sheets/display-name", json={"sheet_name": "Photos", "display_name": "Family"})
        assert resp.status_code == 200
        assert resp.json()["sheet"]["is_custom"] is True

        sheets = loaded.get("/api/sheets").json()["sheets"]
        assert sheets[0] == {"sheet_name": "Photos", "display_name": "Family", "file_count": 2}

    def test_move(self, loaded):
        resp = loaded.post("/api/sheets/move", json={"sheet_name": "Videos", "position": 0})
        assert resp.status_code == 200

        sheets = loaded.get("/api/sheets").json()["sheets"]
        assert [s["sheet_name"] for s in sheets] == ["Videos", "Photos"]

    def test_move_unknown_sheet(self, loaded):
        resp = loaded.post("/api/sheets/move", json={"sheet_name": "Missing", "position": 0})
        assert resp.status_code == 404

    def test_order_follows_refresh(self, loaded, controllers):
        from sheetsearch.api.main import _sync_sidebar
        from sheetsearch.core.db import get_sheet_order

        _sync_sidebar(controllers.inventory)
        assert get_sheet_order() == ["Photos", "Videos"]

    def test_order(self, loaded):
        resp = loaded.put("/api/sheets/order", json={"sheet_names": ["Videos", "Photos"]})
        assert resp.json()["order"] == ["Videos", "Photos"]


# ============================================================================
# /api/accounts, /api/settings
# ============================================================================

class TestAccountsAndSettings:

    def test_accounts_source(self, loaded):
        resp = loaded.put("/api/accounts/source", json={"url": ACCOUNTS_URL})
        assert resp.status_code == 200

        data = loaded.get("/api/accounts").json()
        assert data["accounts"]["total_files"] == 2
        # Accounts are not reconciled into the change feed
        assert loaded.get("/api/changes").json()["count"] == 3

    def test_settings(self, loaded):
        data = loaded.get("/api/settings").json()
        assert data["source_url"] == INVENTORY_URL
        assert data["accounts_url"] == ""

    def test_reset(self, loaded):
        loaded.put("/api/settings/storage", json={"capacity": 4, "unit": "TB"})

        assert loaded.post("/api/settings/reset").status_code == 200

        data = loaded.get("/api/settings").json()
        assert data["source_url"] == ""
        assert data["storage_capacity"] == 0.0

    def test_reset_requires_key_when_configured(self, loaded):
        with patch("sheetsearch.api.security.settings.API_KEY", "secret"):
            assert loaded.post("/api/settings/reset").status_code == 401
            resp = loaded.post("/api/settings/reset", headers={"X-API-Key": "secret"})
            assert resp.status_code == 200
