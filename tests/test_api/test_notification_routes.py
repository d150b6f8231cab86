"""
Tests for the notification HTTP API.

These tests verify the REST contract: status codes, envelopes, and the
mapping of store errors onto HTTP errors.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from notification_store.config import Settings
from notification_store.data_store import NotificationStore
from notification_store.errors import StorePersistenceError


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "healthy"
        assert "timestamp" in data


class TestSendNotification:
    """Tests for POST /send-notification."""

    def test_send_scheduled_notification(self, api_client, store):
        """Seeded store plus one send: new record, fresh id, notified."""
        response = api_client.post("/send-notification", json={
            "title": "Meeting",
            "body": "Sync",
            "type": "scheduled",
            "time": "2025-01-11T20:00:00Z",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        notification = data["notification"]
        assert notification["title"] == "Meeting"
        assert notification["body"] == "Sync"
        assert notification["type"] == "scheduled"
        assert notification["time"] == "2025-01-11T20:00:00Z"
        assert notification["notified"] is True
        assert notification["id"] not in ("1", "2")
        assert store.get_latest().id == notification["id"]

    def test_send_with_empty_body_uses_defaults(self, api_client):
        response = api_client.post("/send-notification", json={})

        assert response.status_code == 201
        notification = response.json()["notification"]
        assert notification["title"] == "New Notification"
        assert notification["body"] == "You have a new message."
        assert notification["type"] == "local"
        assert notification["time"] is None

    def test_send_without_body(self, api_client):
        assert api_client.post("/send-notification").status_code == 201

    def test_client_id_and_timestamp_ignored(self, api_client):
        response = api_client.post("/send-notification", json={
            "id": "1",
            "timestamp": "2000-01-01T00:00:00Z",
        })

        notification = response.json()["notification"]
        assert notification["id"] != "1"
        assert not notification["timestamp"].startswith("2000")

    def test_unknown_type_rejected(self, api_client, store):
        response = api_client.post("/send-notification", json={"type": "urgent"})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert "body.type" in data["errors"]
        assert len(store) == 2


class TestReadEndpoints:
    """Tests for the GET endpoints."""

    def test_list_notifications(self, api_client):
        response = api_client.get("/notifications")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["count"] == 2
        assert [n["id"] for n in data["notifications"]] == ["1", "2"]

    def test_list_empty(self, empty_api_client):
        data = empty_api_client.get("/notifications").json()
        assert data["count"] == 0
        assert data["notifications"] == []

    def test_latest(self, api_client):
        response = api_client.get("/notifications/latest")

        assert response.status_code == 200
        assert response.json()["notification"]["id"] == "2"

    def test_latest_follows_sends(self, api_client):
        sent = api_client.post("/send-notification", json={"title": "Newest"}).json()

        latest = api_client.get("/notifications/latest").json()["notification"]

        assert latest == sent["notification"]

    def test_latest_on_empty_store(self, empty_api_client):
        response = empty_api_client.get("/notifications/latest")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_get_one(self, api_client, welcome_id):
        response = api_client.get(f"/notifications/{welcome_id}")

        assert response.status_code == 200
        assert response.json()["notification"]["title"] == "Welcome"

    def test_get_unknown(self, api_client):
        assert api_client.get("/notifications/999").status_code == 404

    def test_stats(self, api_client):
        api_client.post("/send-notification", json={"type": "scheduled"})

        response = api_client.get("/notifications/stats")

        assert response.status_code == 200
        assert response.json()["stats"] == {
            "total": 3,
            "notified": 1,
            "unnotified": 2,
            "byType": {"local": 1, "scheduled": 2},
        }

    def test_unread_count(self, api_client):
        data = api_client.get("/notifications/unread-count").json()
        assert data == {"success": True, "unreadCount": 2}


class TestUpdateEndpoints:
    """Tests for the PATCH endpoints."""

    def test_update(self, api_client, welcome_id):
        before = api_client.get(f"/notifications/{welcome_id}").json()["notification"]

        response = api_client.patch(f"/notifications/{welcome_id}", json={"body": "Changed"})

        assert response.status_code == 200
        after = response.json()["notification"]
        assert after["body"] == "Changed"
        assert {k: v for k, v in after.items() if k != "body"} == {
            k: v for k, v in before.items() if k != "body"
        }

    def test_update_ignores_server_fields(self, api_client, welcome_id):
        before = api_client.get(f"/notifications/{welcome_id}").json()["notification"]

        response = api_client.patch(f"/notifications/{welcome_id}", json={
            "id": "hijacked",
            "timestamp": "2000-01-01T00:00:00Z",
            "notified": True,
        })

        after = response.json()["notification"]
        assert after["id"] == before["id"]
        assert after["timestamp"] == before["timestamp"]
        assert after["notified"] is True

    def test_update_unknown(self, api_client, store):
        before = store.snapshot()

        response = api_client.patch("/notifications/999", json={"title": "x"})

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert store.snapshot() == before

    def test_mark_read(self, api_client, welcome_id):
        response = api_client.patch(f"/notifications/{welcome_id}/read")

        assert response.status_code == 200
        assert response.json()["notification"]["notified"] is True

    def test_mark_read_unknown(self, api_client):
        """PATCH /notifications/999/read on a missing id is a 404."""
        response = api_client.patch("/notifications/999/read")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_mark_all_read(self, api_client):
        response = api_client.patch("/notifications/read-all")

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert api_client.get("/notifications/unread-count").json()["unreadCount"] == 0


class TestDeleteEndpoints:
    """Tests for the DELETE endpoints."""

    def test_delete(self, api_client, welcome_id):
        response = api_client.delete(f"/notifications/{welcome_id}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert api_client.get("/notifications").json()["count"] == 1

    def test_delete_twice(self, api_client, welcome_id):
        api_client.delete(f"/notifications/{welcome_id}")
        assert api_client.delete(f"/notifications/{welcome_id}").status_code == 404

    def test_clear(self, api_client):
        response = api_client.delete("/notifications")

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert api_client.get("/notifications").json()["count"] == 0
        assert api_client.get("/notifications/latest").status_code == 404


class TestErrorHandling:
    """Tests for unmatched routes and internal failures."""

    def test_unknown_route(self, api_client):
        response = api_client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_unsupported_method(self, api_client):
        response = api_client.put("/notifications")

        assert response.status_code == 404
        assert response.json()["message"] == "Route not found"

    def test_unexpected_error_is_generic_500(self, store: NotificationStore, settings, monkeypatch):
        def boom():
            raise RuntimeError("secret internal detail")

        monkeypatch.setattr(store, "list", boom)
        client = TestClient(create_app(store=store, settings=settings), raise_server_exceptions=False)

        response = client.get("/notifications")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "secret" not in response.text

    def test_persistence_error_is_generic_500(self, api_client, store, monkeypatch):
        def fail(fields):
            raise StorePersistenceError("Cannot write /private/db.json: disk full")

        monkeypatch.setattr(store, "create", fail)

        response = api_client.post("/send-notification", json={})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "/private" not in response.text


class TestFileBackedApp:
    """The app over a real database file."""

    def test_mutations_reach_disk(self, file_store, db_path, settings):
        client = TestClient(create_app(store=file_store, settings=settings))

        sent = client.post("/send-notification", json={"title": "On disk"}).json()["notification"]

        reopened = NotificationStore(db_path=db_path)
        assert reopened.get_latest().to_json() == sent

    @pytest.mark.parametrize("path", ["/notifications", "/notifications/latest", "/notifications/stats"])
    def test_lifespan_startup(self, file_store, settings, path):
        with TestClient(create_app(store=file_store, settings=settings)) as client:
            assert client.get(path).status_code == 200

    def test_failed_write_changes_nothing(self, file_store, db_path, settings):
        client = TestClient(create_app(store=file_store, settings=settings))
        assert client.get("/notifications").json()["count"] == 2
        db_path.unlink()
        db_path.mkdir()
        (db_path / "occupied").write_text("x")

        assert client.post("/send-notification", json={"title": "ghost"}).status_code == 500
        assert client.delete("/notifications/1").status_code == 500

        listed = client.get("/notifications").json()
        assert listed["count"] == 2
        assert [n["id"] for n in listed["notifications"]] == ["1", "2"]


class TestAppFactory:
    """create_app and the api.main module."""

    def test_module_builds_no_app_on_import(self):
        import api.main

        assert not hasattr(api.main, "app")

    def test_explicit_settings_leave_environment_alone(self, monkeypatch):
        def no_dotenv(*args, **kwargs):
            raise AssertionError(".env must not be read")

        monkeypatch.setattr("notification_store.config.load_dotenv", no_dotenv)
        root = logging.getLogger()
        monkeypatch.setattr(root, "level", logging.WARNING)

        app = create_app(settings=Settings(db_path=None, log_level="DEBUG"))

        assert root.level == logging.WARNING
        assert TestClient(app).get("/health").status_code == 200
