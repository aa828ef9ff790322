"""Tests for the activity log service and its read endpoints."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from teamspace.models.activity_log import ActivityLog
from teamspace.models.user import User
from teamspace.services import activity_log_service
from teamspace.tests.conftest import add_member, auth_headers, create_business, create_channel, register_user


@pytest.fixture()
def headers(client):
    return auth_headers(client)


@pytest.fixture()
def business(client, headers):
    return create_business(client, headers)


class TestRecording:
    def test_admin_actions_are_recorded(self, client: TestClient, headers, business):
        channel = create_channel(client, headers, business["id"])
        client.patch(
            f"/api/businesses/{business['id']}/channels/{channel['id']}",
            json={"name": "renamed"},
            headers=headers,
        )

        resp = client.get(f"/api/businesses/{business['id']}/activity-logs", headers=headers)
        assert resp.status_code == 200
        actions = [entry["action"] for entry in resp.json()]
        assert set(actions) == {"business.create", "channel.create", "channel.update"}

        update = next(e for e in resp.json() if e["action"] == "channel.update")
        assert update["method"] == "PATCH"
        assert update["endpoint"] == f"/api/businesses/{business['id']}/channels/{channel['id']}"
        assert update["status_code"] == 200

    def test_member_changes_are_recorded(self, client: TestClient, headers, business):
        user = register_user(client, username="member", email="member@example.com").json()["user"]
        add_member(client, headers, business["id"], user["id"])
        client.patch(
            f"/api/businesses/{business['id']}/members/{user['id']}",
            json={"role": "admin"},
            headers=headers,
        )
        client.delete(f"/api/businesses/{business['id']}/members/{user['id']}", headers=headers)

        actions = {e["action"] for e in client.get(f"/api/businesses/{business['id']}/activity-logs", headers=headers).json()}
        assert {"member.add", "member.role_change", "member.remove"} <= actions

    def test_failure_is_swallowed(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        request = MagicMock()
        request.method = "POST"
        request.url.path = "/api/businesses"
        request.headers = {}
        request.client.host = "127.0.0.1"

        result = activity_log_service.log_activity(db, request, "u" * 24, "business.create", 201)

        assert result is None
        db.rollback.assert_called_once()


class TestReading:
    def test_member_cannot_read_business_log(self, client: TestClient, headers, business):
        data = register_user(client, username="member", email="member@example.com").json()
        add_member(client, headers, business["id"], data["user"]["id"])
        resp = client.get(
            f"/api/businesses/{business['id']}/activity-logs",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        assert resp.status_code == 403

    def test_pagination(self, client: TestClient, headers, business):
        for i in range(3):
            create_channel(client, headers, business["id"], name=f"room-{i}")

        resp = client.get(
            f"/api/businesses/{business['id']}/activity-logs",
            params={"limit": 2, "skip": 1},
            headers=headers,
        )
        assert len(resp.json()) == 2

    def test_limit_above_max_rejected(self, client: TestClient, headers, business):
        resp = client.get(f"/api/businesses/{business['id']}/activity-logs", params={"limit": 101}, headers=headers)
        assert resp.status_code == 422

    def test_site_wide_log_requires_site_admin(self, client: TestClient, headers, business, db):
        assert client.get("/api/activity-logs", headers=headers).status_code == 403

        db.query(User).filter(User.username == "testuser").update({"is_site_admin": True})
        db.commit()

        resp = client.get("/api/activity-logs", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json()) == db.query(ActivityLog).count()
