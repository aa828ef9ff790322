"""Tests for /api/businesses and membership management."""

import pytest
from fastapi.testclient import TestClient

from teamspace.tests.conftest import add_member, auth_headers, create_business, create_channel, register_user


@pytest.fixture()
def owner(client):
    return auth_headers(client, username="owner", email="owner@example.com")


@pytest.fixture()
def business(client, owner):
    return create_business(client, owner)


def _user(client, username):
    resp = register_user(client, username=username, email=f"{username}@example.com")
    assert resp.status_code == 200
    data = resp.json()
    return data["user"]["id"], {"Authorization": f"Bearer {data['access_token']}"}


class TestCreateBusiness:
    def test_creator_becomes_owner(self, client: TestClient, owner):
        data = create_business(client, owner, name="Initech")
        assert data["name"] == "Initech"
        assert data["current_user_role"] == "owner"
        assert data["member_count"] == 1
        assert data["settings"] == {"theme": "light", "notifications": "all"}

    def test_name_too_short(self, client: TestClient, owner):
        resp = client.post("/api/businesses", json={"name": "ab"}, headers=owner)
        assert resp.status_code == 422

    def test_list_only_my_businesses(self, client: TestClient, owner, business):
        _, other_headers = _user(client, "outsider")
        create_business(client, other_headers, name="Other Co")

        names = [b["name"] for b in client.get("/api/businesses", headers=owner).json()]
        assert names == ["Acme Corp"]


class TestBusinessAccess:
    def test_member_can_read(self, client: TestClient, owner, business):
        user_id, headers = _user(client, "member1")
        add_member(client, owner, business["id"], user_id)

        resp = client.get(f"/api/businesses/{business['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["current_user_role"] == "member"
        assert resp.json()["member_count"] == 2

    def test_non_member_forbidden(self, client: TestClient, business):
        _, headers = _user(client, "stranger")
        resp = client.get(f"/api/businesses/{business['id']}", headers=headers)
        assert resp.status_code == 403

    def test_unknown_business(self, client: TestClient, owner):
        resp = client.get("/api/businesses/0123456789abcdef01234567", headers=owner)
        assert resp.status_code == 404

    def test_member_cannot_update(self, client: TestClient, owner, business):
        user_id, headers = _user(client, "member2")
        add_member(client, owner, business["id"], user_id)
        resp = client.patch(f"/api/businesses/{business['id']}", json={"name": "Renamed"}, headers=headers)
        assert resp.status_code == 403

    def test_admin_can_update(self, client: TestClient, owner, business):
        user_id, headers = _user(client, "admin1")
        add_member(client, owner, business["id"], user_id, role="admin")
        resp = client.patch(
            f"/api/businesses/{business['id']}",
            json={"name": "Renamed", "settings": {"theme": "dark", "notifications": "mentions"}},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert resp.json()["settings"]["theme"] == "dark"

    def test_only_owner_can_delete(self, client: TestClient, owner, business):
        user_id, headers = _user(client, "admin2")
        add_member(client, owner, business["id"], user_id, role="admin")
        assert client.delete(f"/api/businesses/{business['id']}", headers=headers).status_code == 403
        assert client.delete(f"/api/businesses/{business['id']}", headers=owner).status_code == 204
        assert client.get(f"/api/businesses/{business['id']}", headers=owner).status_code == 404

    def test_delete_removes_channels(self, client: TestClient, owner, business, db):
        from teamspace.models.channel import Channel

        create_channel(client, owner, business["id"])
        client.delete(f"/api/businesses/{business['id']}", headers=owner)
        assert db.query(Channel).count() == 0


class TestMembers:
    def test_add_and_list(self, client: TestClient, owner, business):
        user_id, _ = _user(client, "newbie")
        added = add_member(client, owner, business["id"], user_id)
        assert added["username"] == "newbie"
        assert added["role"] == "member"

        members = client.get(f"/api/businesses/{business['id']}/members", headers=owner).json()
        assert {m["username"] for m in members} == {"owner", "newbie"}

    def test_add_unknown_user(self, client: TestClient, owner, business):
        resp = client.post(
            f"/api/businesses/{business['id']}/members",
            json={"user_id": "0123456789abcdef01234567"},
            headers=owner,
        )
        assert resp.status_code == 404

    def test_add_twice_conflicts(self, client: TestClient, owner, business):
        user_id, _ = _user(client, "twice")
        add_member(client, owner, business["id"], user_id)
        resp = client.post(f"/api/businesses/{business['id']}/members", json={"user_id": user_id}, headers=owner)
        assert resp.status_code == 409

    def test_cannot_add_as_owner(self, client: TestClient, owner, business):
        user_id, _ = _user(client, "usurper")
        resp = client.post(
            f"/api/businesses/{business['id']}/members",
            json={"user_id": user_id, "role": "owner"},
            headers=owner,
        )
        assert resp.status_code == 422

    def test_owner_changes_role(self, client: TestClient, owner, business):
        user_id, _ = _user(client, "promoted")
        add_member(client, owner, business["id"], user_id)
        resp = client.patch(
            f"/api/businesses/{business['id']}/members/{user_id}",
            json={"role": "admin"},
            headers=owner,
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_admin_cannot_change_roles(self, client: TestClient, owner, business):
        admin_id, admin_headers = _user(client, "admin3")
        member_id, _ = _user(client, "member3")
        add_member(client, owner, business["id"], admin_id, role="admin")
        add_member(client, owner, business["id"], member_id)
        resp = client.patch(
            f"/api/businesses/{business['id']}/members/{member_id}",
            json={"role": "admin"},
            headers=admin_headers,
        )
        assert resp.status_code == 403

    def test_owner_cannot_be_demoted(self, client: TestClient, owner, business):
        owner_id = business["owner_id"]
        resp = client.patch(
            f"/api/businesses/{business['id']}/members/{owner_id}",
            json={"role": "member"},
            headers=owner,
        )
        assert resp.status_code == 403

    def test_owner_cannot_be_removed(self, client: TestClient, owner, business):
        admin_id, admin_headers = _user(client, "admin4")
        add_member(client, owner, business["id"], admin_id, role="admin")
        resp = client.delete(f"/api/businesses/{business['id']}/members/{business['owner_id']}", headers=admin_headers)
        assert resp.status_code == 403

    def test_admin_removes_member(self, client: TestClient, owner, business):
        admin_id, admin_headers = _user(client, "admin5")
        member_id, member_headers = _user(client, "member5")
        add_member(client, owner, business["id"], admin_id, role="admin")
        add_member(client, owner, business["id"], member_id)

        resp = client.delete(f"/api/businesses/{business['id']}/members/{member_id}", headers=admin_headers)
        assert resp.status_code == 204
        assert client.get(f"/api/businesses/{business['id']}", headers=member_headers).status_code == 403

    def test_admin_cannot_remove_admin(self, client: TestClient, owner, business):
        a_id, a_headers = _user(client, "admin6")
        b_id, _ = _user(client, "admin7")
        add_member(client, owner, business["id"], a_id, role="admin")
        add_member(client, owner, business["id"], b_id, role="admin")
        resp = client.delete(f"/api/businesses/{business['id']}/members/{b_id}", headers=a_headers)
        assert resp.status_code == 403
