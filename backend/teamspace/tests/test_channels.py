"""Tests for channel categories and channels under /api/businesses/{id}."""

import pytest
from fastapi.testclient import TestClient

from teamspace.tests.conftest import add_member, auth_headers, create_business, create_channel, register_user


@pytest.fixture()
def headers(client):
    return auth_headers(client)


@pytest.fixture()
def business(client, headers):
    return create_business(client, headers)


@pytest.fixture()
def category(client, headers, business):
    resp = client.post(f"/api/businesses/{business['id']}/categories", json={"name": "Engineering"}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture()
def member_headers(client, headers, business):
    data = register_user(client, username="member", email="member@example.com").json()
    add_member(client, headers, business["id"], data["user"]["id"])
    return {"Authorization": f"Bearer {data['access_token']}"}


class TestCategories:
    def test_create_and_list(self, client: TestClient, headers, business, category):
        assert category["name"] == "Engineering"
        assert category["business_id"] == business["id"]
        resp = client.get(f"/api/businesses/{business['id']}/categories", headers=headers)
        assert [c["name"] for c in resp.json()] == ["Engineering"]

    def test_update(self, client: TestClient, headers, business, category):
        resp = client.patch(
            f"/api/businesses/{business['id']}/categories/{category['id']}",
            json={"name": "Platform"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Platform"

    def test_member_cannot_create(self, client: TestClient, business, member_headers):
        resp = client.post(
            f"/api/businesses/{business['id']}/categories",
            json={"name": "Sales"},
            headers=member_headers,
        )
        assert resp.status_code == 403

    def test_member_can_read(self, client: TestClient, business, category, member_headers):
        resp = client.get(f"/api/businesses/{business['id']}/categories/{category['id']}", headers=member_headers)
        assert resp.status_code == 200

    def test_category_of_other_business_not_found(self, client: TestClient, headers, category):
        other = create_business(client, headers, name="Other Co")
        resp = client.get(f"/api/businesses/{other['id']}/categories/{category['id']}", headers=headers)
        assert resp.status_code == 404

    def test_delete_detaches_channels(self, client: TestClient, headers, business, category):
        channel = create_channel(client, headers, business["id"], name="backend", category_id=category["id"])
        assert channel["category_id"] == category["id"]

        resp = client.delete(f"/api/businesses/{business['id']}/categories/{category['id']}", headers=headers)
        assert resp.status_code == 204

        resp = client.get(f"/api/businesses/{business['id']}/channels/{channel['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["category_id"] is None


class TestChannels:
    def test_create_defaults(self, client: TestClient, headers, business):
        channel = create_channel(client, headers, business["id"])
        assert channel["type"] == "messages"
        assert channel["order"] == 0
        assert channel["category_id"] is None

    def test_create_invalid_type(self, client: TestClient, headers, business):
        resp = client.post(
            f"/api/businesses/{business['id']}/channels",
            json={"name": "bad-type", "type": "video"},
            headers=headers,
        )
        assert resp.status_code == 422

    def test_create_with_foreign_category(self, client: TestClient, headers, category):
        other = create_business(client, headers, name="Other Co")
        resp = client.post(
            f"/api/businesses/{other['id']}/channels",
            json={"name": "sneaky", "category_id": category["id"]},
            headers=headers,
        )
        assert resp.status_code == 404

    def test_list_ordered_by_order_then_name(self, client: TestClient, headers, business):
        create_channel(client, headers, business["id"], name="zeta", order=0)
        create_channel(client, headers, business["id"], name="alpha", order=1)
        create_channel(client, headers, business["id"], name="beta", order=0)

        resp = client.get(f"/api/businesses/{business['id']}/channels", headers=headers)
        assert [c["name"] for c in resp.json()] == ["beta", "zeta", "alpha"]

    def test_list_filter_by_category(self, client: TestClient, headers, business, category):
        create_channel(client, headers, business["id"], name="inside", category_id=category["id"])
        create_channel(client, headers, business["id"], name="outside")

        resp = client.get(
            f"/api/businesses/{business['id']}/channels",
            params={"category_id": category["id"]},
            headers=headers,
        )
        assert [c["name"] for c in resp.json()] == ["inside"]

    def test_update_and_detach(self, client: TestClient, headers, business, category):
        channel = create_channel(client, headers, business["id"], name="moving", category_id=category["id"])
        resp = client.patch(
            f"/api/businesses/{business['id']}/channels/{channel['id']}",
            json={"name": "moved", "category_id": None, "order": 3},
            headers=headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "moved"
        assert data["category_id"] is None
        assert data["order"] == 3

    def test_member_cannot_delete(self, client: TestClient, headers, business, member_headers):
        channel = create_channel(client, headers, business["id"])
        resp = client.delete(f"/api/businesses/{business['id']}/channels/{channel['id']}", headers=member_headers)
        assert resp.status_code == 403

    def test_delete(self, client: TestClient, headers, business):
        channel = create_channel(client, headers, business["id"])
        resp = client.delete(f"/api/businesses/{business['id']}/channels/{channel['id']}", headers=headers)
        assert resp.status_code == 204
        resp = client.get(f"/api/businesses/{business['id']}/channels/{channel['id']}", headers=headers)
        assert resp.status_code == 404
