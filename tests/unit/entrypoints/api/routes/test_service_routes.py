"""Tests for service catalog routes."""

from __future__ import annotations

from typing import Any


class TestListServices:
    """Tests for GET /api/services."""

    def test_public_listing(self, api: Any) -> None:
        """Services are listed for an org slug without authentication."""
        api.client.post(
            "/api/services",
            json={"name": "API", "description": "Public API"},
            headers=api.headers(api.manager),
        )

        response = api.client.get("/api/services", params={"org": "acme"})

        assert response.status_code == 200
        body = response.json()
        assert [s["name"] for s in body] == ["API"]
        assert body[0]["status"] == "Operational"

    def test_requires_org(self, api: Any) -> None:
        """The org query parameter is required."""
        response = api.client.get("/api/services")

        assert response.status_code == 400
        assert "org" in response.json()["error"]

    def test_unknown_org(self, api: Any) -> None:
        """Unknown slugs are 404."""
        response = api.client.get("/api/services", params={"org": "nope"})

        assert response.status_code == 404
        assert response.json() == {"error": "Organization not found"}


class TestCreateService:
    """Tests for POST /api/services."""

    def test_creates(self, api: Any) -> None:
        """Managers create services in their organization."""
        response = api.client.post(
            "/api/services",
            json={"name": "API", "description": "Public API"},
            headers=api.headers(api.manager),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["organization_id"] == api.org.id
        assert body["status"] == "Operational"

    def test_requires_auth(self, api: Any) -> None:
        """Anonymous writes are 401 with a bearer challenge."""
        response = api.client.post("/api/services", json={"name": "API", "description": "d"})

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token(self, api: Any) -> None:
        """Garbage tokens are 401."""
        response = api.client.post(
            "/api/services",
            json={"name": "API", "description": "d"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_requires_permission(self, api: Any) -> None:
        """Users without manage_services are 403."""
        response = api.client.post(
            "/api/services",
            json={"name": "API", "description": "d"},
            headers=api.headers(api.viewer),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions"}

    def test_missing_fields(self, api: Any) -> None:
        """Name and description are required."""
        response = api.client.post(
            "/api/services", json={"name": "API"}, headers=api.headers(api.manager)
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Name and description are required"}

    def test_invalid_status(self, api: Any) -> None:
        """Unknown status labels are rejected before reaching the catalog."""
        response = api.client.post(
            "/api/services",
            json={"name": "API", "description": "d", "status": "Sideways"},
            headers=api.headers(api.manager),
        )

        assert response.status_code == 400

    def test_duplicate_name(self, api: Any) -> None:
        """Duplicate names within an organization are 409."""
        headers = api.headers(api.manager)
        api.client.post("/api/services", json={"name": "API", "description": "d"}, headers=headers)

        response = api.client.post(
            "/api/services", json={"name": "API", "description": "again"}, headers=headers
        )

        assert response.status_code == 409


class TestUpdateAndDelete:
    """Tests for PUT and DELETE /api/services/{id}."""

    def _create(self, api: Any) -> dict[str, Any]:
        response = api.client.post(
            "/api/services",
            json={"name": "API", "description": "d"},
            headers=api.headers(api.manager),
        )
        return dict(response.json())

    def test_update_status(self, api: Any) -> None:
        """Status can be edited by hand."""
        service = self._create(api)

        response = api.client.put(
            f"/api/services/{service['id']}",
            json={"status": "Degraded Performance"},
            headers=api.headers(api.manager),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Degraded Performance"
        assert response.json()["name"] == "API"

    def test_delete(self, api: Any) -> None:
        """Deleted services are gone."""
        service = self._create(api)

        response = api.client.delete(
            f"/api/services/{service['id']}", headers=api.headers(api.manager)
        )

        assert response.status_code == 204
        missing = api.client.get(f"/api/services/{service['id']}")
        assert missing.status_code == 404
        assert missing.json() == {"error": "Service not found"}
