"""Tests for the industry search endpoints.

The search and auth services are replaced with stubs so no request leaves
the process.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status

from app.core.exceptions import AuthError, ConfigurationError
from app.models import CompanySearchQuery, CompanySearchResponse, SearchPagination
from tests.conftest import make_record

AUTH_HEADERS = {"Authorization": "Bearer test-token"}


@pytest.fixture
def search_service(monkeypatch):
    """Stub search service returning one company."""
    service = MagicMock()
    service.is_configured = True
    service.provider_names = ["apollo", "pdl"]
    service.has_llm = False
    service.search = AsyncMock(return_value=CompanySearchResponse(
        companies=[make_record("Acme", "acme.com", industry="Software")],
        total=1,
        provider="apollo",
        providers=["apollo"],
        pagination=SearchPagination(page=1, limit=25, total_entries=1, total_pages=1),
    ))
    monkeypatch.setattr("app.routers.search.get_search_service", lambda: service)
    return service


@pytest.fixture
def auth_service(monkeypatch):
    """Stub auth service accepting any bearer token."""
    service = MagicMock()
    service.is_configured = True
    service.verify = AsyncMock(return_value=MagicMock(id="user-1"))
    monkeypatch.setattr("app.routers.search.get_auth_service", lambda: service)
    return service


class TestIndustrySearchEndpoint:
    """Test suite for POST /api/industry-search."""

    def test_success(self, client, search_service, auth_service):
        """Test a valid request returns merged companies."""
        response = client.post(
            "/api/industry-search",
            json={"industry": "Software", "employeeCountMin": 10, "limit": 25},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "apollo"
        assert data["companies"][0]["domain"] == "acme.com"
        assert data["pagination"]["total_entries"] == 1

        query = search_service.search.call_args.args[0]
        assert isinstance(query, CompanySearchQuery)
        assert query.industry == "Software"
        assert query.employee_count_min == 10
        auth_service.verify.assert_awaited_once_with("Bearer test-token")

    def test_empty_body_is_default_query(self, client, search_service, auth_service):
        """Test an empty body searches with default filters."""
        response = client.post("/api/industry-search", content=b"", headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_200_OK
        query = search_service.search.call_args.args[0]
        assert query.page == 1
        assert query.limit == 25

    def test_missing_token(self, client, search_service, auth_service):
        """Test a request without a bearer token is rejected with 401."""
        auth_service.verify.side_effect = AuthError("Authentication required")

        response = client.post("/api/industry-search", json={})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"success": False, "error": "Authentication required"}
        search_service.search.assert_not_called()

    def test_invalid_token(self, client, search_service, auth_service):
        """Test a rejected token is a 401."""
        auth_service.verify.side_effect = AuthError("Invalid authentication")

        response = client.post("/api/industry-search", json={}, headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Invalid authentication"

    def test_auth_backend_unconfigured(self, client, search_service, auth_service):
        """Test a missing auth backend is a 500."""
        auth_service.verify.side_effect = ConfigurationError("Authentication backend not configured.")

        response = client.post("/api/industry-search", json={}, headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["success"] is False

    def test_no_providers_configured(self, client, search_service, auth_service):
        """Test no provider keys is a 500 before any auth call."""
        search_service.is_configured = False

        response = client.post("/api/industry-search", json={}, headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "No company data providers configured" in response.json()["error"]
        auth_service.verify.assert_not_called()
        search_service.search.assert_not_called()

    def test_invalid_filters(self, client, search_service, auth_service):
        """Test out-of-range filters are a 422 with the error envelope."""
        response = client.post(
            "/api/industry-search",
            json={"page": 0},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["success"] is False
        assert data["error"].startswith("Invalid search filters")

    def test_malformed_json(self, client, search_service, auth_service):
        """Test an unparseable body is a 500 with the error envelope."""
        response = client.post(
            "/api/industry-search",
            content=b"{not json",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["success"] is False

    def test_non_object_body(self, client, search_service, auth_service):
        """Test a JSON array body is rejected."""
        response = client.post("/api/industry-search", json=[1, 2], headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "JSON object" in response.json()["error"]

    def test_search_error(self, client, search_service, auth_service):
        """Test an unexpected search failure is a 500 with its message."""
        search_service.search.side_effect = RuntimeError("merge exploded")

        response = client.post("/api/industry-search", json={}, headers=AUTH_HEADERS)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"success": False, "error": "merge exploded"}

    def test_cors_preflight(self, client):
        """Test the CORS preflight succeeds for browser callers."""
        response = client.options(
            "/api/industry-search",
            headers={
                "Origin": "https://crm.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["access-control-allow-origin"] == "*"


class TestIndustrySearchStatusEndpoint:
    """Test suite for GET /api/industry-search/status."""

    def test_status(self, client, search_service, auth_service):
        """Test status reports configured collaborators."""
        response = client.get("/api/industry-search/status")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "configured": True,
            "providers": ["apollo", "pdl"],
            "ai_enrichment": False,
            "auth": True,
        }


class TestRootEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        """Test the root endpoint describes the API."""
        data = client.get("/").json()
        assert data["name"] == "Company Search Aggregator API"
        assert data["status"] == "operational"

    def test_health(self, client):
        """Test the health check."""
        assert client.get("/health").json() == {"status": "healthy"}
