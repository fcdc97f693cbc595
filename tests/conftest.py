"""Pytest fixtures for Company Search Aggregator tests.

This module provides shared fixtures for testing the FastAPI application,
including the test client, fake providers and common company data.
"""

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import app
from app.models import CompanyRecord, CompanySearchQuery
from app.services.enrichment_service import GapFillEnricher
from app.services.openrouter_service import OpenRouterService
from app.services.providers.base import CompanyDataProvider, ProviderResult


class FakeProvider(CompanyDataProvider):
    """Provider returning canned records, or raising, without any HTTP."""

    def __init__(
        self,
        name: str,
        companies: list[CompanyRecord] | None = None,
        total_entries: int = 0,
        total_pages: int = 0,
        error: Exception | None = None,
    ) -> None:
        super().__init__(api_key="test-key")
        self.name = name
        self._companies = companies or []
        self._total_entries = total_entries
        self._total_pages = total_pages
        self._error = error
        self.calls = 0

    async def _search(self, query: CompanySearchQuery) -> ProviderResult:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return ProviderResult(
            provider=self.name,
            companies=[c.model_copy(deep=True) for c in self._companies],
            total_entries=self._total_entries,
            total_pages=self._total_pages,
        )


def make_record(name: str, domain: str | None = None, **fields) -> CompanyRecord:
    """Build a CompanyRecord with only the given fields populated."""
    return CompanyRecord(name=name, domain=domain, **fields)


def make_response(status_code: int = 200, json_data=None, text: str = "") -> MagicMock:
    """Build a mock httpx.Response with raise_for_status behaviour."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=MagicMock(), response=response
        )
    else:
        response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def client():
    """Create a test client for the FastAPI application.

    Returns:
        TestClient: A test client instance for making requests to the API.
    """
    return TestClient(app)


@pytest.fixture
def empty_settings():
    """Settings with no credentials at all."""
    return Settings()


@pytest.fixture
def offline_enricher(empty_settings):
    """Gap-fill enricher that neither calls the model nor scrapes."""
    return GapFillEnricher(OpenRouterService(settings=empty_settings), scrape_limit=0)


@pytest.fixture
def sample_apollo_org():
    """Sample Apollo organization payload.

    Returns:
        dict: One entry of Apollo's ``organizations`` array.
    """
    return {
        "name": "Acme Widgets",
        "primary_domain": "acme.com",
        "website_url": "http://www.acme.com",
        "linkedin_url": "http://www.linkedin.com/company/acme-widgets",
        "twitter_url": "https://twitter.com/acmewidgets",
        "industry": "industrial machinery",
        "estimated_num_employees": 250,
        "annual_revenue": 42000000,
        "founded_year": 1999,
        "short_description": "Acme builds widgets.",
        "city": "Austin",
        "state": "Texas",
        "country": "United States",
        "technology_names": ["Salesforce", "HubSpot"],
        "keywords": ["widgets", "manufacturing"],
        "primary_phone": {"number": "+1 512-555-0100"},
        "logo_url": "https://logos.example/acme.png",
    }
