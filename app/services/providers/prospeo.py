"""Prospeo company search adapter (structured include/exclude filters)."""

from __future__ import annotations

import logging
from typing import Any

from app.models import CompanyRecord, CompanySearchQuery
from app.services.providers.base import (
    CompanyDataProvider,
    ProviderResult,
    bucket_label,
    clean_float,
    clean_int,
    clean_list,
    clean_str,
    employee_buckets_for,
    website_for,
)

logger = logging.getLogger(__name__)

PROSPEO_SEARCH_URL = "https://api.prospeo.io/search-company"


def _include_exclude(include: list[str], exclude: list[str]) -> dict[str, list[str]] | None:
    block: dict[str, list[str]] = {}
    if include:
        block["include"] = include
    if exclude:
        block["exclude"] = exclude
    return block or None


class ProspeoProvider(CompanyDataProvider):
    """Contact-discovery company search via Prospeo."""

    name = "prospeo"

    def build_filters(self, query: CompanySearchQuery) -> dict[str, Any]:
        """Translate the common query into Prospeo's filter object."""
        filters: dict[str, Any] = {}

        industry = _include_exclude(
            [t.title() for t in query.industry_terms()],
            [t.title() for t in query.excluded_industry_terms()],
        )
        if industry:
            filters["company_industry"] = industry

        buckets = employee_buckets_for(query)
        if buckets:
            filters["company_headcount_range"] = [bucket_label(low, high) for low, high in buckets]

        location = _include_exclude(
            [query.location] if query.location else [],
            query.excluded_locations,
        )
        if location:
            filters["company_location"] = location

        keywords = _include_exclude(query.keyword_terms(), query.excluded_keywords)
        if keywords:
            filters["company_keywords"] = keywords

        if query.technologies:
            filters["company_technology"] = {"include": query.technologies}
        if query.funding_stages:
            filters["company_funding"] = {"stage": query.funding_stages}

        return filters

    async def _search(self, query: CompanySearchQuery) -> ProviderResult:
        client = await self._get_client()
        response = await client.post(
            PROSPEO_SEARCH_URL,
            headers={"X-KEY": self.api_key, "Content-Type": "application/json"},
            json={"page": query.page, "filters": self.build_filters(query)},
        )

        # Prospeo reports "no results" as an error body, sometimes with a 4xx
        try:
            data = self._json_body(response)
        except ValueError:
            response.raise_for_status()
            raise
        if data.get("error") is True:
            code = data.get("error_code")
            if code != "NO_RESULTS":
                logger.warning(f"Prospeo error {response.status_code}: {code}")
            return ProviderResult(provider=self.name)
        response.raise_for_status()

        companies = []
        for item in data.get("results") or []:
            if not isinstance(item, dict):
                continue
            record = self.parse_company(item.get("company") or item)
            if record is not None:
                companies.append(record)

        pagination = data.get("pagination") or {}
        return ProviderResult(
            provider=self.name,
            companies=companies,
            total_entries=clean_int(pagination.get("total_count")) or 0,
            total_pages=clean_int(pagination.get("total_page")) or 0,
        )

    def parse_company(self, company: dict[str, Any]) -> CompanyRecord | None:
        """Map one Prospeo company to a ``CompanyRecord``."""
        name = clean_str(company.get("name"))
        domain = clean_str(company.get("domain"))
        if not name and not domain:
            return None

        location = company.get("location") or {}
        if not isinstance(location, dict):
            location = {}

        linkedin_url = clean_str(company.get("linkedin_url"))
        social_profiles = {"linkedin": linkedin_url} if linkedin_url else {}

        return CompanyRecord(
            name=name or domain or "",
            domain=domain,
            website=website_for(company.get("website"), domain),
            linkedin_url=linkedin_url,
            industry=clean_str(company.get("industry")),
            employee_count=clean_int(company.get("employee_count")),
            employee_range=clean_str(company.get("employee_range")),
            annual_revenue=clean_float(company.get("revenue")),
            founded_year=clean_int(company.get("founded")),
            description=clean_str(company.get("description")),
            headquarters_city=clean_str(location.get("city")),
            headquarters_state=clean_str(location.get("state")),
            headquarters_country=clean_str(location.get("country")),
            technologies=clean_list(company.get("technologies"), limit=20),
            keywords=clean_list(company.get("keywords"), limit=10),
            social_profiles=social_profiles,
            phone=clean_str(company.get("phone")),
            logo_url=clean_str(company.get("logo_url")),
            source=self.name,
        )
