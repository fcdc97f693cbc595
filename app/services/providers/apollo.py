"""Apollo.io organization search adapter."""

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
    parse_revenue_range,
    website_for,
)

logger = logging.getLogger(__name__)

APOLLO_SEARCH_URL = "https://api.apollo.io/v1/mixed_companies/search"

# Apollo rejects open-ended ranges, so "10001+" gets an explicit ceiling.
APOLLO_MAX_EMPLOYEES = 1_000_000
APOLLO_MAX_PER_PAGE = 100

SOCIAL_FIELDS = {
    "linkedin": "linkedin_url",
    "twitter": "twitter_url",
    "facebook": "facebook_url",
}


class ApolloProvider(CompanyDataProvider):
    """Company-graph search via Apollo's ``mixed_companies`` endpoint."""

    name = "apollo"

    def build_payload(self, query: CompanySearchQuery) -> dict[str, Any]:
        """Translate the common query into Apollo's request body."""
        payload: dict[str, Any] = {
            "page": query.page,
            "per_page": min(query.limit, APOLLO_MAX_PER_PAGE),
        }

        industry_terms = query.industry_terms()
        if industry_terms:
            payload["q_organization_keyword_tags"] = industry_terms

        if query.keywords:
            payload["q_organization_name"] = query.keywords
        if query.excluded_keywords:
            payload["q_not_organization_keyword_tags"] = query.excluded_keywords

        buckets = employee_buckets_for(query)
        if buckets:
            # Apollo wants "min,max" rather than "min-max"
            payload["organization_num_employees_ranges"] = [
                bucket_label(low, high if high is not None else APOLLO_MAX_EMPLOYEES, separator=",")
                for low, high in buckets
            ]

        if query.location:
            if "," in query.location:
                payload["organization_locations"] = [query.location]
            else:
                payload["q_organization_locations"] = query.location
        if query.excluded_locations:
            payload["organization_not_locations"] = query.excluded_locations

        revenue = parse_revenue_range(query.revenue_range)
        if revenue:
            low, high = revenue
            revenue_filter: dict[str, int] = {"min": int(low)}
            if high is not None:
                revenue_filter["max"] = int(high)
            payload["revenue_range"] = revenue_filter

        if query.funding_stages:
            payload["organization_latest_funding_stage_cd"] = query.funding_stages
        if query.technologies:
            payload["currently_using_any_of_technology_uids"] = [
                t.strip().lower().replace(" ", "_") for t in query.technologies
            ]
        if query.hiring_roles:
            payload["q_organization_job_titles"] = query.hiring_roles

        return payload

    async def _search(self, query: CompanySearchQuery) -> ProviderResult:
        client = await self._get_client()
        response = await client.post(
            APOLLO_SEARCH_URL,
            headers={
                "X-Api-Key": self.api_key,
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
            },
            json=self.build_payload(query),
        )
        response.raise_for_status()
        data = self._json_body(response)

        organizations = data.get("organizations") or data.get("accounts") or []
        companies = [
            record for record in (self.parse_organization(org) for org in organizations if isinstance(org, dict))
            if record is not None
        ]

        pagination = data.get("pagination") or {}
        return ProviderResult(
            provider=self.name,
            companies=companies,
            total_entries=clean_int(pagination.get("total_entries")) or 0,
            total_pages=clean_int(pagination.get("total_pages")) or 0,
        )

    def parse_organization(self, org: dict[str, Any]) -> CompanyRecord | None:
        """Map one Apollo organization to a ``CompanyRecord``."""
        name = clean_str(org.get("name"))
        domain = clean_str(org.get("primary_domain")) or clean_str(org.get("domain"))
        if not name and not domain:
            return None

        technologies = clean_list(org.get("technology_names"))
        if not technologies:
            current = org.get("current_technologies") or []
            technologies = clean_list([t.get("name") for t in current if isinstance(t, dict)])

        phone = clean_str(org.get("phone"))
        if not phone and isinstance(org.get("primary_phone"), dict):
            phone = clean_str(org["primary_phone"].get("number"))

        social_profiles: dict[str, str] = {}
        for platform, key in SOCIAL_FIELDS.items():
            url = clean_str(org.get(key))
            if url:
                social_profiles[platform] = url

        return CompanyRecord(
            name=name or domain or "",
            domain=domain,
            website=website_for(org.get("website_url"), domain),
            linkedin_url=clean_str(org.get("linkedin_url")),
            industry=clean_str(org.get("industry")),
            employee_count=clean_int(org.get("estimated_num_employees")),
            employee_range=clean_str(org.get("employee_count_range")),
            annual_revenue=clean_float(org.get("annual_revenue")),
            founded_year=clean_int(org.get("founded_year")),
            description=clean_str(org.get("short_description")),
            headquarters_city=clean_str(org.get("city")),
            headquarters_state=clean_str(org.get("state")),
            headquarters_country=clean_str(org.get("country")),
            technologies=technologies[:20],
            keywords=clean_list(org.get("keywords"), limit=10),
            social_profiles=social_profiles,
            phone=phone,
            logo_url=clean_str(org.get("logo_url")),
            source=self.name,
        )
