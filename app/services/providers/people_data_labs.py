"""People Data Labs company search adapter.

PDL takes an SQL-like ``WHERE`` clause over its company dataset, so the
common query is compiled into clauses rather than a JSON filter body.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from app.models import CompanySearchQuery, CompanyRecord
from app.services.providers.base import (
    CompanyDataProvider,
    ProviderResult,
    bucket_label,
    clean_int,
    clean_list,
    clean_str,
    employee_buckets_for,
    parse_revenue_range,
    website_for,
)

logger = logging.getLogger(__name__)

PDL_SEARCH_URL = "https://api.peopledatalabs.com/v5/company/search"
PDL_MAX_SIZE = 100

# PDL's inferred_revenue buckets with their numeric bounds.
PDL_REVENUE_BUCKETS: list[tuple[str, float, float | None]] = [
    ("$0-$1M", 0, 1e6),
    ("$1M-$10M", 1e6, 1e7),
    ("$10M-$25M", 1e7, 2.5e7),
    ("$25M-$50M", 2.5e7, 5e7),
    ("$50M-$100M", 5e7, 1e8),
    ("$100M-$250M", 1e8, 2.5e8),
    ("$250M-$500M", 2.5e8, 5e8),
    ("$500M-$1B", 5e8, 1e9),
    ("$1B-$10B", 1e9, 1e10),
    ("$10B+", 1e10, None),
]

SOCIAL_FIELDS = {
    "linkedin": "linkedin_url",
    "twitter": "twitter_url",
    "facebook": "facebook_url",
}


def sql_literal(value: str) -> str:
    """Quote a value for PDL's SQL dialect."""
    return "'" + value.replace("'", "''") + "'"


def _like(column: str, value: str) -> str:
    return f"{column} LIKE {sql_literal('%' + value.lower() + '%')}"


def _in(column: str, values: list[str]) -> str:
    return f"{column} IN ({', '.join(sql_literal(v) for v in values)})"


class PeopleDataLabsProvider(CompanyDataProvider):
    """Firmographic search via PDL's company search API."""

    name = "pdl"

    def build_sql(self, query: CompanySearchQuery) -> str:
        """Compile the common query into ``SELECT * FROM company WHERE ...``."""
        clauses: list[str] = []

        industry_terms = query.industry_terms()
        if industry_terms:
            clauses.append("(" + " OR ".join(_like("industry", t) for t in industry_terms) + ")")
        for term in query.excluded_industry_terms():
            clauses.append(f"NOT {_like('industry', term)}")

        if query.location:
            parts = [p.strip() for p in query.location.split(",") if p.strip()]
            clauses.extend(_like("location.name", part) for part in parts)
        for excluded in query.excluded_locations:
            clauses.append(f"NOT {_like('location.name', excluded)}")

        keyword_terms = query.keyword_terms()
        if keyword_terms:
            clauses.append("(" + " OR ".join(_like("tags", t) for t in keyword_terms) + ")")
        for excluded in query.excluded_keywords:
            clauses.append(f"NOT {_like('tags', excluded)}")

        buckets = employee_buckets_for(query)
        if buckets:
            clauses.append(_in("size", [bucket_label(low, high) for low, high in buckets]))

        revenue = parse_revenue_range(query.revenue_range)
        if revenue:
            low, high = revenue
            labels = [
                label for label, b_low, b_high in PDL_REVENUE_BUCKETS
                if (high is None or b_low < high) and (b_high is None or b_high > low)
            ]
            if labels:
                clauses.append(_in("inferred_revenue", labels))

        if query.company_types:
            clauses.append(_in("type", [t.lower() for t in query.company_types]))
        if query.funding_stages:
            clauses.append(_in("latest_funding_stage", [s.lower() for s in query.funding_stages]))
        if query.naics_codes:
            clauses.append(_in("naics.naics_code", query.naics_codes))
        if query.sic_codes:
            clauses.append(_in("sic.sic_code", query.sic_codes))

        sql = "SELECT * FROM company"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        return sql

    async def _search(self, query: CompanySearchQuery) -> ProviderResult:
        size = min(query.limit, PDL_MAX_SIZE)
        params = {
            "sql": self.build_sql(query),
            "size": size,
            "from": (query.page - 1) * size,
            "titlecase": "true",
        }
        logger.debug(f"PDL query: {params['sql']}")

        client = await self._get_client()
        response = await client.get(
            PDL_SEARCH_URL,
            headers={"X-Api-Key": self.api_key, "Content-Type": "application/json"},
            params=params,
        )
        # PDL answers 404 when the query matched nothing
        if response.status_code == 404:
            return ProviderResult(provider=self.name)
        response.raise_for_status()
        data = self._json_body(response)

        companies = [
            record for record in (self.parse_company(c) for c in data.get("data") or [] if isinstance(c, dict))
            if record is not None
        ]
        total = clean_int(data.get("total")) or 0
        return ProviderResult(
            provider=self.name,
            companies=companies,
            total_entries=total,
            total_pages=math.ceil(total / size) if total else 0,
        )

    def parse_company(self, company: dict[str, Any]) -> CompanyRecord | None:
        """Map one PDL company to a ``CompanyRecord``."""
        name = clean_str(company.get("display_name")) or clean_str(company.get("name"))
        website = clean_str(company.get("website"))
        # PDL websites come without a scheme ("acme.com"), occasionally with a path
        domain = website.split("://", 1)[-1].split("/")[0] or None if website else None
        if not name and not domain:
            return None

        location = company.get("location") or {}
        if not isinstance(location, dict):
            location = {}

        social_profiles: dict[str, str] = {}
        for platform, key in SOCIAL_FIELDS.items():
            url = clean_str(company.get(key))
            if url:
                social_profiles[platform] = url if url.startswith("http") else f"https://{url}"

        linkedin_url = social_profiles.get("linkedin")

        return CompanyRecord(
            name=name or domain or "",
            domain=domain,
            website=website_for(website, domain),
            linkedin_url=linkedin_url,
            industry=clean_str(company.get("industry")),
            employee_count=clean_int(company.get("employee_count")),
            employee_range=clean_str(company.get("size")),
            founded_year=clean_int(company.get("founded")),
            description=clean_str(company.get("summary")),
            headquarters_city=clean_str(location.get("locality")),
            headquarters_state=clean_str(location.get("region")),
            headquarters_country=clean_str(location.get("country")),
            keywords=clean_list(company.get("tags"), limit=10),
            social_profiles=social_profiles,
            source=self.name,
        )
