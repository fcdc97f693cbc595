"""Pydantic models for the Company Search Aggregator.

Request fields accept both snake_case and camelCase keys. Responses are
serialised in snake_case, which is the shape the CRM front end consumes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(word.capitalize() for word in components[1:])


def split_terms(value: str | list[str] | None) -> list[str]:
    """Split comma-separated text (or a list of such text) into lowercase terms."""
    if not value:
        return []
    items = [value] if isinstance(value, str) else value
    terms: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        for part in item.split(","):
            part = part.strip().lower()
            if part and part not in terms:
                terms.append(part)
    return terms


class CompanySearchQuery(BaseModel):
    """Filters for an industry/company search.

    Every field is optional; an empty query asks each provider for its
    default listing.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    industry: str | None = Field(default=None, max_length=500)
    excluded_industries: list[str] | str | None = None
    employee_count_min: int | None = Field(default=None, ge=0)
    employee_count_max: int | None = Field(default=None, ge=0)
    employee_ranges: list[str] = Field(default_factory=list)
    location: str | None = Field(default=None, max_length=200)
    excluded_locations: list[str] = Field(default_factory=list)
    keywords: str | None = Field(default=None, max_length=500)
    excluded_keywords: list[str] = Field(default_factory=list)
    revenue_range: str | None = None
    funding_stages: list[str] = Field(default_factory=list)
    company_types: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    sic_codes: list[str] = Field(default_factory=list)
    naics_codes: list[str] = Field(default_factory=list)
    hiring_roles: list[str] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    # Adapters cap their own page size; a larger limit only bounds the merged list
    limit: int = Field(default=25, ge=1)

    @field_validator(
        "employee_ranges",
        "excluded_locations",
        "excluded_keywords",
        "funding_stages",
        "company_types",
        "technologies",
        "sic_codes",
        "naics_codes",
        "hiring_roles",
        mode="before",
    )
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        """Allow comma-separated strings where a list is expected."""
        if v is None:
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @field_validator("industry", "location", "keywords", "revenue_range")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def industry_terms(self) -> list[str]:
        """Requested industry terms, lowercased."""
        return split_terms(self.industry)

    def excluded_industry_terms(self) -> list[str]:
        """Excluded industry terms, lowercased."""
        return split_terms(self.excluded_industries)

    def keyword_terms(self) -> list[str]:
        return split_terms(self.keywords)


class CompanyRecord(BaseModel):
    """Canonical company record produced by every provider adapter."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    domain: str | None = None
    website: str | None = None
    linkedin_url: str | None = None
    industry: str | None = None
    employee_count: int | None = None
    employee_range: str | None = None
    annual_revenue: float | None = None
    founded_year: int | None = None
    description: str | None = None
    headquarters_city: str | None = None
    headquarters_state: str | None = None
    headquarters_country: str | None = None
    technologies: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    social_profiles: dict[str, str] = Field(default_factory=dict)
    phone: str | None = None
    logo_url: str | None = None
    source: str | None = Field(default=None, description="Provider that contributed the record")


class SearchPagination(BaseModel):
    """Pagination block echoed back to the caller."""

    page: int = 1
    limit: int = 25
    total_entries: int = 0
    total_pages: int = 1


class CompanySearchResponse(BaseModel):
    """Successful search response."""

    success: bool = True
    companies: list[CompanyRecord] = Field(default_factory=list)
    total: int = 0
    provider: str = "none"
    providers: list[str] = Field(default_factory=list)
    pagination: SearchPagination = Field(default_factory=SearchPagination)


class ErrorResponse(BaseModel):
    """Failure envelope shared by every error path."""

    success: bool = False
    error: str
