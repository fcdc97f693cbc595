"""Data aggregation service for merging company records from multiple providers."""

import logging
import re
from typing import Any

from app.models import CompanyRecord
from app.services.providers.base import ProviderResult

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_domain(value: str | None) -> str:
    """Reduce a URL or host to a bare lowercase domain.

    ``"https://www.Example.com/about"`` becomes ``"example.com"``. The
    result is a fixed point: normalising it again returns it unchanged.
    """
    if not value:
        return ""
    text = value.strip().lower()
    while True:
        stripped = text
        while _SCHEME_RE.match(stripped):
            stripped = _SCHEME_RE.sub("", stripped).lstrip("/")
        stripped = stripped.lstrip("/")
        stripped = re.split(r"[/?#]", stripped, maxsplit=1)[0]
        if "@" in stripped:
            stripped = stripped.rsplit("@", 1)[1]
        stripped = stripped.split(":", 1)[0].strip().rstrip(".")
        while stripped.startswith("www."):
            stripped = stripped[4:]
        if stripped == text:
            return stripped
        text = stripped


def normalize_company_name(name: str | None) -> str:
    """Lowercase and collapse whitespace for name-keyed deduplication."""
    if not name:
        return ""
    return _WHITESPACE_RE.sub(" ", name).strip().lower()


def company_key(record: CompanyRecord) -> str | None:
    """Dedup key: normalised domain, else normalised name, else None."""
    domain = normalize_domain(record.domain) or normalize_domain(record.website)
    if domain:
        return domain
    name = normalize_company_name(record.name)
    return f"name:{name}" if name else None


def is_blank(value: Any) -> bool:
    """True for values a secondary provider is allowed to fill."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, set, tuple)):
        return len(value) == 0
    return False


class DataAggregator:
    """Merges and deduplicates company records across providers."""

    def merge_company_records(
        self,
        primary: CompanyRecord,
        secondary: CompanyRecord,
    ) -> CompanyRecord:
        """Fill the primary's blank fields from the secondary.

        Populated primary fields are never overwritten. List and map fields
        are taken wholesale from the secondary only when the primary's is
        empty.
        """
        merged_data = primary.model_dump()
        secondary_data = secondary.model_dump()

        for field_name, value in merged_data.items():
            if field_name == "source":
                continue
            if is_blank(value) and not is_blank(secondary_data.get(field_name)):
                merged_data[field_name] = secondary_data[field_name]

        return CompanyRecord(**merged_data)

    def merge_provider_results(
        self,
        results: list[ProviderResult],
    ) -> list[CompanyRecord]:
        """Merge every contributor's records keyed by domain (or name).

        ``results`` must be in provider registration order: the first
        provider to report a company becomes its primary.
        """
        merged: dict[str, CompanyRecord] = {}
        dropped = 0

        for result in results:
            for record in result.companies:
                key = company_key(record)
                if key is None:
                    dropped += 1
                    continue

                existing = merged.get(key)
                if existing is None:
                    domain = normalize_domain(record.domain) or normalize_domain(record.website)
                    merged[key] = record.model_copy(
                        update={"domain": domain or None, "source": record.source or result.provider}
                    )
                else:
                    merged[key] = self.merge_company_records(existing, record)

        if dropped:
            logger.info(f"Dropped {dropped} records with neither domain nor name")

        total_raw = sum(len(r.companies) for r in results)
        logger.info(f"Merged {total_raw} raw records into {len(merged)} companies")
        return list(merged.values())


_data_aggregator: DataAggregator | None = None


def get_data_aggregator() -> DataAggregator:
    """Get the singleton DataAggregator instance."""
    global _data_aggregator
    if _data_aggregator is None:
        _data_aggregator = DataAggregator()
    return _data_aggregator
