"""Shared adapter contract for third-party company-data providers.

Each adapter turns a ``CompanySearchQuery`` into one provider's request
shape and maps that provider's payload into ``CompanyRecord`` objects. The
merge engine only ever sees ``ProviderResult`` values.
"""

from __future__ import annotations

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.core.config import DEFAULT_PROVIDER_TIMEOUT
from app.core.exceptions import ProviderError
from app.models import CompanyRecord, CompanySearchQuery

logger = logging.getLogger(__name__)

# Standard headcount buckets shared by the providers we query.
EMPLOYEE_BUCKETS: list[tuple[int, int | None]] = [
    (1, 10),
    (11, 50),
    (51, 200),
    (201, 500),
    (501, 1000),
    (1001, 5000),
    (5001, 10000),
    (10001, None),
]

_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:[-,]\s*(\d+)?|\+)?\s*$")
_MONEY_RE = re.compile(r"\$?\s*(\d+(?:\.\d+)?)\s*([kmb])?", re.IGNORECASE)
_MONEY_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


@dataclass
class ProviderResult:
    """Outcome of one adapter invocation.

    An empty ``companies`` list is the "no data" outcome; ``success`` tells
    whether the provider answered at all.
    """

    provider: str
    companies: list[CompanyRecord] = field(default_factory=list)
    total_entries: int = 0
    total_pages: int = 0
    success: bool = True
    error: str | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.companies)

    @classmethod
    def failed(cls, provider: str, error: str) -> "ProviderResult":
        return cls(provider=provider, success=False, error=error)


def bucket_label(low: int, high: int | None, separator: str = "-") -> str:
    """Format a headcount bucket, e.g. ``11-50`` or ``10001+``."""
    if high is None:
        return f"{low}+"
    return f"{low}{separator}{high}"


def parse_employee_range(label: str) -> tuple[int, int | None] | None:
    """Parse ``"11-50"``, ``"11,50"`` or ``"10001+"`` into bounds."""
    match = _RANGE_RE.match(label or "")
    if not match:
        return None
    low = int(match.group(1))
    high_raw = match.group(2)
    if high_raw:
        return low, int(high_raw)
    if "+" in label or label.strip().endswith((",", "-")):
        return low, None
    return low, low


def employee_buckets_for(query: CompanySearchQuery) -> list[tuple[int, int | None]]:
    """Resolve the query's headcount filter into standard buckets.

    Explicit ``employee_ranges`` win; otherwise every standard bucket that
    overlaps ``[employee_count_min, employee_count_max]`` is selected.
    """
    if query.employee_ranges:
        buckets = []
        for label in query.employee_ranges:
            parsed = parse_employee_range(label)
            if parsed and parsed not in buckets:
                buckets.append(parsed)
        return buckets

    if query.employee_count_min is None and query.employee_count_max is None:
        return []

    low = query.employee_count_min or 0
    high = query.employee_count_max if query.employee_count_max is not None else math.inf
    return [
        (b_low, b_high)
        for b_low, b_high in EMPLOYEE_BUCKETS
        if b_low <= high and (b_high is None or b_high >= low)
    ]


def parse_money(text: str) -> float | None:
    """Parse ``"10M"``, ``"$1.5B"`` or ``"250000"`` into a number."""
    match = _MONEY_RE.search(text or "")
    if not match:
        return None
    amount = float(match.group(1))
    suffix = (match.group(2) or "").lower()
    return amount * _MONEY_MULTIPLIERS.get(suffix, 1)


def parse_revenue_range(label: str | None) -> tuple[float, float | None] | None:
    """Parse a revenue bucket label such as ``"1M-10M"`` or ``"1B+"``."""
    if not label:
        return None
    parts = re.split(r"\s*(?:-|to)\s*", label.strip(), maxsplit=1)
    low = parse_money(parts[0])
    if low is None:
        return None
    high = parse_money(parts[1]) if len(parts) > 1 and parts[1] else None
    return low, high


def clean_str(value: Any) -> str | None:
    """Return a stripped string or None for empty/non-string values."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def clean_int(value: Any) -> int | None:
    """Coerce provider numbers (which may arrive as strings) to int."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    if isinstance(value, str):
        digits = value.replace(",", "").strip()
        if digits.isdigit():
            number = int(digits)
            return number if number > 0 else None
    return None


def clean_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        return parse_money(value)
    return None


def clean_list(value: Any, limit: int | None = None) -> list[str]:
    """Keep non-empty string items, optionally capped."""
    if not isinstance(value, list):
        return []
    items = [v.strip() for v in value if isinstance(v, str) and v.strip()]
    return items[:limit] if limit is not None else items


def website_for(website: Any, domain: str | None) -> str | None:
    """Prefer the provider's website URL, else build one from the domain."""
    url = clean_str(website)
    if url:
        return url if url.startswith(("http://", "https://")) else f"https://{url}"
    return f"https://{domain}" if domain else None


class CompanyDataProvider(ABC):
    """Base class for one external company-data source.

    Subclasses implement ``_search``. ``search`` converts HTTP errors and
    malformed payloads into an empty ``ProviderResult``; transport failures
    such as timeouts propagate so the coordinator can record them.
    """

    name: str = ""

    def __init__(
        self,
        api_key: str | None,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def search(self, query: CompanySearchQuery) -> ProviderResult:
        """Run one best-effort search against this provider."""
        if not self.is_configured:
            return ProviderResult.failed(self.name, "API key not configured")

        try:
            result = await self._search(query)
        except httpx.HTTPStatusError as e:
            error = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            logger.warning(f"{self.name} search failed: {error}")
            return ProviderResult.failed(self.name, error)
        except ProviderError as e:
            logger.warning(f"{self.name} search failed: {e}")
            return ProviderResult.failed(self.name, str(e))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            error = f"Malformed response: {e}"
            logger.warning(f"{self.name} search failed: {error}")
            return ProviderResult.failed(self.name, error)

        if not result.companies:
            logger.info(f"{self.name} returned no companies")
        else:
            logger.info(f"{self.name} returned {len(result.companies)} companies")
        return result

    @abstractmethod
    async def _search(self, query: CompanySearchQuery) -> ProviderResult:
        """Issue the provider request and map its payload."""

    @staticmethod
    def _json_body(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body or raise ``json.JSONDecodeError``."""
        data = response.json()
        if not isinstance(data, dict):
            raise json.JSONDecodeError("Response is not an object", response.text[:200], 0)
        return data
