"""OpenRouter service for LLM-based company gap-filling.

This service uses the OpenAI Python SDK configured to talk to OpenRouter's
OpenAI-compatible API.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from app.core.config import Settings, get_settings
from app.core.exceptions import EnrichmentError
from app.models import CompanyRecord
from app.services.providers.base import clean_int

logger = logging.getLogger(__name__)

# Patterns stripped from provider-supplied text before it reaches a prompt.
INJECTION_PATTERNS = [
    r"ignore\s+(previous|all|above)\s+instructions",
    r"disregard\s+(previous|all|above)",
    r"new\s+instructions?:",
    r"system\s*:",
    r"assistant\s*:",
    r"<\|im_start\|>",
    r"<\|im_end\|>",
]


@dataclass
class CompanyGuess:
    """Best-effort values inferred for one company."""

    description: str | None = None
    employee_count: int | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "CompanyGuess":
        if not isinstance(data, dict):
            return cls()
        return cls(
            description=_clean_text(data.get("description")),
            # Ranges and prose ("51-200", "about 50") are not a count
            employee_count=clean_int(data.get("employee_count")),
            city=_clean_text(data.get("city")),
            state=_clean_text(data.get("state")),
            country=_clean_text(data.get("country")),
        )


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value.lower() in {"null", "none", "unknown", "n/a"}:
        return None
    return value


class OpenRouterService:
    """Service for LLM-based company field inference via OpenRouter."""

    def __init__(self, settings: Settings | None = None, api_key: str | None = None) -> None:
        settings = settings or get_settings()
        # Prefer explicit api_key, otherwise settings; strip to avoid hidden whitespace/newlines.
        self.api_key = (api_key or settings.openrouter_api_key or "").strip()
        self.base_url = settings.openrouter_base_url
        self.model = settings.openrouter_model

        # Optional attribution headers (recommended by OpenRouter)
        default_headers: dict[str, str] = {}
        if settings.openrouter_site_url:
            default_headers["HTTP-Referer"] = settings.openrouter_site_url
        if settings.openrouter_app_name:
            default_headers["X-Title"] = settings.openrouter_app_name

        self._client: AsyncOpenAI | None = None
        self._default_headers = default_headers

    @property
    def is_configured(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        """Get or create SDK client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers=self._default_headers or None,
            )
        return self._client

    async def close(self) -> None:
        """Close SDK client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _chat_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        temperature: float = 0,
    ) -> str | None:
        if not self.api_key:
            logger.warning("OpenRouter API key not configured")
            return None

        try:
            client = self._get_client()
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )
            return (resp.choices[0].message.content or "").strip()
        except Exception as e:
            logger.exception("OpenRouter SDK request failed: %s", e)
            return None

    async def infer_company_details(
        self,
        batch: list[CompanyRecord],
    ) -> list[CompanyGuess] | None:
        """Ask the model for missing details of every company in ``batch``.

        Returns one guess per company, in batch order, or None when the call
        fails, the output is not a JSON array, or its length differs from
        the batch.
        """
        if not batch:
            return []

        content_text = await self._chat_completion(
            messages=[{"role": "user", "content": self._build_gap_fill_prompt(batch)}],
            temperature=0,
        )
        if not content_text:
            return None

        try:
            return self._parse_guesses(content_text, expected=len(batch))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse enrichment response as JSON: {e}")
            return None
        except EnrichmentError as e:
            logger.error(f"Discarding enrichment batch: {e}")
            return None

    def _build_gap_fill_prompt(self, batch: list[CompanyRecord]) -> str:
        """Build the numbered-list prompt for one enrichment batch."""
        lines = []
        for index, record in enumerate(batch, start=1):
            name = self._sanitize_input(record.name or "Unknown", max_length=150)
            domain = self._sanitize_input(record.domain or "unknown domain", max_length=100)
            industry = self._sanitize_input(record.industry or "unknown industry", max_length=100)
            lines.append(f"{index}. {name} ({domain}) - {industry}")

        companies_text = "\n".join(lines)
        return f'''You are a company research assistant. For each numbered company below, give your best estimate of:
- description: one concise paragraph describing what the company does
- employee_count: approximate number of employees as an integer
- city, state, country: headquarters location

Return ONLY a JSON array (no markdown, no extra text) with exactly {len(batch)} objects, in the same order as the list:
[
  {{"description": "...", "employee_count": 120, "city": "...", "state": "...", "country": "..."}}
]

Use null for any value you do not know. Do not skip companies.

COMPANIES:
{companies_text}
'''

    def _parse_guesses(self, text: str, expected: int) -> list[CompanyGuess]:
        """Parse the model's JSON array and check it lines up with the batch."""
        data = json.loads(self._extract_json(text))
        if isinstance(data, dict):
            data = data.get("companies", data.get("results"))
        if not isinstance(data, list):
            raise EnrichmentError("Response is not a JSON array")
        if len(data) != expected:
            raise EnrichmentError(f"Expected {expected} entries, got {len(data)}")
        return [CompanyGuess.from_dict(item) for item in data]

    def _extract_json(self, text: str) -> str:
        """Extract JSON from response, handling markdown code blocks."""
        text = text.strip()
        if "```" in text:
            match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
            if match:
                text = match.group(1)
            else:
                text = re.sub(r"```(?:json)?", "", text)
        text = text.strip()

        if not text.startswith(("[", "{")):
            array_match = re.search(r"\[[\s\S]*\]", text)
            if array_match:
                text = array_match.group(0)
        return text

    def _sanitize_input(self, text: str, max_length: int = 200) -> str:
        """Strip prompt-injection patterns and newlines from provider text."""
        if not text:
            return ""
        text = re.sub(r"[\r\n\t]+", " ", text[:max_length])
        for pattern in INJECTION_PATTERNS:
            text = re.sub(pattern, "[REDACTED]", text, flags=re.IGNORECASE)
        return text.strip()
