"""Best-effort gap-filling for merged company records.

Two independent passes run after filtering:

1. Records missing a description, employee count or headquarters location
   are sent to the language model in fixed-size batches. Guesses are
   applied by position and only to blank fields.
2. A bounded prefix of the result list has its homepage fetched to pick up
   social profile links.

Neither pass can fail the request.
"""

from __future__ import annotations

import asyncio
import logging

from app.core.config import (
    DEFAULT_ENRICHMENT_BATCH_SIZE,
    DEFAULT_SOCIAL_SCRAPE_LIMIT,
    DEFAULT_SOCIAL_SCRAPE_TIMEOUT,
)
from app.models import CompanyRecord
from app.services.data_aggregator import is_blank
from app.services.openrouter_service import CompanyGuess, OpenRouterService
from app.services.website_scraper_service import WebsiteScraperService

logger = logging.getLogger(__name__)


def needs_gap_fill(record: CompanyRecord) -> bool:
    """True when any field the model can infer is still blank."""
    return (
        is_blank(record.description)
        or record.employee_count is None
        or is_blank(record.headquarters_city)
        or is_blank(record.headquarters_country)
    )


def apply_guess(record: CompanyRecord, guess: CompanyGuess) -> bool:
    """Copy guessed values into blank fields. Returns True if anything changed."""
    changed = False
    updates = {
        "description": guess.description,
        "employee_count": guess.employee_count,
        "headquarters_city": guess.city,
        "headquarters_state": guess.state,
        "headquarters_country": guess.country,
    }
    for field_name, value in updates.items():
        if value is None:
            continue
        if is_blank(getattr(record, field_name)):
            setattr(record, field_name, value)
            changed = True
    return changed


class GapFillEnricher:
    """Fills blank company fields via the language model and homepage scraping."""

    def __init__(
        self,
        openrouter: OpenRouterService,
        batch_size: int = DEFAULT_ENRICHMENT_BATCH_SIZE,
        scrape_limit: int = DEFAULT_SOCIAL_SCRAPE_LIMIT,
        scrape_timeout: float = DEFAULT_SOCIAL_SCRAPE_TIMEOUT,
    ) -> None:
        self.openrouter = openrouter
        self.batch_size = max(1, batch_size)
        self.scrape_limit = max(0, scrape_limit)
        self.scrape_timeout = scrape_timeout

    async def enrich(self, records: list[CompanyRecord]) -> list[CompanyRecord]:
        """Run both passes in place and return ``records``."""
        if not records:
            return records
        await self.fill_with_ai(records)
        await self.fill_social_profiles(records)
        return records

    async def fill_with_ai(self, records: list[CompanyRecord]) -> int:
        """Infer missing fields in sequential batches.

        Returns:
            Number of records that received at least one value.
        """
        if not self.openrouter.is_configured:
            logger.info("OpenRouter not configured, skipping AI gap-fill")
            return 0

        candidates = [r for r in records if needs_gap_fill(r)]
        if not candidates:
            return 0

        updated = 0
        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start:start + self.batch_size]
            guesses = await self.openrouter.infer_company_details(batch)
            if guesses is None:
                logger.warning(f"AI gap-fill skipped batch of {len(batch)} at offset {start}")
                continue
            if len(guesses) != len(batch):
                logger.warning(
                    f"AI gap-fill batch misaligned ({len(guesses)} guesses for {len(batch)} companies), skipping"
                )
                continue
            for record, guess in zip(batch, guesses):
                if apply_guess(record, guess):
                    updated += 1

        logger.info(f"AI gap-fill updated {updated} of {len(candidates)} candidates")
        return updated

    async def fill_social_profiles(self, records: list[CompanyRecord]) -> int:
        """Scrape homepages of the first ``scrape_limit`` records concurrently.

        Returns:
            Number of records that gained social links.
        """
        targets = [
            r for r in records[:self.scrape_limit]
            if not r.social_profiles and (r.website or r.domain)
        ]
        if not targets:
            return 0

        async with WebsiteScraperService(timeout=self.scrape_timeout) as scraper:
            results = await asyncio.gather(
                *(scraper.scrape_social_profiles(r.website or r.domain or "") for r in targets),
                return_exceptions=True,
            )

        updated = 0
        for record, links in zip(targets, results):
            if isinstance(links, BaseException):
                logger.debug(f"Social scrape failed for {record.domain}: {links}")
                continue
            if not links:
                continue
            record.social_profiles = links
            if is_blank(record.linkedin_url) and links.get("linkedin"):
                record.linkedin_url = links["linkedin"]
            updated += 1

        logger.info(f"Social scrape found links for {updated} of {len(targets)} companies")
        return updated
