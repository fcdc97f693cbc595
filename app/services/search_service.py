"""Company search service aggregating multiple company-data providers.

Pipeline for one request:

1. Fan out to every configured provider concurrently and wait for all of
   them (Apollo, People Data Labs, Prospeo, in that registration order).
2. Merge contributors' records by normalised domain; the first provider to
   report a company is its primary and later providers only fill gaps.
3. Apply industry relevance and exclusion filters, then truncate to the
   requested limit.
4. Gap-fill blank fields (language model, homepage social links).
5. Assemble the response with pagination from the first provider that
   reported totals.

Nothing is kept between requests apart from pooled HTTP clients.
"""

import asyncio
import logging
import math

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError
from app.models import CompanyRecord, CompanySearchQuery, CompanySearchResponse, SearchPagination
from app.services.data_aggregator import DataAggregator, get_data_aggregator
from app.services.enrichment_service import GapFillEnricher
from app.services.openrouter_service import OpenRouterService
from app.services.providers import CompanyDataProvider, ProviderResult, build_providers
from app.services.relevance_filter import exclude_industries, filter_by_industry

logger = logging.getLogger(__name__)

NO_PROVIDER = "none"
PROVIDER_SEPARATOR = "+"


class CompanySearchService:
    """Coordinates provider fan-out, merging, filtering and gap-filling.

    Attributes:
        providers: Registered adapters in merge order.
        aggregator: Merge engine.
        enricher: Gap-fill enricher run on the final page of results.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        providers: list[CompanyDataProvider] | None = None,
        aggregator: DataAggregator | None = None,
        openrouter: OpenRouterService | None = None,
        enricher: GapFillEnricher | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        if providers is None:
            providers = build_providers(
                self.settings.provider_credentials,
                timeout=self.settings.provider_timeout,
            )
        self.providers = providers
        self.aggregator = aggregator or get_data_aggregator()
        self.openrouter = openrouter or OpenRouterService(self.settings)
        self.enricher = enricher or GapFillEnricher(
            self.openrouter,
            batch_size=self.settings.enrichment_batch_size,
            scrape_limit=self.settings.social_scrape_limit,
            scrape_timeout=self.settings.social_scrape_timeout,
        )

    @property
    def is_configured(self) -> bool:
        """True when at least one provider has a credential."""
        return bool(self.providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self.providers]

    @property
    def has_llm(self) -> bool:
        return self.openrouter.is_configured

    async def close(self) -> None:
        """Close provider and LLM clients."""
        for provider in self.providers:
            await provider.close()
        await self.openrouter.close()

    async def fan_out(self, query: CompanySearchQuery) -> list[ProviderResult]:
        """Query every provider concurrently and keep those with data.

        A provider that raises, fails or returns nothing contributes
        nothing; the others are unaffected. Results keep registration
        order.

        Raises:
            ConfigurationError: If no provider is registered.
        """
        if not self.providers:
            raise ConfigurationError(
                "No company data providers configured. Set APOLLO_API_KEY, PDL_API_KEY or PROSPEO_API_KEY."
            )

        logger.info(f"Searching {len(self.providers)} providers: {', '.join(self.provider_names)}")

        outcomes = await asyncio.gather(
            *(provider.search(query) for provider in self.providers),
            return_exceptions=True,
        )

        contributors: list[ProviderResult] = []
        for provider, outcome in zip(self.providers, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Provider {provider.name} raised {type(outcome).__name__}: {outcome}")
                continue
            if not outcome.success:
                logger.warning(f"Provider {provider.name} failed: {outcome.error}")
                continue
            if not outcome.has_data:
                logger.info(f"Provider {provider.name} returned no data")
                continue
            contributors.append(outcome)

        return contributors

    async def search(self, query: CompanySearchQuery) -> CompanySearchResponse:
        """Run the full search pipeline for one request."""
        contributors = await self.fan_out(query)

        if not contributors:
            logger.info("No provider returned data")
            return CompanySearchResponse(
                companies=[],
                total=0,
                provider=NO_PROVIDER,
                providers=[],
                pagination=SearchPagination(
                    page=query.page, limit=query.limit, total_entries=0, total_pages=0
                ),
            )

        merged = self.aggregator.merge_provider_results(contributors)
        filtered = filter_by_industry(merged, query.industry_terms())
        filtered = exclude_industries(filtered, query.excluded_industry_terms())
        companies = filtered[:query.limit]

        try:
            await self.enricher.enrich(companies)
        except Exception as e:
            logger.exception(f"Gap-fill enrichment failed: {e}")

        return self._assemble(query, contributors, companies)

    def _assemble(
        self,
        query: CompanySearchQuery,
        contributors: list[ProviderResult],
        companies: list[CompanyRecord],
    ) -> CompanySearchResponse:
        """Package results with pagination from the first reporting provider."""
        total_entries = 0
        total_pages = 0
        for result in contributors:
            if result.total_entries > 0:
                total_entries = result.total_entries
                total_pages = result.total_pages or math.ceil(total_entries / query.limit)
                break

        if not total_entries:
            total_entries = len(companies)
            total_pages = 1 if companies else 0

        provider_names = [r.provider for r in contributors]
        logger.info(
            f"Returning {len(companies)} companies from {PROVIDER_SEPARATOR.join(provider_names)}"
        )

        return CompanySearchResponse(
            companies=companies,
            total=total_entries,
            provider=PROVIDER_SEPARATOR.join(provider_names),
            providers=provider_names,
            pagination=SearchPagination(
                page=query.page,
                limit=query.limit,
                total_entries=total_entries,
                total_pages=total_pages,
            ),
        )


_search_service: CompanySearchService | None = None


def get_search_service() -> CompanySearchService:
    """Get the singleton CompanySearchService instance."""
    global _search_service
    if _search_service is None:
        _search_service = CompanySearchService()
    return _search_service
