"""Services package for the Company Search Aggregator."""

from app.services.auth_service import AuthService, get_auth_service
from app.services.data_aggregator import DataAggregator, get_data_aggregator
from app.services.enrichment_service import GapFillEnricher
from app.services.openrouter_service import OpenRouterService
from app.services.search_service import CompanySearchService, get_search_service
from app.services.website_scraper_service import WebsiteScraperService

__all__ = [
    "AuthService",
    "get_auth_service",
    "CompanySearchService",
    "get_search_service",
    "DataAggregator",
    "get_data_aggregator",
    "GapFillEnricher",
    "OpenRouterService",
    "WebsiteScraperService",
]
