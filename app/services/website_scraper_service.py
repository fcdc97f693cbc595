"""Website scraper service for extracting social profile links from company homepages."""

import asyncio
import logging
import re

import httpx
from bs4 import BeautifulSoup

from app.core.config import DEFAULT_SOCIAL_SCRAPE_TIMEOUT
from app.core.exceptions import ScrapeError

logger = logging.getLogger(__name__)

# Profile URL patterns per platform (company pages, not share widgets)
SOCIAL_PATTERNS: dict[str, re.Pattern[str]] = {
    "linkedin": re.compile(
        r"https?://(?:[a-z]{2,3}\.)?linkedin\.com/(?:company|school|showcase)/[A-Za-z0-9_\-%.]+/?",
        re.IGNORECASE,
    ),
    "twitter": re.compile(
        r"https?://(?:www\.)?(?:twitter|x)\.com/(?!intent|share|home|search|hashtag)[A-Za-z0-9_]{1,15}/?(?![A-Za-z0-9_/])",
        re.IGNORECASE,
    ),
    "facebook": re.compile(
        r"https?://(?:www\.|m\.)?facebook\.com/(?!sharer|share|dialog|plugins|tr\b)[A-Za-z0-9.\-]+/?",
        re.IGNORECASE,
    ),
    "instagram": re.compile(
        r"https?://(?:www\.)?instagram\.com/(?!p/|explore|accounts)[A-Za-z0-9_.]+/?",
        re.IGNORECASE,
    ),
    "youtube": re.compile(
        r"https?://(?:www\.)?youtube\.com/(?:channel/|c/|user/|@)[A-Za-z0-9_\-.]+/?",
        re.IGNORECASE,
    ),
    "tiktok": re.compile(
        r"https?://(?:www\.)?tiktok\.com/@[A-Za-z0-9_.]+/?",
        re.IGNORECASE,
    ),
}

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml",
}


def extract_social_links(html: str) -> dict[str, str]:
    """Return the first profile URL found for each known platform.

    Anchor hrefs are checked first; a raw sweep of the markup then catches
    links embedded in scripts or JSON-LD ``sameAs`` blocks.
    """
    if not html:
        return {}

    candidates: list[str] = []
    soup = BeautifulSoup(html, "lxml")
    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href")
        if isinstance(href, str):
            candidates.append(href.strip())

    links: dict[str, str] = {}
    for platform, pattern in SOCIAL_PATTERNS.items():
        for candidate in candidates:
            match = pattern.match(candidate)
            if match:
                links[platform] = match.group(0).rstrip("/")
                break
        if platform not in links:
            match = pattern.search(html)
            if match:
                links[platform] = match.group(0).rstrip("/")
    return links


class WebsiteScraperService:
    """Fetches company homepages with a hard timeout and scrapes social links."""

    def __init__(self, timeout: float = DEFAULT_SOCIAL_SCRAPE_TIMEOUT) -> None:
        """Initialize the scraper service."""
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "WebsiteScraperService":
        """Enter async context and create HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context and close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def scrape_social_profiles(self, website_url: str) -> dict[str, str]:
        """
        Scrape social profile links from a company homepage.

        Args:
            website_url: Company website or bare domain (e.g., "acme.com")

        Returns:
            Mapping of platform to profile URL; empty when the page could not
            be fetched.
        """
        if not self._client:
            raise RuntimeError(
                "Service not initialized. Use 'async with' context manager."
            )

        if not website_url:
            return {}
        if not website_url.startswith(("http://", "https://")):
            website_url = f"https://{website_url}"

        try:
            html = await self._fetch_page(website_url)
        except ScrapeError as e:
            logger.debug(f"Social scrape skipped: {e}")
            return {}

        links = extract_social_links(html)
        if links:
            logger.debug(f"Found {len(links)} social links at {website_url}")
        return links

    async def _fetch_page(self, url: str) -> str:
        """
        Fetch HTML content from URL within the hard timeout.

        Raises:
            ScrapeError: On timeout, non-200 response or network failure.
        """
        if not self._client:
            raise ScrapeError(f"No HTTP client for {url}")

        try:
            response = await asyncio.wait_for(self._client.get(url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ScrapeError(f"Timed out fetching {url}") from e
        except httpx.HTTPError as e:
            raise ScrapeError(f"HTTP error fetching {url}: {e}") from e
        except httpx.InvalidURL as e:
            raise ScrapeError(f"Invalid URL {url!r}: {e}") from e

        if response.status_code != 200:
            raise ScrapeError(f"{url} returned HTTP {response.status_code}")
        return response.text
