"""Error taxonomy for the company search pipeline.

Only ``AuthError`` and ``ConfigurationError`` are allowed to fail a
request. The remaining errors are raised inside a single unit of work
(one provider call, one enrichment batch, one homepage fetch) and are
converted to an empty outcome by that unit.
"""


class CompanySearchError(RuntimeError):
    """Base class for company search errors."""


class AuthError(CompanySearchError):
    """Raised when the bearer token is missing or rejected."""


class ConfigurationError(CompanySearchError):
    """Raised when mandatory configuration is missing."""


class ProviderError(CompanySearchError):
    """Raised when a company-data provider returns an unusable response."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class EnrichmentError(CompanySearchError):
    """Raised when the language model output cannot be applied to a batch."""


class ScrapeError(CompanySearchError):
    """Raised when a company homepage cannot be fetched."""
