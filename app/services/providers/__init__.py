"""Company-data provider adapters."""

from app.core.config import DEFAULT_PROVIDER_TIMEOUT, PROVIDER_ORDER
from app.services.providers.apollo import ApolloProvider
from app.services.providers.base import CompanyDataProvider, ProviderResult
from app.services.providers.people_data_labs import PeopleDataLabsProvider
from app.services.providers.prospeo import ProspeoProvider

PROVIDER_CLASSES: dict[str, type[CompanyDataProvider]] = {
    "apollo": ApolloProvider,
    "pdl": PeopleDataLabsProvider,
    "prospeo": ProspeoProvider,
}


def build_providers(
    credentials: dict[str, str],
    timeout: float = DEFAULT_PROVIDER_TIMEOUT,
) -> list[CompanyDataProvider]:
    """Instantiate adapters for every provider with a non-blank credential.

    Adapters are returned in registration order, which is also the order
    used for the left-biased merge.
    """
    providers: list[CompanyDataProvider] = []
    for name in PROVIDER_ORDER:
        api_key = (credentials.get(name) or "").strip()
        if api_key:
            providers.append(PROVIDER_CLASSES[name](api_key, timeout=timeout))
    return providers


__all__ = [
    "ApolloProvider",
    "CompanyDataProvider",
    "PeopleDataLabsProvider",
    "ProspeoProvider",
    "ProviderResult",
    "PROVIDER_CLASSES",
    "build_providers",
]
