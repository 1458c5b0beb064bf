"""Provider factories — hand callers the provider that is currently active."""
from typing import Callable

from src.core.config import Settings
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.providers.coingecko import CoinGeckoPriceProvider
from src.core.pricing.providers.finnhub import FinnhubPriceProvider
from src.core.pricing.providers.yahoo import YahooFinancePriceProvider

INDEX_FUND_PROVIDERS: dict[str, Callable[[Settings], PriceProvider]] = {
    "finnhub": lambda s: FinnhubPriceProvider(settings=s),
    "yahoo": lambda s: YahooFinancePriceProvider(settings=s),
}

CRYPTO_PROVIDERS: dict[str, Callable[[Settings], PriceProvider]] = {
    "coingecko": lambda s: CoinGeckoPriceProvider(settings=s),
}


class IndexFundPriceProviderFactory:

    def __init__(self, provider: PriceProvider):
        self._provider = provider

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "IndexFundPriceProviderFactory":
        settings = settings or Settings()
        return cls(_build(INDEX_FUND_PROVIDERS, settings.index_fund_price_provider, settings))

    def get_provider(self) -> PriceProvider:
        # Single configured provider today; per-instrument routing would go here
        return self._provider


class CryptoPriceProviderFactory:

    def __init__(self, provider: PriceProvider):
        self._provider = provider

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "CryptoPriceProviderFactory":
        settings = settings or Settings()
        return cls(_build(CRYPTO_PROVIDERS, settings.crypto_price_provider, settings))

    def get_provider(self) -> PriceProvider:
        return self._provider


def _build(
    registry: dict[str, Callable[[Settings], PriceProvider]],
    name: str,
    settings: Settings,
) -> PriceProvider:
    key = name.strip().lower()
    if key not in registry:
        raise ValueError(f"Unknown price provider {name!r}. Choose from: {sorted(registry)}")
    return registry[key](settings)
