"""Pricing layer — current prices for tickers, ISINs and crypto symbols.

Design: callers never talk to an upstream directly.  They ask a factory for
the active PriceProvider and call get_current_price(), which returns a
decimal string or None.  Each provider instance owns its own throttle and
caches, so:
  • Repeated lookups inside the price TTL never leave the process.
  • ISIN -> ticker mappings are resolved once and reused.
  • Switching upstreams (Finnhub → Yahoo) is a settings change.

The factories below are created on first use so that importing this package
never reads credentials.
"""

from src.core.pricing.providers.factory import CryptoPriceProviderFactory, IndexFundPriceProviderFactory

_index_fund_factory: IndexFundPriceProviderFactory | None = None
_crypto_factory: CryptoPriceProviderFactory | None = None


def get_index_fund_factory() -> IndexFundPriceProviderFactory:
    """Return the shared index-fund / equity provider factory."""
    global _index_fund_factory
    if _index_fund_factory is None:
        _index_fund_factory = IndexFundPriceProviderFactory.from_settings()
    return _index_fund_factory


def get_crypto_factory() -> CryptoPriceProviderFactory:
    """Return the shared crypto provider factory."""
    global _crypto_factory
    if _crypto_factory is None:
        _crypto_factory = CryptoPriceProviderFactory.from_settings()
    return _crypto_factory
