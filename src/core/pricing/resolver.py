"""IdentifierPriceResolver — ticker/ISIN -> price flow shared by the index-fund providers.

Providers supply the upstream-specific steps (ISIN mapping, quote fetch,
alternative-symbol search); this class owns the order they run in and the
two cache layers in front of them:

  identifier ─► ISIN? ─► ISIN cache ─► map_isin ─┐
       │                                        ▼
       └──────────────► ticker ─► is_safe_ticker ─► price cache ─► fetch_quote
                                                                     │ none
                                                                     ▼
                                                  find_alternative ─► fetch_quote (once)
"""
from typing import Awaitable, Callable

import structlog

from src.core.pricing.cache.lru_cache import TtlLruCache
from src.core.pricing.quotes import format_price
from src.core.pricing.validator.identifiers import is_isin, is_safe_ticker

logger = structlog.get_logger()

IsinMapper = Callable[[str], Awaitable[str | None]]
QuoteFetcher = Callable[[str], Awaitable[float | None]]
AlternativeFinder = Callable[[str], Awaitable[str | None]]


class IdentifierPriceResolver:

    def __init__(
        self,
        provider: str,
        isin_cache: TtlLruCache[str, str],
        price_cache: TtlLruCache[str, str],
        map_isin: IsinMapper,
        fetch_quote: QuoteFetcher,
        find_alternative: AlternativeFinder | None = None,
    ):
        self._provider = provider
        self._isin_cache = isin_cache
        self._price_cache = price_cache
        self._map_isin = map_isin
        self._fetch_quote = fetch_quote
        self._find_alternative = find_alternative

    async def resolve(self, identifier: str) -> str | None:
        if not isinstance(identifier, str) or not identifier.strip():
            return None
        try:
            return await self._resolve(identifier.strip().upper())
        except Exception:
            logger.exception("price.failed", provider=self._provider, identifier=identifier)
            return None

    async def resolve_ticker(self, isin: str) -> str | None:
        """ISIN -> ticker, cache first. A cache hit is never re-validated upstream."""
        cached = self._isin_cache.get(isin)
        if cached is not None:
            logger.info("isin.cache_hit", provider=self._provider, isin=isin, ticker=cached)
            return cached

        ticker = await self._map_isin(isin)
        if not ticker:
            return None
        ticker = ticker.upper()
        if not is_safe_ticker(ticker):
            logger.warning("ticker.invalid", provider=self._provider, isin=isin, ticker=ticker)
            return None
        self._isin_cache.set(isin, ticker)
        logger.info("isin.resolved", provider=self._provider, isin=isin, ticker=ticker)
        return ticker

    async def _resolve(self, normalized: str) -> str | None:
        logger.info("price.request", provider=self._provider, identifier=normalized)

        if is_isin(normalized):
            ticker = await self.resolve_ticker(normalized)
            if ticker is None:
                logger.warning("isin.unresolved", provider=self._provider, isin=normalized)
                return None
        else:
            ticker = normalized

        if not is_safe_ticker(ticker):
            logger.warning("ticker.invalid", provider=self._provider, ticker=ticker)
            return None

        cached = self._price_cache.get(ticker)
        if cached is not None:
            logger.info("price.cache_hit", provider=self._provider, ticker=ticker, price=cached)
            return cached

        symbol = ticker
        price = await self._fetch_quote(ticker)
        if price is None and self._find_alternative is not None:
            alternative = await self._find_alternative(ticker)
            if alternative and alternative != ticker and is_safe_ticker(alternative):
                logger.info("ticker.alternative", provider=self._provider, ticker=ticker, alternative=alternative)
                symbol = alternative
                price = await self._fetch_quote(alternative)

        if price is None:
            logger.warning("price.not_found", provider=self._provider, ticker=ticker)
            return None

        text = format_price(price)
        self._price_cache.set(ticker, text)
        if symbol != ticker:
            self._price_cache.set(symbol, text)
        logger.info("price.ok", provider=self._provider, ticker=ticker, symbol=symbol, price=text)
        return text
