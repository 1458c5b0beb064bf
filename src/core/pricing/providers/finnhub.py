"""Finnhub provider — index funds / equities, ISINs mapped through OpenFIGI."""
import asyncio
from typing import Any, Awaitable, Callable

import structlog
from aiolimiter import AsyncLimiter

from src.core.config import Settings
from src.core.pricing.cache.lru_cache import TtlLruCache
from src.core.pricing.http.client import HttpClient, LoggingHttpClient
from src.core.pricing.http.retry import RetryPolicy
from src.core.pricing.http.throttle import MinIntervalThrottle
from src.core.pricing.http.upstream import UpstreamClient
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.quotes import parse_price
from src.core.pricing.resolver import IdentifierPriceResolver
from src.core.pricing.symbols import SymbolCandidate, pick_best_match

logger = structlog.get_logger()

FINNHUB_BASE = "https://finnhub.io/api/v1"
OPENFIGI_MAPPING_URL = "https://api.openfigi.com/v3/mapping"

# Finnhub search "type" values that denote exchange-traded / pooled products
FUND_TYPES = {"ETP", "ETF", "FUND", "MUTUAL FUND"}


def first_figi_ticker(body: Any) -> str | None:
    """``[{"data": [{"ticker": ...}, ...]}]`` -> ticker of the first match."""
    if not isinstance(body, list) or not body or not isinstance(body[0], dict):
        return None
    data = body[0].get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    ticker = data[0].get("ticker")
    return ticker.upper() if isinstance(ticker, str) and ticker else None


def search_candidates(body: Any) -> list[SymbolCandidate]:
    results = body.get("result") if isinstance(body, dict) else None
    if not isinstance(results, list):
        return []
    return [
        SymbolCandidate(
            symbol=str(r.get("symbol") or ""),
            display_symbol=str(r.get("displaySymbol") or ""),
            instrument_type=str(r.get("type") or ""),
            name=str(r.get("description") or ""),
        )
        for r in results
        if isinstance(r, dict)
    ]


def is_fund(candidate: SymbolCandidate) -> bool:
    return candidate.instrument_type.upper() in FUND_TYPES


class FinnhubPriceProvider(PriceProvider):

    def __init__(
        self,
        settings: Settings | None = None,
        http: HttpClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or Settings()
        self._api_key = settings.finnhub_api_key
        self._openfigi_key = settings.openfigi_api_key

        http = http or LoggingHttpClient(settings.http_timeout_seconds, settings.http_log_body_limit)
        # One clock per provider instance: Finnhub and OpenFIGI calls share the floor
        throttle = MinIntervalThrottle(settings.finnhub_min_interval_seconds, sleep=sleep)
        retry = RetryPolicy(settings.retry_max_attempts, settings.retry_base_delay_seconds)
        self._finnhub = UpstreamClient("finnhub", http, throttle, retry, AsyncLimiter(60, 60), sleep)
        self._openfigi = UpstreamClient("openfigi", http, throttle, retry, AsyncLimiter(25, 60), sleep)

        self.isin_cache: TtlLruCache[str, str] = TtlLruCache(
            settings.isin_cache_max_entries, settings.isin_cache_ttl_seconds
        )
        self.price_cache: TtlLruCache[str, str] = TtlLruCache(
            settings.price_cache_max_entries, settings.price_cache_ttl_seconds
        )
        self._resolver = IdentifierPriceResolver(
            provider=self.name,
            isin_cache=self.isin_cache,
            price_cache=self.price_cache,
            map_isin=self._map_isin,
            fetch_quote=self._fetch_quote,
            find_alternative=self._find_alternative,
        )

    @property
    def name(self) -> str:
        return "finnhub"

    async def get_current_price(self, identifier: str, target_currency_code: str) -> str | None:
        # Quotes come back in the listing currency; target_currency_code is not applied
        if not isinstance(identifier, str) or not identifier:
            return None
        if not self._api_key:
            logger.warning("provider.not_configured", provider=self.name, missing="FINNHUB_API_KEY")
            return None
        return await self._resolver.resolve(identifier)

    async def _map_isin(self, isin: str) -> str | None:
        ticker = await self._openfigi_ticker(isin)
        if ticker is not None:
            return ticker
        logger.info("isin.search_fallback", provider=self.name, isin=isin)
        return await self._search_best(isin, fallback_to_first=True)

    async def _openfigi_ticker(self, isin: str) -> str | None:
        headers = {"X-OPENFIGI-APIKEY": self._openfigi_key} if self._openfigi_key else None
        resp = await self._openfigi.send(
            "POST",
            OPENFIGI_MAPPING_URL,
            json=[{"idType": "ID_ISIN", "idValue": isin}],
            headers=headers,
        )
        if resp is None:
            return None
        ticker = first_figi_ticker(resp.json())
        if ticker is None:
            logger.info("openfigi.no_ticker", isin=isin)
        return ticker

    async def _search_best(
        self, query: str, exclude: tuple[str, ...] = (), fallback_to_first: bool = False
    ) -> str | None:
        resp = await self._finnhub.send(
            "GET", f"{FINNHUB_BASE}/search", params={"q": query, "token": self._api_key}
        )
        if resp is None:
            return None
        return pick_best_match(
            search_candidates(resp.json()), query, is_fund=is_fund, exclude=exclude, fallback_to_first=fallback_to_first
        )

    async def _find_alternative(self, ticker: str) -> str | None:
        return await self._search_best(ticker, exclude=(ticker,))

    async def _fetch_quote(self, ticker: str) -> float | None:
        resp = await self._finnhub.send(
            "GET", f"{FINNHUB_BASE}/quote", params={"symbol": ticker, "token": self._api_key}
        )
        if resp is None:
            return None
        body = resp.json()
        # Finnhub answers unknown symbols with 200 and c == 0
        price = parse_price(body.get("c")) if isinstance(body, dict) else None
        if price is None:
            logger.warning("quote.invalid", provider=self.name, ticker=ticker)
        return price
