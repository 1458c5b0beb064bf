"""Yahoo Finance provider — no credential, one search endpoint for ISINs and alternatives."""
import asyncio
import re
from typing import Any, Awaitable, Callable
from urllib.parse import quote

import structlog
from aiolimiter import AsyncLimiter

from src.core.config import Settings
from src.core.pricing.cache.lru_cache import TtlLruCache
from src.core.pricing.http.client import HttpClient, LoggingHttpClient
from src.core.pricing.http.retry import RetryPolicy
from src.core.pricing.http.throttle import MinIntervalThrottle
from src.core.pricing.http.upstream import UpstreamClient
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.quotes import latest_close, parse_price
from src.core.pricing.resolver import IdentifierPriceResolver
from src.core.pricing.symbols import SymbolCandidate, pick_best_match

logger = structlog.get_logger()

YAHOO_CHART_BASE = "https://query1.finance.yahoo.com/v8/finance/chart"
YAHOO_SEARCH_URL = "https://query2.finance.yahoo.com/v1/finance/search"
# Yahoo rejects requests without a browser-like agent
YAHOO_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; price-resolver/1.0)"}

FUND_QUOTE_TYPES = {"ETF", "MUTUALFUND"}
FUND_ISSUERS = (
    "ISHARES", "VANGUARD", "XTRACKERS", "AMUNDI", "SPDR", "LYXOR",
    "INVESCO", "WISDOMTREE", "VANECK", "FIDELITY",
)
FUND_WORDS_RE = re.compile(r"\b(ETF|UCITS|FUND|INDEX)\b")


def search_candidates(body: Any) -> list[SymbolCandidate]:
    quotes = body.get("quotes") if isinstance(body, dict) else None
    if not isinstance(quotes, list):
        return []
    return [
        SymbolCandidate(
            symbol=str(q.get("symbol") or ""),
            instrument_type=str(q.get("quoteType") or ""),
            name=str(q.get("longname") or q.get("shortname") or ""),
        )
        for q in quotes
        if isinstance(q, dict)
    ]


def is_fund(candidate: SymbolCandidate) -> bool:
    if candidate.instrument_type.upper() in FUND_QUOTE_TYPES:
        return True
    name = candidate.name.upper()
    return any(issuer in name for issuer in FUND_ISSUERS) or FUND_WORDS_RE.search(name) is not None


def chart_price(body: Any) -> float | None:
    """Latest intraday close, falling back to meta.regularMarketPrice."""
    chart = body.get("chart") if isinstance(body, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    result = results[0]

    indicators = result.get("indicators")
    quotes = indicators.get("quote") if isinstance(indicators, dict) else None
    if isinstance(quotes, list) and quotes and isinstance(quotes[0], dict):
        price = latest_close(quotes[0].get("close"))
        if price is not None:
            return price

    meta = result.get("meta")
    return parse_price(meta.get("regularMarketPrice")) if isinstance(meta, dict) else None


class YahooFinancePriceProvider(PriceProvider):

    def __init__(
        self,
        settings: Settings | None = None,
        http: HttpClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or Settings()
        http = http or LoggingHttpClient(settings.http_timeout_seconds, settings.http_log_body_limit)
        throttle = MinIntervalThrottle(settings.yahoo_min_interval_seconds, sleep=sleep)
        retry = RetryPolicy(settings.retry_max_attempts, settings.retry_base_delay_seconds)
        self._yahoo = UpstreamClient("yahoo", http, throttle, retry, AsyncLimiter(60, 60), sleep)

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
            map_isin=self._search_isin,
            fetch_quote=self._fetch_quote,
            find_alternative=self._find_alternative,
        )

    @property
    def name(self) -> str:
        return "yahoo"

    async def get_current_price(self, identifier: str, target_currency_code: str) -> str | None:
        # Chart prices are in the listing currency; target_currency_code is not applied
        return await self._resolver.resolve(identifier)

    async def _search_best(
        self, query: str, exclude: tuple[str, ...] = (), fallback_to_first: bool = False
    ) -> str | None:
        resp = await self._yahoo.send(
            "GET",
            YAHOO_SEARCH_URL,
            params={"q": query, "quotesCount": "10", "newsCount": "0"},
            headers=YAHOO_HEADERS,
        )
        if resp is None:
            return None
        return pick_best_match(
            search_candidates(resp.json()), query, is_fund=is_fund, exclude=exclude, fallback_to_first=fallback_to_first
        )

    async def _search_isin(self, isin: str) -> str | None:
        return await self._search_best(isin, fallback_to_first=True)

    async def _find_alternative(self, ticker: str) -> str | None:
        return await self._search_best(ticker, exclude=(ticker,))

    async def _fetch_quote(self, ticker: str) -> float | None:
        resp = await self._yahoo.send(
            "GET",
            f"{YAHOO_CHART_BASE}/{quote(ticker, safe='')}",
            params={"range": "1d", "interval": "5m"},
            headers=YAHOO_HEADERS,
        )
        if resp is None:
            return None
        price = chart_price(resp.json())
        if price is None:
            logger.warning("quote.invalid", provider=self.name, ticker=ticker)
        return price
