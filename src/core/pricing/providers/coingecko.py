"""CoinGecko provider — crypto spot prices, quoted directly in the target currency."""
import asyncio
import re
from typing import Awaitable, Callable

import structlog
from aiolimiter import AsyncLimiter

from src.core.config import Settings
from src.core.pricing.cache.lru_cache import TtlLruCache
from src.core.pricing.http.client import HttpClient, LoggingHttpClient
from src.core.pricing.http.retry import RetryPolicy
from src.core.pricing.http.throttle import MinIntervalThrottle
from src.core.pricing.http.upstream import UpstreamClient
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.quotes import format_price, parse_price
from src.core.pricing.validator.identifiers import is_safe_ticker

logger = structlog.get_logger()

COINGECKO_BASE = "https://api.coingecko.com/api/v3"
CURRENCY_RE = re.compile(r"[A-Z]{2,5}")

# Common symbols -> CoinGecko coin ids; anything else is tried as a lower-cased id
SYMBOL_TO_COIN_ID = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "USDC": "usd-coin",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "SOL": "solana",
    "MATIC": "matic-network",
    "DOT": "polkadot",
    "LTC": "litecoin",
    "SHIB": "shiba-inu",
    "TRX": "tron",
    "AVAX": "avalanche-2",
    "UNI": "uniswap",
    "LINK": "chainlink",
    "ATOM": "cosmos",
    "XLM": "stellar",
    "BCH": "bitcoin-cash",
}


def coin_id_for(symbol: str) -> str:
    return SYMBOL_TO_COIN_ID.get(symbol.upper(), symbol.lower())


class CoinGeckoPriceProvider(PriceProvider):

    def __init__(
        self,
        settings: Settings | None = None,
        http: HttpClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or Settings()
        self._api_key = settings.coingecko_api_key
        http = http or LoggingHttpClient(settings.http_timeout_seconds, settings.http_log_body_limit)
        throttle = MinIntervalThrottle(settings.coingecko_min_interval_seconds, sleep=sleep)
        retry = RetryPolicy(settings.retry_max_attempts, settings.retry_base_delay_seconds)
        self._coingecko = UpstreamClient("coingecko", http, throttle, retry, AsyncLimiter(30, 60), sleep)
        self.price_cache: TtlLruCache[tuple[str, str], str] = TtlLruCache(
            settings.price_cache_max_entries, settings.price_cache_ttl_seconds
        )

    @property
    def name(self) -> str:
        return "coingecko"

    async def get_current_price(self, identifier: str, target_currency_code: str) -> str | None:
        if not isinstance(identifier, str) or not is_safe_ticker(identifier.strip()):
            return None
        if not isinstance(target_currency_code, str):
            return None
        currency = target_currency_code.strip().upper()
        if not CURRENCY_RE.fullmatch(currency):
            logger.warning("currency.invalid", provider=self.name, currency=target_currency_code)
            return None

        coin_id = coin_id_for(identifier.strip())
        vs = currency.lower()
        try:
            cached = self.price_cache.get((coin_id, vs))
            if cached is not None:
                logger.info("price.cache_hit", provider=self.name, coin=coin_id, currency=vs, price=cached)
                return cached

            price = await self._fetch_price(coin_id, vs)
            if price is None:
                logger.warning("price.not_found", provider=self.name, coin=coin_id, currency=vs)
                return None
            text = format_price(price)
            self.price_cache.set((coin_id, vs), text)
            logger.info("price.ok", provider=self.name, coin=coin_id, currency=vs, price=text)
            return text
        except Exception:
            logger.exception("price.failed", provider=self.name, identifier=identifier)
            return None

    async def _fetch_price(self, coin_id: str, vs: str) -> float | None:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key
        resp = await self._coingecko.send(
            "GET",
            f"{COINGECKO_BASE}/simple/price",
            params={"ids": coin_id, "vs_currencies": vs},
            headers=headers,
        )
        if resp is None:
            return None
        body = resp.json()
        prices = body.get(coin_id) if isinstance(body, dict) else None
        return parse_price(prices.get(vs)) if isinstance(prices, dict) else None
