"""UpstreamClient — throttled, quota-bound, retrying front for one upstream API."""
import asyncio
from typing import Any, Awaitable, Callable

import aiohttp
import structlog
from aiolimiter import AsyncLimiter

from src.core.pricing.http.client import HttpClient, HttpResponse
from src.core.pricing.http.retry import RetryPolicy
from src.core.pricing.http.throttle import MinIntervalThrottle

logger = structlog.get_logger()

TOO_MANY_REQUESTS = 429


class UpstreamClient:
    """
    Wraps every outbound call of a provider.

    429 and network failures are retried with backoff; any other non-2xx is
    terminal. Exhausted or terminal calls return None instead of raising.
    """

    def __init__(
        self,
        name: str,
        http: HttpClient,
        throttle: MinIntervalThrottle,
        retry: RetryPolicy,
        quota: AsyncLimiter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.name = name
        self._http = http
        self._throttle = throttle
        self._retry = retry
        self._quota = quota
        self._sleep = sleep

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse | None:
        for attempt in range(self._retry.max_attempts):
            backoff = self._retry.delay_before(attempt)
            if backoff > 0:
                logger.info("upstream.retry", upstream=self.name, attempt=attempt + 1, backoff_s=backoff)
                await self._sleep(backoff)

            await self._throttle.wait()
            try:
                if self._quota is not None:
                    async with self._quota:
                        resp = await self._http.request(method, url, params=params, json=json, headers=headers)
                else:
                    resp = await self._http.request(method, url, params=params, json=json, headers=headers)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning("upstream.network_error", upstream=self.name, attempt=attempt + 1, error=repr(e))
                continue

            if resp.status == TOO_MANY_REQUESTS:
                logger.warning("upstream.rate_limited", upstream=self.name, attempt=attempt + 1)
                continue
            if not resp.ok:
                logger.warning("upstream.http_error", upstream=self.name, status=resp.status, url=url)
                return None
            return resp

        logger.warning("upstream.exhausted", upstream=self.name, attempts=self._retry.max_attempts, url=url)
        return None
