"""HttpClient — outbound JSON calls with request/response diagnostics."""
import json as jsonlib
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import aiohttp
import structlog

logger = structlog.get_logger()

SECRET_PARAMS = frozenset({"token", "apikey", "api_key"})
TRUNCATION_MARKER = "..."


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decoded body, or None when the body is not valid JSON."""
        try:
            return jsonlib.loads(self.body)
        except (TypeError, ValueError):
            return None


class HttpClient(ABC):

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """
        Perform one request and return status + raw body.
        Network failures and timeouts raise aiohttp.ClientError / asyncio.TimeoutError.
        """
        ...


def truncate_body(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def redact_params(params: dict[str, str] | None) -> dict[str, str]:
    return {k: ("***" if k.lower() in SECRET_PARAMS else v) for k, v in (params or {}).items()}


class LoggingHttpClient(HttpClient):
    """aiohttp-backed client that logs every request and response."""

    def __init__(self, timeout_seconds: float = 10.0, body_log_limit: int = 2000):
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._body_log_limit = body_log_limit

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        body = "" if json is None else truncate_body(jsonlib.dumps(json), self._body_log_limit)
        logger.info("http.request", method=method, url=url, params=redact_params(params), body=body)

        started = time.monotonic()
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.request(method, url, params=params, json=json, headers=headers) as resp:
                    text = await resp.text()
                    status = resp.status
        except Exception as e:
            logger.warning(
                "http.error",
                method=method,
                url=url,
                error=repr(e),
                duration_ms=round((time.monotonic() - started) * 1000),
            )
            raise

        logger.info(
            "http.response",
            method=method,
            url=url,
            status=status,
            body=truncate_body(text, self._body_log_limit),
            duration_ms=round((time.monotonic() - started) * 1000),
        )
        return HttpResponse(status=status, body=text)
