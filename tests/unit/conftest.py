"""Shared test doubles for the pricing layer."""
import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from src.core.config import Settings
from src.core.pricing.http.client import HttpClient, HttpResponse


def ok(body: Any, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(body))


@dataclass
class Call:
    method: str
    url: str
    params: dict | None = None
    json: Any = None
    headers: dict | None = None


@dataclass
class Route:
    method: str
    url_fragment: str
    params: dict
    responses: list
    served: int = 0


@dataclass
class FakeHttp(HttpClient):
    """
    Scripted HttpClient. Each route answers with its responses in order and
    repeats the last one; an Exception instance is raised instead of returned.
    """
    calls: list[Call] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)

    def route(self, method: str, url_fragment: str, *responses, params: dict | None = None) -> "FakeHttp":
        self.routes.append(Route(method, url_fragment, params or {}, list(responses)))
        return self

    def calls_to(self, url_fragment: str) -> list[Call]:
        return [c for c in self.calls if url_fragment in c.url]

    async def request(self, method, url, *, params=None, json=None, headers=None) -> HttpResponse:
        self.calls.append(Call(method, url, params, json, headers))
        for r in self.routes:
            if r.method != method or r.url_fragment not in url:
                continue
            if any((params or {}).get(k) != v for k, v in r.params.items()):
                continue
            response = r.responses[min(r.served, len(r.responses) - 1)]
            r.served += 1
            if isinstance(response, Exception):
                raise response
            return response
        return HttpResponse(status=404, body="")


async def no_sleep(seconds: float) -> None:
    return None


class RecordingSleep:
    """Sleep stand-in that records requested delays and returns at once."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def test_settings() -> Settings:
    """Fast settings: no throttle delay, no backoff delay, Finnhub configured."""
    return Settings(
        _env_file=None,
        finnhub_api_key="test-key",
        openfigi_api_key="",
        coingecko_api_key="",
        finnhub_min_interval_seconds=0,
        yahoo_min_interval_seconds=0,
        coingecko_min_interval_seconds=0,
        retry_max_attempts=3,
        retry_base_delay_seconds=0,
    )
