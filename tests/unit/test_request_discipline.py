"""Throttle, retry policy and UpstreamClient behaviour."""
import asyncio
import time

import aiohttp
import pytest
from structlog.testing import capture_logs

from conftest import FakeHttp, RecordingSleep, no_sleep, ok
from src.core.pricing.http.client import HttpResponse
from src.core.pricing.http.retry import RetryPolicy
from src.core.pricing.http.throttle import MinIntervalThrottle
from src.core.pricing.http.upstream import UpstreamClient

URL = "https://upstream.test/quote"


# ── MinIntervalThrottle ─────────────────────────────────────────────────


class TestMinIntervalThrottle:

    @pytest.mark.asyncio
    async def test_first_call_is_not_delayed(self):
        sleep = RecordingSleep()
        throttle = MinIntervalThrottle(1.0, clock=lambda: 100.0, sleep=sleep)
        assert await throttle.wait() == 0
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_back_to_back_calls_wait_remaining_interval(self):
        now = [100.0]
        sleep = RecordingSleep()
        throttle = MinIntervalThrottle(1.0, clock=lambda: now[0], sleep=sleep)
        await throttle.wait()
        now[0] = 100.25
        assert await throttle.wait() == pytest.approx(0.75)
        assert sleep.delays == [pytest.approx(0.75)]

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self):
        now = [100.0]
        sleep = RecordingSleep()
        throttle = MinIntervalThrottle(1.0, clock=lambda: now[0], sleep=sleep)
        await throttle.wait()
        now[0] = 102.0
        assert await throttle.wait() == 0
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_get_distinct_slots(self):
        sleep = RecordingSleep()
        throttle = MinIntervalThrottle(0.5, clock=lambda: 10.0, sleep=sleep)
        delays = await asyncio.gather(*(throttle.wait() for _ in range(4)))
        assert sorted(delays) == [0, 0.5, 1.0, 1.5]

    @pytest.mark.asyncio
    async def test_wall_clock_spacing_under_concurrency(self):
        interval = 0.05
        throttle = MinIntervalThrottle(interval)
        starts: list[float] = []

        async def call():
            await throttle.wait()
            starts.append(time.monotonic())

        await asyncio.gather(*(call() for _ in range(5)))
        starts.sort()
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        # small tolerance for event-loop timer granularity
        assert all(g >= interval - 0.01 for g in gaps)

    def test_negative_interval_raises(self):
        with pytest.raises(ValueError):
            MinIntervalThrottle(-1)


# ── RetryPolicy ─────────────────────────────────────────────────────────


class TestRetryPolicy:

    def test_exponential_schedule(self):
        policy = RetryPolicy(max_attempts=4, base_delay=0.5)
        assert [policy.delay_before(n) for n in range(4)] == [0.0, 0.5, 1.0, 2.0]

    def test_zero_attempts_raises(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


# ── UpstreamClient ──────────────────────────────────────────────────────


def _client(http: FakeHttp, sleep=no_sleep, max_attempts: int = 3, base_delay: float = 1.0) -> UpstreamClient:
    return UpstreamClient(
        "test",
        http,
        MinIntervalThrottle(0, sleep=sleep),
        RetryPolicy(max_attempts, base_delay),
        sleep=sleep,
    )


class TestUpstreamClient:

    @pytest.mark.asyncio
    async def test_success_first_try(self, fake_http):
        fake_http.route("GET", "/quote", ok({"c": 1.0}))
        resp = await _client(fake_http).send("GET", URL)
        assert resp is not None and resp.json() == {"c": 1.0}
        assert len(fake_http.calls) == 1

    @pytest.mark.asyncio
    async def test_429_then_success(self, fake_http):
        sleep = RecordingSleep()
        fake_http.route("GET", "/quote", HttpResponse(429), HttpResponse(429), ok({"c": 2.0}))
        resp = await _client(fake_http, sleep=sleep).send("GET", URL)
        assert resp is not None and resp.json() == {"c": 2.0}
        assert len(fake_http.calls) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_always_429_exhausts_attempts(self, fake_http):
        fake_http.route("GET", "/quote", HttpResponse(429))
        with capture_logs() as logs:
            resp = await _client(fake_http).send("GET", URL)
        assert resp is None
        assert len(fake_http.calls) == 3
        assert any(e["event"] == "upstream.exhausted" for e in logs)

    @pytest.mark.asyncio
    async def test_network_errors_are_retried(self, fake_http):
        fake_http.route(
            "GET", "/quote",
            aiohttp.ClientConnectionError("reset"),
            asyncio.TimeoutError(),
            ok({"c": 3.0}),
        )
        resp = await _client(fake_http).send("GET", URL)
        assert resp is not None
        assert len(fake_http.calls) == 3

    @pytest.mark.asyncio
    async def test_other_status_is_terminal(self, fake_http):
        fake_http.route("GET", "/quote", HttpResponse(403, "forbidden"), ok({"c": 1.0}))
        with capture_logs() as logs:
            resp = await _client(fake_http).send("GET", URL)
        assert resp is None
        assert len(fake_http.calls) == 1
        assert any(e["event"] == "upstream.http_error" and e["status"] == 403 for e in logs)

    @pytest.mark.asyncio
    async def test_every_attempt_passes_the_throttle(self, fake_http):
        waits = []

        class CountingThrottle(MinIntervalThrottle):
            async def wait(self):
                waits.append(1)
                return 0.0

        fake_http.route("GET", "/quote", HttpResponse(429), ok({}))
        client = UpstreamClient("test", fake_http, CountingThrottle(0), RetryPolicy(3, 0), sleep=no_sleep)
        await client.send("GET", URL)
        assert len(waits) == 2
