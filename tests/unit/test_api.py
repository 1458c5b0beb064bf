"""API endpoint tests — FastAPI TestClient with stub providers."""
import pytest
from fastapi.testclient import TestClient

from src.api.v2.app import app
from src.core.pricing import get_crypto_factory, get_index_fund_factory
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.providers.factory import CryptoPriceProviderFactory, IndexFundPriceProviderFactory

client = TestClient(app)


class StubProvider(PriceProvider):
    """Answers from a fixed table and records what it was asked."""

    def __init__(self, provider_name: str, prices: dict[str, str]):
        self._name = provider_name
        self._prices = prices
        self.requests: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    async def get_current_price(self, identifier, target_currency_code):
        self.requests.append((identifier, target_currency_code))
        return self._prices.get(identifier.upper())


@pytest.fixture
def index_stub():
    stub = StubProvider("finnhub", {"AAPL": "178.25", "IE00B4L5Y983": "98.76"})
    app.dependency_overrides[get_index_fund_factory] = lambda: IndexFundPriceProviderFactory(stub)
    yield stub
    app.dependency_overrides.pop(get_index_fund_factory, None)


@pytest.fixture
def crypto_stub():
    stub = StubProvider("coingecko", {"BTC": "61234.5"})
    app.dependency_overrides[get_crypto_factory] = lambda: CryptoPriceProviderFactory(stub)
    yield stub
    app.dependency_overrides.pop(get_crypto_factory, None)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "version": "2.0.0"}


def test_index_fund_price(index_stub):
    r = client.get("/api/v2/prices/index-funds/aapl?currency=usd")
    assert r.status_code == 200
    assert r.json() == {"identifier": "AAPL", "currency": "USD", "provider": "finnhub", "price": "178.25"}
    assert index_stub.requests == [("aapl", "USD")]


def test_index_fund_price_by_isin_default_currency(index_stub):
    r = client.get("/api/v2/prices/index-funds/IE00B4L5Y983")
    assert r.status_code == 200
    assert r.json()["price"] == "98.76"
    assert r.json()["currency"] == "EUR"


def test_index_fund_price_not_found(index_stub):
    r = client.get("/api/v2/prices/index-funds/UNKNOWN")
    assert r.status_code == 404
    assert r.json()["code"] == "PRICE_NOT_FOUND"


def test_invalid_currency(index_stub):
    r = client.get("/api/v2/prices/index-funds/AAPL?currency=12")
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert index_stub.requests == []


def test_crypto_price(crypto_stub):
    r = client.get("/api/v2/prices/crypto/btc?currency=eur")
    assert r.status_code == 200
    assert r.json() == {"identifier": "BTC", "currency": "EUR", "provider": "coingecko", "price": "61234.5"}


def test_crypto_price_not_found(crypto_stub):
    r = client.get("/api/v2/prices/crypto/NOPE")
    assert r.status_code == 404
