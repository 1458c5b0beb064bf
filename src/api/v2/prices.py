"""Price endpoints — current price for index funds / equities and crypto."""
import re

from fastapi import APIRouter, Depends, Query

from src.api.v2.errors import PriceNotFoundError
from src.api.v2.models import PriceQuote
from src.core.pricing import get_crypto_factory, get_index_fund_factory
from src.core.pricing.providers.base import PriceProvider
from src.core.pricing.providers.factory import CryptoPriceProviderFactory, IndexFundPriceProviderFactory

router = APIRouter(tags=["Prices"])

CURRENCY_RE = re.compile(r"[A-Za-z]{2,5}")


def _check_currency(currency: str) -> str:
    if not CURRENCY_RE.fullmatch(currency):
        raise ValueError(f"Invalid currency code {currency!r}")
    return currency.upper()


async def _quote(provider: PriceProvider, identifier: str, currency: str) -> PriceQuote:
    price = await provider.get_current_price(identifier, currency)
    if price is None:
        raise PriceNotFoundError(f"No price available for {identifier!r}")
    return PriceQuote(identifier=identifier.upper(), currency=currency, provider=provider.name, price=price)


@router.get("/prices/index-funds/{identifier}", response_model=PriceQuote)
async def get_index_fund_price(
    identifier: str,
    currency: str = Query("EUR"),
    factory: IndexFundPriceProviderFactory = Depends(get_index_fund_factory),
):
    """Current price for a ticker or ISIN."""
    return await _quote(factory.get_provider(), identifier, _check_currency(currency))


@router.get("/prices/crypto/{symbol}", response_model=PriceQuote)
async def get_crypto_price(
    symbol: str,
    currency: str = Query("USD"),
    factory: CryptoPriceProviderFactory = Depends(get_crypto_factory),
):
    """Current spot price for a crypto symbol, quoted in ``currency``."""
    return await _quote(factory.get_provider(), symbol, _check_currency(currency))
