#!/usr/bin/env python3
"""Resolve prices with the configured providers and print them.

    python -m scripts.price_check AAPL IE00B4L5Y983
    python -m scripts.price_check --crypto BTC ETH --currency EUR
"""
import argparse
import asyncio
import sys

from src.core.config import settings
from src.core.logging_utils import configure_logging
from src.core.pricing import get_crypto_factory, get_index_fund_factory


async def check(identifiers: list[str], currency: str, crypto: bool) -> int:
    factory = get_crypto_factory() if crypto else get_index_fund_factory()
    provider = factory.get_provider()
    print(f"\nProvider: {provider.name}  currency: {currency}\n")

    missing = 0
    for identifier in identifiers:
        price = await provider.get_current_price(identifier, currency)
        if price is None:
            missing += 1
            print(f"  {identifier:<16} —")
        else:
            print(f"  {identifier:<16} {price}")

    print(f"\n{len(identifiers) - missing}/{len(identifiers)} resolved")
    return 1 if missing else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("identifiers", nargs="+", help="tickers, ISINs or crypto symbols")
    parser.add_argument("--currency", default="EUR")
    parser.add_argument("--crypto", action="store_true", help="use the crypto provider")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_json)
    return asyncio.run(check(args.identifiers, args.currency, args.crypto))


if __name__ == "__main__":
    sys.exit(main())
