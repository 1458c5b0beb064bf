"""Abstract PriceProvider — every upstream price source implements this."""
from abc import ABC, abstractmethod


class PriceProvider(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique key: 'finnhub', 'yahoo', 'coingecko'"""
        ...

    @abstractmethod
    async def get_current_price(self, identifier: str, target_currency_code: str) -> str | None:
        """
        Current price for a ticker or ISIN as a decimal string.
        Returns None when the instrument is unknown, input is invalid, the
        provider is not configured or the upstream is failing. Never raises.
        """
        ...
