"""Pydantic response models."""
from __future__ import annotations

from pydantic import BaseModel


class PriceQuote(BaseModel):
    identifier: str
    currency: str
    provider: str
    price: str
