"""Search-result tie-break used for ISIN resolution and alternative tickers."""
from dataclasses import dataclass
from typing import Callable, Iterable

from src.core.pricing.validator.identifiers import is_safe_ticker

EXCHANGE_SUFFIX_DELIMITERS = (".", ":")


@dataclass(frozen=True)
class SymbolCandidate:
    symbol: str
    display_symbol: str = ""
    instrument_type: str = ""
    name: str = ""


def pick_best_match(
    candidates: Iterable[SymbolCandidate],
    query: str,
    is_fund: Callable[[SymbolCandidate], bool] | None = None,
    exclude: Iterable[str] = (),
    fallback_to_first: bool = False,
) -> str | None:
    """
    Deterministic choice among search results, in order of preference:
      1. symbol or display symbol equal to the query
      2. query followed by an exchange suffix ("VWRL.AS", "VWRL:LN")
      3. a fund / ETF typed result
      4. only with fallback_to_first: the first remaining result that is a
         safe ticker (ISIN queries, which rarely match 1 or 2)
    Nothing else matches -> None. Excluded symbols are never returned.
    Callers still run the result through is_safe_ticker before building a
    URL with it.
    """
    query = query.upper()
    excluded = {s.upper() for s in exclude}
    pool = [c for c in candidates if c.symbol and c.symbol.upper() not in excluded]
    if not pool:
        return None

    for c in pool:
        if c.symbol.upper() == query or c.display_symbol.upper() == query:
            return c.symbol.upper()

    prefixes = tuple(query + d for d in EXCHANGE_SUFFIX_DELIMITERS)
    for c in pool:
        if c.symbol.upper().startswith(prefixes):
            return c.symbol.upper()

    if is_fund is not None:
        for c in pool:
            if is_fund(c):
                return c.symbol.upper()

    if fallback_to_first:
        for c in pool:
            if is_safe_ticker(c.symbol):
                return c.symbol.upper()

    return None
