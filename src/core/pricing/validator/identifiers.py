"""Identifier checks applied before anything reaches an outbound URL."""
import re
from enum import Enum

ISIN_RE = re.compile(r"[A-Z]{2}[A-Z0-9]{10}")
TICKER_RE = re.compile(r"[A-Z0-9.\-^]+")

# Path traversal / control sequences, raw and percent-encoded (compared upper-cased)
FORBIDDEN_TICKER_SUBSTRINGS = ("..", "/", "\\", "\0", "%2E", "%2F", "%5C", "%00")


class IdentifierKind(str, Enum):
    TICKER = "ticker"
    ISIN = "isin"


def is_isin(code: object) -> bool:
    """Syntactic ISIN check: 2 letters + 10 alphanumerics. No checksum."""
    if not isinstance(code, str) or not code:
        return False
    return ISIN_RE.fullmatch(code.upper()) is not None


def is_safe_ticker(code: object) -> bool:
    if not isinstance(code, str) or not code:
        return False
    normalized = code.upper()
    if any(s in normalized for s in FORBIDDEN_TICKER_SUBSTRINGS):
        return False
    return TICKER_RE.fullmatch(normalized) is not None


def classify_identifier(code: object) -> IdentifierKind | None:
    if not isinstance(code, str) or not code:
        return None
    return IdentifierKind.ISIN if is_isin(code) else IdentifierKind.TICKER
