"""Symbol conventions for the local exchange."""

import re
from typing import Optional

from dividend_ledger.domain.models import InstrumentClass

_DEPOSITARY_RECEIPT_RE = re.compile(r"^[A-Z]{4}(32|33|34|35)$")


def normalize_symbol(symbol: str) -> str:
    """Strip whitespace and provider suffix, uppercase."""
    s = (symbol or "").strip().upper()
    if s.endswith(".SA"):
        s = s[:-3]
    return s


def to_provider_symbol(symbol: str, suffix: str = ".SA") -> str:
    """
    Map a local symbol to the quote provider's form.

    Crypto pairs ("BTC-USD"), indices ("^BVSP") and already-suffixed symbols
    pass through unchanged.
    """
    s = (symbol or "").strip().upper()
    if not suffix or "-" in s or s.startswith("^") or s.endswith(suffix.upper()):
        return s
    return f"{s}{suffix.upper()}"


def classify_symbol(symbol: str, quote_type: Optional[str] = None) -> InstrumentClass:
    """Infer the instrument class from the provider's quote type and ticker shape."""
    s = normalize_symbol(symbol)
    if quote_type and quote_type.upper() == "ETF":
        return InstrumentClass.ETF
    if s.endswith("11"):
        return InstrumentClass.REAL_ESTATE_FUND
    if _DEPOSITARY_RECEIPT_RE.search(s):
        return InstrumentClass.DEPOSITARY_RECEIPT
    if s and s[-1].isdigit():
        return InstrumentClass.EQUITY
    return InstrumentClass.OTHER
