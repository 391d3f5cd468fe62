"""
Normalization of locale-formatted (pt-BR) numbers and dates from scraped pages.

Placeholders ("-", "N/A", empty) mean "no value" and become None. Text that
is present but cannot be read as a number or date is a consistency fault.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.relativedelta import relativedelta

from dividend_ledger.core.exceptions import ConsistencyFaultError
from dividend_ledger.domain.models import DistributionRecord, InstrumentIndicators

MAX_HISTORY_ENTRIES = 24

_PLACEHOLDERS = {"", "-", "--", "N/A", "NA"}
_MULTIPLIERS = {
    "K": Decimal("1000"),
    "M": Decimal("1000000"),
    "B": Decimal("1000000000"),
}
_CURRENCY_RE = re.compile(r"R\$\s?([\d.,]+\s*[KMB]?)", re.IGNORECASE)
_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DMY_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_MY_RE = re.compile(r"^(\d{2})/(\d{2})$")


def parse_locale_number(value: Optional[str]) -> Optional[Decimal]:
    """
    Parse a pt-BR formatted number.

    Handles a currency prefix ("R$ 1.234,56"), percent sign ("0,95%"),
    magnitude suffixes ("15,7 M", "2,3 B") and "." thousands separators.
    """
    if value is None:
        return None
    text = " ".join(str(value).split())
    if text.upper() in _PLACEHOLDERS:
        return None

    match = _CURRENCY_RE.search(text)
    if match:
        text = match.group(1)
    text = text.replace("R$", "").replace("%", "").strip()

    multiplier = Decimal("1")
    suffix = text[-1:].upper()
    if suffix in _MULTIPLIERS:
        multiplier = _MULTIPLIERS[suffix]
        text = text[:-1].strip()

    text = text.replace(".", "").replace(",", ".")
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ConsistencyFaultError(f"Unparseable number: {value!r}", {"value": value})
    if not number.is_finite():
        raise ConsistencyFaultError(f"Unparseable number: {value!r}", {"value": value})
    return number * multiplier


def parse_locale_date(value: Optional[str]) -> Optional[date]:
    """
    Parse DD/MM/YYYY, MM/YY (first day of that month) or ISO YYYY-MM-DD.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.upper() in _PLACEHOLDERS:
        return None
    try:
        m = _ISO_RE.match(text)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        m = _DMY_RE.match(text)
        if m:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        m = _MY_RE.match(text)
        if m:
            return date(2000 + int(m.group(2)), int(m.group(1)), 1)
    except ValueError:
        pass
    raise ConsistencyFaultError(f"Unparseable date: {value!r}", {"value": value})


def summarize_distributions(indicators: InstrumentIndicators, today: date) -> InstrumentIndicators:
    """
    Derive distribution statistics in place and return the indicators.

    Sorts history most recent first, computes last distribution, the trailing
    twelve month sum and count, annual yield against price, and truncates the
    stored history.
    """
    history = [r for r in indicators.distribution_history if r.reference_date is not None]
    history.sort(key=lambda r: r.reference_date, reverse=True)

    if history:
        indicators.last_distribution_amount = history[0].amount
        indicators.last_distribution_date = history[0].reference_date

    window_start = today - relativedelta(years=1)
    trailing = [r for r in history if window_start <= r.reference_date <= today]
    indicators.trailing_12m_total = sum((r.amount for r in trailing), Decimal("0"))
    indicators.trailing_12m_count = len(trailing)

    if indicators.price and indicators.price > 0 and history:
        indicators.annual_yield = (
            indicators.trailing_12m_total / indicators.price * Decimal("100")
        ).quantize(Decimal("0.01"))

    indicators.distribution_history = history[:MAX_HISTORY_ENTRIES]
    return indicators


def build_record(amount: Optional[Decimal], entitlement: Optional[date], payment: Optional[date],
                 yield_percent: Optional[Decimal] = None) -> Optional[DistributionRecord]:
    """Build a history record, or None when it carries no usable amount or date."""
    if amount is None or amount <= 0:
        return None
    if entitlement is None and payment is None:
        return None
    return DistributionRecord(
        amount=amount,
        entitlement_date=entitlement,
        payment_date=payment,
        yield_percent=yield_percent,
    )
