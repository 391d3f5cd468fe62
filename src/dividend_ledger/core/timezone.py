"""Timezone utilities for the market (America/Sao_Paulo) clock."""

from datetime import date, datetime

import pytz
from dateutil import parser as date_parser

MARKET_TZ = pytz.timezone("America/Sao_Paulo")


def now_market() -> datetime:
    """Return current time in market timezone."""
    return datetime.now(MARKET_TZ)


def today_market() -> date:
    """Return the current calendar date in market timezone."""
    return now_market().date()


def to_market(dt: datetime) -> datetime:
    """Convert a datetime to market timezone."""
    if dt.tzinfo is None:
        # Assume naive datetime is already market time
        return MARKET_TZ.localize(dt)
    return dt.astimezone(MARKET_TZ)


def parse_date(value) -> date:
    """Parse a date, datetime or ISO-ish string into a calendar date."""
    if isinstance(value, datetime):
        return to_market(value).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    return date_parser.parse(str(value)).date()
