"""CSV import of ownership events."""

import csv
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dividend_ledger.core.exceptions import AppError, ValidationError
from dividend_ledger.core.timezone import parse_date
from dividend_ledger.domain.models import EventDirection
from dividend_ledger.domain.views import ImportSummary
from dividend_ledger.services.ledger_service import EventCreate, LedgerService

logger = logging.getLogger(__name__)

# Expected CSV columns
CSV_COLUMNS = [
    "owner_id",
    "date",
    "direction",
    "symbol",
    "quantity",
    "price",
    "fees",
    "venue",
    "note",
]

DIRECTION_ALIASES = {
    "ACQUIRE": EventDirection.ACQUIRE,
    "BUY": EventDirection.ACQUIRE,
    "DISPOSE": EventDirection.DISPOSE,
    "SELL": EventDirection.DISPOSE,
}


class CsvImporter:
    """
    CSV importer for bulk ownership event loading.

    Expected format: owner_id, date, direction, symbol, quantity, price, fees, venue, note
    Rows are applied in effective-date order so a sale listed above its
    purchase still imports. A bad row is reported and the rest continue.
    """

    def __init__(self, ledger_service: LedgerService, default_owner_id: Optional[str] = None):
        self._ledger = ledger_service
        self._default_owner = default_owner_id

    def import_csv(self, path: str) -> ImportSummary:
        """
        Import events from a CSV file.

        Returns summary with imported/skipped/error counts.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise ValidationError(f"File not found: {path}")

        summary = ImportSummary()
        parsed: list[tuple[int, EventCreate]] = []

        with open(file_path, newline="", encoding="utf-8") as csvfile:
            reader = csv.DictReader(csvfile)

            if reader.fieldnames:
                required = set(CSV_COLUMNS) - {"owner_id", "fees", "venue", "note"}
                missing = required - {f.strip() for f in reader.fieldnames}
                if missing:
                    raise ValidationError(f"Missing required columns: {sorted(missing)}")

            for row_num, row in enumerate(reader, start=2):  # header is row 1
                if not any((v or "").strip() for v in row.values()):
                    summary.skipped_count += 1
                    continue
                try:
                    parsed.append((row_num, self._parse_row(row)))
                except AppError as e:
                    summary.error_count += 1
                    summary.errors.append(f"Row {row_num}: {e.message}")

        parsed.sort(key=lambda item: (item[1].effective_date, item[0]))
        for row_num, data in parsed:
            try:
                self._ledger.record_event(data)
                summary.imported_count += 1
            except AppError as e:
                summary.error_count += 1
                summary.errors.append(f"Row {row_num}: {e.message}")

        logger.info(
            "CSV import %s: imported=%d skipped=%d errors=%d",
            file_path.name, summary.imported_count, summary.skipped_count, summary.error_count,
        )
        return summary

    def _parse_row(self, row: dict[str, str]) -> EventCreate:
        """Parse a single CSV row into an EventCreate."""
        owner_id = (row.get("owner_id") or "").strip() or self._default_owner
        if not owner_id:
            raise ValidationError("Missing owner_id")

        direction_str = (row.get("direction") or "").strip().upper()
        direction = DIRECTION_ALIASES.get(direction_str)
        if direction is None:
            raise ValidationError(f"Invalid direction: {direction_str}")

        symbol = (row.get("symbol") or "").strip().upper()
        if not symbol:
            raise ValidationError("Missing symbol")

        date_str = (row.get("date") or "").strip()
        if not date_str:
            raise ValidationError("Missing date")
        try:
            effective_date = parse_date(date_str)
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid date: {date_str}")

        quantity = self._parse_decimal(row.get("quantity"))
        price = self._parse_decimal(row.get("price"))
        if quantity is None or price is None:
            raise ValidationError("quantity and price are required")

        return EventCreate(
            owner_id=owner_id,
            symbol=symbol,
            direction=direction,
            quantity=quantity,
            unit_price=price,
            effective_date=effective_date,
            fees=self._parse_decimal(row.get("fees")) or Decimal("0"),
            venue=(row.get("venue") or "").strip() or None,
            note=(row.get("note") or "").strip() or None,
        )

    @staticmethod
    def _parse_decimal(value: Optional[str]) -> Optional[Decimal]:
        """Parse a decimal value from string, returning None for empty strings."""
        value = value.strip() if value else ""
        if not value:
            return None
        try:
            return Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"Invalid decimal value: {value}")
