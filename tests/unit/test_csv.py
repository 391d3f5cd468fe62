"""
Unit tests for CSV functionality.

Tests cover:
- Template generation
- Import with valid data, applied in date order
- Import error handling
"""

import csv
from decimal import Decimal

import pytest

from dividend_ledger.core.exceptions import ValidationError
from dividend_ledger.csv import CsvImporter, CsvTemplateGenerator
from dividend_ledger.csv.importer import CSV_COLUMNS
from dividend_ledger.domain.models import EventDirection

from tests.conftest import OWNER


def _write(path, content):
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(content)


# =============================================================================
# TEMPLATE GENERATION TESTS
# =============================================================================


class TestCsvTemplateGenerator:
    """Tests for CSV template generation."""

    def test_template_has_required_headers(self, csv_template_generator: CsvTemplateGenerator, temp_csv_file: str):
        """
        GIVEN CsvTemplateGenerator
        WHEN I generate a template
        THEN the file contains all required headers
        """
        csv_template_generator.generate_template(temp_csv_file)

        with open(temp_csv_file, newline="", encoding="utf-8") as f:
            headers = next(csv.reader(f))

        assert headers == CSV_COLUMNS

    def test_template_examples_cover_both_directions(self, csv_template_generator, temp_csv_file):
        csv_template_generator.generate_template(temp_csv_file)

        with open(temp_csv_file, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert {r["direction"] for r in rows} == {"ACQUIRE", "DISPOSE"}

    def test_template_imports_cleanly(self, csv_template_generator, csv_importer, temp_csv_file):
        """
        GIVEN a freshly generated template
        WHEN it is imported unchanged
        THEN every example row is recorded
        """
        csv_template_generator.generate_template(temp_csv_file)

        summary = csv_importer.import_csv(temp_csv_file)

        assert summary.error_count == 0
        assert summary.imported_count == 2


# =============================================================================
# IMPORT TESTS
# =============================================================================


class TestCsvImporter:
    """Tests for CSV import."""

    def test_import_applies_rows_in_date_order(self, csv_importer, ledger_service, temp_csv_file,
                                                sample_csv_content):
        """
        GIVEN a CSV whose disposal is listed above the purchase it depends on
        WHEN it is imported
        THEN all rows are recorded and the position reflects both events
        """
        _write(temp_csv_file, sample_csv_content)

        summary = csv_importer.import_csv(temp_csv_file)

        assert summary.imported_count == 3
        assert summary.error_count == 0
        assert ledger_service.reconstruct_position(OWNER, "MXRF11").quantity == Decimal("60")

    def test_direction_aliases_and_fees(self, csv_importer, ledger_service, temp_csv_file, sample_csv_content):
        _write(temp_csv_file, sample_csv_content)

        csv_importer.import_csv(temp_csv_file)

        petr = ledger_service.list_events(OWNER, symbol="PETR4")
        assert len(petr) == 1
        assert petr[0].direction == EventDirection.ACQUIRE
        assert petr[0].fees == Decimal("4.95")
        assert petr[0].venue == "B3"
        assert petr[0].note is None

    def test_import_reports_bad_rows_and_continues(self, csv_importer, temp_csv_file, invalid_csv_content):
        """
        GIVEN one valid row and four bad ones
        WHEN the CSV is imported
        THEN the valid row is recorded and each bad row is reported by number
        """
        _write(temp_csv_file, invalid_csv_content)

        summary = csv_importer.import_csv(temp_csv_file)

        assert summary.imported_count == 1
        assert summary.error_count == 4
        assert any(e.startswith("Row 3:") and "Invalid direction" in e for e in summary.errors)
        assert any(e.startswith("Row 4:") for e in summary.errors)
        assert any(e.startswith("Row 5:") for e in summary.errors)
        assert any(e.startswith("Row 6:") for e in summary.errors)

    def test_blank_rows_are_skipped(self, csv_importer, temp_csv_file):
        _write(
            temp_csv_file,
            "owner_id,date,direction,symbol,quantity,price,fees,venue,note\n"
            ",,,,,,,,\n"
            "investor-1,2024-01-02,ACQUIRE,MXRF11,10,10.00,,,\n",
        )

        summary = csv_importer.import_csv(temp_csv_file)

        assert summary.skipped_count == 1
        assert summary.imported_count == 1

    def test_default_owner_fills_missing_column(self, ledger_service, temp_csv_file):
        importer = CsvImporter(ledger_service=ledger_service, default_owner_id=OWNER)
        _write(temp_csv_file, "date,direction,symbol,quantity,price\n2024-01-02,BUY,MXRF11,10,10.00\n")

        summary = importer.import_csv(temp_csv_file)

        assert summary.imported_count == 1
        assert len(ledger_service.list_events(OWNER)) == 1

    def test_missing_owner_without_default_is_an_error(self, csv_importer, temp_csv_file):
        _write(temp_csv_file, "date,direction,symbol,quantity,price\n2024-01-02,BUY,MXRF11,10,10.00\n")

        summary = csv_importer.import_csv(temp_csv_file)

        assert summary.imported_count == 0
        assert "Missing owner_id" in summary.errors[0]

    def test_missing_required_columns_raise(self, csv_importer, temp_csv_file):
        _write(temp_csv_file, "date,symbol,quantity\n2024-01-02,MXRF11,10\n")

        with pytest.raises(ValidationError):
            csv_importer.import_csv(temp_csv_file)

    def test_missing_file_raises(self, csv_importer):
        with pytest.raises(ValidationError):
            csv_importer.import_csv("/nonexistent/events.csv")
