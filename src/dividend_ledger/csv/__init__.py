"""CSV import utilities."""

from dividend_ledger.csv.importer import CsvImporter
from dividend_ledger.csv.template import CsvTemplateGenerator

__all__ = [
    "CsvImporter",
    "CsvTemplateGenerator",
]
