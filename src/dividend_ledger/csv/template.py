"""CSV template generation."""

import csv
from pathlib import Path

from dividend_ledger.csv.importer import CSV_COLUMNS


class CsvTemplateGenerator:
    """Generator for blank CSV import templates."""

    def generate_template(self, path: str) -> None:
        """Write the header row plus two example events."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            writer.writerows([
                {
                    "owner_id": "investor-1",
                    "date": "2024-01-02",
                    "direction": "ACQUIRE",
                    "symbol": "MXRF11",
                    "quantity": "100",
                    "price": "10.25",
                    "fees": "0",
                    "venue": "B3",
                    "note": "Initial position",
                },
                {
                    "owner_id": "investor-1",
                    "date": "2024-03-15",
                    "direction": "DISPOSE",
                    "symbol": "MXRF11",
                    "quantity": "40",
                    "price": "10.80",
                    "fees": "1.50",
                    "venue": "B3",
                    "note": "",
                },
            ])
