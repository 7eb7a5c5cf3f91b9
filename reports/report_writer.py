"""
Yearly Report Writer
====================
Joins balance-change events with that day's SOL price and writes one CSV
per calendar year: <output_dir>/balance_changes_<year>.csv

Format (for spreadsheets with German locale):
    Date;BalanceChange;Sender;Signature;Price;ConvertedValue
    "31.01.2024 14:05:09";"0,1";"<sender>";"<signature>";"98,76";"9,876"

A day with no price gets price 0 and converted value 0.
"""

import csv
from collections import defaultdict
from decimal import Decimal
from pathlib import Path

from ledger.formatting import format_report_date
from ledger.models import BalanceChangeEvent, YearlyReportRow
from reports.price_loader import PriceLoader
from utils.logger import get_logger

logger = get_logger(__name__)

REPORT_HEADER = ["Date", "BalanceChange", "Sender", "Signature", "Price", "ConvertedValue"]
REPORT_PREFIX = "balance_changes_"


def report_path(output_dir: str | Path, year: int) -> Path:
    return Path(output_dir) / f"{REPORT_PREFIX}{year}.csv"


def group_by_year(events: list[BalanceChangeEvent]) -> dict[int, list[BalanceChangeEvent]]:
    by_year: dict[int, list[BalanceChangeEvent]] = defaultdict(list)
    for event in events:
        by_year[event.year].append(event)
    return dict(by_year)


class ReportWriter:
    """
    Usage:
        writer = ReportWriter(settings.output_dir, PriceLoader(settings.price_dir))
        paths = writer.write(result.balance_changes)
    """

    def __init__(self, output_dir: str | Path, price_loader: PriceLoader):
        self.output_dir = Path(output_dir)
        self.price_loader = price_loader

    def build_rows(self, events: list[BalanceChangeEvent], prices: dict[str, Decimal]) -> list[YearlyReportRow]:
        return [
            YearlyReportRow(event=event, price=prices.get(format_report_date(event.day), Decimal(0)))
            for event in events
        ]

    def write(self, events: list[BalanceChangeEvent]) -> dict[int, Path]:
        """Write one report per year present in `events`. Returns year -> file path."""
        written: dict[int, Path] = {}
        for year, year_events in sorted(group_by_year(events).items()):
            rows = self.build_rows(year_events, self.price_loader.load(year))
            path = report_path(self.output_dir, year)
            self._write_csv(path, rows)
            written[year] = path
            logger.info("yearly_report_saved", year=year, rows=len(rows), path=str(path))

        logger.info("balance_changes_split", years=len(written), events=len(events))
        return written

    def _write_csv(self, path: Path, rows: list[YearlyReportRow]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            f.write(";".join(REPORT_HEADER) + "\n")
            writer = csv.writer(f, delimiter=";", quoting=csv.QUOTE_ALL, lineterminator="\n")
            for row in rows:
                writer.writerow(row.to_csv_row())
