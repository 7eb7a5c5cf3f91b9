"""
Sum Calculator
==============
Adds up INCOMING SOL (positive balance changes) from the yearly reports.

Two windows, split at one cutoff:
    cutoff = start of the day exactly one calendar year before "now"

- trailing:   cutoff <= row date <= now
- historical: row date < cutoff   (also reports the oldest date found)

Reports are only read, never modified, and everything is recomputed on
every call.
"""

import csv
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Iterator
from zoneinfo import ZoneInfo

from ledger.formatting import format_report_date, parse_decimal_comma, parse_report_date
from ledger.models import AggregateSum
from reports.report_writer import REPORT_PREFIX
from utils.logger import get_logger

logger = get_logger(__name__)


def one_year_cutoff(now: datetime) -> datetime:
    """Midnight of the same calendar day one year earlier (Feb 29 rolls to Mar 1)."""
    try:
        shifted = now.replace(year=now.year - 1)
    except ValueError:
        shifted = now.replace(year=now.year - 1, month=3, day=1)
    return shifted.replace(hour=0, minute=0, second=0, microsecond=0)


class SumCalculator:
    """
    Usage:
        calc = SumCalculator(settings.output_dir, settings.report_timezone)
        trailing = calc.trailing_sum()
        historical = calc.historical_sum()
    """

    def __init__(self, output_dir: str | Path, report_timezone: str = "Europe/Berlin"):
        self.output_dir = Path(output_dir)
        self.report_timezone = report_timezone

    def now(self) -> datetime:
        """Wall-clock time in the report timezone, naive like the report dates."""
        return datetime.now(ZoneInfo(self.report_timezone)).replace(tzinfo=None)

    def report_files(self) -> list[Path]:
        if not self.output_dir.exists():
            return []
        return sorted(self.output_dir.glob(f"{REPORT_PREFIX}*.csv"))

    def incoming_rows(self) -> Iterator[tuple[date, Decimal, Decimal]]:
        """(date, change, converted value) for every row with a positive change."""
        for path in self.report_files():
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.reader(f, delimiter=";")
                next(reader, None)
                for line_no, row in enumerate(reader, start=2):
                    if not row or not "".join(row).strip():
                        continue
                    try:
                        row_date = parse_report_date(row[0])
                        change = parse_decimal_comma(row[1])
                        converted = parse_decimal_comma(row[5])
                    except (IndexError, ValueError) as e:
                        logger.warning("report_row_skipped", file=path.name, line=line_no, error=str(e))
                        continue
                    if change > 0:
                        yield row_date, change, converted

    def trailing_sum(self, now: datetime | None = None) -> AggregateSum:
        now = now or self.now()
        cutoff = one_year_cutoff(now)
        total = AggregateSum(window_start=cutoff.date(), window_end=now.date())
        for row_date, change, converted in self.incoming_rows():
            moment = datetime.combine(row_date, datetime.min.time())
            if cutoff <= moment <= now:
                total.add(change, converted)

        logger.info(
            "trailing_year_incoming",
            period=f"{format_report_date(total.window_start)} - {format_report_date(total.window_end)}",
            transactions=total.transaction_count,
            total_sol=f"{total.total_change_amount:.4f}",
            total_value=f"{total.total_converted_value:.2f}",
        )
        return total

    def historical_sum(self, now: datetime | None = None) -> AggregateSum:
        now = now or self.now()
        cutoff = one_year_cutoff(now)
        total = AggregateSum(window_end=(cutoff - timedelta(days=1)).date())
        for row_date, change, converted in self.incoming_rows():
            if datetime.combine(row_date, datetime.min.time()) < cutoff:
                total.add(change, converted)
                if total.window_start is None or row_date < total.window_start:
                    total.window_start = row_date

        start = format_report_date(total.window_start) if total.window_start else "n/a"
        logger.info(
            "historical_incoming",
            period=f"{start} - {format_report_date(total.window_end)}",
            transactions=total.transaction_count,
            total_sol=f"{total.total_change_amount:.4f}",
            total_value=f"{total.total_converted_value:.2f}",
        )
        return total
