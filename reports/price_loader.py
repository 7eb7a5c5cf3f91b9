"""
Price Table Loader
==================
Reads one year of daily SOL prices from <price_dir>/<year>.csv.

Expected file (CoinMarketCap historical-data export, German locale):
    timeOpen;timeClose;timeHigh;timeLow;open;low;...
    "2024-01-01T00:00:00.000Z";...;...;...;"101,23";"98,76";...

We use the daily LOW (column 5) and key it by "DD.MM.YYYY" so it lines
up with the date part of report timestamps.

A missing file is not an error: the year's rows simply get price 0.
"""

import csv
from decimal import Decimal
from pathlib import Path

from ledger.formatting import parse_decimal_comma
from utils.logger import get_logger

logger = get_logger(__name__)

DATE_COLUMN = 0
LOW_COLUMN = 5


def iso_to_date_key(value: str) -> str:
    """'2024-01-31T00:00:00.000Z' -> '31.01.2024'"""
    yyyy, mm, dd = value.strip().strip('"')[:10].split("-")
    return f"{dd}.{mm}.{yyyy}"


class PriceLoader:
    """
    Loads yearly price tables.

    Usage:
        loader = PriceLoader(settings.price_dir)
        prices = loader.load(2024)
        prices.get("31.01.2024", Decimal(0))
    """

    def __init__(self, price_dir: str | Path):
        self.price_dir = Path(price_dir)

    def path_for(self, year: int) -> Path:
        return self.price_dir / f"{year}.csv"

    def load(self, year: int) -> dict[str, Decimal]:
        path = self.path_for(year)
        try:
            with open(path, newline="", encoding="utf-8-sig") as f:
                rows = list(csv.reader(f, delimiter=";"))
        except OSError as e:
            logger.warning("price_file_unavailable", year=year, path=str(path), error=str(e))
            return {}

        prices: dict[str, Decimal] = {}
        for row in rows[1:]:
            if not row or not "".join(row).strip():
                continue
            try:
                date_key = iso_to_date_key(row[DATE_COLUMN])
            except (IndexError, ValueError):
                logger.error("invalid_price_date", year=year, row=";".join(row))
                continue
            try:
                prices[date_key] = parse_decimal_comma(row[LOW_COLUMN])
            except (IndexError, ValueError):
                logger.error("invalid_price", date=date_key, raw=row[LOW_COLUMN] if len(row) > LOW_COLUMN else None)

        logger.info("prices_loaded", year=year, count=len(prices))
        for date_key, price in list(prices.items())[:3]:
            logger.debug("price_sample", date=date_key, price=str(price))
        return prices
