"""
Number and date formatting shared by the report writer and sum calculator.

Reports follow the German spreadsheet convention of the price files:
decimal comma, DD.MM.YYYY dates.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

LAMPORTS_PER_SOL = 1_000_000_000

REPORT_TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M:%S"
REPORT_DATE_FORMAT = "%d.%m.%Y"
SIDE_FILE_TIMESTAMP_FORMAT = "%d.%m.%Y, %H:%M:%S"


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)


def format_decimal_comma(value: Decimal) -> str:
    """Plain (non-scientific) notation with ',' as decimal separator."""
    if value == 0:
        return "0"
    text = format(value.normalize(), "f")
    return text.replace(".", ",")


def parse_decimal_comma(text: str) -> Decimal:
    """Parse '1.234,56', '2,5000' or '2.5' into a Decimal."""
    cleaned = text.strip().strip('"').replace(" ", "")
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal number: {text!r}") from e


def format_report_timestamp(moment: datetime) -> str:
    return moment.strftime(REPORT_TIMESTAMP_FORMAT)


def format_report_date(day: date) -> str:
    return day.strftime(REPORT_DATE_FORMAT)


def parse_report_date(text: str) -> date:
    """Parse the date part of 'DD.MM.YYYY' or 'DD.MM.YYYY HH:MM:SS'."""
    day_part = text.strip().strip('"').split(" ")[0]
    return datetime.strptime(day_part, REPORT_DATE_FORMAT).date()
