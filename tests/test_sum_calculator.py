"""
Tests for the trailing-year and historical incoming sums.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from reports.report_writer import REPORT_HEADER
from reports.sum_calculator import SumCalculator, one_year_cutoff


def _write_report(output_dir, year, rows):
    output_dir.mkdir(parents=True, exist_ok=True)
    body = ";".join(REPORT_HEADER) + "\n" + "".join(row + "\n" for row in rows)
    (output_dir / f"balance_changes_{year}.csv").write_text(body, encoding="utf-8")


ROW_2025 = '"01.01.2025 10:00:00";"2,5000";"addr";"sig";"20,00";"50,0000"'


def test_one_year_cutoff_is_start_of_day():
    assert one_year_cutoff(datetime(2025, 1, 15, 13, 45)) == datetime(2024, 1, 15)


def test_one_year_cutoff_leap_day():
    assert one_year_cutoff(datetime(2024, 2, 29, 8, 0)) == datetime(2023, 3, 1)


def test_trailing_sum_includes_recent_incoming(tmp_path):
    _write_report(tmp_path, 2025, [ROW_2025])
    total = SumCalculator(tmp_path).trailing_sum(now=datetime(2025, 1, 15))
    assert total.transaction_count == 1
    assert total.total_change_amount == Decimal("2.5")
    assert total.total_converted_value == Decimal("50")
    assert f"{total.total_change_amount:.4f}" == "2.5000"
    assert f"{total.total_converted_value:.2f}" == "50.00"


def test_historical_sum_includes_old_incoming(tmp_path):
    _write_report(tmp_path, 2025, [ROW_2025])
    calc = SumCalculator(tmp_path)
    now = datetime(2027, 1, 1)

    assert calc.trailing_sum(now=now).transaction_count == 0
    total = calc.historical_sum(now=now)
    assert total.transaction_count == 1
    assert total.total_converted_value == Decimal("50")
    assert total.window_start == date(2025, 1, 1)
    assert total.window_end == date(2025, 12, 31)


def test_outgoing_and_future_rows_are_ignored(tmp_path):
    _write_report(tmp_path, 2025, [
        '"02.01.2025 10:00:00";"-1,5";"addr";"out";"20";"-30"',
        '"03.01.2025";"0,5";"addr";"in";"20";"10"',
        '"20.01.2025";"7";"addr";"future";"20";"140"',
    ])
    total = SumCalculator(tmp_path).trailing_sum(now=datetime(2025, 1, 15, 12, 0))
    assert total.transaction_count == 1
    assert total.total_change_amount == Decimal("0.5")


def test_boundary_day_belongs_to_trailing_window(tmp_path):
    _write_report(tmp_path, 2024, ['"15.01.2024 23:59:59";"1";"a";"edge";"10";"10"'])
    calc = SumCalculator(tmp_path)
    now = datetime(2025, 1, 15, 18, 30)
    assert calc.trailing_sum(now=now).transaction_count == 1
    assert calc.historical_sum(now=now).transaction_count == 0


def test_sums_span_all_report_files(tmp_path):
    _write_report(tmp_path, 2022, ['"10.05.2022";"1";"a";"s1";"50";"50"'])
    _write_report(tmp_path, 2023, ['"10.05.2023";"2";"a";"s2";"20";"40"'])
    total = SumCalculator(tmp_path).historical_sum(now=datetime(2025, 1, 1))
    assert total.transaction_count == 2
    assert total.total_change_amount == Decimal("3")
    assert total.window_start == date(2022, 5, 10)


def test_malformed_rows_are_skipped(tmp_path):
    _write_report(tmp_path, 2025, ['"garbage";"x"', ROW_2025, ""])
    total = SumCalculator(tmp_path).trailing_sum(now=datetime(2025, 1, 15))
    assert total.transaction_count == 1


def test_no_reports(tmp_path):
    total = SumCalculator(tmp_path / "missing").historical_sum(now=datetime(2025, 1, 1))
    assert total.transaction_count == 0
    assert total.window_start is None


def test_now_is_naive_wall_clock_in_report_timezone():
    calc = SumCalculator("unused", report_timezone="UTC")
    now = calc.now()
    assert now.tzinfo is None
    assert abs(now - datetime.now(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=5)


def test_sums_default_to_report_timezone_clock(tmp_path, monkeypatch):
    """Without an explicit now, both windows are cut from the report-timezone clock."""
    _write_report(tmp_path, 2025, [ROW_2025])
    calc = SumCalculator(tmp_path, report_timezone="UTC")
    monkeypatch.setattr(calc, "now", lambda: datetime(2026, 1, 15))

    trailing = calc.trailing_sum()
    historical = calc.historical_sum()

    assert trailing.window_start == date(2025, 1, 15)
    assert trailing.transaction_count == 0
    assert historical.transaction_count == 1
    assert historical.window_end == date(2025, 1, 14)
