"""
Ledger Data Models
==================
The records that flow between pipeline stages.

- SignatureRecord: one entry from getSignaturesForAddress (persisted checkpoint)
- DecodedTransaction: a cached getTransaction result, validated and typed
- BalanceChangeEvent: one SOL balance change of the tracked wallet
- TransactionErrorRecord / NoBalanceChangeRecord / ParseErrorRecord:
  the side-file entries for the other analysis outcomes
- YearlyReportRow: a BalanceChangeEvent joined with that day's price
- AggregateSum: the result of a trailing or historical sum

Balances are lamports (int). SOL amounts and prices are Decimal, so
nothing passes through floating point before it reaches a report.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ledger.formatting import format_decimal_comma, format_report_timestamp


@dataclass
class SignatureRecord:
    """
    A transaction reference for the wallet.

    `raw` keeps every field the RPC returned (memo, confirmationStatus, ...)
    so the signatures file round-trips unchanged.
    """

    signature: str
    block_time: int | None = None
    slot: int | None = None
    err: Any = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "SignatureRecord":
        block_time = data.get("blockTime")
        return cls(
            signature=data["signature"],
            block_time=int(block_time) if block_time is not None else None,
            slot=data.get("slot"),
            err=data.get("err"),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        if self.raw:
            return dict(self.raw)
        data = {"signature": self.signature, "blockTime": self.block_time}
        if self.slot is not None:
            data["slot"] = self.slot
        data["err"] = self.err
        return data


@dataclass
class DecodedTransaction:
    """
    A cached transaction with every field the analyzer needs, already typed.

    Failed transactions (err set) may lack balances or blockTime; for all
    others the decoder guarantees they are present and aligned.
    """

    signature: str
    block_time: int | None
    account_keys: list[str] = field(default_factory=list)
    pre_balances: list[int] = field(default_factory=list)
    post_balances: list[int] = field(default_factory=list)
    err: Any = None
    log_messages: list[str] = field(default_factory=list)

    def account_index(self, address: str) -> int | None:
        """Position of `address` in the account list, or None if absent."""
        try:
            return self.account_keys.index(address)
        except ValueError:
            return None


@dataclass
class BalanceChangeEvent:
    """A non-zero SOL balance change of the tracked wallet."""

    timestamp: datetime
    change_amount: Decimal
    counterparty: str
    signature: str

    @property
    def year(self) -> int:
        return self.timestamp.year

    @property
    def day(self) -> date:
        return self.timestamp.date()


@dataclass
class TransactionErrorRecord:
    """A transaction that failed on-chain."""

    signature: str
    block_time: str
    error: str
    log_messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "blockTime": self.block_time,
            "error": self.error,
            "logMessages": self.log_messages,
        }


@dataclass
class NoBalanceChangeRecord:
    """A transaction that touched the wallet without moving its SOL balance."""

    signature: str
    block_time: str
    pre_balance: Decimal
    post_balance: Decimal
    log_messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "blockTime": self.block_time,
            "preBalance": float(self.pre_balance),
            "postBalance": float(self.post_balance),
            "logMessages": self.log_messages,
        }


@dataclass
class ParseErrorRecord:
    file: str
    error: str

    def to_dict(self) -> dict:
        return {"file": self.file, "error": self.error}


@dataclass
class YearlyReportRow:
    event: BalanceChangeEvent
    price: Decimal

    @property
    def converted_value(self) -> Decimal:
        return self.event.change_amount * self.price

    def to_csv_row(self) -> list[str]:
        return [
            format_report_timestamp(self.event.timestamp),
            format_decimal_comma(self.event.change_amount),
            self.event.counterparty,
            self.event.signature,
            format_decimal_comma(self.price),
            format_decimal_comma(self.converted_value),
        ]


@dataclass
class AggregateSum:
    """Incoming SOL over a date window. Recomputed on demand, never persisted."""

    transaction_count: int = 0
    total_change_amount: Decimal = Decimal(0)
    total_converted_value: Decimal = Decimal(0)
    window_start: date | None = None
    window_end: date | None = None

    def add(self, change_amount: Decimal, converted_value: Decimal) -> None:
        self.transaction_count += 1
        self.total_change_amount += change_amount
        self.total_converted_value += converted_value
