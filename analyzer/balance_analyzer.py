"""
Balance Change Analyzer
=======================
Classifies every cached transaction by what it did to the wallet's SOL balance.

Each transaction lands in exactly one bucket, checked in this order:
1. TransactionError: meta.err is set (failed on-chain)
2. AccountNotInvolved: the wallet isn't in the account list
3. NoBalanceChange: the wallet is there but post == pre
4. BalanceChange: the wallet's balance moved; becomes a BalanceChangeEvent
5. ParseError: the record is null, unreadable or missing fields

The five counts always add up to the number of cached records.

The "sender" of a balance change is the first account (in account-list
order) whose balance went down. For multi-party transactions this is a
best guess, not the verified payer.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from analyzer.transaction_decoder import decode_transaction
from config.settings import Settings
from ledger.formatting import SIDE_FILE_TIMESTAMP_FORMAT, lamports_to_sol
from ledger.models import (
    BalanceChangeEvent,
    DecodedTransaction,
    NoBalanceChangeRecord,
    ParseErrorRecord,
    TransactionErrorRecord,
)
from ledger.side_files import write_if_not_empty
from ledger.transaction_cache import TransactionCache
from utils.errors import DataIntegrityError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    balance_changes: list[BalanceChangeEvent] = field(default_factory=list)
    transaction_errors: list[TransactionErrorRecord] = field(default_factory=list)
    no_balance_changes: list[NoBalanceChangeRecord] = field(default_factory=list)
    not_involved: list[str] = field(default_factory=list)
    parse_errors: list[ParseErrorRecord] = field(default_factory=list)
    total: int = 0

    @property
    def accounted_for(self) -> int:
        return (
            len(self.balance_changes)
            + len(self.transaction_errors)
            + len(self.no_balance_changes)
            + len(self.not_involved)
            + len(self.parse_errors)
        )


def find_sender(tx: DecodedTransaction) -> str:
    """First address whose balance decreased, or '' if none did."""
    for address, pre, post in zip(tx.account_keys, tx.pre_balances, tx.post_balances):
        if post < pre:
            return address
    return ""


class BalanceAnalyzer:
    """
    Runs the five-way classification over the whole transaction cache.

    Usage:
        analyzer = BalanceAnalyzer(settings, cache)
        result = analyzer.run()   # classify, write side files, log summary
        report_writer.write(result.balance_changes)
    """

    def __init__(self, settings: Settings, cache: TransactionCache):
        self.settings = settings
        self.cache = cache
        self.wallet = settings.wallet_address
        self.tz = ZoneInfo(settings.report_timezone)

    def _local_time(self, block_time: int) -> datetime:
        return datetime.fromtimestamp(block_time, tz=self.tz)

    def _side_file_time(self, block_time: int | None) -> str:
        if block_time is None:
            return ""
        return self._local_time(block_time).strftime(SIDE_FILE_TIMESTAMP_FORMAT)

    def run(self) -> AnalysisResult:
        result = self.analyze()
        self.write_side_files(result)
        self.log_summary(result)
        return result

    def analyze(self) -> AnalysisResult:
        """Classify every cached transaction. Pure apart from reading the cache."""
        result = AnalysisResult()
        signatures = list(self.cache)
        result.total = len(signatures)
        logger.info("analyzing_transactions", total=result.total)

        for signature in signatures:
            source = self.cache.source_name(signature)
            try:
                tx = decode_transaction(self.cache.read(signature))
                self.classify(tx, result)
            except (DataIntegrityError, ValueError, OverflowError, OSError) as e:
                logger.debug("transaction_parse_error", file=source, error=str(e))
                result.parse_errors.append(ParseErrorRecord(file=source, error=str(e)))

        return result

    def classify(self, tx: DecodedTransaction, result: AnalysisResult) -> None:
        """Put one decoded transaction into its bucket. Appends only after every conversion succeeded."""
        if tx.err is not None:
            result.transaction_errors.append(TransactionErrorRecord(
                signature=tx.signature,
                block_time=self._side_file_time(tx.block_time),
                error=json.dumps(tx.err),
                log_messages=tx.log_messages,
            ))
            return

        index = tx.account_index(self.wallet)
        if index is None:
            result.not_involved.append(tx.signature)
            return

        pre_balance = tx.pre_balances[index]
        post_balance = tx.post_balances[index]
        change = post_balance - pre_balance

        if change == 0:
            result.no_balance_changes.append(NoBalanceChangeRecord(
                signature=tx.signature,
                block_time=self._side_file_time(tx.block_time),
                pre_balance=lamports_to_sol(pre_balance),
                post_balance=lamports_to_sol(post_balance),
                log_messages=tx.log_messages,
            ))
            return

        result.balance_changes.append(BalanceChangeEvent(
            timestamp=self._local_time(tx.block_time),
            change_amount=lamports_to_sol(change),
            counterparty=find_sender(tx),
            signature=tx.signature,
        ))

    def write_side_files(self, result: AnalysisResult) -> None:
        if write_if_not_empty(
            self.settings.transaction_errors_path,
            [r.to_dict() for r in result.transaction_errors],
        ):
            logger.info(
                "transaction_errors_saved",
                count=len(result.transaction_errors),
                path=str(self.settings.transaction_errors_path),
            )

        if write_if_not_empty(
            self.settings.no_balance_change_path,
            [r.to_dict() for r in result.no_balance_changes],
        ):
            logger.info(
                "no_balance_changes_saved",
                count=len(result.no_balance_changes),
                path=str(self.settings.no_balance_change_path),
            )

        if write_if_not_empty(
            self.settings.analyze_errors_path,
            [r.to_dict() for r in result.parse_errors],
        ):
            logger.warning(
                "parse_errors_saved",
                count=len(result.parse_errors),
                path=str(self.settings.analyze_errors_path),
            )
        else:
            logger.info("no_parse_errors")

    def log_summary(self, result: AnalysisResult) -> None:
        logger.info(
            "transaction_summary",
            total=result.total,
            balance_changes=len(result.balance_changes),
            no_balance_change=len(result.no_balance_changes),
            transaction_errors=len(result.transaction_errors),
            wallet_not_found=len(result.not_involved),
            parse_errors=len(result.parse_errors),
            accounted_for=result.accounted_for,
        )
        if result.accounted_for != result.total:
            logger.error("transaction_summary_mismatch", total=result.total, accounted_for=result.accounted_for)
