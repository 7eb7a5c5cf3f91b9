"""
Transaction Decoder
===================
Turns a raw cached getTransaction result into a DecodedTransaction, or
raises DataIntegrityError saying what is wrong with it.

Shape of the raw record (jsonParsed encoding):
    {
      "blockTime": 1700000000,
      "meta": {"err": null, "preBalances": [...], "postBalances": [...],
               "logMessages": [...]},
      "transaction": {"signatures": ["..."],
                      "message": {"accountKeys": ["..." or {"pubkey": "..."}]}}
    }

A failed transaction (meta.err set) only needs its signature; it is
recorded as an on-chain error before anything else is looked at.
"""

from datetime import datetime, timezone
from typing import Any

from ledger.models import DecodedTransaction
from utils.errors import DataIntegrityError

MISSING_FIELDS_MESSAGE = "Missing required transaction data (postBalances, preBalances, or blockTime)"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _signature(raw: dict) -> str:
    try:
        signature = raw["transaction"]["signatures"][0]
    except (KeyError, IndexError, TypeError) as e:
        raise DataIntegrityError("Missing transaction signature") from e
    if not isinstance(signature, str) or not signature:
        raise DataIntegrityError("Missing transaction signature")
    return signature


def _block_time(value: Any) -> int:
    """Unix seconds that a datetime can actually represent."""
    if not _is_int(value):
        raise DataIntegrityError(f"blockTime is not an integer: {value!r}")
    try:
        datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise DataIntegrityError(f"blockTime out of range: {value}") from e
    return value


def _account_keys(raw: dict) -> list[str]:
    try:
        keys = raw["transaction"]["message"]["accountKeys"]
    except (KeyError, TypeError) as e:
        raise DataIntegrityError("Missing transaction.message.accountKeys") from e
    if not isinstance(keys, list):
        raise DataIntegrityError("transaction.message.accountKeys is not a list")

    addresses = []
    for key in keys:
        if isinstance(key, str):
            addresses.append(key)
        elif isinstance(key, dict) and isinstance(key.get("pubkey"), str):
            addresses.append(key["pubkey"])
        else:
            raise DataIntegrityError(f"Unrecognized account key entry: {key!r}")
    return addresses


def _balances(values: Any, name: str) -> list[int]:
    if not isinstance(values, list):
        raise DataIntegrityError(f"{name} is not a list")
    if not all(_is_int(v) for v in values):
        raise DataIntegrityError(f"{name} contains a non-integer balance")
    return list(values)


def decode_transaction(raw: Any) -> DecodedTransaction:
    """Validate and type a raw cached transaction."""
    if raw is None:
        raise DataIntegrityError("Null transaction")
    if not isinstance(raw, dict):
        raise DataIntegrityError(f"Transaction is a {type(raw).__name__}, expected an object")

    meta = raw.get("meta")
    if meta is None:
        meta = {}
    elif not isinstance(meta, dict):
        raise DataIntegrityError(f"meta is a {type(meta).__name__}, expected an object")
    block_time = raw.get("blockTime")
    log_messages = meta.get("logMessages")
    if not isinstance(log_messages, list):
        log_messages = []

    if meta.get("err") is not None:
        return DecodedTransaction(
            signature=_signature(raw),
            block_time=_block_time(block_time) if block_time is not None else None,
            err=meta["err"],
            log_messages=log_messages,
        )

    if meta.get("preBalances") is None or meta.get("postBalances") is None or not block_time:
        raise DataIntegrityError(MISSING_FIELDS_MESSAGE)

    account_keys = _account_keys(raw)
    pre_balances = _balances(meta["preBalances"], "preBalances")
    post_balances = _balances(meta["postBalances"], "postBalances")
    if not len(account_keys) == len(pre_balances) == len(post_balances):
        raise DataIntegrityError(
            f"Balance lists do not match account keys "
            f"({len(account_keys)} keys, {len(pre_balances)} pre, {len(post_balances)} post)"
        )

    return DecodedTransaction(
        signature=_signature(raw),
        block_time=_block_time(block_time),
        account_keys=account_keys,
        pre_balances=pre_balances,
        post_balances=post_balances,
        log_messages=log_messages,
    )
