"""
Configuration Manager
=====================
Every setting the ledger pipeline needs, in one place.

How it works:
- On import, the .env file in the project root is loaded into the environment
- Each setting has a sensible default, overridable by an environment variable
- main.py builds ONE Settings object (applying command-line overrides on top)
  and hands it to every stage, so no stage reads configuration on its own
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from utils.errors import ConfigurationError
from utils.logger import LOG_FORMATS


# Load environment variables from .env file in the project root
load_dotenv(Path(__file__).parent.parent / ".env")


def _get_env(key: str, default: str = "") -> str:
    """Get an environment variable, returning default if not set."""
    return os.getenv(key, default)


def _get_env_float(key: str, default: float) -> float:
    """Get an environment variable as a float number."""
    val = os.getenv(key)
    return float(val) if val else default


def _get_env_int(key: str, default: int) -> int:
    """Get an environment variable as a whole number."""
    val = os.getenv(key)
    return int(val) if val else default


@dataclass
class Settings:
    """
    All pipeline configuration in one place.

    Sections:
    - Account & Endpoint: which wallet to reconcile, which RPC node to ask
    - Paths: where checkpoints, caches and reports live
    - Rate Limiting: page sizes, delays and retry budgets for RPC calls
    - Reporting: timezone used for report dates
    - System: logging
    """

    # =========================================================================
    # Account & Endpoint
    # =========================================================================

    # The wallet whose SOL balance history we reconstruct (base58 public key)
    wallet_address: str = field(default_factory=lambda: _get_env("WALLET_ADDRESS"))

    # Solana JSON-RPC endpoint (Helius, Triton, public mainnet, ...)
    rpc_url: str = field(default_factory=lambda: _get_env("RPC_URL"))

    # =========================================================================
    # Paths
    # =========================================================================

    # Everything the pipeline writes goes under this directory
    output_dir: str = field(default_factory=lambda: _get_env("OUTPUT_DIR", "output"))

    # One price file per year: <price_dir>/<year>.csv
    price_dir: str = field(default_factory=lambda: _get_env("PRICE_DIR", "solprice"))

    # =========================================================================
    # Rate Limiting
    # =========================================================================

    # getSignaturesForAddress page size (the RPC maximum is 1000)
    page_size: int = field(default_factory=lambda: _get_env_int("PAGE_SIZE", 1000))

    # Wait between signature pages
    page_delay_seconds: float = field(
        default_factory=lambda: _get_env_float("PAGE_DELAY_SECONDS", 1.0)
    )

    # Wait before retrying a failed signature page
    page_retry_delay_seconds: float = field(
        default_factory=lambda: _get_env_float("PAGE_RETRY_DELAY_SECONDS", 5.0)
    )

    # Consecutive failures on one page before the backfill gives up
    max_page_retries: int = field(default_factory=lambda: _get_env_int("MAX_PAGE_RETRIES", 3))

    # Wait after each fetched transaction, and after each failed one
    tx_delay_seconds: float = field(
        default_factory=lambda: _get_env_float("TX_DELAY_SECONDS", 0.2)
    )
    tx_failure_delay_seconds: float = field(
        default_factory=lambda: _get_env_float("TX_FAILURE_DELAY_SECONDS", 1.0)
    )

    # Minimum spacing between any two RPC requests (0 = only the delays above)
    request_interval_seconds: float = field(
        default_factory=lambda: _get_env_float("REQUEST_INTERVAL_SECONDS", 0.0)
    )

    # Per-request HTTP timeout
    request_timeout_seconds: float = field(
        default_factory=lambda: _get_env_float("REQUEST_TIMEOUT_SECONDS", 30.0)
    )

    # =========================================================================
    # Reporting
    # =========================================================================

    # Report dates (and therefore price lookups and yearly files) use this timezone
    report_timezone: str = field(
        default_factory=lambda: _get_env("REPORT_TIMEZONE", "Europe/Berlin")
    )

    # =========================================================================
    # System
    # =========================================================================

    # Logging level: DEBUG, INFO, WARNING, ERROR
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))

    # Optional directory for a ledger.log file
    log_dir: str | None = field(default_factory=lambda: _get_env("LOG_DIR") or None)

    # Log line format: console (human readable) or json
    log_format: str = field(default_factory=lambda: _get_env("LOG_FORMAT", "console"))

    @property
    def signatures_path(self) -> Path:
        return Path(self.output_dir) / "signatures.json"

    @property
    def transactions_dir(self) -> Path:
        return Path(self.output_dir) / "transactions"

    @property
    def fetch_errors_path(self) -> Path:
        return Path(self.output_dir) / "fetch_errors.json"

    @property
    def transaction_errors_path(self) -> Path:
        return Path(self.output_dir) / "transactions_with_errors.json"

    @property
    def no_balance_change_path(self) -> Path:
        return Path(self.output_dir) / "no_balance_changes.json"

    @property
    def analyze_errors_path(self) -> Path:
        return Path(self.output_dir) / "analyze_errors.json"

    def validate(self, require_pipeline: bool = True) -> list[str]:
        """
        Check that all required settings are present.
        Returns a list of problems found (empty list = all good).

        The aggregate-sum modes only read reports, so they pass
        require_pipeline=False and skip the wallet/RPC checks.
        """
        problems = []

        if require_pipeline:
            if not self.wallet_address:
                problems.append("WALLET_ADDRESS is not set; pass --wallet or set it in .env")
            else:
                try:
                    Pubkey.from_string(self.wallet_address)
                except ValueError:
                    problems.append(f"WALLET_ADDRESS is not a valid Solana address: {self.wallet_address}")
            if not self.rpc_url:
                problems.append("RPC_URL is not set; pass --rpc or set it in .env")

        if self.page_size <= 0 or self.page_size > 1000:
            problems.append("PAGE_SIZE must be between 1 and 1000")
        if self.max_page_retries <= 0:
            problems.append("MAX_PAGE_RETRIES must be at least 1")
        if self.log_format not in LOG_FORMATS:
            problems.append(f"LOG_FORMAT must be one of: {', '.join(LOG_FORMATS)}")

        return problems

    def require_valid(self, require_pipeline: bool = True) -> None:
        """Raise ConfigurationError if validate() found anything."""
        problems = self.validate(require_pipeline=require_pipeline)
        if problems:
            raise ConfigurationError("; ".join(problems))
