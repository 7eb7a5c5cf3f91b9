"""
Logging Setup
=============
Sets up readable, structured logging for every stage of the pipeline.

Uses 'structlog' so each line is an event name plus key/value context:
    signatures_saved total=5120 added=120 wallet=9QCf...

The wallet being reconciled is bound once per run (bind_run_context) and
shows up on every line after that, including lines from the stage modules.

Output formats (LOG_FORMAT):
- console: coloured, aligned lines for a terminal
- json: one JSON object per line, for piping into log tooling

Log levels:
- DEBUG: per-request detail (cursors, cache hits)
- INFO: stage progress and summaries
- WARNING: retries, missing price files
- ERROR: failed requests, unreadable files
"""

import sys
import logging
from pathlib import Path

import structlog

LOG_FORMATS = ("console", "json")


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, log_format: str = "console") -> None:
    """
    Configure logging for the entire application.

    Args:
        log_level: How much detail to show (DEBUG, INFO, WARNING, ERROR)
        log_dir: Optional directory to also write ledger.log into
        log_format: "console" or "json"
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / "ledger.log")
        file_handler.setLevel(numeric_level)
        logging.getLogger().addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_run_context(**values) -> None:
    """Attach key/values (e.g. wallet=...) to every log line for the rest of the run."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def get_logger(module_name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for a specific module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
        logger.info("transaction_fetched", progress="3/120")
    """
    return structlog.get_logger(module_name)
