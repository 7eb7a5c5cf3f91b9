"""
Solana Client Helper
====================
A thin async wrapper around the two Solana RPC calls the ledger needs.

This module handles:
- Connecting to any Solana JSON-RPC endpoint
- getSignaturesForAddress (paged, newest first)
- getTransaction (jsonParsed, versioned transactions included)
- Turning every kind of failure into a TransientFetchError

Every request goes through the shared Throttle first, so the whole
pipeline respects one rate limit no matter which stage is calling.
"""

import asyncio

import aiohttp

from utils.errors import TransactionNotFoundError, TransientFetchError
from utils.logger import get_logger
from utils.throttle import Throttle

logger = get_logger(__name__)


class SolanaClient:
    """
    Async Solana RPC client.

    Usage:
        client = SolanaClient(rpc_url="https://...", throttle=Throttle())
        await client.initialize()
        page = await client.get_signatures_for_address(address, limit=1000)
        tx = await client.get_transaction(page[0]["signature"])
        await client.close()
    """

    def __init__(self, rpc_url: str, throttle: Throttle | None = None, timeout_seconds: float = 30.0):
        self.rpc_url = rpc_url
        self.throttle = throttle or Throttle()
        self.timeout_seconds = timeout_seconds
        self.session: aiohttp.ClientSession | None = None

    async def initialize(self) -> None:
        """Create the HTTP session for making RPC calls."""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        self.session = aiohttp.ClientSession(timeout=timeout)
        logger.info("solana_client_initialized", rpc=self.rpc_url.split("?")[0])

    async def close(self) -> None:
        """Clean up the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    # =========================================================================
    # Core RPC Calls
    # =========================================================================

    async def _rpc_call(self, method: str, params: list | None = None):
        """
        Make a JSON-RPC call and return its "result" field.

        Raises TransientFetchError for transport failures, non-200 responses,
        unreadable bodies and JSON-RPC error payloads.
        """
        if self.session is None:
            raise RuntimeError("SolanaClient.initialize() must be called first")

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or [],
        }
        await self.throttle.acquire()
        try:
            async with self.session.post(self.rpc_url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TransientFetchError(method, f"HTTP {response.status}: {error_text[:200]}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFetchError(method, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise TransientFetchError(method, f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise TransientFetchError(method, f"Unexpected response body: {type(data).__name__}")

        if "error" in data:
            logger.error("rpc_error", method=method, error=data["error"])
            raise TransientFetchError(method, str(data["error"]))
        return data.get("result")

    async def get_signatures_for_address(
        self, address: str, limit: int = 1000, before: str | None = None
    ) -> list[dict]:
        """
        Get transaction signatures for a wallet, newest first.

        Args:
            address: The wallet to look up
            limit: Maximum number of signatures to return (max 1000)
            before: Only return signatures older than this one (pagination cursor)
        """
        options: dict = {"limit": limit}
        if before:
            options["before"] = before
        result = await self._rpc_call("getSignaturesForAddress", [address, options])
        return result or []

    async def get_transaction(self, signature: str) -> dict:
        """
        Get the full details of a transaction by its signature.

        Raises TransactionNotFoundError when the node returns null.
        """
        params = [signature, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}]
        result = await self._rpc_call("getTransaction", params)
        if result is None:
            raise TransactionNotFoundError(signature)
        return result
