"""
Chain reader over an async web3 connection.

Provides:
- Deployed runtime code (eth_getCode)
- Contract-creation transactions (eth_getTransactionByHash + receipt)
- RPC health monitoring
- RPC latency / error metrics

One client is shared by every concurrent verification. No retries:
a failed read is a ChainReadError for that entry only.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from aiohttp import ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TransactionNotFound as Web3TransactionNotFound

from bytecode_verifier.errors import ChainReadError
from bytecode_verifier.eth.metrics import Metrics
from bytecode_verifier.models import CreationTransaction

logger = logging.getLogger(__name__)


def _to_hex(value: Any) -> str:
    """0x-prefixed hex for HexBytes/bytes/str RPC values."""
    if value is None:
        return "0x"
    if isinstance(value, str):
        return value if value.startswith(("0x", "0X")) else "0x" + value
    return "0x" + bytes(value).hex()


@dataclass
class ChainClient:
    """Read-only chain access for bytecode verification."""

    w3: AsyncWeb3
    metrics: Metrics = field(default_factory=Metrics)

    @staticmethod
    def from_url(rpc_url: str, *, timeout: int = 8, metrics: Optional[Metrics] = None) -> ChainClient:
        """
        Create client for a JSON-RPC endpoint.

        Args:
            rpc_url: HTTP(S) RPC endpoint URL
            timeout: Per-request timeout in seconds
            metrics: Optional metrics instance

        Returns:
            Configured ChainClient
        """
        w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": ClientTimeout(total=timeout)}))
        return ChainClient(w3=w3, metrics=metrics or Metrics())

    async def _timed(self, method: str, target: str, coro):
        t0 = time.time()
        try:
            result = await coro
        except Web3TransactionNotFound:
            # Answered, just not found
            self.metrics.record_call(method, target, (time.time() - t0) * 1000.0)
            raise
        except Exception as e:
            self.metrics.record_error(method, target)
            logger.warning("%s(%s) failed: %s", method, target, e)
            raise ChainReadError(f"{method}({target}) failed: {e}") from e
        self.metrics.record_call(method, target, (time.time() - t0) * 1000.0)
        return result

    async def get_code(self, address: str) -> str:
        """
        Fetch runtime bytecode stored at address.

        Returns:
            0x-prefixed hex string ("0x" when the account has no code)

        Raises:
            ChainReadError: If RPC call fails
        """
        checksum = AsyncWeb3.to_checksum_address(address)
        code = await self._timed("eth_getCode", checksum, self.w3.eth.get_code(checksum))
        return _to_hex(code)

    async def get_transaction(self, tx_hash: str) -> Optional[CreationTransaction]:
        """
        Fetch a transaction and the address it created.

        Returns:
            CreationTransaction, or None if the node does not know the hash.
            created_address is None when the transaction created no contract.

        Raises:
            ChainReadError: If RPC call fails
        """
        try:
            tx = await self._timed("eth_getTransactionByHash", tx_hash, self.w3.eth.get_transaction(tx_hash))
        except Web3TransactionNotFound:
            return None
        if tx is None:
            return None

        # Some clients (OpenEthereum, ethers-style) report the address directly
        created = tx.get("creates")
        if created is None and tx.get("to") is None:
            try:
                receipt = await self._timed(
                    "eth_getTransactionReceipt",
                    tx_hash,
                    self.w3.eth.get_transaction_receipt(tx_hash),
                )
            except Web3TransactionNotFound:
                receipt = None
            if receipt is not None:
                created = receipt.get("contractAddress")

        return CreationTransaction(input_data=_to_hex(tx.get("input")), created_address=created)

    async def ping(self) -> bool:
        """
        Check RPC health by fetching current block number.

        Returns:
            True if RPC reachable, False otherwise
        """
        try:
            await self._timed("eth_blockNumber", "latest", self.w3.eth.block_number)
            return True
        except ChainReadError:
            return False

    async def close(self) -> None:
        await self.w3.provider.disconnect()
