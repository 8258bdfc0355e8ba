"""
Bitcoin Core RPC blockchain backend.
Uses non-wallet RPC calls only. Address history, which Core does not index,
comes from an Esplora-compatible REST API (mempool.space, electrs).
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import httpx
from loguru import logger

from lnfunding.backends.base import BlockchainBackend
from lnfunding.errors import BackendError

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Address history endpoint can be slow for busy addresses
DEFAULT_API_TIMEOUT = 60.0


class BitcoinCoreBackend(BlockchainBackend):
    """
    Blockchain backend using Bitcoin Core RPC.

    Requires txindex=1 on the node so that getrawtransaction can find
    confirmed funding transactions that are not in the mempool.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:8332",
        rpc_user: str = "rpcuser",
        rpc_password: str = "rpcpassword",
        address_api_url: str | None = None,
        rpc_timeout: float = DEFAULT_RPC_TIMEOUT,
        api_timeout: float = DEFAULT_API_TIMEOUT,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.rpc_user = rpc_user
        self.rpc_password = rpc_password
        self.address_api_url = address_api_url.rstrip("/") if address_api_url else None
        self.client = httpx.AsyncClient(timeout=rpc_timeout, auth=(rpc_user, rpc_password))
        # Separate client without RPC credentials for the public REST API
        self._api_client = httpx.AsyncClient(timeout=api_timeout)
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to Bitcoin Core.

        Floating point amounts are parsed as Decimal so BTC values keep
        their exact 8-decimal representation.

        Raises:
            BackendError: On RPC errors
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
            # Core answers RPC errors with HTTP 500 and a JSON body
            if response.status_code != 500:
                response.raise_for_status()
            data = json.loads(response.text, parse_float=Decimal)

            if "error" in data and data["error"]:
                error_info = data["error"]
                if isinstance(error_info, dict):
                    raise BackendError(
                        method,
                        error_info.get("code", "unknown"),
                        error_info.get("message", str(error_info)),
                    )
                raise BackendError(method, "unknown", str(error_info))

            return data.get("result")

        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"RPC call returned invalid JSON: {method} - {e}")
            raise BackendError(method, "invalid-json", str(e)) from e

    async def get_address_transactions(self, address: str) -> list[dict[str, Any]]:
        if not self.address_api_url:
            logger.debug(f"No address API configured, skipping history for {address}")
            return []

        url = f"{self.address_api_url}/address/{address}/txs"
        try:
            response = await self._api_client.get(url)
            response.raise_for_status()
            txs = json.loads(response.text, parse_float=Decimal)
            logger.debug(f"Fetched {len(txs)} transactions for {address}")
            return txs

        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch address history for {address}: {e}")
            raise

    async def get_raw_mempool(self, verbose: bool = True) -> dict[str, dict[str, Any]]:
        result = await self._rpc_call("getrawmempool", [verbose])
        if not verbose:
            # Plain txid list, normalize to the verbose shape
            return {txid: {} for txid in result or []}
        return result or {}

    async def get_raw_transaction(self, txid: str, verbose: bool = False) -> Any:
        return await self._rpc_call("getrawtransaction", [txid, verbose])

    async def decode_raw_transaction(self, raw_tx: str) -> dict[str, Any]:
        return await self._rpc_call("decoderawtransaction", [raw_tx])

    async def get_block_hash(self, block_height: int) -> str:
        try:
            block_hash = await self._rpc_call("getblockhash", [block_height])
            logger.debug(f"Block hash for height {block_height}: {block_hash}")
            return block_hash

        except Exception as e:
            logger.error(f"Failed to fetch block hash for height {block_height}: {e}")
            raise

    async def get_block(self, block_hash: str, verbosity: int = 1) -> dict[str, Any]:
        return await self._rpc_call("getblock", [block_hash, verbosity])

    async def close(self) -> None:
        await self.client.aclose()
        await self._api_client.aclose()
