"""
Base blockchain backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BlockchainBackend(ABC):
    """
    Abstract blockchain backend interface.

    Only the read-only lookups needed to locate funding transactions and to
    watch one address in the mempool. Implementations are responsible for
    their own timeouts; failures surface as exceptions.
    """

    @abstractmethod
    async def get_address_transactions(self, address: str) -> list[dict[str, Any]]:
        """Get confirmed transactions paying to or spending from an address"""

    @abstractmethod
    async def get_raw_mempool(self, verbose: bool = True) -> dict[str, dict[str, Any]]:
        """Get mempool entries keyed by txid (with fee/size metadata when verbose)"""

    @abstractmethod
    async def get_raw_transaction(self, txid: str, verbose: bool = False) -> Any:
        """Get a transaction by txid, hex encoded unless verbose"""

    @abstractmethod
    async def decode_raw_transaction(self, raw_tx: str) -> dict[str, Any]:
        """Decode a hex encoded transaction"""

    @abstractmethod
    async def get_block_hash(self, block_height: int) -> str:
        """Get block hash for given height"""

    @abstractmethod
    async def get_block(self, block_hash: str, verbosity: int = 1) -> dict[str, Any]:
        """Get block by hash. Verbosity 1 lists txids under "tx"."""

    async def close(self) -> None:
        """Close backend connection"""
        pass
