"""
Pytest configuration and fixtures for lnfunding tests.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from lnfunding.backends.base import BlockchainBackend

WATCHED_ADDRESS = "bc1qpqlsehzrjmxhutxmlwt6tdjkwafvcgugpv5375"


class FakeBackend(BlockchainBackend):
    """
    In-memory backend recording every call.

    Blocks are registered per height with their txid list; transactions are
    registered as decoded dicts and served through a "raw" hex that is just
    the txid prefixed with "raw:".
    """

    def __init__(self) -> None:
        self.blocks: dict[int, dict[str, Any]] = {}
        self.txs: dict[str, dict[str, Any]] = {}
        self.mempool: dict[str, dict[str, Any]] = {}
        self.address_txs: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: dict[str, Exception] = {}
        self.on_call = None
        self.closed = False

    def add_block(self, height: int, txids: list[str], time: int = 1_600_000_000) -> None:
        self.blocks[height] = {
            "hash": f"hash{height}",
            "height": height,
            "time": time,
            "tx": txids,
        }

    def add_tx(self, txid: str, outputs: list[dict[str, Any]]) -> None:
        self.txs[txid] = {"txid": txid, "vout": outputs}

    def _record(self, method: str, arg: Any) -> None:
        self.calls.append((method, arg))
        if self.on_call is not None:
            self.on_call(method, arg)
        error = self.fail_on.get(method)
        if error is not None:
            raise error

    def calls_to(self, method: str) -> list[Any]:
        return [arg for name, arg in self.calls if name == method]

    async def get_address_transactions(self, address: str) -> list[dict[str, Any]]:
        self._record("get_address_transactions", address)
        return self.address_txs.get(address, [])

    async def get_raw_mempool(self, verbose: bool = True) -> dict[str, dict[str, Any]]:
        self._record("get_raw_mempool", verbose)
        return dict(self.mempool)

    async def get_raw_transaction(self, txid: str, verbose: bool = False) -> Any:
        self._record("get_raw_transaction", txid)
        if txid not in self.txs:
            raise KeyError(f"No such transaction {txid}")
        return f"raw:{txid}"

    async def decode_raw_transaction(self, raw_tx: str) -> dict[str, Any]:
        self._record("decode_raw_transaction", raw_tx)
        return self.txs[raw_tx.removeprefix("raw:")]

    async def get_block_hash(self, block_height: int) -> str:
        self._record("get_block_hash", block_height)
        if block_height not in self.blocks:
            raise ValueError(f"Block height {block_height} out of range")
        return f"hash{block_height}"

    async def get_block(self, block_hash: str, verbosity: int = 1) -> dict[str, Any]:
        self._record("get_block", block_hash)
        return self.blocks[int(block_hash.removeprefix("hash"))]

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def output(value: str, address: str = "bc1qother") -> dict[str, Any]:
    return {
        "value": Decimal(value),
        "n": 0,
        "scriptPubKey": {"address": address, "type": "witness_v0_keyhash"},
    }


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    return tmp_path / "ln-funding-txs-cache.json"
