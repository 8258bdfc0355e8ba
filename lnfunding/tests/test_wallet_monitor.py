"""
Tests for the watched address mempool monitor.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from conftest import WATCHED_ADDRESS, FakeBackend, output

from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import WalletMempoolTx
from lnfunding.wallet_monitor import WalletMonitor, output_pays_address


@pytest.fixture
def monitor(backend: FakeBackend, cache_file: Path) -> WalletMonitor:
    return WalletMonitor(WATCHED_ADDRESS, backend, FundingTxCache(cache_file))


@pytest.fixture
def mempool(backend: FakeBackend) -> FakeBackend:
    backend.add_tx("m1", [output("0.1", WATCHED_ADDRESS), output("0.5")])
    backend.add_tx("m2", [output("0.2")])
    backend.add_tx("m3", [output("0.01", WATCHED_ADDRESS), output("0.02", WATCHED_ADDRESS)])
    backend.mempool = {
        "m1": {"vsize": 141, "fees": {"base": Decimal("0.00001410")}},
        "m2": {"vsize": 110, "fees": {"base": Decimal("0.00000220")}},
        "m3": {"vsize": 172, "fee": Decimal("0.00000500")},
    }
    backend.address_txs[WATCHED_ADDRESS] = [{"txid": "confirmed1", "status": {"confirmed": True}}]
    return backend


class TestOutputMatching:
    def test_address_field(self) -> None:
        assert output_pays_address(output("1", WATCHED_ADDRESS), WATCHED_ADDRESS)
        assert not output_pays_address(output("1"), WATCHED_ADDRESS)

    def test_legacy_addresses_list(self) -> None:
        out = {"value": 1, "scriptPubKey": {"addresses": ["bc1qx", WATCHED_ADDRESS]}}
        assert output_pays_address(out, WATCHED_ADDRESS)

    def test_no_script(self) -> None:
        assert not output_pays_address({"value": 1}, WATCHED_ADDRESS)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_snapshot_contains_only_matches(
        self, mempool: FakeBackend, monitor: WalletMonitor
    ) -> None:
        assert await monitor.refresh() is True

        assert monitor.get_snapshot() == [
            WalletMempoolTx(
                txid="m1", amount=Decimal("0.1"), fee=Decimal("0.00001410"), vsize=141
            ),
            WalletMempoolTx(
                txid="m3", amount=Decimal("0.03"), fee=Decimal("0.00000500"), vsize=172
            ),
        ]

    @pytest.mark.asyncio
    async def test_confirmed_history_stored(
        self, mempool: FakeBackend, monitor: WalletMonitor
    ) -> None:
        await monitor.refresh()

        history = monitor.funding_cache.wallet_history
        assert history.address == WATCHED_ADDRESS
        assert history.transactions == [{"txid": "confirmed1", "status": {"confirmed": True}}]
        # Kept apart from channel records
        assert len(monitor.funding_cache) == 0

    @pytest.mark.asyncio
    async def test_snapshot_replaced_not_merged(
        self, mempool: FakeBackend, monitor: WalletMonitor
    ) -> None:
        await monitor.refresh()
        del mempool.mempool["m1"]

        await monitor.refresh()

        assert [tx.txid for tx in monitor.snapshot] == ["m3"]

    @pytest.mark.asyncio
    async def test_empty_mempool(self, backend: FakeBackend, monitor: WalletMonitor) -> None:
        assert await monitor.refresh() is True
        assert monitor.get_snapshot() == []

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot(
        self, mempool: FakeBackend, monitor: WalletMonitor
    ) -> None:
        await monitor.refresh()
        previous = monitor.snapshot

        mempool.fail_on["get_raw_mempool"] = ConnectionError("backend down")
        assert await monitor.refresh() is False
        assert monitor.snapshot is previous

    @pytest.mark.asyncio
    async def test_failure_midway_keeps_previous_snapshot(
        self, mempool: FakeBackend, monitor: WalletMonitor
    ) -> None:
        await monitor.refresh()
        previous = monitor.snapshot

        # Entry evicted between listing and lookup
        mempool.mempool["gone"] = {"vsize": 100, "fee": Decimal("0.000001")}
        assert await monitor.refresh() is False
        assert monitor.snapshot == previous

    @pytest.mark.asyncio
    async def test_missing_fee_metadata(self, backend: FakeBackend, monitor: WalletMonitor) -> None:
        backend.add_tx("m9", [output("0.3", WATCHED_ADDRESS)])
        backend.mempool = {"m9": {}}

        await monitor.refresh()

        assert monitor.snapshot == (
            WalletMempoolTx(txid="m9", amount=Decimal("0.3"), fee=None, vsize=None),
        )
