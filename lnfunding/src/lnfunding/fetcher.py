"""
Funding transaction fetcher service.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from pathlib import Path

from loguru import logger

from lnfunding.backends.base import BlockchainBackend
from lnfunding.block_cache import BLOCKS_CACHE_EVICT_COUNT, BLOCKS_CACHE_MAX_SIZE, BlockCache
from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import FundingTxRecord, SyncResult, WalletMempoolTx
from lnfunding.resolver import FundingTxResolver
from lnfunding.sync import DEFAULT_CHECKPOINT_INTERVAL, DEFAULT_PROGRESS_INTERVAL, SyncOrchestrator
from lnfunding.wallet_monitor import WalletMonitor


class FundingTxFetcher:
    """
    Resolves and caches Lightning channel funding transactions.

    Owns the block cache, the persistent funding tx cache and the wallet
    monitor, and wires them to one backend. Lifecycle: init() once, then
    any number of fetch_channels_funding_txs() batches.
    """

    def __init__(
        self,
        backend: BlockchainBackend,
        cache_file: Path | str,
        watched_address: str | None = None,
        block_cache_size: int = BLOCKS_CACHE_MAX_SIZE,
        block_cache_evict_count: int = BLOCKS_CACHE_EVICT_COUNT,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        checkpoint_interval: float = DEFAULT_CHECKPOINT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.funding_cache = FundingTxCache(cache_file)
        self.block_cache = BlockCache(block_cache_size, block_cache_evict_count)
        self.resolver = FundingTxResolver(backend, self.funding_cache, self.block_cache)
        self.wallet_monitor = (
            WalletMonitor(watched_address, backend, self.funding_cache)
            if watched_address
            else None
        )
        self.sync = SyncOrchestrator(
            self.resolver,
            self.funding_cache,
            self.wallet_monitor,
            progress_interval=progress_interval,
            checkpoint_interval=checkpoint_interval,
            clock=clock,
        )

    async def init(self) -> None:
        """Load the disk cache and take a first wallet snapshot."""
        if len(self.funding_cache) == 0:
            self.funding_cache.load()

        if self.wallet_monitor is not None:
            logger.info(
                f"Wallet monitoring active: watching address {self.wallet_monitor.address} "
                "for incoming transactions (on-chain + mempool)"
            )
            await self.wallet_monitor.refresh()

    async def fetch_channels_funding_txs(
        self, channel_ids: Sequence[str | int]
    ) -> SyncResult | None:
        return await self.sync.run_batch(channel_ids)

    async def fetch_channel_open_tx(self, channel_id: str | int) -> FundingTxRecord | None:
        """Resolve one channel on demand, sharing the batch caches."""
        try:
            return await self.resolver.resolve(channel_id)
        except Exception as e:
            logger.error(f"Failed to fetch funding tx for channel id {channel_id}: {e}")
            return None

    def get_wallet_mempool_status(self) -> list[WalletMempoolTx]:
        if self.wallet_monitor is None:
            return []
        return self.wallet_monitor.get_snapshot()

    async def close(self) -> None:
        await self.backend.close()
