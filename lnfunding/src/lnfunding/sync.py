"""
Batch synchronization of channel funding transactions.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence

from loguru import logger

from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import SyncResult
from lnfunding.resolver import FundingTxResolver
from lnfunding.wallet_monitor import WalletMonitor

# Seconds between progress log lines
DEFAULT_PROGRESS_INTERVAL = 30.0

# Seconds between checkpoint flushes of the funding tx cache during a batch
DEFAULT_CHECKPOINT_INTERVAL = 60.0


class SyncOrchestrator:
    """
    Runs funding tx resolution over a list of channel ids.

    Only one batch runs at a time: a call made while a batch is in progress
    returns None straight away. Items are processed one after another in
    input order, which keeps block cache hits high when the ids come
    roughly sorted by height. A failure on one channel is logged and the
    batch moves on.
    """

    def __init__(
        self,
        resolver: FundingTxResolver,
        funding_cache: FundingTxCache,
        wallet_monitor: WalletMonitor | None = None,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        checkpoint_interval: float = DEFAULT_CHECKPOINT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.funding_cache = funding_cache
        self.wallet_monitor = wallet_monitor
        self.progress_interval = progress_interval
        self.checkpoint_interval = checkpoint_interval
        self.clock = clock
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_batch(self, channel_ids: Sequence[str | int]) -> SyncResult | None:
        if self._running:
            logger.debug("Funding tx sync already running, skipping batch")
            return None
        self._running = True

        try:
            return await self._run(channel_ids)
        finally:
            self._running = False

    async def _run(self, channel_ids: Sequence[str | int]) -> SyncResult:
        total = len(channel_ids)
        start = self.clock()
        last_progress = start
        last_checkpoint = start
        processed = 0
        failed = 0
        flushes = 0
        self.resolver.reset_counter()

        for channel_id in channel_ids:
            try:
                await self.resolver.resolve(channel_id)
            except Exception as e:
                failed += 1
                logger.error(
                    f"Failed to fetch funding tx for channel id {channel_id}: "
                    f"{type(e).__name__}: {e}"
                )
            processed += 1

            now = self.clock()
            if now - last_progress > self.progress_interval:
                percent = math.floor(processed / total * 10000) / 100
                logger.info(
                    f"Indexing channels funding tx {processed} of {total} ({percent}%) | "
                    f"elapsed: {round(now - start)} seconds"
                )
                last_progress = now

            if now - last_checkpoint >= self.checkpoint_interval:
                logger.debug(f"Checkpoint: saving {len(self.funding_cache)} funding txs into disk")
                if self.funding_cache.flush():
                    flushes += 1
                last_checkpoint = now

        newly_resolved = self.resolver.newly_resolved
        if newly_resolved > 0:
            logger.info(f"Indexed {newly_resolved} additional channels funding tx")
            if self.funding_cache.flush():
                flushes += 1

        if self.wallet_monitor is not None:
            await self.wallet_monitor.refresh()

        return SyncResult(
            total=total,
            processed=processed,
            newly_resolved=newly_resolved,
            failed=failed,
            flushes=flushes,
            elapsed=self.clock() - start,
        )
