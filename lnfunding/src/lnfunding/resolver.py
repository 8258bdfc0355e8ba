"""
Channel funding transaction resolution.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from lnfunding.backends.base import BlockchainBackend
from lnfunding.block_cache import BlockCache
from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import FundingTxRecord
from lnfunding.short_channel_id import channel_integer_id_to_short_id, decode_short_id


class FundingTxResolver:
    """
    Looks up the funding transaction of a channel from its short channel id.

    The persistent cache is checked first; on a miss the block is taken from
    the block cache or fetched from the backend, and the transaction at the
    encoded index is fetched and decoded. Backend exceptions are not caught
    here, the caller decides their scope.
    """

    def __init__(
        self,
        backend: BlockchainBackend,
        funding_cache: FundingTxCache,
        block_cache: BlockCache,
    ):
        self.backend = backend
        self.funding_cache = funding_cache
        self.block_cache = block_cache
        self.newly_resolved = 0

    def reset_counter(self) -> None:
        self.newly_resolved = 0

    async def resolve(self, channel_id: str | int) -> FundingTxRecord | None:
        channel_id = channel_integer_id_to_short_id(channel_id)

        cached = self.funding_cache.get(channel_id)
        if cached is not None:
            return cached

        height, tx_index, output_index = decode_short_id(channel_id)

        block = await self._get_block(height)
        txids = block.get("tx") or []
        if tx_index < 0 or tx_index >= len(txids):
            self._log_not_found(channel_id)
            return None

        txid = txids[tx_index]
        raw_tx = await self.backend.get_raw_transaction(txid)
        tx = await self.backend.decode_raw_transaction(raw_tx)

        outputs = tx.get("vout") if tx else None
        if (
            not outputs
            or output_index < 0
            or len(outputs) < output_index + 1
            or outputs[output_index].get("value") is None
        ):
            self._log_not_found(channel_id)
            return None

        record = FundingTxRecord(
            timestamp=block["time"],
            txid=txid,
            value=outputs[output_index]["value"],
        )
        self.funding_cache.put(channel_id, record)
        self.newly_resolved += 1
        return record

    async def _get_block(self, height: int) -> dict[str, Any]:
        block = self.block_cache.get(height)
        if block is None:
            block_hash = await self.backend.get_block_hash(height)
            block = await self.backend.get_block(block_hash, 1)
            self.block_cache.put(height, block)
        return block

    @staticmethod
    def _log_not_found(channel_id: str) -> None:
        logger.error(
            f"Cannot find blockchain funding tx for channel id {channel_id}. "
            "Possible reasons are: bitcoin backend timeout or the channel shortId is not valid"
        )
