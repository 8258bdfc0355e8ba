"""
Bounded in-memory cache of recently fetched blocks.

Bulk sync walks channel ids roughly in height order, so several channels
usually share a block. Instead of tracking recency per access, the cache
drops a batch of the lowest heights whenever it grows past capacity.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

BLOCKS_CACHE_MAX_SIZE = 100
BLOCKS_CACHE_EVICT_COUNT = 10


class BlockCache:
    def __init__(
        self,
        max_size: int = BLOCKS_CACHE_MAX_SIZE,
        evict_count: int = BLOCKS_CACHE_EVICT_COUNT,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if evict_count < 1:
            raise ValueError(f"evict_count must be positive, got {evict_count}")
        self.max_size = max_size
        self.evict_count = evict_count
        self._blocks: dict[int, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, height: object) -> bool:
        return height in self._blocks

    def heights(self) -> list[int]:
        return sorted(self._blocks)

    def get(self, height: int) -> dict[str, Any] | None:
        return self._blocks.get(height)

    def put(self, height: int, block: dict[str, Any]) -> None:
        self._blocks[height] = block
        self.evict_if_over_capacity()

    def evict_if_over_capacity(self) -> list[int]:
        """
        Drop the lowest heights once the cache holds more than max_size blocks.

        Returns the evicted heights (empty when under capacity).
        """
        if len(self._blocks) <= self.max_size:
            return []

        evicted = sorted(self._blocks)[: self.evict_count]
        for height in evicted:
            del self._blocks[height]
        logger.trace(f"Evicted {len(evicted)} blocks from cache ({evicted[0]}..{evicted[-1]})")
        return evicted

    def clear(self) -> None:
        self._blocks.clear()
