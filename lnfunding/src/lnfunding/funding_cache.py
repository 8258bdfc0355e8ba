"""
Persistent cache of resolved channel funding transactions.

Records are permanently valid once resolved, so the cache only grows. It is
loaded once at startup and written back wholesale on every flush. A missing
or corrupt file is never fatal: everything in it can be rebuilt from the
blockchain.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from lnfunding.models import CacheSnapshot, FundingTxRecord, WalletHistory

CACHE_FILE_NAME = "ln-funding-txs-cache.json"

_SNAPSHOT_KEYS = {"channels", "wallet_history"}


class FundingTxCache:
    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._records: dict[str, FundingTxRecord] = {}
        self._wallet_history: WalletHistory | None = None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._records

    def get(self, channel_id: str) -> FundingTxRecord | None:
        return self._records.get(channel_id)

    def put(self, channel_id: str, record: FundingTxRecord) -> None:
        self._records[channel_id] = record

    @property
    def wallet_history(self) -> WalletHistory | None:
        return self._wallet_history

    def set_wallet_history(self, address: str, transactions: list[dict[str, Any]]) -> None:
        self._wallet_history = WalletHistory(address=address, transactions=transactions)

    def load(self) -> int:
        """
        Load the snapshot file, replacing the in-memory state.

        A parse or validation failure leaves the cache empty. Returns the
        number of channel records imported.
        """
        self._records = {}
        self._wallet_history = None

        if not self.path.exists():
            logger.debug(f"No funding txs disk cache at {self.path}")
            return 0

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"), parse_float=Decimal)
            snapshot = _parse_snapshot(raw)
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(
                f"Unable to parse channels funding txs disk cache {self.path}, "
                f"starting from scratch: {e}"
            )
            return 0

        self._records = dict(snapshot.channels)
        self._wallet_history = snapshot.wallet_history
        logger.debug(f"Imported {len(self._records)} funding tx amounts from the disk cache")
        return len(self._records)

    def flush(self) -> bool:
        """
        Write the full cache to disk, overwriting the previous snapshot.

        Returns False (after logging) if the write failed.

        The write is synchronous: it blocks the event loop, and every task on
        it, until the new file is in place.
        """
        snapshot = CacheSnapshot(channels=self._records, wallet_history=self._wallet_history)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot.model_dump_json(), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to save funding txs cache to {self.path}: {e}")
            return False

        logger.debug(f"Saved {len(self._records)} funding txs cache into disk")
        return True


def _parse_snapshot(raw: Any) -> CacheSnapshot:
    if not isinstance(raw, dict):
        raise ValueError(f"expected a JSON object, got {type(raw).__name__}")

    if set(raw) <= _SNAPSHOT_KEYS:
        return CacheSnapshot.model_validate(raw)

    # Legacy flat layout: channel ids and the watched address share one object
    channels: dict[str, FundingTxRecord] = {}
    wallet_history = None
    for key, value in raw.items():
        if isinstance(value, list):
            wallet_history = WalletHistory(address=key, transactions=value)
        else:
            channels[key] = FundingTxRecord.model_validate(value)
    return CacheSnapshot(channels=channels, wallet_history=wallet_history)
