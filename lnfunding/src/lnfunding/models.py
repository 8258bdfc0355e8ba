"""
Data models for resolved funding transactions and the wallet watch.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class FundingTxRecord(BaseModel):
    """Funding transaction of a channel, as found on chain."""

    timestamp: int = Field(..., ge=0)  # Block time (unix seconds)
    txid: str = Field(..., min_length=1)
    value: Decimal  # Funding output amount in BTC

    model_config = {"frozen": True}


class WalletHistory(BaseModel):
    """Last known confirmed history of the watched address, stored verbatim."""

    address: str
    transactions: list[dict[str, Any]] = Field(default_factory=list)


class CacheSnapshot(BaseModel):
    """On-disk layout of the funding tx cache file."""

    channels: dict[str, FundingTxRecord] = Field(default_factory=dict)
    wallet_history: WalletHistory | None = None


@dataclass(frozen=True)
class WalletMempoolTx:
    """Unconfirmed transaction paying the watched address"""

    txid: str
    amount: Decimal  # Sum of outputs paying the watched address (BTC)
    fee: Decimal | None  # BTC
    vsize: int | None


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one batch run"""

    total: int
    processed: int
    newly_resolved: int
    failed: int
    flushes: int  # Successful writes only
    elapsed: float
