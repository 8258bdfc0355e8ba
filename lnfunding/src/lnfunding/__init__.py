"""
lnfunding - Lightning channel funding transaction resolver

Maps short channel ids to their on-chain funding transactions with a
persistent record cache and a bounded block cache, and watches one address
for unconfirmed incoming transactions.
"""

__version__ = "0.1.0"

from lnfunding.block_cache import BlockCache
from lnfunding.errors import BackendError, LnFundingError
from lnfunding.fetcher import FundingTxFetcher
from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import FundingTxRecord, SyncResult, WalletHistory, WalletMempoolTx
from lnfunding.resolver import FundingTxResolver
from lnfunding.short_channel_id import (
    channel_integer_id_to_short_id,
    decode_short_id,
    short_id_to_integer_id,
)
from lnfunding.sync import SyncOrchestrator
from lnfunding.wallet_monitor import WalletMonitor

__all__ = [
    "BackendError",
    "BlockCache",
    "FundingTxCache",
    "FundingTxFetcher",
    "FundingTxRecord",
    "FundingTxResolver",
    "LnFundingError",
    "SyncOrchestrator",
    "SyncResult",
    "WalletHistory",
    "WalletMempoolTx",
    "WalletMonitor",
    "channel_integer_id_to_short_id",
    "decode_short_id",
    "short_id_to_integer_id",
]
