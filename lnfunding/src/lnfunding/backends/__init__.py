"""
Blockchain backend implementations.

Available backends:
- BitcoinCoreBackend: Full node via Bitcoin Core RPC (needs txindex=1), with
  address history from an Esplora-compatible REST API
"""

from lnfunding.backends.base import BlockchainBackend
from lnfunding.backends.bitcoin_core import BitcoinCoreBackend

__all__ = [
    "BitcoinCoreBackend",
    "BlockchainBackend",
]
