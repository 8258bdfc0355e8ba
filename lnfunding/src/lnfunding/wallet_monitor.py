"""
Mempool watch for a single on-chain address.

Catching a transaction while it is still unconfirmed lets callers react
before it appears in a block. The snapshot is rebuilt from scratch on every
refresh, so transactions drop out once they confirm or get evicted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from loguru import logger

from lnfunding.backends.base import BlockchainBackend
from lnfunding.funding_cache import FundingTxCache
from lnfunding.models import WalletMempoolTx


def output_pays_address(output: dict[str, Any], address: str) -> bool:
    script_pub_key = output.get("scriptPubKey") or {}
    if script_pub_key.get("address") == address:
        return True
    # Bitcoin Core < 22 only reports the "addresses" list
    return address in (script_pub_key.get("addresses") or [])


def _entry_fee(entry: dict[str, Any]) -> Decimal | None:
    fees = entry.get("fees")
    if isinstance(fees, dict) and fees.get("base") is not None:
        return Decimal(str(fees["base"]))
    if entry.get("fee") is not None:
        return Decimal(str(entry["fee"]))
    return None


class WalletMonitor:
    def __init__(
        self,
        address: str,
        backend: BlockchainBackend,
        funding_cache: FundingTxCache,
    ):
        self.address = address
        self.backend = backend
        self.funding_cache = funding_cache
        self._snapshot: tuple[WalletMempoolTx, ...] = ()

    @property
    def snapshot(self) -> tuple[WalletMempoolTx, ...]:
        return self._snapshot

    def get_snapshot(self) -> list[WalletMempoolTx]:
        return list(self._snapshot)

    async def refresh(self) -> bool:
        """
        Rescan the mempool for transactions paying the watched address.

        On any failure the previous snapshot is kept. Returns True if the
        snapshot was replaced.
        """
        try:
            confirmed_txs = await self.backend.get_address_transactions(self.address)

            mempool_entries = await self.backend.get_raw_mempool(verbose=True)
            matches: list[WalletMempoolTx] = []
            for txid, entry in mempool_entries.items():
                raw_tx = await self.backend.get_raw_transaction(txid)
                decoded = await self.backend.decode_raw_transaction(raw_tx)
                paying = [
                    out for out in decoded.get("vout", []) if output_pays_address(out, self.address)
                ]
                if not paying:
                    continue
                matches.append(
                    WalletMempoolTx(
                        txid=txid,
                        amount=sum((Decimal(str(out["value"])) for out in paying), Decimal(0)),
                        fee=_entry_fee(entry),
                        vsize=entry.get("vsize"),
                    )
                )

            self._snapshot = tuple(matches)

            if matches:
                logger.info(
                    f"Faster mempool detection: {len(matches)} unconfirmed incoming TX(s) "
                    f"detected to wallet {self.address}"
                )
                for tx in matches:
                    logger.debug(
                        f"Mempool TX {tx.txid}: {tx.amount} BTC "
                        f"(fee: {tx.fee} BTC, vsize: {tx.vsize})"
                    )

            self.funding_cache.set_wallet_history(self.address, confirmed_txs)
            return True

        except Exception as e:
            logger.error(f"Failed to monitor wallet {self.address}: {e}")
            return False
