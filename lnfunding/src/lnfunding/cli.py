"""
Lightning funding tx CLI - resolve channel funding transactions and watch a wallet address.

Connection and cache settings come from the environment (or .env), see
lnfunding.config.Settings.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import typer
from loguru import logger

from lnfunding.config import Settings, get_settings
from lnfunding.short_channel_id import channel_integer_id_to_short_id, short_id_to_integer_id

app = typer.Typer(
    name="lnfunding",
    help="Lightning channel funding transaction resolver",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def build_fetcher(settings: Settings):
    from lnfunding.backends.bitcoin_core import BitcoinCoreBackend
    from lnfunding.fetcher import FundingTxFetcher

    backend = BitcoinCoreBackend(
        rpc_url=settings.rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        address_api_url=settings.address_api_url or None,
        rpc_timeout=settings.rpc_timeout,
    )
    return FundingTxFetcher(
        backend,
        settings.cache_file,
        watched_address=settings.watched_address,
        block_cache_size=settings.block_cache_size,
        block_cache_evict_count=settings.block_cache_evict_count,
        progress_interval=settings.logger_update_interval,
        checkpoint_interval=settings.checkpoint_interval,
    )


def read_channel_ids(channel_ids: list[str], ids_file: Path | None) -> list[str]:
    """Merge ids given as arguments with ids listed one per line in a file."""
    ids = list(channel_ids)
    if ids_file is not None:
        for line in ids_file.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                ids.append(line)
    return ids


@app.command()
def sync(
    channel_ids: list[str] = typer.Argument(None, help="Channel ids (short or integer form)"),
    ids_file: Path | None = typer.Option(
        None, "--ids-file", "-f", help="File with one channel id per line"
    ),
    interval: float = typer.Option(
        0.0, "--interval", "-i", help="Repeat every N seconds (0 runs once)"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Index funding transactions for a list of channels."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    if ids_file is not None and not ids_file.exists():
        logger.error(f"Channel id file not found: {ids_file}")
        raise typer.Exit(1)

    ids = read_channel_ids(channel_ids or [], ids_file)
    if not ids:
        logger.error("No channel ids given")
        raise typer.Exit(1)

    asyncio.run(_sync(settings, channel_ids or [], ids_file, interval))


async def _sync(
    settings: Settings, channel_ids: list[str], ids_file: Path | None, interval: float
) -> None:
    fetcher = build_fetcher(settings)
    try:
        await fetcher.init()
        while True:
            # Re-read the file each round so upstream can update the list
            ids = read_channel_ids(channel_ids, ids_file)
            result = await fetcher.fetch_channels_funding_txs(ids)
            if result is not None:
                logger.info(
                    f"Batch done: {result.processed}/{result.total} processed, "
                    f"{result.newly_resolved} new, {result.failed} failed "
                    f"in {result.elapsed:.1f}s"
                )
            if interval <= 0:
                break
            await asyncio.sleep(interval)
    finally:
        await fetcher.close()


@app.command()
def resolve(
    channel_id: str = typer.Argument(..., help="Channel id (short or integer form)"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Resolve the funding transaction of one channel."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    found = asyncio.run(_resolve(settings, channel_id, as_json))
    if not found:
        raise typer.Exit(1)


async def _resolve(settings: Settings, channel_id: str, as_json: bool) -> bool:
    fetcher = build_fetcher(settings)
    try:
        fetcher.funding_cache.load()
        record = await fetcher.fetch_channel_open_tx(channel_id)
        if record is None:
            return False
        if fetcher.resolver.newly_resolved:
            fetcher.funding_cache.flush()

        if as_json:
            print(record.model_dump_json(indent=2))
        else:
            print(f"Channel:   {channel_integer_id_to_short_id(channel_id)}")
            print(f"Txid:      {record.txid}")
            print(f"Value:     {record.value} BTC")
            print(f"Timestamp: {record.timestamp}")
        return True
    finally:
        await fetcher.close()


@app.command()
def wallet_status(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Show unconfirmed transactions paying the watched address."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    if not settings.watched_address:
        logger.error("WATCHED_ADDRESS is not set")
        raise typer.Exit(1)

    asyncio.run(_wallet_status(settings, as_json))


async def _wallet_status(settings: Settings, as_json: bool) -> None:
    fetcher = build_fetcher(settings)
    try:
        await fetcher.init()
        txs = fetcher.get_wallet_mempool_status()
        if as_json:
            data = [
                {
                    "txid": tx.txid,
                    "amount": str(tx.amount),
                    "fee": None if tx.fee is None else str(tx.fee),
                    "vsize": tx.vsize,
                }
                for tx in txs
            ]
            print(json.dumps(data, indent=2))
            return

        print(f"Watched address: {settings.watched_address}")
        print(f"Unconfirmed incoming TXs: {len(txs)}")
        for tx in txs:
            print(f"  {tx.txid}  {tx.amount} BTC  fee {tx.fee} BTC  vsize {tx.vsize}")
    finally:
        await fetcher.close()


@app.command()
def convert(
    channel_id: str = typer.Argument(..., help="Channel id (short or integer form)"),
) -> None:
    """Print both the short and the integer form of a channel id."""
    try:
        short_id = channel_integer_id_to_short_id(channel_id)
        integer_id = short_id_to_integer_id(short_id)
    except ValueError:
        typer.echo(f"Invalid channel id: {channel_id}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Short id:   {short_id}")
    typer.echo(f"Integer id: {integer_id}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
