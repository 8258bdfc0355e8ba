"""
Short channel id encoding (BOLT #7).

A short channel id packs the funding output location into 64 bits:
3 bytes block height, 3 bytes transaction index, 2 bytes output index.
The human readable form is "<height>x<tx_index>x<output_index>".
"""

from __future__ import annotations

SHORT_ID_SEPARATOR = "x"


def channel_integer_id_to_short_id(channel_id: str | int) -> str:
    """
    Normalize a channel id to its "HxTxO" form.

    Ids already in short form are returned unchanged.
    """
    channel_id = str(channel_id)
    if SHORT_ID_SEPARATOR in channel_id:
        return channel_id

    n = int(channel_id)
    parts = (n >> 40, (n >> 16) & 0xFFFFFF, n & 0xFFFF)
    return SHORT_ID_SEPARATOR.join(str(part) for part in parts)


def short_id_to_integer_id(short_id: str) -> int:
    """Inverse of channel_integer_id_to_short_id."""
    height, tx_index, output_index = decode_short_id(short_id)
    return (height << 40) | (tx_index << 16) | output_index


def decode_short_id(short_id: str) -> tuple[int, int, int]:
    """
    Split a short channel id into (block height, tx index, output index).

    No range checks: an id that does not split into three integers raises
    ValueError from the conversion.
    """
    height, tx_index, output_index = short_id.split(SHORT_ID_SEPARATOR)
    return int(height), int(tx_index), int(output_index)
