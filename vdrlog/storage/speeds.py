"""Speed table codec.

    count(1) | [knots(1) | name(7)] * count

Entries keep the order they are given in, which is the operator's order
(normally slowest to fastest).
"""

from __future__ import annotations

from collections.abc import Sequence

from vdrlog.errors import TooManyEntriesError, TruncatedError
from vdrlog.storage.fields import decode_text, encode_text
from vdrlog.storage.format import (
    MAX_SPEED_ENTRIES,
    SPEED_COUNT_SIZE,
    SPEED_ENTRY_SIZE,
    SPEED_NAME_SIZE,
)
from vdrlog.utils.schema import SpeedEntry


def encode_speed_table(entries: Sequence[SpeedEntry]) -> bytes:
    """Encode a speed table, count byte first."""
    if len(entries) > MAX_SPEED_ENTRIES:
        raise TooManyEntriesError(
            f"Speed table has {len(entries)} entries, at most {MAX_SPEED_ENTRIES} allowed"
        )

    out = bytearray([len(entries)])
    for entry in entries:
        out.append(entry.knots)
        out += encode_text(entry.name, SPEED_NAME_SIZE)
    return bytes(out)


def decode_speed_table(data: bytes, offset: int = 0) -> tuple[list[SpeedEntry], int]:
    """Decode a speed table starting at ``offset``.

    Returns:
        (entries, offset of the first byte after the table)
    """
    if len(data) - offset < SPEED_COUNT_SIZE:
        raise TruncatedError("Missing speed table count", offset)

    count = data[offset]
    start = offset + SPEED_COUNT_SIZE
    end = start + count * SPEED_ENTRY_SIZE
    if len(data) < end:
        raise TruncatedError(
            f"Speed table declares {count} entries ({count * SPEED_ENTRY_SIZE} bytes), "
            f"only {len(data) - start} bytes remain",
            start,
        )

    entries = []
    for pos in range(start, end, SPEED_ENTRY_SIZE):
        name = decode_text(data[pos + 1:pos + SPEED_ENTRY_SIZE])
        entries.append(SpeedEntry(knots=data[pos], name=name))
    return entries, end
