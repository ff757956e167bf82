"""Log record codec.

Each record is:

    timestamp(4, u32le) | type+length(1) | payload(length) | checksum(1)

The type/length byte keeps the event type in its high EVENT_TYPE_BITS and the
payload length in the remaining low bits. The checksum is the XOR of every
byte before it in the record, from the first timestamp byte through the last
payload byte. The log section ends with the 4-byte terminator; a timestamp of
0xFFFFFFFF is never written because it would read as the terminator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from vdrlog.errors import (
    ChecksumMismatchError,
    InvalidInputError,
    PayloadTooLargeError,
    TruncatedError,
)
from vdrlog.storage.fields import decode_u32le, encode_u32le, xor_checksum
from vdrlog.storage.format import (
    LENGTH_BITS,
    LENGTH_MASK,
    MAX_PAYLOAD_SIZE,
    MAX_TIMESTAMP,
    TERMINATOR,
    U32_SIZE,
)
from vdrlog.utils.schema import EventType, LogEntry

logger = logging.getLogger(__name__)


def pack_type_length(event_type: EventType | int, length: int) -> int:
    """Combine an event type and payload length into one byte."""
    if not 0 <= length <= MAX_PAYLOAD_SIZE:
        raise PayloadTooLargeError(
            f"Payload is {length} bytes, records hold at most {MAX_PAYLOAD_SIZE}"
        )
    return (int(EventType(event_type)) << LENGTH_BITS) | length


def unpack_type_length(value: int) -> tuple[EventType, int]:
    """Split a type/length byte into (event type, payload length)."""
    return EventType(value >> LENGTH_BITS), value & LENGTH_MASK


def encode_record(
    timestamp: int,
    event_type: EventType | int | str,
    payload: bytes = b"",
) -> bytes:
    """Encode a single log record, checksum included.

    Args:
        timestamp: Unix time in seconds, 0 to 0xFFFFFFFE.
        event_type: Event kind.
        payload: Up to MAX_PAYLOAD_SIZE bytes.

    Raises:
        PayloadTooLargeError: Payload does not fit in the length bits.
        InvalidInputError: Timestamp out of range or unknown event type.
    """
    if not 0 <= timestamp <= MAX_TIMESTAMP:
        raise InvalidInputError(
            f"Timestamp {timestamp} outside 0..{MAX_TIMESTAMP}"
        )
    try:
        kind = EventType.parse(event_type)
    except ValueError as e:
        raise InvalidInputError(f"Unknown event type {event_type}") from e

    payload = bytes(payload)
    body = encode_u32le(timestamp) + bytes([pack_type_length(kind, len(payload))]) + payload
    return body + bytes([xor_checksum(body)])


def encode_entry(entry: LogEntry) -> bytes:
    return encode_record(entry.timestamp, entry.event_type, entry.payload)


def is_terminator(data: bytes, offset: int = 0) -> bool:
    return data[offset:offset + len(TERMINATOR)] == TERMINATOR


def decode_record(data: bytes, offset: int = 0) -> tuple[LogEntry | None, int]:
    """Decode the record at ``offset``.

    Returns:
        (entry, offset after the record), or (None, offset) when the bytes at
        ``offset`` are the terminator, marking the end of the log stream.

    Raises:
        TruncatedError: Data ends inside the record or before a terminator.
        ChecksumMismatchError: Stored checksum does not match the record bytes.
    """
    if is_terminator(data, offset):
        return None, offset

    if len(data) - offset < U32_SIZE + 1:
        raise TruncatedError(
            f"Log stream ends without terminator, {max(len(data) - offset, 0)} stray bytes",
            offset,
        )

    timestamp = decode_u32le(data, offset)
    type_length = data[offset + U32_SIZE]
    event_type, length = unpack_type_length(type_length)

    payload_start = offset + U32_SIZE + 1
    checksum_pos = payload_start + length
    if len(data) <= checksum_pos:
        raise TruncatedError(
            f"Record declares a {length}-byte payload, "
            f"only {max(len(data) - payload_start, 0)} bytes remain",
            payload_start,
        )

    stored = data[checksum_pos]
    computed = xor_checksum(data[offset:checksum_pos])
    if stored != computed:
        raise ChecksumMismatchError(stored, computed, offset)

    entry = LogEntry(
        timestamp=timestamp,
        event_type=event_type,
        payload=bytes(data[payload_start:checksum_pos]),
        offset=offset,
    )
    return entry, checksum_pos + 1


@dataclass
class LogSection:
    """Result of decoding a whole log stream.

    ``terminator_offset`` is where the closing terminator starts, or None if
    the log is physically absent (data ended exactly where the log begins).
    """

    entries: list[LogEntry] = field(default_factory=list)
    start: int = 0
    terminator_offset: int | None = None
    trailing_bytes: int = 0

    @property
    def append_offset(self) -> int:
        """Where the next record must be written."""
        if self.terminator_offset is None:
            return self.start
        return self.terminator_offset


def decode_log(data: bytes, offset: int = 0) -> LogSection:
    """Decode every record from ``offset`` up to the terminator.

    A log that is empty may be absent altogether; any other log must be
    closed by the terminator. Bytes after the terminator are reported in
    ``trailing_bytes`` and otherwise ignored.
    """
    section = LogSection(start=offset)
    if offset == len(data):
        return section

    pos = offset
    while True:
        entry, pos = decode_record(data, pos)
        if entry is None:
            break
        section.entries.append(entry)

    section.terminator_offset = pos
    section.trailing_bytes = len(data) - (pos + len(TERMINATOR))
    if section.trailing_bytes:
        logger.warning(
            "Ignoring %d bytes after log terminator at offset %d",
            section.trailing_bytes, pos,
        )
    return section


def split_payload(payload: bytes, size: int = MAX_PAYLOAD_SIZE) -> list[bytes]:
    """Split a payload into chunks that each fit in one record.

    An empty payload yields a single empty chunk.
    """
    if size <= 0 or size > MAX_PAYLOAD_SIZE:
        raise ValueError(f"Chunk size must be 1..{MAX_PAYLOAD_SIZE}, got {size}")
    if not payload:
        return [b""]
    return [payload[i:i + size] for i in range(0, len(payload), size)]
