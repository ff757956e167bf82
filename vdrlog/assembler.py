"""VDR file assembler.

Composes the header codec and the log record codec into whole files, and
takes whole files apart again. Everything here works on bytes in memory;
reading and writing disk files lives in vdrlog.storage.

Usage:
    from vdrlog.assembler import append_record, build_file, parse_file

    data = build_file("Example Vessel", 1234567)    # 86 bytes
    data = append_record(data, 1700000000, "alarm", b"FIRE DECK 2")
    vdr = parse_file(data)
    print(vdr.header.ship_name, len(vdr))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from vdrlog.storage.format import TERMINATOR
from vdrlog.storage.header import decode_header, encode_header
from vdrlog.storage.records import LogSection, decode_log, encode_entry, encode_record
from vdrlog.utils.schema import DEFAULT_SPEED_TABLE, EventType, LogEntry, SpeedEntry, VDRFile

logger = logging.getLogger(__name__)


def encode_log(entries: Iterable[LogEntry]) -> bytes:
    """Encode log entries followed by the log terminator."""
    return b"".join(encode_entry(e) for e in entries) + TERMINATOR


def build_file(
    ship_name: str,
    imo_number: int,
    speeds: Sequence[SpeedEntry] = DEFAULT_SPEED_TABLE,
    entries: Sequence[LogEntry] = (),
) -> bytes:
    """Build the bytes of a complete VDR file.

    Without entries the result is the header only, ending in the header
    terminator, which is what a new voyage file holds.

    Args:
        ship_name: Ship name, 1-32 characters after trimming.
        imo_number: Positive IMO number.
        speeds: Speed table. Defaults to DEFAULT_SPEED_TABLE.
        entries: Log entries to write after the header, in order.
    """
    data = encode_header(ship_name, imo_number, speeds)
    if entries:
        data += encode_log(entries)
    return data


def parse_sections(data: bytes) -> tuple[VDRFile, LogSection]:
    """Parse a file, returning the model and the log section layout."""
    header, offset = decode_header(data)
    section = decode_log(data, offset)
    return VDRFile(header=header, entries=section.entries), section


def parse_file(data: bytes) -> VDRFile:
    """Parse a complete VDR file, verifying every record checksum.

    Raises:
        UnrecognizedFormatError, UnsupportedVersionError, MalformedHeaderError,
        TruncatedError, ChecksumMismatchError
    """
    vdr, _ = parse_sections(data)
    return vdr


def plan_append(data: bytes, records: Sequence[bytes]) -> tuple[int, bytes]:
    """Work out how to append encoded records to an existing file.

    The existing file is fully parsed first, so corrupt files are refused.

    Returns:
        (offset, blob): write ``blob`` at ``offset`` and truncate after it.
        ``blob`` is the records followed by the terminator; ``offset`` is the
        old log terminator, or the end of the header if the log is empty.
    """
    _, section = parse_sections(data)
    offset = section.append_offset
    return offset, b"".join(records) + TERMINATOR


def append_record(
    data: bytes,
    timestamp: int,
    event_type: EventType | int | str,
    payload: bytes = b"",
) -> bytes:
    """Return a copy of ``data`` with one more log record appended."""
    record = encode_record(timestamp, event_type, payload)
    offset, blob = plan_append(data, [record])
    logger.debug("Appending %d-byte record at offset %d", len(record), offset)
    return bytes(data[:offset]) + blob
