"""Header codec.

    "AVDR"(4) | version(1) | ship name(32) | IMO number(4) | speed table | FF FF FF FF

A header with the default five-entry speed table is 86 bytes long.
"""

from __future__ import annotations

from collections.abc import Sequence

from vdrlog.errors import (
    InvalidInputError,
    MalformedHeaderError,
    TruncatedError,
    UnrecognizedFormatError,
    UnsupportedVersionError,
)
from vdrlog.storage.fields import decode_text, decode_u32le, encode_text, encode_u32le
from vdrlog.storage.format import (
    FORMAT_VERSION,
    MAGIC,
    MAGIC_SIZE,
    SHIP_NAME_SIZE,
    SUPPORTED_VERSIONS,
    TERMINATOR,
    U32_SIZE,
    VERSION_SIZE,
)
from vdrlog.storage.speeds import decode_speed_table, encode_speed_table
from vdrlog.utils.schema import SpeedEntry, VDRHeader

# Offsets of the fixed part of the header
_VERSION_OFFSET = MAGIC_SIZE
_NAME_OFFSET = _VERSION_OFFSET + VERSION_SIZE
_IMO_OFFSET = _NAME_OFFSET + SHIP_NAME_SIZE
SPEED_TABLE_OFFSET = _IMO_OFFSET + U32_SIZE


def normalize_ship_name(name: str) -> str:
    """Trim and upper-case a ship name, rejecting empty or over-long names."""
    trimmed = name.strip()
    if not trimmed:
        raise InvalidInputError("Ship name must not be empty")
    if len(trimmed) > SHIP_NAME_SIZE:
        raise InvalidInputError(
            f"Ship name is {len(trimmed)} characters, at most {SHIP_NAME_SIZE} allowed"
        )
    if not trimmed.isascii():
        raise InvalidInputError(f"Ship name must be ASCII: {trimmed!r}")
    return trimmed.upper()


def validate_imo_number(imo_number: int) -> int:
    """Check that an IMO number is positive and fits in 32 unsigned bits."""
    if imo_number <= 0:
        raise InvalidInputError(f"IMO number must be positive, got {imo_number}")
    if imo_number > 0xFFFFFFFF:
        raise InvalidInputError(f"IMO number {imo_number} does not fit in 32 bits")
    return imo_number


def encode_header(
    ship_name: str,
    imo_number: int,
    speeds: Sequence[SpeedEntry],
) -> bytes:
    """Encode the file header including the speed table and its terminator.

    Args:
        ship_name: Ship name, 1-32 characters after trimming.
        imo_number: IMO number, must be positive.
        speeds: Speed table in operator order.

    Returns:
        Header bytes ending in the 4-byte terminator.

    Raises:
        InvalidInputError: Empty/over-long name or non-positive IMO number.
        TooManyEntriesError: More than 255 speed entries.
    """
    name = normalize_ship_name(ship_name)
    imo = validate_imo_number(imo_number)

    return b"".join((
        MAGIC,
        bytes([FORMAT_VERSION]),
        encode_text(name, SHIP_NAME_SIZE, allow_empty=False),
        encode_u32le(imo),
        encode_speed_table(speeds),
        TERMINATOR,
    ))


def decode_header(data: bytes) -> tuple[VDRHeader, int]:
    """Decode a file header.

    Returns:
        (header, offset of the first byte after the header terminator)

    Raises:
        UnrecognizedFormatError: Magic bytes are not "AVDR".
        UnsupportedVersionError: Version byte is not supported.
        TruncatedError: Data ends inside the header.
        MalformedHeaderError: The speed table is not followed by the terminator.
    """
    if len(data) < MAGIC_SIZE or data[:MAGIC_SIZE] != MAGIC:
        raise UnrecognizedFormatError(
            f"Not a VDR file: expected magic {MAGIC!r}, got {bytes(data[:MAGIC_SIZE])!r}", 0
        )

    if len(data) <= _VERSION_OFFSET:
        raise TruncatedError("Version byte missing", len(data))

    version = data[_VERSION_OFFSET]
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(version, _VERSION_OFFSET)

    if len(data) < SPEED_TABLE_OFFSET:
        raise TruncatedError(
            f"Header needs {SPEED_TABLE_OFFSET} bytes before the speed table, got {len(data)}",
            len(data),
        )

    ship_name = decode_text(data[_NAME_OFFSET:_IMO_OFFSET])
    imo_number = decode_u32le(data, _IMO_OFFSET)
    speeds, offset = decode_speed_table(data, SPEED_TABLE_OFFSET)

    end = offset + len(TERMINATOR)
    if len(data) < end:
        raise TruncatedError("Header terminator missing", offset)
    if data[offset:end] != TERMINATOR:
        raise MalformedHeaderError(
            f"Expected header terminator {TERMINATOR.hex(' ')}, "
            f"got {bytes(data[offset:end]).hex(' ')}",
            offset,
        )

    header = VDRHeader(
        ship_name=ship_name,
        imo_number=imo_number,
        speeds=speeds,
        version=version,
    )
    return header, end
