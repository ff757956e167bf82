"""Fixed-width field codec.

Text fields are upper-cased ASCII, right-padded with spaces to an exact
width. Integers are unsigned 32-bit little-endian.
"""

from __future__ import annotations

import struct
from functools import reduce
from operator import xor

from vdrlog.errors import InvalidInputError, TruncatedError
from vdrlog.storage.format import PAD_BYTE, TEXT_ENCODING, U32_SIZE

_U32 = struct.Struct("<I")


def encode_text(
    text: str,
    width: int,
    *,
    allow_empty: bool = True,
    truncate: bool = False,
) -> bytes:
    """Encode text into exactly ``width`` bytes.

    Args:
        text: Text to encode. Upper-cased before encoding.
        width: Exact output size in bytes.
        allow_empty: If False, empty text raises InvalidInputError.
        truncate: If True, text longer than ``width`` loses its trailing
                  characters. Otherwise over-length text is rejected.

    Returns:
        ``width`` bytes, space padded on the right.

    Raises:
        InvalidInputError: Empty text when disallowed, non-ASCII text, or
            over-length text without ``truncate``.
    """
    if not text and not allow_empty:
        raise InvalidInputError("Text field must not be empty")

    try:
        raw = text.upper().encode(TEXT_ENCODING)
    except UnicodeEncodeError as e:
        raise InvalidInputError(f"Text field must be ASCII: {text!r}") from e

    if len(raw) > width:
        if not truncate:
            raise InvalidInputError(
                f"Text {text!r} is {len(raw)} characters, field holds {width}"
            )
        raw = raw[:width]

    return raw.ljust(width, PAD_BYTE)


def decode_text(data: bytes) -> str:
    """Decode a padded text field. Never fails; bad bytes become U+FFFD."""
    return bytes(data).rstrip(PAD_BYTE).decode(TEXT_ENCODING, errors="replace")


def encode_u32le(value: int) -> bytes:
    """Encode an unsigned 32-bit integer, little-endian."""
    try:
        return _U32.pack(value)
    except struct.error as e:
        raise InvalidInputError(f"Value {value} does not fit in 32 unsigned bits") from e


def decode_u32le(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 32-bit little-endian integer at ``offset``."""
    if len(data) - offset < U32_SIZE:
        raise TruncatedError(
            f"Need {U32_SIZE} bytes for integer, {max(len(data) - offset, 0)} remain",
            offset,
        )
    return _U32.unpack_from(data, offset)[0]


def xor_checksum(data: bytes) -> int:
    """XOR of every byte in ``data`` (0 for empty input)."""
    return reduce(xor, data, 0)
