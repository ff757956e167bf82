"""Exceptions raised by the VDR codec.

Every codec failure derives from VDRError, which is a ValueError so callers
that already guard against bad input keep working.
"""

from __future__ import annotations


class VDRError(ValueError):
    """Base class for all VDR encode/decode failures."""


class InvalidInputError(VDRError):
    """A value cannot be encoded (empty name, zero IMO number, bad text)."""


class TooManyEntriesError(VDRError):
    """The speed table has more entries than the 1-byte count allows."""


class PayloadTooLargeError(VDRError):
    """A log payload does not fit in the length bits of the type byte."""


class DecodeError(VDRError):
    """Base class for failures while parsing bytes.

    Args:
        message: Human readable description.
        offset: Byte offset where the problem was detected, if known.
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)
        self.offset = offset


class UnrecognizedFormatError(DecodeError):
    """The magic bytes are not "AVDR"."""


class UnsupportedVersionError(DecodeError):
    """The version byte is not one this library can read."""

    def __init__(self, version: int, offset: int | None = None) -> None:
        super().__init__(f"Unsupported format version {version}", offset)
        self.version = version


class MalformedHeaderError(DecodeError):
    """The header is not followed by the terminator."""


class TruncatedError(DecodeError):
    """Fewer bytes remain than a field declares."""


class ChecksumMismatchError(DecodeError):
    """A log record's stored checksum disagrees with the recomputed one."""

    def __init__(self, stored: int, computed: int, offset: int | None = None) -> None:
        super().__init__(
            f"Checksum mismatch: stored 0x{stored:02X}, computed 0x{computed:02X}",
            offset,
        )
        self.stored = stored
        self.computed = computed
