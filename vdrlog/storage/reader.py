"""Reader for VDR .dat files.

Reads the whole file once on open and verifies every record checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from vdrlog.assembler import parse_sections
from vdrlog.storage.records import LogSection
from vdrlog.utils.schema import LogEntry, VDRFile, VDRHeader

logger = logging.getLogger(__name__)


class Reader:
    """Reads and validates a .dat recording.

    Decode errors (bad magic, unsupported version, truncation, checksum
    mismatch) propagate from open(); nothing is repaired.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"VDR file not found: {self.path}")

        self._vdr: VDRFile | None = None
        self._section: LogSection | None = None
        self._size = 0

    def open(self) -> None:
        """Read and parse the file."""
        with open(self.path, "rb") as f:
            data = f.read()
        self._vdr, self._section = parse_sections(data)
        self._size = len(data)
        logger.debug(
            "Read %s: %d bytes, %d log entries", self.path, self._size, len(self._vdr.entries)
        )

    def close(self) -> None:
        """Drop the parsed contents."""
        self._vdr = None
        self._section = None

    def __enter__(self) -> Reader:
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def vdr(self) -> VDRFile:
        if self._vdr is None:
            raise RuntimeError("Reader not opened. Call .open() first.")
        return self._vdr

    @property
    def header(self) -> VDRHeader:
        return self.vdr.header

    @property
    def entries(self) -> list[LogEntry]:
        return self.vdr.entries

    @property
    def section(self) -> LogSection:
        """Layout of the log section (start, terminator offset)."""
        if self._section is None:
            raise RuntimeError("Reader not opened. Call .open() first.")
        return self._section

    @property
    def size(self) -> int:
        """File size in bytes when it was read."""
        return self._size
