"""Append-only writer for VDR .dat files.

New files get the header, speed table and header terminator. Each append
overwrites the current log terminator with the new records and writes the
terminator again right after them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from vdrlog.assembler import plan_append
from vdrlog.storage.header import encode_header
from vdrlog.storage.records import encode_record, split_payload
from vdrlog.utils.schema import DEFAULT_SPEED_TABLE, EventType, LogEntry, SpeedEntry

logger = logging.getLogger(__name__)

# One lock per file so that writers in the same process never interleave
# appends to the same terminator.
_file_locks: dict[Path, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.Lock()
        return lock


class VDRWriter:
    """Creates VDR files and appends log records to them.

    Thread-safe within a process: appends to the same path are serialized.
    File handles are scoped to each call and always closed.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def create(
        self,
        ship_name: str,
        imo_number: int,
        speeds: Sequence[SpeedEntry] = DEFAULT_SPEED_TABLE,
        overwrite: bool = False,
    ) -> int:
        """Write a new file holding only the header.

        Args:
            ship_name: Ship name, 1-32 characters after trimming.
            imo_number: Positive IMO number.
            speeds: Speed table for this voyage.
            overwrite: Replace an existing file instead of failing.

        Returns:
            Number of bytes written.

        Raises:
            FileExistsError: The file exists and ``overwrite`` is False.
        """
        data = encode_header(ship_name, imo_number, speeds)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            with open(self.path, "wb" if overwrite else "xb") as f:
                f.write(data)
        logger.info("Created %s for %s (%d bytes)", self.path, ship_name.strip().upper(), len(data))
        return len(data)

    def append(self, records: Sequence[bytes]) -> int:
        """Append already encoded records.

        The whole file is parsed before writing, so a corrupt file raises the
        decode error and is left untouched.

        Returns:
            Offset at which the first record was written.
        """
        if not records:
            raise ValueError("append() requires at least one record")

        with self._lock:
            with open(self.path, "r+b") as f:
                data = f.read()
                offset, blob = plan_append(data, records)
                f.seek(offset)
                f.write(blob)
                f.truncate()
                f.flush()

        logger.debug("Appended %d record(s) to %s at offset %d", len(records), self.path, offset)
        return offset

    def write_event(
        self,
        timestamp: int,
        event_type: EventType | int | str,
        payload: bytes = b"",
    ) -> list[LogEntry]:
        """Append one event, split over several records if the payload is long.

        Every record of a split event shares the timestamp and event type.

        Returns:
            The entries written, with their file offsets.
        """
        kind = EventType.parse(event_type)
        chunks = split_payload(bytes(payload))
        records = [encode_record(timestamp, kind, chunk) for chunk in chunks]
        offset = self.append(records)

        entries = []
        for chunk, record in zip(chunks, records):
            entries.append(
                LogEntry(timestamp=timestamp, event_type=kind, payload=chunk, offset=offset)
            )
            offset += len(record)
        return entries
