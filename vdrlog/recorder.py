"""Recorder — the main interface for writing voyage data.

Usage:
    from vdrlog import Recorder

    rec = Recorder("voyage.dat", ship_name="Example Vessel", imo_number=1234567)
    rec.start()

    rec.log("speed", b"HALF")
    rec.log("alarm", "BILGE PUMP 2 HIGH LEVEL")

Or as a context manager:

    with Recorder("voyage.dat", ship_name="Example Vessel", imo_number=1234567) as rec:
        rec.log("position", b"5130.12N00005.43W")

Starting a recorder on an existing file appends to it; the header already
in the file is kept.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from vdrlog.errors import InvalidInputError
from vdrlog.storage.format import DEFAULT_FILENAME
from vdrlog.storage.reader import Reader
from vdrlog.storage.writer import VDRWriter
from vdrlog.utils.schema import DEFAULT_SPEED_TABLE, EventType, LogEntry, SpeedEntry, VDRHeader


class Recorder:
    """Records timestamped events to a .dat file.

    Every log() call is written through to disk immediately, so a crash
    loses at most the event being written.

    Args:
        path: Output path. Defaults to voyage_data_recorder.dat in the
              current directory.
        ship_name: Ship name, required when the file does not exist yet.
        imo_number: IMO number, required when the file does not exist yet.
        speeds: Speed table for a new file. Defaults to DEFAULT_SPEED_TABLE.
        clock: Returns the current Unix time; used when log() gets no timestamp.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        ship_name: str | None = None,
        imo_number: int | None = None,
        speeds: Sequence[SpeedEntry] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path) if path is not None else Path(DEFAULT_FILENAME)
        self._ship_name = ship_name
        self._imo_number = imo_number
        self._speeds = list(speeds) if speeds is not None else list(DEFAULT_SPEED_TABLE)
        self._clock = clock

        self._writer: VDRWriter | None = None
        self._header: VDRHeader | None = None
        self._entry_count = 0
        self._started = False

    def start(self) -> None:
        """Start recording. Creates the file or validates the existing one."""
        if self._started:
            raise RuntimeError("Recording already started.")

        writer = VDRWriter(self._path)
        if self._path.exists():
            with Reader(self._path) as reader:
                self._header = reader.header
                self._entry_count = len(reader.entries)
        else:
            if not self._ship_name or not self._imo_number:
                raise ValueError(
                    f"{self._path} does not exist; ship_name and imo_number are "
                    "required to create it."
                )
            writer.create(self._ship_name, self._imo_number, self._speeds)
            with Reader(self._path) as reader:
                self._header = reader.header

        self._writer = writer
        self._started = True

    def log(
        self,
        event_type: EventType | int | str,
        payload: bytes | str = b"",
        timestamp: int | None = None,
    ) -> list[LogEntry]:
        """Append an event to the log.

        Payloads longer than one record can hold are split into consecutive
        records with the same timestamp and type.

        Args:
            event_type: Event kind, e.g. EventType.ALARM or "alarm".
            payload: Raw bytes, or ASCII text.
            timestamp: Unix seconds. Defaults to the recorder clock.

        Returns:
            The entries written.

        Example:
            rec.log("engine", b"RPM 1450", timestamp=1700000000)
        """
        if not self._started:
            self.start()

        if isinstance(payload, str):
            try:
                payload = payload.encode("ascii")
            except UnicodeEncodeError as e:
                raise InvalidInputError(f"Text payload must be ASCII: {payload!r}") from e
        if timestamp is None:
            timestamp = int(self._clock())

        assert self._writer is not None
        entries = self._writer.write_event(timestamp, event_type, payload)
        self._entry_count += len(entries)
        return entries

    def stop(self) -> None:
        """Stop recording. The file is already complete on disk."""
        self._started = False
        self._writer = None

    @property
    def header(self) -> VDRHeader:
        if self._header is None:
            raise RuntimeError("Recorder not started. Call start() first.")
        return self._header

    @property
    def num_entries(self) -> int:
        """Number of log records in the file."""
        return self._entry_count

    @property
    def path(self) -> Path:
        """Output file path."""
        return self._path

    # Context manager support
    def __enter__(self) -> Recorder:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._started:
            self.stop()

    def __repr__(self) -> str:
        status = "recording" if self._started else "idle"
        return f"Recorder(path='{self._path}', entries={self._entry_count}, status={status})"
