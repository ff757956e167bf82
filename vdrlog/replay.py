"""Replay — the main interface for reading voyage data.

Usage:
    from vdrlog import Replay

    r = Replay("voyage_data_recorder.dat")

    print(r)                     # Summary
    print(r.ship_name)           # 'EXAMPLE VESSEL'
    print(r.speeds)              # Speed table
    print(r[0])                  # First log entry
    print(r[-5:])                # Last five entries
    print(r.where("alarm"))      # Entries of one type
    print(r.timestamps)          # numpy array of record times
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, overload

import numpy as np

from vdrlog.storage.reader import Reader
from vdrlog.utils.schema import EventType, LogEntry, SpeedEntry, VDRHeader


class Replay:
    """Read and navigate a .dat voyage recording.

    The file is parsed and every checksum verified on construction.

    Args:
        path: Path to a .dat file.
    """

    def __init__(self, path: str | Path) -> None:
        self._reader = Reader(path)
        self._reader.open()

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> Replay:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # --- Properties ---

    @property
    def path(self) -> Path:
        return self._reader.path

    @property
    def header(self) -> VDRHeader:
        """Ship identity and speed table."""
        return self._reader.header

    @property
    def ship_name(self) -> str:
        return self.header.ship_name

    @property
    def imo_number(self) -> int:
        return self.header.imo_number

    @property
    def version(self) -> int:
        return self.header.version

    @property
    def speeds(self) -> list[SpeedEntry]:
        return self.header.speeds

    @property
    def entries(self) -> list[LogEntry]:
        """All log entries in append order."""
        return self._reader.entries

    @property
    def num_entries(self) -> int:
        return len(self.entries)

    @property
    def size(self) -> int:
        """File size in bytes."""
        return self._reader.size

    @property
    def timestamps(self) -> np.ndarray:
        """Record timestamps as a uint32 array, in append order."""
        return np.array([e.timestamp for e in self.entries], dtype=np.uint32)

    # --- Data Access ---

    def where(self, event_type: str | int | EventType | None = None) -> list[LogEntry]:
        """Filter entries by event type."""
        return self._reader.vdr.where(event_type)

    def between(self, start: int, end: int | None = None) -> list[LogEntry]:
        """Entries with start <= timestamp < end (end None means no upper bound)."""
        ts = self.timestamps.astype(np.int64)
        mask = ts >= start
        if end is not None:
            mask &= ts < end
        return [self.entries[i] for i in np.flatnonzero(mask)]

    def counts(self) -> dict[EventType, int]:
        """Number of entries per event type, for types that occur."""
        kinds = np.array([int(e.event_type) for e in self.entries], dtype=np.uint8)
        values, counts = np.unique(kinds, return_counts=True)
        return {EventType(int(v)): int(c) for v, c in zip(values, counts)}

    @overload
    def __getitem__(self, key: int) -> LogEntry: ...

    @overload
    def __getitem__(self, key: slice) -> list[LogEntry]: ...

    def __getitem__(self, key: int | slice) -> LogEntry | list[LogEntry]:
        """Index or slice the log.

        replay[i] → one LogEntry
        replay[start:end] → list of LogEntry
        """
        if isinstance(key, (int, slice)):
            return self.entries[key]
        raise TypeError(f"Invalid index type: {type(key)}. Use int or slice.")

    # --- Display ---

    def summary(self) -> str:
        """Generate a human-readable summary string."""
        lines = []
        lines.append(f"Ship: {self.ship_name}")
        lines.append(f"IMO: {self.imo_number}")
        lines.append(f"Format version: {self.version}")
        lines.append(
            "Speeds: " + ", ".join(f"{s.name}={s.knots}kn" for s in self.speeds)
        )

        n = self.num_entries
        lines.append(f"Entries: {n}")
        if n > 0:
            first, last = self.entries[0], self.entries[-1]
            lines.append(f"  From {first.time.isoformat()} to {last.time.isoformat()}")
            for entry in self.entries[:5]:
                lines.append(f"  [{entry.timestamp}] {entry.event_type.name}: {entry.text}")
            if n > 5:
                lines.append(f"  ... and {n - 5} more")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Replay(ship='{self.ship_name}', imo={self.imo_number}, "
            f"entries={self.num_entries})"
        )

    def __str__(self) -> str:
        return self.summary()

    def __len__(self) -> int:
        return self.num_entries
