"""Pydantic models for VDR data structures."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from vdrlog.storage.fields import encode_u32le, xor_checksum
from vdrlog.storage.format import (
    DEFAULT_SPEEDS,
    FORMAT_VERSION,
    LENGTH_BITS,
    MAX_TIMESTAMP,
)


class EventType(IntEnum):
    """Event kinds stored in the high bits of a record's type/length byte."""

    NOTE = 0
    SPEED = 1
    HEADING = 2
    POSITION = 3
    ENGINE = 4
    ALARM = 5
    COMMS = 6
    CUSTOM = 7

    @classmethod
    def parse(cls, value: str | int | EventType) -> EventType:
        """Accept an EventType, its integer value, or its name (any case)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown event type '{value}'. Known: {[t.name.lower() for t in cls]}"
            ) from None


class SpeedEntry(BaseModel):
    """A named engine speed setting."""

    knots: int = Field(ge=0, le=255)
    name: str

    @field_validator("name", mode="before")
    @classmethod
    def upper_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


def default_speed_table() -> list[SpeedEntry]:
    """Fresh copy of the default speed table (dead slow to flank)."""
    return [SpeedEntry(knots=knots, name=name) for knots, name in DEFAULT_SPEEDS]


DEFAULT_SPEED_TABLE: tuple[SpeedEntry, ...] = tuple(default_speed_table())


class VDRHeader(BaseModel):
    """Vessel identity and speed settings fixed at voyage start."""

    ship_name: str
    imo_number: int
    speeds: list[SpeedEntry] = Field(default_factory=default_speed_table)
    version: int = FORMAT_VERSION

    def speed(self, name: str) -> SpeedEntry:
        """Look up a speed setting by name."""
        for entry in self.speeds:
            if entry.name == name.upper():
                return entry
        raise KeyError(f"Speed '{name}' not found. Available: {[s.name for s in self.speeds]}")


class LogEntry(BaseModel):
    """A single timestamped event record.

    ``offset`` is the byte position of the record in its file, set when the
    entry was decoded from a file and None for entries built in memory.
    """

    timestamp: int = Field(ge=0, le=MAX_TIMESTAMP)
    event_type: EventType
    payload: bytes = b""
    offset: int | None = None

    @field_validator("event_type", mode="before")
    @classmethod
    def coerce_event_type(cls, v: Any) -> Any:
        if isinstance(v, (str, int)):
            return EventType.parse(v)
        return v

    @property
    def type_length(self) -> int:
        return (int(self.event_type) << LENGTH_BITS) | len(self.payload)

    @property
    def checksum(self) -> int:
        """XOR of the timestamp, type/length and payload bytes."""
        return xor_checksum(
            encode_u32le(self.timestamp) + bytes([self.type_length]) + self.payload
        )

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @property
    def text(self) -> str:
        """Payload decoded as text, for display."""
        return self.payload.decode("ascii", errors="replace")


class VDRFile(BaseModel):
    """Full in-memory view of a VDR file."""

    header: VDRHeader
    entries: list[LogEntry] = Field(default_factory=list)

    def where(self, event_type: str | int | EventType | None = None) -> list[LogEntry]:
        """Filter entries by event type."""
        if event_type is None:
            return self.entries
        kind = EventType.parse(event_type)
        return [e for e in self.entries if e.event_type == kind]

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, idx: int) -> LogEntry:
        return self.entries[idx]
