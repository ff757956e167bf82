"""vdrlog — Voyage Data Recorder files.

A compact binary log for a vessel: a fixed header with the ship's name, IMO
number and speed table, followed by an append-only stream of timestamped,
checksummed event records.

Quick start:
    from vdrlog import Recorder, Replay, export_csv

    # Record
    with Recorder("voyage.dat", ship_name="Example Vessel", imo_number=1234567) as rec:
        rec.log("speed", b"HALF")
        rec.log("alarm", "FIRE DECK 2")

    # Replay
    r = Replay("voyage.dat")
    print(r)                 # Summary
    print(r[0])              # First log entry
    print(r.where("alarm"))  # Entries of one type

    # Bytes in memory
    from vdrlog import build_file, parse_file
    data = build_file("Example Vessel", 1234567)   # 86-byte header
    vdr = parse_file(data)

    # Export
    export_csv("voyage.dat", output_dir="exports/")
"""

__version__ = "0.1.0"

from vdrlog.assembler import append_record, build_file, parse_file
from vdrlog.errors import (
    ChecksumMismatchError,
    DecodeError,
    InvalidInputError,
    MalformedHeaderError,
    PayloadTooLargeError,
    TooManyEntriesError,
    TruncatedError,
    UnrecognizedFormatError,
    UnsupportedVersionError,
    VDRError,
)
from vdrlog.export.csv import export_csv
from vdrlog.recorder import Recorder
from vdrlog.replay import Replay
from vdrlog.utils.schema import (
    DEFAULT_SPEED_TABLE,
    EventType,
    LogEntry,
    SpeedEntry,
    VDRFile,
    VDRHeader,
)

__all__ = [
    "Recorder",
    "Replay",
    "export_csv",
    "build_file",
    "parse_file",
    "append_record",
    "EventType",
    "LogEntry",
    "SpeedEntry",
    "VDRFile",
    "VDRHeader",
    "DEFAULT_SPEED_TABLE",
    "VDRError",
    "DecodeError",
    "InvalidInputError",
    "TooManyEntriesError",
    "PayloadTooLargeError",
    "UnrecognizedFormatError",
    "UnsupportedVersionError",
    "MalformedHeaderError",
    "TruncatedError",
    "ChecksumMismatchError",
    "__version__",
]
