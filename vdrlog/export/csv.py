"""CSV export for VDR recordings.

Exports recording data to CSV files:
  - {stem}_log.csv — one row per log record
  - {stem}_speeds.csv — the speed table
  - {stem}_header.csv — ship identity and format info
"""

from __future__ import annotations

import csv
from pathlib import Path

from vdrlog.replay import Replay


def export_csv(
    path: str | Path,
    output_dir: str | Path | None = None,
    event_types: list[str] | None = None,
    include_header: bool = True,
    include_speeds: bool = True,
) -> list[Path]:
    """Export a .dat recording to CSV files.

    Args:
        path: Path to the .dat file.
        output_dir: Directory for output files. Defaults to same directory as input.
        event_types: Only export log records of these types. None means all.
        include_header: Whether to write a header CSV.
        include_speeds: Whether to write a speed table CSV.

    Returns:
        List of paths to created CSV files.
    """
    path = Path(path)
    if output_dir is None:
        out = path.parent
    else:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

    stem = path.stem
    created: list[Path] = []

    with Replay(path) as replay:
        log_path = out / f"{stem}_log.csv"
        _write_log_csv(replay, log_path, event_types)
        created.append(log_path)

        if include_speeds:
            speeds_path = out / f"{stem}_speeds.csv"
            _write_speeds_csv(replay, speeds_path)
            created.append(speeds_path)

        if include_header:
            header_path = out / f"{stem}_header.csv"
            _write_header_csv(replay, header_path)
            created.append(header_path)

    return created


def _write_log_csv(replay: Replay, path: Path, event_types: list[str] | None) -> None:
    """Write log records to a CSV file."""
    if event_types:
        entries = [e for kind in event_types for e in replay.where(kind)]
        entries.sort(key=lambda e: e.offset or 0)
    else:
        entries = replay.entries

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["offset", "timestamp", "time_utc", "event_type", "length", "payload_hex", "text", "checksum"]
        )
        for entry in entries:
            writer.writerow([
                entry.offset,
                entry.timestamp,
                entry.time.isoformat(),
                entry.event_type.name.lower(),
                len(entry.payload),
                entry.payload.hex(),
                entry.text,
                f"0x{entry.checksum:02X}",
            ])


def _write_speeds_csv(replay: Replay, path: Path) -> None:
    """Write the speed table to a CSV file."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["index", "name", "knots"])
        for i, speed in enumerate(replay.speeds):
            writer.writerow([i, speed.name, speed.knots])


def _write_header_csv(replay: Replay, path: Path) -> None:
    """Write ship identity and format info to a CSV file."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["key", "value"])
        writer.writerow(["ship_name", replay.ship_name])
        writer.writerow(["imo_number", replay.imo_number])
        writer.writerow(["format_version", replay.version])
        writer.writerow(["speed_count", len(replay.speeds)])
        writer.writerow(["entry_count", replay.num_entries])
        writer.writerow(["file_size", replay.size])
