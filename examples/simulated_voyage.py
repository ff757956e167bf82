"""vdrlog Example: Simulated Coastal Voyage

Records a short simulated voyage — speed orders, heading changes, position
fixes every ten minutes and one engine alarm — then replays the log, checks
it, and exports it to CSV.

No external dependencies beyond vdrlog's own.

Run:
    python examples/simulated_voyage.py

Output:
    - Creates coastal_voyage.dat
    - Prints the voyage summary and the alarm records
    - Writes CSV files to exports/
"""

from pathlib import Path

import numpy as np

from vdrlog import EventType, Recorder, Replay, export_csv

START = 1718000000  # departure time, Unix seconds


def simulate_voyage(path: Path, seed: int = 7) -> Path:
    """Simulate four hours underway.

    Args:
        path: Output .dat file. Replaced if it exists.
        seed: Random seed for position noise.

    Returns:
        Path to the recording.
    """
    rng = np.random.default_rng(seed)
    path.unlink(missing_ok=True)

    lat, lon = 50.90, -1.40  # leaving port
    heading = 180.0

    with Recorder(path, ship_name="Coastal Trader", imo_number=9074729) as rec:
        rec.log(EventType.NOTE, "CAST OFF", timestamp=START)
        rec.log(EventType.SPEED, rec.header.speed("slow").name, timestamp=START + 60)

        for minute in range(0, 240, 10):
            t = START + minute * 60

            if minute == 30:
                rec.log(EventType.SPEED, rec.header.speed("full").name, timestamp=t)
            if minute == 90:
                heading = 225.0
                rec.log(EventType.HEADING, f"{heading:05.1f}", timestamp=t)
            if minute == 150:
                rec.log(EventType.ALARM, "ENGINE 2 COOLANT TEMP HIGH", timestamp=t)
                rec.log(EventType.SPEED, rec.header.speed("half").name, timestamp=t + 5)

            # Dead-reckoned position with a little noise
            step = 0.03 + rng.normal(0, 0.002)
            lat += step * np.cos(np.radians(heading))
            lon += step * np.sin(np.radians(heading))
            rec.log(EventType.POSITION, f"{lat:.4f},{lon:.4f}", timestamp=t)

        rec.log(EventType.NOTE, "ARRIVED. FINISHED WITH ENGINES. ALL LINES FAST.",
                timestamp=START + 240 * 60)

    return path


def main() -> None:
    path = simulate_voyage(Path("coastal_voyage.dat"))

    with Replay(path) as replay:
        print(replay)
        print()
        for entry in replay.where("alarm"):
            print(f"ALARM at {entry.time.isoformat()}: {entry.text}")
        print(f"\nEntries per type: { {k.name: v for k, v in replay.counts().items()} }")

    created = export_csv(path, output_dir="exports")
    for p in created:
        print(f"Created: {p}")


if __name__ == "__main__":
    main()
