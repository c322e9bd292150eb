"""CSV exporter for tournament schedules.

Writes one row per placed match, ordered by start time.
"""

import csv
from pathlib import Path

from .dtos import CSV_FIELDNAMES, ScheduledMatchRow
from .models import TournamentContext
from .schedule import Schedule


def export_schedule_csv(
    schedule: Schedule,
    output_path: str | Path,
    context: TournamentContext | None = None,
) -> int:
    """
    Export the placed matches of a schedule to CSV.

    Args:
        schedule: The schedule to export; infeasible schedules export whatever was placed
        output_path: Path for the output CSV file
        context: Roster used to print participant and field names instead of ids

    Returns:
        Number of match rows written
    """
    entries = sorted(schedule, key=lambda e: (e.start, e.field_id, e.match_id))
    rows = [ScheduledMatchRow.from_scheduled_match(e, context).to_csv_dict() for e in entries]
    _write_csv(output_path, rows)
    return len(rows)


def _write_csv(output_path: str | Path, rows: list[dict[str, str]]) -> None:
    """Write rows to CSV file, header included even when there are no rows."""
    with open(output_path, "w", encoding="utf-8", newline="") as file:
        writer = csv.DictWriter(file, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()
        writer.writerows(rows)
