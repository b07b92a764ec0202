"""CSV export of a projection's year series."""

import csv
from pathlib import Path

from qfaf.models.reports import ProjectionResult, YearResult

COLUMNS = list(YearResult.model_fields)


def write_projection_csv(result: ProjectionResult, file_path: Path) -> Path:
    """Write one row per projected year. Returns *file_path*."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        for year in result.years:
            writer.writerow(year.model_dump())
    return file_path
