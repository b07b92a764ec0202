"""Report generation for the QFAF projector."""

from qfaf.reports.csv_export import write_projection_csv
from qfaf.reports.projection_report import ProjectionReportGenerator

__all__ = [
    "ProjectionReportGenerator",
    "write_projection_csv",
]
