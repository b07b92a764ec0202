"""Year-by-year projection report generator."""

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from qfaf.models.inputs import ClientProfile
from qfaf.models.reports import ProjectionResult

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _money(value: Decimal) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _pct(value: Decimal, places: int = 2) -> str:
    return f"{value * 100:.{places}f}%"


class ProjectionReportGenerator:
    """Generates a human-readable projection report."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))
        self.env.filters["money"] = _money
        self.env.filters["pct"] = _pct

    def render(self, result: ProjectionResult, profile: ClientProfile) -> str:
        """Render the projection report."""
        template = self.env.get_template("projection_report.txt")
        return template.render(result=result, profile=profile, summary=result.summary)
