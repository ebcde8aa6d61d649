# src/medivision/report/__init__.py

from .report_builder import (
    ReportLabels,
    ReportRow,
    ReportSection,
    ReportDocument,
    build_report,
    render_html,
    report_filename,
)

__all__ = [
    "ReportLabels",
    "ReportRow",
    "ReportSection",
    "ReportDocument",
    "build_report",
    "render_html",
    "report_filename",
]
