# ============================================================================
# src/medivision/report/report_builder.py
# ============================================================================
"""
Report Content Builder

Fixed-layout printable schedule:
- header: title, subtitle, date, schedule name
- clinical alerts (only when warnings exist)
- four slot sections, each a table of
  medication (name + dosage) | type (OTC/Rx) | instructions | administered box
- footer: disclaimer + signature line

build_report() produces a renderer-neutral ReportDocument; render_html()
fills templates/schedule_report.html (jinja2, autoescaped) to give a
standalone HTML page suitable for printing to PDF.
"""

import logging
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.context.analysis import AnalysisResult
from ..core.context.enums import SLOT_ORDER, MedicationCategory, TimeSlot
from ..core.context.medication import Medication

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
REPORT_TEMPLATE = "schedule_report.html"

_jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass
class ReportLabels:
    """
    Every user-visible string on the report.

    Keys in to_dict()/merged() use the camelCase names the translation
    collaborator returns (e.g. "reportTitle", "labelOTC").
    """
    report_title: str = "MediVision"
    report_subtitle: str = "Medication Reconciliation Report"
    schedule_name_label: str = "Schedule Name"
    date_label: str = "Date"
    clinical_alerts_title: str = "Clinical Alerts Detected"
    morning: str = "Morning"
    morning_time: str = "Take between 7:00 AM - 9:00 AM"
    noon: str = "Noon"
    noon_time: str = "Take between 11:00 AM - 1:00 PM"
    evening: str = "Evening"
    evening_time: str = "Take between 5:00 PM - 7:00 PM"
    night: str = "Bedtime"
    night_time: str = "Take before sleeping"
    table_medication: str = "Medication"
    table_type: str = "Type"
    table_instructions: str = "Instructions"
    table_administered: str = "Administered"
    empty_slot: str = "No medications scheduled."
    disclaimer: str = (
        "Disclaimer: This schedule is generated by AI assistant based on provided "
        "documents. Always verify with your primary care physician before making "
        "changes to your regimen."
    )
    signature: str = "Physician Signature"
    label_otc: str = "OTC"
    label_rx: str = "Rx"

    # attribute name -> collaborator key
    _KEY_OVERRIDES = {"label_otc": "labelOTC", "label_rx": "labelRx"}

    @classmethod
    def key_for(cls, attr: str) -> str:
        if attr in cls._KEY_OVERRIDES:
            return cls._KEY_OVERRIDES[attr]
        head, *rest = attr.split("_")
        return head + "".join(part.capitalize() for part in rest)

    def to_dict(self) -> Dict[str, str]:
        return {self.key_for(f.name): getattr(self, f.name) for f in fields(self)}

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "ReportLabels":
        """
        Copy with translated labels applied.

        Unknown keys and blank values are ignored, so a partial translation
        still yields a complete label set.
        """
        values = asdict(self)
        if overrides:
            by_key = {self.key_for(f.name): f.name for f in fields(self)}
            for key, value in overrides.items():
                attr = by_key.get(key)
                if attr and isinstance(value, str) and value.strip():
                    values[attr] = value.strip()
        return ReportLabels(**values)

    def slot_title(self, slot: TimeSlot) -> str:
        return {
            TimeSlot.MORNING: self.morning,
            TimeSlot.NOON: self.noon,
            TimeSlot.EVENING: self.evening,
            TimeSlot.BEDTIME: self.night,
        }[slot]

    def slot_hint(self, slot: TimeSlot) -> str:
        return {
            TimeSlot.MORNING: self.morning_time,
            TimeSlot.NOON: self.noon_time,
            TimeSlot.EVENING: self.evening_time,
            TimeSlot.BEDTIME: self.night_time,
        }[slot]

    def category_label(self, category: MedicationCategory) -> str:
        return self.label_otc if category == MedicationCategory.OTC else self.label_rx


@dataclass
class ReportRow:
    medication_id: str
    medication: str         # name + dosage
    category: str
    instructions: str
    administered: bool = False


@dataclass
class ReportSection:
    slot: TimeSlot
    title: str
    time_hint: str
    rows: List[ReportRow] = field(default_factory=list)
    empty_text: str = ""


@dataclass
class ReportDocument:
    title: str
    subtitle: str
    date_label: str
    date: str
    schedule_name_label: str
    schedule_name: str
    alerts_title: str
    alerts: List[str]
    sections: List[ReportSection]
    table_headers: List[str]
    disclaimer: str
    signature: str

    @property
    def has_alerts(self) -> bool:
        return bool(self.alerts)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _resolve(result: AnalysisResult, reference: str) -> Optional[Medication]:
    medication = result.find_medication(reference)
    if medication is not None:
        return medication
    matches = result.find_by_name(reference)
    if len(matches) == 1:
        logger.warning(f"Report resolved schedule entry {reference!r} by name")
        return matches[0]
    logger.warning(f"Report skipped unresolved schedule entry {reference!r}")
    return None


def build_report(
    result: AnalysisResult,
    schedule_name: str,
    labels: Optional[ReportLabels] = None,
    date: Optional[datetime] = None,
) -> ReportDocument:
    """
    Build report content for an AnalysisResult.

    Args:
        result: Reviewed or approved analysis
        schedule_name: Shown in the header
        labels: Label set (translated or default)
        date: Report date (default: now, UTC)
    """
    labels = labels or ReportLabels()
    date = date or datetime.now(timezone.utc)

    sections = []
    for slot in SLOT_ORDER:
        rows = []
        for reference in result.schedule.slot(slot):
            medication = _resolve(result, reference)
            if medication is None:
                continue
            rows.append(ReportRow(
                medication_id=medication.id,
                medication=medication.display_name,
                category=labels.category_label(medication.category),
                instructions=medication.instructions or medication.frequency,
            ))
        sections.append(ReportSection(
            slot=slot,
            title=labels.slot_title(slot),
            time_hint=labels.slot_hint(slot),
            rows=rows,
            empty_text="" if rows else labels.empty_slot,
        ))

    return ReportDocument(
        title=labels.report_title,
        subtitle=labels.report_subtitle,
        date_label=labels.date_label,
        date=date.strftime("%Y-%m-%d"),
        schedule_name_label=labels.schedule_name_label,
        schedule_name=schedule_name,
        alerts_title=labels.clinical_alerts_title,
        alerts=[w.description for w in result.warnings],
        sections=sections,
        table_headers=[
            labels.table_medication,
            labels.table_type,
            labels.table_instructions,
            labels.table_administered,
        ],
        disclaimer=labels.disclaimer,
        signature=labels.signature,
    )


def render_html(document: ReportDocument) -> str:
    """Standalone printable HTML page."""
    template = _jinja_env.get_template(REPORT_TEMPLATE)
    return template.render(document=document)


_SLUG = re.compile(r"[^a-z0-9]+")


def report_filename(schedule_name: str) -> str:
    """e.g. "Schedule 1" -> "medivision-schedule-1.pdf"."""
    slug = _SLUG.sub("-", (schedule_name or "").lower()).strip("-") or "schedule"
    return f"medivision-{slug}.pdf"
