# ============================================================================
# FILE: tests/unit/test_report.py
# ============================================================================
"""
Unit tests for printable report content
"""

from datetime import datetime, timezone

import pytest

from medivision.core.context.analysis import AnalysisResult, DailySchedule
from medivision.core.context.enums import TimeSlot
from medivision.core.context.medication import Medication
from medivision.report.report_builder import ReportLabels, build_report, render_html, report_filename

DATE = datetime(2024, 3, 9, 15, 30, tzinfo=timezone.utc)


class TestReportLabels:

    def test_collaborator_keys(self):
        keys = ReportLabels().to_dict()
        assert keys["reportTitle"] == "MediVision"
        assert keys["clinicalAlertsTitle"] == "Clinical Alerts Detected"
        assert keys["labelOTC"] == "OTC"
        assert "label_otc" not in keys

    def test_merged_ignores_unknown_and_blank(self):
        labels = ReportLabels().merged({"night": "Noche", "evening": "", "unknown": "?"})
        assert labels.night == "Noche"
        assert labels.evening == "Evening"

    def test_merged_none(self):
        assert ReportLabels().merged(None) == ReportLabels()


class TestBuildReport:

    def test_sections_and_rows(self, sample_result):
        document = build_report(sample_result, "Schedule 1", date=DATE)

        assert document.date == "2024-03-09"
        assert [s.slot for s in document.sections] == [
            TimeSlot.MORNING, TimeSlot.NOON, TimeSlot.EVENING, TimeSlot.BEDTIME,
        ]
        morning = document.sections[0]
        assert [r.medication for r in morning.rows] == ["Metformin 500mg", "Warfarin 5mg", "Ibuprofen 200mg"]
        assert [r.category for r in morning.rows] == ["Rx", "Rx", "OTC"]
        assert morning.rows[0].instructions == "Take with food"
        assert morning.rows[1].instructions == "once daily"

    def test_empty_slot_text(self, sample_result):
        document = build_report(sample_result, "Schedule 1", date=DATE)
        noon = document.sections[1]
        assert noon.rows == []
        assert noon.empty_text == "No medications scheduled."

    def test_alerts(self, sample_result):
        document = build_report(sample_result, "Schedule 1", date=DATE)
        assert document.has_alerts
        assert document.alerts == [sample_result.warnings[0].description]

    def test_no_alerts_section_without_warnings(self, sample_result):
        sample_result.warnings = []
        html = render_html(build_report(sample_result, "Schedule 1", date=DATE))
        assert "Clinical Alerts Detected" not in html

    def test_translated_labels(self, sample_result):
        labels = ReportLabels().merged({"morning": "Mañana", "labelRx": "Receta"})
        document = build_report(sample_result, "Horario", labels=labels, date=DATE)

        assert document.sections[0].title == "Mañana"
        assert document.sections[0].rows[0].category == "Receta"

    def test_unresolved_entries(self):
        """Test legacy name references resolve; unknown ones are skipped"""
        result = AnalysisResult(
            medications=[Medication(id="m1", name="Aspirin", dosage="81mg")],
            schedule=DailySchedule(morning=["aspirin", "Ghost"]),
        )
        rows = build_report(result, "Legacy", date=DATE).sections[0].rows
        assert [r.medication_id for r in rows] == ["m1"]


class TestRender:

    def test_html_escaped(self):
        result = AnalysisResult(
            medications=[Medication(id="m1", name="<b>Aspirin</b>", instructions="Take & rest")],
            schedule=DailySchedule(bedtime=["m1"]),
        )
        html = render_html(build_report(result, "Mom's <plan>", date=DATE))

        assert "&lt;b&gt;Aspirin&lt;/b&gt;" in html
        assert "Take &amp; rest" in html
        assert "Mom&#39;s &lt;plan&gt;" in html
        assert "<b>Aspirin</b>" not in html

    def test_checkbox_per_row(self, sample_result):
        html = render_html(build_report(sample_result, "Schedule 1", date=DATE))
        assert html.count("type=\"checkbox\"") == 4
        assert "Physician Signature" in html

    def test_sections_rendered_in_slot_order(self, sample_result):
        """Test the template lays out all four slots, empty ones with their text"""
        html = render_html(build_report(sample_result, "Schedule 1", date=DATE))

        positions = [html.index(f"slot-{slot}") for slot in ("morning", "noon", "evening", "bedtime")]
        assert positions == sorted(positions)
        assert html.count("No medications scheduled.") == 2
        assert "<th>Administered</th>" in html

    def test_administered_row_checked(self, sample_result):
        document = build_report(sample_result, "Schedule 1", date=DATE)
        document.sections[2].rows[0].administered = True
        assert render_html(document).count("disabled checked") == 1


@pytest.mark.parametrize("name,expected", [
    ("Schedule 1", "medivision-schedule-1.pdf"),
    ("Mom's Meds (March)", "medivision-mom-s-meds-march.pdf"),
    ("", "medivision-schedule.pdf"),
    ("***", "medivision-schedule.pdf"),
])
def test_report_filename(name, expected):
    assert report_filename(name) == expected
