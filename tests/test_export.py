"""Tests für Export (Konsole, Excel, PDF), Excel-Import und Demo-Daten."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from analysis.performance import summarize_offering
from analysis.reports import build_offering_report, build_student_report
from config.defaults import default_app_config
from config.schema import InputHandling
from data.directory import RecordDirectory
from data.excel_import import ExcelImportError, generate_template, import_from_excel
from data.fake_data import FakeDataGenerator
from export.console_renderer import (
    print_absence_list,
    print_evaluation_list,
    print_offering_report,
    print_student_report,
    render_absence_rows,
    render_evaluation_rows,
    render_offering_rows,
    render_student_rows,
)
from export.excel_export import ExcelExporter
from export.helpers import (
    absence_color,
    absence_key,
    format_grade,
    grade_band,
    hex_to_rgb,
    pluralize_absences,
    status_color,
    status_key,
    status_label,
)
from export.pdf_export import PdfExporter, _pdf_safe
from models import EvaluationType, PassStatus


@pytest.fixture(scope="module")
def config():
    return default_app_config()


@pytest.fixture(scope="module")
def gradebook(config):
    return FakeDataGenerator(config, seed=42, students_per_class=6).generate()


def _summary(evaluations=(), absences=()):
    from datetime import date
    from models import AbsenceRecord, EvaluationRecord
    evs = [EvaluationRecord(student_id="S", offering_id="O", type=t, value=v,
                            date=date(2024, 3, 1)) for t, v in evaluations]
    abs_ = [AbsenceRecord(student_id="S", offering_id="O", date=date(2024, 3, 1), count=c)
            for c in absences]
    return summarize_offering(evs, abs_)


# ─── HELPERS ──────────────────────────────────────────────────────────────────

class TestHelpers:
    def test_format_grade(self):
        assert format_grade(None) == "–"
        assert format_grade(20 / 3) == "6.7"
        assert format_grade(7.0, decimals=2) == "7.00"

    def test_grade_bands(self):
        assert grade_band(9.5).label == "sehr gut"
        assert grade_band(7.0).label == "gut"
        assert grade_band(6.0).label == "knapp"
        assert grade_band(5.99).label == "ungenügend"

    def test_status_keys(self):
        assert status_key(_summary([("exam", 9), ("assignment", 9)])) == "approved"
        assert status_key(_summary([("exam", 1), ("assignment", 1)])) == "failed"
        assert status_key(_summary([("exam", 9)])) == "pending"
        assert status_key(_summary()) == "empty"

    def test_status_label_and_color(self):
        approved = _summary([("exam", 9), ("assignment", 9)])
        assert status_label(approved) == "Bestanden"
        assert status_color(approved) == "C6EFCE"
        assert status_label(_summary([("exam", 9)])) == "Ausstehend"
        assert status_color(_summary()) == "E0E0E0"

    def test_absence_keys(self):
        assert absence_key(0) == "abs_ok"
        assert absence_key(4) == "abs_warn"
        assert absence_key(5) == "abs_alert"
        assert absence_key(3, threshold=3) == "abs_alert"
        assert absence_color(0) == "C6EFCE"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("4472C4") == (68, 114, 196)
        assert hex_to_rgb("#FFFFFF") == (255, 255, 255)

    def test_pluralize(self):
        assert pluralize_absences(1) == "1 Fehlstunde"
        assert pluralize_absences(3) == "3 Fehlstunden"


# ─── KONSOLE ──────────────────────────────────────────────────────────────────

class TestConsoleRenderer:
    def test_student_rows_pending_shows_required_value(self, gradebook):
        report = build_student_report(RecordDirectory(gradebook), "S001")
        rows = render_student_rows(report)
        assert len(rows) == 4
        pending = [r for r in rows if r[4] == "Ausstehend"]
        assert pending
        # Prüfung 8.0 liegt vor: Hausarbeit braucht (70 − 24) / 7 ≈ 6.6
        assert any("Hausarbeit (≥ 6.6)" in r[5] for r in pending)

    def test_offering_rows(self, gradebook):
        report = build_offering_report(RecordDirectory(gradebook), "O001")
        rows = render_offering_rows(report)
        assert len(rows) == 6
        assert all(len(r) == 6 for r in rows)

    def test_print_student_report(self, gradebook, config):
        buf = io.StringIO()
        console = Console(file=buf, width=140)
        report = build_student_report(RecordDirectory(gradebook), "S003")
        print_student_report(report, config, console)
        out = buf.getvalue()
        assert report.student.full_name in out
        assert "unentschuldigte" in out

    def test_evaluation_rows_from_filter(self, gradebook):
        directory = RecordDirectory(gradebook)
        s001 = directory.student("S001")
        rows = render_evaluation_rows(
            directory.filter_evaluations(student_id="S001", offering_id="O001"), directory
        )
        assert rows == [[rows[0][0], s001.full_name, "MAT 1º Ano A", "Prüfung", "8.0", ""]]

    def test_evaluation_rows_unknown_ids_shown_raw(self, gradebook):
        from datetime import date
        from models import EvaluationRecord
        ev = EvaluationRecord(student_id="X1", offering_id="Y1", type="exam", value=5,
                              date=date(2024, 3, 1))
        row = render_evaluation_rows([ev], RecordDirectory(gradebook))[0]
        assert row[:3] == ["01.03.2024", "X1", "Y1"]

    def test_absence_rows_newest_first(self, gradebook, config):
        from datetime import datetime
        directory = RecordDirectory(gradebook)
        rows = render_absence_rows(
            directory.filter_absences(student_id="S003", justified=False), directory
        )
        assert len(rows) >= config.attendance.unjustified_warning_threshold + 3
        assert all(r[4] == "nein" for r in rows)
        dates = [datetime.strptime(r[0], "%d.%m.%Y") for r in rows]
        assert dates == sorted(dates, reverse=True)

    def test_print_absence_list_totals(self, gradebook):
        buf = io.StringIO()
        directory = RecordDirectory(gradebook)
        absences = directory.filter_absences(student_id="S003")
        print_absence_list(absences, directory, Console(file=buf, width=140))
        total = sum(a.count for a in absences)
        assert f"Fehlstunden: {total}" in buf.getvalue()

    def test_print_empty_lists(self, gradebook, config):
        buf = io.StringIO()
        console = Console(file=buf, width=140)
        directory = RecordDirectory(gradebook)
        print_evaluation_list([], directory, config, console)
        print_absence_list([], directory, console)
        assert "Keine Noten" in buf.getvalue()
        assert "Keine Fehlzeiten" in buf.getvalue()

    def test_print_offering_report(self, gradebook, config):
        buf = io.StringIO()
        report = build_offering_report(RecordDirectory(gradebook), "O001")
        print_offering_report(report, config, Console(file=buf, width=140))
        assert "Klassenschnitt" in buf.getvalue()


# ─── EXCEL-EXPORT ─────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_sheets(self, gradebook, config, tmp_path: Path):
        import openpyxl
        out = tmp_path / "bilanz.xlsx"
        ExcelExporter(gradebook, None, config).export(out)
        wb = openpyxl.load_workbook(str(out))
        assert wb.sheetnames[0] == "Übersicht"
        assert len(wb.sheetnames) == len(gradebook.offerings) + 1
        assert "MAT 1º Ano A" in wb.sheetnames

    def test_status_cell_colored(self, gradebook, config, tmp_path: Path):
        import openpyxl
        out = tmp_path / "bilanz.xlsx"
        ExcelExporter(gradebook, config.grading, config).export(out)
        ws = openpyxl.load_workbook(str(out))["MAT 1º Ano A"]

        s001 = next(s for s in gradebook.students if s.id == "S001")
        row = next(r for r in range(4, ws.max_row + 1) if ws.cell(row=r, column=1).value == s001.full_name)
        assert ws.cell(row=row, column=5).value == "Ausstehend"
        assert ws.cell(row=row, column=5).fill.start_color.rgb.endswith("FFEB9C")

    def test_sheet_title_sanitized(self):
        used = set()
        assert ExcelExporter._sheet_title("MAT 1/A", used) == "MAT 1-A"
        assert ExcelExporter._sheet_title("MAT 1/A", used) == "MAT 1-A (2)"
        assert len(ExcelExporter._sheet_title("X" * 40, used)) == 31


# ─── PDF-EXPORT ───────────────────────────────────────────────────────────────

class TestPdfExport:
    def test_pdf_safe(self):
        assert _pdf_safe("MAT – Matemática") == "MAT - Matemática"
        assert _pdf_safe("≥ 7") == ">= 7"

    def test_export_student(self, gradebook, config, tmp_path: Path):
        out = tmp_path / "zeugnis.pdf"
        PdfExporter(gradebook, None, config).export_student("S003", out)
        assert out.exists()
        assert out.read_bytes()[:4] == b"%PDF"

    def test_export_all(self, gradebook, config, tmp_path: Path):
        paths = PdfExporter(gradebook, config.grading, config).export_all(tmp_path / "zeugnisse")
        assert len(paths) == len([s for s in gradebook.students if s.active])
        assert all(p.exists() for p in paths)


# ─── EXCEL-VORLAGE & IMPORT ───────────────────────────────────────────────────

class TestExcelImport:
    def test_template_has_sheets(self, config, tmp_path: Path):
        import openpyxl
        out = tmp_path / "vorlage.xlsx"
        generate_template(config, out)
        wb = openpyxl.load_workbook(str(out))
        for expected in ["Schüler", "Fächer", "Noten", "Fehlzeiten"]:
            assert expected in wb.sheetnames
        assert wb["Noten"]["A1"].value == "Schüler-ID"

    def test_template_roundtrip(self, config, tmp_path: Path):
        """Die Beispielzeilen der Vorlage lassen sich unverändert importieren."""
        out = tmp_path / "vorlage.xlsx"
        generate_template(config, out)
        gradebook, report = import_from_excel(out, config)
        assert report.is_consistent
        assert [s.id for s in gradebook.students] == ["S001"]
        assert gradebook.enrollments[0].class_name == "1A"
        ev = gradebook.evaluations[0]
        assert ev.type == EvaluationType.EXAM
        assert ev.value == 7.5
        ab = gradebook.absences[0]
        assert (ab.count, ab.justified, ab.justification) == (2, True, "Arzttermin")

    def _template_with_bad_grade(self, config, tmp_path: Path) -> Path:
        import openpyxl
        out = tmp_path / "vorlage.xlsx"
        generate_template(config, out)
        wb = openpyxl.load_workbook(str(out))
        wb["Noten"].append(["S001", "O001", "Hausarbeit", 12, "2024-04-02", ""])
        wb.save(out)
        return out

    def test_invalid_row_rejected(self, config, tmp_path: Path):
        path = self._template_with_bad_grade(config, tmp_path)
        with pytest.raises(ExcelImportError, match="Zeile 3"):
            import_from_excel(path, config)

    def test_invalid_row_clamped(self, config, tmp_path: Path):
        path = self._template_with_bad_grade(config, tmp_path)
        clamp = config.model_copy(update={"input_handling": InputHandling.CLAMP})
        gradebook, _ = import_from_excel(path, clamp)
        values = sorted(ev.value for ev in gradebook.evaluations)
        assert values == [7.5, 10.0]

    def test_missing_sheet(self, config, tmp_path: Path):
        import openpyxl
        out = tmp_path / "vorlage.xlsx"
        generate_template(config, out)
        wb = openpyxl.load_workbook(str(out))
        del wb["Fehlzeiten"]
        wb.save(out)
        with pytest.raises(ExcelImportError, match="Fehlzeiten"):
            import_from_excel(out, config)

    def test_missing_file(self, config, tmp_path: Path):
        with pytest.raises(ExcelImportError):
            import_from_excel(tmp_path / "fehlt.xlsx", config)


# ─── DEMO-DATEN ───────────────────────────────────────────────────────────────

class TestFakeData:
    def test_reproducible(self, config):
        a = FakeDataGenerator(config, seed=7).generate()
        b = FakeDataGenerator(config, seed=7).generate()
        assert a.evaluations == b.evaluations
        assert a.absences == b.absences
        assert [s.full_name for s in a.students] == [s.full_name for s in b.students]

    def test_consistent(self, gradebook):
        report = gradebook.validate_integrity()
        assert report.is_consistent
        assert report.warnings == []

    def test_special_cases(self, gradebook, config):
        directory = RecordDirectory(gradebook)
        policy = config.grading

        pending = summarize_offering(directory.evaluations_for("S001", "O001"), [], policy)
        assert pending.status == PassStatus.PENDING

        boundary = summarize_offering(directory.evaluations_for("S002", "O001"), [], policy)
        assert boundary.weighted_average == policy.pass_threshold
        assert boundary.status == PassStatus.APPROVED

        heavy = build_student_report(directory, "S003", policy, config.attendance)
        assert heavy.unjustified_warning is True

        types = {ev.type for ev in directory.evaluations_for("S004", "O001")}
        assert {EvaluationType.PROJECT, EvaluationType.MAKEUP} <= types

        assert directory.evaluations_for("S005", "O002") == []
