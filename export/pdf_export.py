"""PDF-Export der Schülerzeugnisse (fpdf2)."""

import logging
from pathlib import Path
from typing import Optional

from analysis.reports import StudentReport, build_student_report
from config.defaults import type_label
from config.schema import AppConfig, GradingPolicy
from data.directory import RecordDirectory
from models.gradebook import GradebookData

from export.helpers import (
    COLORS, absence_color, format_grade, hex_to_rgb, status_color, status_label, today_str,
)

logger = logging.getLogger(__name__)


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    return (
        text
        .replace("—", " - ")   # em dash —
        .replace("–", "-")      # en dash –
        .replace("≥", ">=")     # ≥
        .replace("─", "-")      # BOX DRAWINGS LIGHT HORIZONTAL ─
    )


# ─── A4-Hochformat-Dimensionen ────────────────────────────────────────────────
# Portrait A4: 210 × 297 mm, nutzbare Breite (Margin 10 links+rechts): 190 mm
# Spalten: Fach(62) + Klasse(22) + Schnitt(18) + Status(32) + Fehlt(32) + Fehlst.(24) = 190 mm

_COLUMNS = [
    ("Fach", 62),
    ("Klasse", 22),
    ("Schnitt", 18),
    ("Status", 32),
    ("Fehlt noch", 32),
    ("Fehlst. (e/u)", 24),
]
_ROW_H       = 8     # mm
_FONT_HEADER = 9     # pt
_FONT_CELL   = 8     # pt


class _ReportPdf:
    """Interner Wrapper um fpdf.FPDF für Zeugnisseiten."""

    def __init__(self, school_name: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner, sn):
                super().__init__(orientation="P", unit="mm", format="A4")
                inner._school_name = sn
                inner._entity_title = ""
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=True, margin=18)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(100, 7, _pdf_safe(inner._school_name), border=0, align="L")
                inner.cell(0,   7, _pdf_safe(inner._entity_title), border=0, align="R")
                inner.ln(0)
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Seite {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf(school_name)

    @property
    def pdf(self):
        return self._pdf

    def set_entity(self, title: str) -> None:
        self._pdf._entity_title = title

    def add_page(self) -> None:
        self._pdf.add_page()

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    def draw_cell(
        self,
        w: float,
        text: str = "",
        bg_hex: Optional[str] = None,
        bold: bool = False,
        font_size: int = _FONT_CELL,
        text_color: tuple[int, int, int] = (0, 0, 0),
        align: str = "C",
    ) -> None:
        """Zeichnet eine Zelle an der aktuellen Position (mit Hintergrund und Rand)."""
        pdf = self._pdf
        fill = bg_hex is not None
        if fill:
            pdf.set_fill_color(*hex_to_rgb(bg_hex))
        pdf.set_draw_color(180, 180, 180)
        pdf.set_font("Helvetica", "B" if bold else "", font_size)
        pdf.set_text_color(*text_color)
        pdf.cell(w, _ROW_H, _pdf_safe(text)[:40], border=1, align=align, fill=fill)
        pdf.set_text_color(0, 0, 0)   # Reset


class PdfExporter:
    """Erstellt Zeugnis-PDFs (ein Schüler pro Seite)."""

    def __init__(self, gradebook: GradebookData, policy: Optional[GradingPolicy],
                 config: AppConfig):
        self.data = gradebook
        self.config = config
        self.policy = policy or config.grading
        self.decimals = config.display.decimals
        self.directory = RecordDirectory(gradebook)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export_student(self, student_id: str, output_path: Path) -> None:
        """Zeugnis eines einzelnen Schülers."""
        report = build_student_report(
            self.directory, student_id, self.policy, self.config.attendance
        )
        doc = _ReportPdf(self.config.school_name)
        self._draw_report(doc, report)
        doc.save(output_path)

    def export_all(self, output_dir: Path) -> list[Path]:
        """Ein PDF je aktivem Schüler; gibt die geschriebenen Pfade zurück."""
        output_dir = Path(output_dir)
        written: list[Path] = []
        for student in sorted(self.data.students, key=lambda s: s.full_name):
            if not student.active:
                continue
            path = output_dir / f"zeugnis_{student.id}.pdf"
            self.export_student(student.id, path)
            written.append(path)
        logger.info(f"{len(written)} Zeugnisse nach {output_dir} geschrieben")
        return written

    # ─── Seitenaufbau ─────────────────────────────────────────────────────────

    def _draw_report(self, doc: _ReportPdf, report: StudentReport) -> None:
        student = report.student
        doc.set_entity(f"Zeugnis: {student.full_name}")
        doc.add_page()
        pdf = doc.pdf

        pdf.set_font("Helvetica", "B", 14)
        pdf.cell(0, 9, _pdf_safe(student.full_name), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 9)
        info = f"Matrikel: {student.registration}" if student.registration else "Matrikel: -"
        pdf.cell(0, 6, _pdf_safe(info), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(3)

        header_rgb = (255, 255, 255)
        for title, width in _COLUMNS:
            doc.draw_cell(width, title, bg_hex=COLORS["header"], bold=True,
                          font_size=_FONT_HEADER, text_color=header_rgb)
        pdf.ln(_ROW_H)

        threshold = self.config.attendance.absence_alert_threshold
        for row in report.rows:
            s = row.summary
            missing = ", ".join(type_label(t) for t in s.missing_types)
            if row.required_value is not None:
                missing += f" (>= {format_grade(row.required_value, self.decimals)})"
            cells = [
                (f"{row.offering.subject_code} {row.offering.subject_name}".strip(), None, "L"),
                (row.offering.class_name, None, "C"),
                (format_grade(s.weighted_average if s.has_evaluations else None,
                              self.decimals), None, "C"),
                (status_label(s), status_color(s), "C"),
                (missing or "-", None, "L"),
                (f"{s.total_absences} ({s.justified_absences}/{s.unjustified_absences})",
                 absence_color(s.total_absences, threshold), "C"),
            ]
            for (text, bg, align), (_, width) in zip(cells, _COLUMNS):
                doc.draw_cell(width, text, bg_hex=bg, align=align)
            pdf.ln(_ROW_H)

        self._draw_summary(doc, report)

    def _draw_summary(self, doc: _ReportPdf, report: StudentReport) -> None:
        """Zusammenfassung unter der Tabelle."""
        pdf = doc.pdf
        pdf.ln(4)
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(0, 6, "Zusammenfassung", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 9)
        lines = [
            f"Gesamtschnitt: {format_grade(report.overall_average, self.decimals)}   "
            f"Bestehensgrenze: {format_grade(report.pass_threshold, self.decimals)}",
            f"{report.approved_count} bestanden, {report.failed_count} nicht bestanden, "
            f"{report.pending_count} ausstehend",
            f"Fehlstunden: {report.total_absences} (entschuldigt {report.justified_absences}, "
            f"unentschuldigt {report.unjustified_absences})",
        ]
        for line in lines:
            pdf.cell(0, 5, _pdf_safe(line), new_x="LMARGIN", new_y="NEXT")
        if report.unjustified_warning:
            pdf.set_text_color(192, 0, 0)
            pdf.set_font("Helvetica", "B", 9)
            pdf.cell(0, 6, _pdf_safe(
                f"Achtung: {report.unjustified_absences} unentschuldigte Fehlstunden."
            ), new_x="LMARGIN", new_y="NEXT")
            pdf.set_text_color(0, 0, 0)
