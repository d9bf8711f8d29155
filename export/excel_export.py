"""Excel-Export der Leistungsbilanz (openpyxl)."""

import re
from pathlib import Path
from typing import Optional

from analysis.reports import OfferingReport, build_offering_report
from config.schema import AppConfig, GradingPolicy
from data.directory import RecordDirectory
from models.gradebook import GradebookData

from export.helpers import (
    COLORS, absence_color, format_grade, grade_band, status_color, status_label, today_str,
)

_INVALID_SHEET_CHARS = re.compile(r"[\[\]\:\*\?\/\\]")


class ExcelExporter:
    """Exportiert die Fachberichte eines Datensatzes in eine Excel-Datei.

    Blätter: "Übersicht" (ein Fachangebot pro Zeile) + ein Blatt je Fachangebot.
    """

    # Spaltenbreiten (Excel-Einheiten)
    COL_NAME_W = 32
    COL_NUM_W = 12
    COL_STATUS_W = 18

    ROW_HEADER_H = 22

    def __init__(self, gradebook: GradebookData, policy: Optional[GradingPolicy],
                 config: AppConfig):
        self.data = gradebook
        self.config = config
        self.policy = policy or config.grading
        self.decimals = config.display.decimals
        self.directory = RecordDirectory(gradebook)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Erstellt die Excel-Datei mit allen Blättern."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        reports = [
            build_offering_report(self.directory, o.id, self.policy, self.config.attendance)
            for o in sorted(self.data.offerings, key=lambda o: (o.class_name, o.subject_name))
        ]

        self._sheet_uebersicht(wb, reports)
        used_titles: set[str] = {"Übersicht"}
        for report in reports:
            self._sheet_fach(wb, report, used_titles)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        """Schreibt eine weiße, fette Kopfzeile auf blauem Grund."""
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _set_widths(self, ws, widths: list[int]) -> None:
        from openpyxl.utils import get_column_letter
        for i, w in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(i)].width = w

    @staticmethod
    def _sheet_title(raw: str, used: set[str]) -> str:
        """Gültiger, eindeutiger Blattname (max. 31 Zeichen)."""
        base = _INVALID_SHEET_CHARS.sub("-", raw).strip() or "Fach"
        title = base[:31]
        n = 2
        while title in used:
            suffix = f" ({n})"
            title = base[:31 - len(suffix)] + suffix
            n += 1
        used.add(title)
        return title

    # ─── Übersicht ────────────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb, reports: list[OfferingReport]) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet("Übersicht")
        ws.cell(row=1, column=1, value=self.config.school_name).font = Font(bold=True, size=14)
        ws.cell(row=2, column=1,
                value=f"Stand {today_str()}  |  Bestehensgrenze "
                      f"{format_grade(self.policy.pass_threshold, self.decimals)}")

        headers = ["Fachangebot", "Lehrkraft", "Schüler", "Klassenschnitt",
                   "Bestanden", "Nicht bestanden", "Ausstehend", "Fehlzeiten-Risiko"]
        self._write_header_row(ws, headers, row=4)
        self._set_widths(ws, [self.COL_NAME_W, 24] + [self.COL_NUM_W] * 6)

        border = self._thin_border()
        for i, report in enumerate(reports, start=5):
            values = [
                report.offering.label,
                report.offering.teacher_name or "nicht zugewiesen",
                len(report.rows),
                format_grade(report.class_average, self.decimals),
                report.approved_count,
                report.failed_count,
                report.pending_count,
                len(report.absence_risk),
            ]
            for col, v in enumerate(values, 1):
                c = ws.cell(row=i, column=col, value=v)
                c.border = border
                if col > 2:
                    c.alignment = self._center_align(wrap=False)
            if report.class_average is not None:
                band = grade_band(report.class_average, self.config.display)
                ws.cell(row=i, column=4).fill = self._fill(band.color)

    # ─── Fachangebot ──────────────────────────────────────────────────────────

    def _sheet_fach(self, wb, report: OfferingReport, used_titles: set[str]) -> None:
        from openpyxl.styles import Font
        o = report.offering
        ws = wb.create_sheet(self._sheet_title(f"{o.subject_code} {o.class_name}", used_titles))
        ws.cell(row=1, column=1, value=o.label).font = Font(bold=True, size=12)

        headers = ["Schüler", "Matrikel", "Noten", "Schnitt", "Status",
                   "Fehlstunden", "entschuldigt", "unentschuldigt"]
        self._write_header_row(ws, headers, row=3)
        self._set_widths(ws, [self.COL_NAME_W, self.COL_NUM_W, 8, 10,
                              self.COL_STATUS_W, self.COL_NUM_W, self.COL_NUM_W, self.COL_NUM_W])

        border = self._thin_border()
        threshold = self.config.attendance.absence_alert_threshold
        for i, row in enumerate(report.rows, start=4):
            s = row.summary
            values = [
                row.student.full_name,
                row.student.registration or "",
                s.evaluation_count,
                format_grade(s.weighted_average if s.has_evaluations else None, self.decimals),
                status_label(s),
                s.total_absences,
                s.justified_absences,
                s.unjustified_absences,
            ]
            for col, v in enumerate(values, 1):
                c = ws.cell(row=i, column=col, value=v)
                c.border = border
                if col > 2:
                    c.alignment = self._center_align(wrap=False)
            ws.cell(row=i, column=5).fill = self._fill(status_color(s))
            ws.cell(row=i, column=6).fill = self._fill(absence_color(s.total_absences, threshold))
        ws.freeze_panes = "A4"

