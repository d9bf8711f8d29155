"""Excel-Import und Template-Generator für Notenbuch-Daten.

Template-Generator: Excel-Vorlage mit Kopfzeilen und je einer Beispielzeile.
Import-Funktion:    Excel → GradebookData mit Validierung und IntegrityReport.
"""

import logging
from datetime import date
from pathlib import Path

from config.defaults import EVALUATION_TYPE_METADATA, type_label
from config.schema import AppConfig
from data.backend_rows import BackendRowError, parse_absence_row, parse_evaluation_row
from models.absence import AbsenceRecord
from models.enrollment import Enrollment
from models.evaluation import EvaluationRecord, EvaluationType
from models.gradebook import GradebookData, IntegrityReport
from models.offering import SubjectOffering
from models.student import Student

logger = logging.getLogger(__name__)


class ExcelImportError(Exception):
    """Fehler beim Excel-Import."""


# ─── Blatt-Layout ─────────────────────────────────────────────────────────────
# Blattname → Spaltenköpfe (Pflichtspalten zuerst)

SHEET_COLUMNS: dict[str, list[str]] = {
    "Schüler":    ["ID", "Name", "Matrikel", "E-Mail", "Klasse"],
    "Fächer":     ["ID", "Fach", "Kürzel", "Klasse", "Lehrkraft"],
    "Noten":      ["Schüler-ID", "Fach-ID", "Typ", "Note", "Datum", "Beschreibung"],
    "Fehlzeiten": ["Schüler-ID", "Fach-ID", "Datum", "Anzahl", "Entschuldigt", "Begründung"],
}

REQUIRED_COLUMNS: dict[str, list[str]] = {
    "Schüler":    ["id", "name"],
    "Fächer":     ["id", "fach", "klasse"],
    "Noten":      ["schüler-id", "fach-id", "typ", "note", "datum"],
    "Fehlzeiten": ["schüler-id", "fach-id", "datum"],
}

_EXAMPLE_ROWS: dict[str, list] = {
    "Schüler":    ["S001", "Ana Souza", "2024001", "ana@example.org", "1A"],
    "Fächer":     ["O001", "Matemática", "MAT", "1A", "Prof. Lima"],
    "Noten":      ["S001", "O001", "Prüfung", 7.5, date(2024, 3, 15), "1. Prüfung"],
    "Fehlzeiten": ["S001", "O001", date(2024, 3, 18), 2, "ja", "Arzttermin"],
}

# Deutsche Anzeigenamen ("prüfung") zusätzlich zu Wert und Backend-Code
_LABEL_TO_TYPE: dict[str, EvaluationType] = {
    meta["label"].lower(): etype for etype, meta in EVALUATION_TYPE_METADATA.items()
}


# ─── TEMPLATE-GENERATOR ───────────────────────────────────────────────────────

def generate_template(config: AppConfig, path: Path) -> None:
    """Erzeugt eine Excel-Vorlage mit den Blättern Schüler, Fächer, Noten, Fehlzeiten.

    Jedes Blatt hat eine Kopfzeile und eine kursiv-graue Beispielzeile, die
    sich unverändert importieren lässt.
    """
    import openpyxl
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter
    from openpyxl.worksheet.datavalidation import DataValidation

    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    # ── Hilfs-Styles ─────────────────────────────────────────────────────────
    hdr_font = Font(bold=True, color="FFFFFF", size=11)
    hdr_fill = PatternFill("solid", fgColor="2E6DA4")
    ex_font = Font(italic=True, color="888888")
    ex_fill = PatternFill("solid", fgColor="F5F5F5")
    center = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="BBBBBB")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for sheet_name, headers in SHEET_COLUMNS.items():
        ws = wb.create_sheet(sheet_name)
        for col, h in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=h)
            cell.font = hdr_font
            cell.fill = hdr_fill
            cell.alignment = center
            cell.border = border
            ws.column_dimensions[get_column_letter(col)].width = max(14, len(h) + 4)
        for col, val in enumerate(_EXAMPLE_ROWS[sheet_name], 1):
            cell = ws.cell(row=2, column=col, value=val)
            cell.font = ex_font
            cell.fill = ex_fill
            cell.border = border
            if isinstance(val, date):
                cell.number_format = "DD.MM.YYYY"
        ws.freeze_panes = "A2"

    # Auswahllisten für Typ und Entschuldigt
    types = ",".join(type_label(t) for t in EvaluationType)
    dv_type = DataValidation(type="list", formula1=f'"{types}"', allow_blank=False)
    wb["Noten"].add_data_validation(dv_type)
    dv_type.add("C2:C1000")
    dv_just = DataValidation(type="list", formula1='"ja,nein"', allow_blank=True)
    wb["Fehlzeiten"].add_data_validation(dv_just)
    dv_just.add("E2:E1000")

    # Hinweisblatt
    ws_info = wb.create_sheet("Hinweise")
    ws_info.column_dimensions["A"].width = 90
    hints = [
        f"Vorlage für {config.school_name}",
        "Schüler: 'Klasse' kann mehrere Klassen enthalten (Komma-getrennt).",
        "Noten: Typ als Anzeigename (z.B. Prüfung), englischer Wert oder Backend-Code.",
        "Noten: Werte von 0 bis 10; Datum als Datum oder JJJJ-MM-TT.",
        "Fehlzeiten: Anzahl >= 1; Entschuldigt = ja/nein.",
        "Die grauen Beispielzeilen werden mit importiert; vor dem Import löschen.",
    ]
    for r, text in enumerate(hints, 1):
        cell = ws_info.cell(row=r, column=1, value=text)
        if r == 1:
            cell.font = Font(bold=True, size=12)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    logger.info(f"Template geschrieben: {path}")


# ─── IMPORTER ─────────────────────────────────────────────────────────────────

class ExcelImporter:
    """Importiert Notenbuch-Daten aus einer Excel-Vorlage."""

    def __init__(self, path: Path, config: AppConfig) -> None:
        self.path = Path(path)
        self.config = config
        self._wb = None
        self._errors: list[str] = []

    def _open(self):
        if not self.path.exists():
            raise ExcelImportError(f"Datei nicht gefunden: {self.path}")
        try:
            import openpyxl
            self._wb = openpyxl.load_workbook(
                str(self.path), read_only=True, data_only=True
            )
        except Exception as e:
            raise ExcelImportError(f"Fehler beim Öffnen der Excel-Datei: {e}") from e

    def _get_sheet(self, name: str):
        if self._wb is None:
            self._open()
        for sn in self._wb.sheetnames:
            if sn.strip().lower() == name.strip().lower():
                return self._wb[sn]
        return None

    def _sheet_rows(self, name: str) -> list[tuple[int, dict]]:
        """Tabellenblatt → Liste von (Zeilennummer, Dict) (erste Zeile = Header)."""
        sheet = self._get_sheet(name)
        if sheet is None:
            raise ExcelImportError(f"Blatt '{name}' fehlt.")
        rows = list(sheet.iter_rows(values_only=True))
        if not rows:
            raise ExcelImportError(f"Blatt '{name}' ist leer (keine Kopfzeile).")
        headers = [
            str(h).strip().lower() if h is not None else f"col_{i}"
            for i, h in enumerate(rows[0])
        ]
        missing = [c for c in REQUIRED_COLUMNS[name] if c not in headers]
        if missing:
            raise ExcelImportError(f"Blatt '{name}': Spalten fehlen: {', '.join(missing)}")

        result = []
        for row_no, row in enumerate(rows[1:], start=2):
            if all(v is None or v == "" for v in row):
                continue
            result.append((row_no, {
                headers[i]: (v.strip() if isinstance(v, str) else v)
                for i, v in enumerate(row)
                if i < len(headers)
            }))
        return result

    @staticmethod
    def _text(row: dict, key: str) -> str:
        value = row.get(key)
        if value is None:
            return ""
        # Excel liefert Zahlen-IDs als float (2024001.0)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    # ── Stammdaten ──────────────────────────────────────────────────────────

    def import_students(self) -> tuple[list[Student], list[Enrollment]]:
        students: list[Student] = []
        enrollments: list[Enrollment] = []
        seen: set[str] = set()
        for row_no, row in self._sheet_rows("Schüler"):
            sid, name = self._text(row, "id"), self._text(row, "name")
            if not sid or not name:
                self._errors.append(f"Schüler Zeile {row_no}: ID und Name sind Pflicht.")
                continue
            if sid in seen:
                self._errors.append(f"Schüler Zeile {row_no}: doppelte ID '{sid}'.")
                continue
            seen.add(sid)
            students.append(Student(
                id=sid,
                full_name=name,
                registration=self._text(row, "matrikel") or None,
                email=self._text(row, "e-mail") or None,
            ))
            for class_name in self._text(row, "klasse").replace(";", ",").split(","):
                if class_name.strip():
                    enrollments.append(Enrollment(student_id=sid, class_name=class_name.strip()))
        return students, enrollments

    def import_offerings(self) -> list[SubjectOffering]:
        offerings: list[SubjectOffering] = []
        seen: set[str] = set()
        for row_no, row in self._sheet_rows("Fächer"):
            oid = self._text(row, "id")
            subject, class_name = self._text(row, "fach"), self._text(row, "klasse")
            if not oid or not subject or not class_name:
                self._errors.append(f"Fächer Zeile {row_no}: ID, Fach und Klasse sind Pflicht.")
                continue
            if oid in seen:
                self._errors.append(f"Fächer Zeile {row_no}: doppelte ID '{oid}'.")
                continue
            seen.add(oid)
            teacher = self._text(row, "lehrkraft") or None
            offerings.append(SubjectOffering(
                id=oid,
                subject_name=subject,
                subject_code=self._text(row, "kürzel") or subject[:3].upper(),
                class_name=class_name,
                teacher_name=teacher,
            ))
        return offerings

    # ── Noten & Fehlzeiten ──────────────────────────────────────────────────

    def import_evaluations(self) -> list[EvaluationRecord]:
        records: list[EvaluationRecord] = []
        for row_no, row in self._sheet_rows("Noten"):
            raw_type = self._text(row, "typ")
            etype = _LABEL_TO_TYPE.get(raw_type.lower(), raw_type)
            try:
                records.append(parse_evaluation_row(
                    {
                        "student_id": self._text(row, "schüler-id"),
                        "offering_id": self._text(row, "fach-id"),
                        "type": etype.value if isinstance(etype, EvaluationType) else etype,
                        "value": row.get("note"),
                        "date": row.get("datum"),
                        "description": self._text(row, "beschreibung") or None,
                    },
                    self.config.input_handling,
                    index=row_no,
                ))
            except BackendRowError as e:
                self._errors.append(f"Noten {e}")
        return records

    def import_absences(self) -> list[AbsenceRecord]:
        records: list[AbsenceRecord] = []
        for row_no, row in self._sheet_rows("Fehlzeiten"):
            try:
                records.append(parse_absence_row(
                    {
                        "student_id": self._text(row, "schüler-id"),
                        "offering_id": self._text(row, "fach-id"),
                        "date": row.get("datum"),
                        "count": row.get("anzahl"),
                        "justified": self._text(row, "entschuldigt") or False,
                        "justification": self._text(row, "begründung") or None,
                    },
                    self.config.input_handling,
                    index=row_no,
                ))
            except BackendRowError as e:
                self._errors.append(f"Fehlzeiten {e}")
        return records

    def import_all(self) -> tuple[GradebookData, IntegrityReport]:
        """Importiert alle Blätter → GradebookData + IntegrityReport."""
        self._open()
        self._errors = []

        students, enrollments = self.import_students()
        offerings = self.import_offerings()
        evaluations = self.import_evaluations()
        absences = self.import_absences()

        if self._errors:
            raise ExcelImportError(
                f"Import mit {len(self._errors)} Fehlern:\n"
                + "\n".join(f"  • {e}" for e in self._errors)
            )

        gradebook = GradebookData(
            students=students,
            offerings=offerings,
            enrollments=enrollments,
            evaluations=evaluations,
            absences=absences,
            school_name=self.config.school_name,
        )
        logger.info(
            f"Excel-Import {self.path.name}: {len(students)} Schüler, "
            f"{len(offerings)} Fachangebote, {len(evaluations)} Noten"
        )
        return gradebook, gradebook.validate_integrity()


def import_from_excel(
    path: Path, config: AppConfig
) -> tuple[GradebookData, IntegrityReport]:
    """Importiert Notenbuch-Daten aus einer Excel-Vorlage.

    Args:
        path:   Pfad zur Excel-Datei (.xlsx)
        config: Konfiguration (Schulname, Umgang mit ungültigen Werten)

    Returns:
        (GradebookData, IntegrityReport)

    Raises:
        ExcelImportError: Bei fehlenden Blättern/Spalten oder ungültigen Zeilen.
    """
    return ExcelImporter(path, config).import_all()
