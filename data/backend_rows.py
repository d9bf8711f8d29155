"""Grenzschicht zum Backend: lose typisierte Tabellenzeilen → validierte Datensätze.

Das Backend liefert Zeilen der Tabellen "grades" und "attendance" als Dicts
(grade_type, grade_value, evaluation_date, absence_count, ...). Hier werden sie
in EvaluationRecord / AbsenceRecord überführt, bevor sie den Leistungsrechner
erreichen.
"""

import json
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from config.schema import InputHandling
from models.absence import AbsenceRecord
from models.enrollment import Enrollment
from models.evaluation import EvaluationRecord, EvaluationType
from models.gradebook import GradebookData
from models.offering import SubjectOffering
from models.student import Student

logger = logging.getLogger(__name__)


class BackendRowError(ValueError):
    """Zeile aus dem Backend kann nicht übernommen werden."""


# ─── Feld-Hilfen ──────────────────────────────────────────────────────────────

def _pick(row: dict, *keys: str, required: bool = True) -> Any:
    """Erster vorhandener, nicht-leerer Schlüssel (Backend- oder Modellname)."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    if required:
        raise BackendRowError(f"Pflichtfeld fehlt: {' / '.join(keys)}")
    return None


def _parse_date(raw: Any, field: str) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        # Backend liefert "2024-03-15" oder "2024-03-15T10:00:00+00:00"
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        raise BackendRowError(f"Ungültiges Datum in '{field}': {raw!r}") from None


def _parse_float(raw: Any, field: str) -> float:
    try:
        return float(str(raw).replace(",", "."))
    except ValueError:
        raise BackendRowError(f"Ungültige Zahl in '{field}': {raw!r}") from None


def _opt_str(row: dict, *keys: str) -> Optional[str]:
    value = _pick(row, *keys, required=False)
    return str(value) if value is not None else None


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ("true", "1", "ja", "sim", "yes", "x")


def _with_context(index: Optional[int], msg: str) -> str:
    return f"Zeile {index}: {msg}" if index is not None else msg


# ─── Noten ────────────────────────────────────────────────────────────────────

def parse_evaluation_row(
    row: dict,
    handling: InputHandling = InputHandling.REJECT,
    index: Optional[int] = None,
) -> EvaluationRecord:
    """Backend-Zeile der Tabelle "grades" → EvaluationRecord."""
    try:
        raw_type = _pick(row, "grade_type", "type")
        try:
            etype = EvaluationType.parse(raw_type)
        except ValueError as e:
            raise BackendRowError(str(e)) from None

        value = _parse_float(_pick(row, "grade_value", "value"), "grade_value")
        if not 0.0 <= value <= 10.0:
            if handling == InputHandling.CLAMP and math.isfinite(value):
                clamped = min(10.0, max(0.0, value))
                logger.warning(_with_context(
                    index, f"Note {value} außerhalb [0, 10] – auf {clamped} begrenzt"))
                value = clamped
            else:
                raise BackendRowError(f"Note {value} außerhalb des Bereichs [0, 10]")

        return EvaluationRecord(
            id=_opt_str(row, "id"),
            student_id=str(_pick(row, "student_id")),
            offering_id=str(_pick(row, "class_subject_id", "offering_id")),
            type=etype,
            value=value,
            date=_parse_date(_pick(row, "evaluation_date", "date"), "evaluation_date"),
            teacher_id=_opt_str(row, "teacher_id"),
            description=_pick(row, "description", required=False),
        )
    except BackendRowError as e:
        raise BackendRowError(_with_context(index, str(e))) from None
    except ValidationError as e:
        raise BackendRowError(_with_context(index, f"Ungültige Note: {e}")) from e


# ─── Fehlzeiten ───────────────────────────────────────────────────────────────

def parse_absence_row(
    row: dict,
    handling: InputHandling = InputHandling.REJECT,
    index: Optional[int] = None,
) -> AbsenceRecord:
    """Backend-Zeile der Tabelle "attendance" → AbsenceRecord."""
    try:
        raw_count = _pick(row, "absence_count", "count", required=False)
        count_f = _parse_float(raw_count, "absence_count") if raw_count is not None else 1.0
        if not math.isfinite(count_f) or count_f != int(count_f):
            raise BackendRowError(f"Fehlstundenzahl muss ganzzahlig sein: {raw_count!r}")
        count = int(count_f)
        if count < 1:
            if handling == InputHandling.CLAMP:
                logger.warning(_with_context(
                    index, f"Fehlstundenzahl {count} < 1 – auf 1 begrenzt"))
                count = 1
            else:
                raise BackendRowError(f"Fehlstundenzahl muss >= 1 sein (ist {count})")

        return AbsenceRecord(
            id=_opt_str(row, "id"),
            student_id=str(_pick(row, "student_id")),
            offering_id=str(_pick(row, "class_subject_id", "offering_id")),
            date=_parse_date(_pick(row, "absence_date", "date"), "absence_date"),
            count=count,
            justified=_parse_bool(row.get("justified", False)),
            justification=_pick(row, "justification", required=False),
            teacher_id=_opt_str(row, "teacher_id"),
        )
    except BackendRowError as e:
        raise BackendRowError(_with_context(index, str(e))) from None
    except ValidationError as e:
        raise BackendRowError(_with_context(index, f"Ungültige Fehlzeit: {e}")) from e


# ─── Komplett-Export des Backends ─────────────────────────────────────────────

def _keyed_row(row: dict) -> tuple[str, dict]:
    return str(_pick(row, "id")), row


def _parse_table(tables: dict, name: str, parse: Callable[[dict], Any]) -> list:
    """Wendet parse auf jede Zeile der Tabelle an; Fehler mit Tabelle und Zeilennummer."""
    rows = tables.get(name) or []
    if not isinstance(rows, list):
        raise BackendRowError(f"Tabelle '{name}': erwartet eine Liste von Zeilen.")
    result = []
    for i, row in enumerate(rows, start=1):
        try:
            if not isinstance(row, dict):
                raise BackendRowError(f"erwartet ein Objekt, erhalten: {type(row).__name__}")
            result.append(parse(row))
        except BackendRowError as e:
            raise BackendRowError(f"Tabelle '{name}', {_with_context(i, str(e))}") from None
        except ValidationError as e:
            raise BackendRowError(
                f"Tabelle '{name}', {_with_context(i, f'ungültiger Eintrag: {e}')}"
            ) from e
    return result


def gradebook_from_tables(
    tables: dict[str, list[dict]],
    handling: InputHandling = InputHandling.REJECT,
    school_name: str = "",
) -> GradebookData:
    """Baut einen GradebookData-Datensatz aus den Backend-Tabellen.

    Erwartete Tabellen: users, classes, subjects, class_subjects, enrollments,
    grades, attendance. Fehlende Tabellen gelten als leer.
    """
    classes = dict(_parse_table(tables, "classes", _keyed_row))
    subjects = dict(_parse_table(tables, "subjects", _keyed_row))
    users = _parse_table(tables, "users", _keyed_row)
    user_names = {uid: str(u.get("full_name") or uid) for uid, u in users}

    def student_row(u: dict) -> Optional[Student]:
        if (u.get("role") or "aluno") != "aluno":
            return None
        sid = str(_pick(u, "id"))
        return Student(
            id=sid,
            full_name=str(_pick(u, "full_name", required=False) or sid),
            registration=_opt_str(u, "student_registration"),
            email=_opt_str(u, "email"),
            active=(u.get("status") or "active") == "active",
        )

    def offering_row(cs: dict) -> SubjectOffering:
        subject_id = _opt_str(cs, "subject_id")
        class_id = _opt_str(cs, "class_id")
        subj = subjects.get(subject_id, {})
        cls = classes.get(class_id, {})
        teacher_id = _opt_str(cs, "teacher_id")
        subject_name = str(_pick(subj, "name", required=False) or subject_id or "?")
        return SubjectOffering(
            id=str(_pick(cs, "id")),
            subject_name=subject_name,
            subject_code=str(_pick(subj, "code", required=False) or subject_name[:3].upper()),
            class_name=str(_pick(cls, "name", required=False) or class_id or "?"),
            teacher_id=teacher_id,
            teacher_name=user_names.get(teacher_id) if teacher_id else None,
            workload_hours=_pick(cs, "workload_hours", required=False),
        )

    def enrollment_row(en: dict) -> Enrollment:
        class_id = str(_pick(en, "class_id"))
        return Enrollment(
            student_id=str(_pick(en, "student_id")),
            class_name=str(_pick(classes.get(class_id, {}), "name", required=False) or class_id),
            active=(en.get("status") or "active") == "active",
        )

    students = [s for s in _parse_table(tables, "users", student_row) if s is not None]
    offerings = _parse_table(tables, "class_subjects", offering_row)
    enrollments = _parse_table(tables, "enrollments", enrollment_row)

    evaluations = [
        parse_evaluation_row(row, handling, index=i)
        for i, row in enumerate(tables.get("grades", []), start=1)
    ]
    absences = [
        parse_absence_row(row, handling, index=i)
        for i, row in enumerate(tables.get("attendance", []), start=1)
    ]
    logger.info(
        f"Backend-Export: {len(students)} Schüler, {len(offerings)} Fachangebote, "
        f"{len(evaluations)} Noten, {len(absences)} Fehlzeiten"
    )

    return GradebookData(
        students=students,
        offerings=offerings,
        enrollments=enrollments,
        evaluations=evaluations,
        absences=absences,
        school_name=school_name,
    )


def load_backend_export(
    path: Path,
    handling: InputHandling = InputHandling.REJECT,
    school_name: str = "",
) -> GradebookData:
    """Lädt einen JSON-Export des Backends ({"tabelle": [zeilen...]})."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Backend-Export nicht gefunden: {path}")
    with open(path, "r", encoding="utf-8") as f:
        tables = json.load(f)
    if not isinstance(tables, dict):
        raise BackendRowError(f"{path}: erwartet ein Objekt mit Tabellen als Schlüssel.")
    return gradebook_from_tables(tables, handling, school_name)
