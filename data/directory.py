"""In-Memory-Datenverzeichnis über einem GradebookData-Datensatz.

Liefert die Roh-Datensätze je (Schüler, Fachangebot), die der Leistungsrechner
auswertet, sowie die Filter der Noten- und Fehlzeitenlisten.
"""

from collections import defaultdict
from datetime import date
from typing import Optional

from models.absence import AbsenceRecord
from models.evaluation import EvaluationRecord, EvaluationType
from models.gradebook import GradebookData
from models.offering import SubjectOffering
from models.student import Student


class UnknownEntityError(KeyError):
    """Schüler oder Fachangebot existiert nicht im Datensatz."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unbekannter Eintrag"


class RecordDirectory:
    """Nur-Lese-Zugriff auf einen Datensatz mit vorberechneten Indizes."""

    def __init__(self, gradebook: GradebookData):
        self.gradebook = gradebook
        self._students = {s.id: s for s in gradebook.students}
        self._offerings = {o.id: o for o in gradebook.offerings}

        self._evals: dict[tuple[str, str], list[EvaluationRecord]] = defaultdict(list)
        for ev in gradebook.evaluations:
            self._evals[(ev.student_id, ev.offering_id)].append(ev)

        self._absences: dict[tuple[str, str], list[AbsenceRecord]] = defaultdict(list)
        for ab in gradebook.absences:
            self._absences[(ab.student_id, ab.offering_id)].append(ab)

        self._class_members: dict[str, list[str]] = defaultdict(list)
        for en in gradebook.enrollments:
            if en.active and en.student_id not in self._class_members[en.class_name]:
                self._class_members[en.class_name].append(en.student_id)

    # ─── Stammdaten ───────────────────────────────────────────────────────────

    def student(self, student_id: str) -> Student:
        try:
            return self._students[student_id]
        except KeyError:
            raise UnknownEntityError(f"Schüler '{student_id}' nicht gefunden.") from None

    def offering(self, offering_id: str) -> SubjectOffering:
        try:
            return self._offerings[offering_id]
        except KeyError:
            raise UnknownEntityError(f"Fachangebot '{offering_id}' nicht gefunden.") from None

    def offerings_for_student(self, student_id: str) -> list[SubjectOffering]:
        """Alle Fachangebote der Klassen, in die der Schüler aktiv eingeschrieben ist."""
        self.student(student_id)
        classes = {
            en.class_name for en in self.gradebook.enrollments
            if en.student_id == student_id and en.active
        }
        return sorted(
            (o for o in self.gradebook.offerings if o.class_name in classes),
            key=lambda o: (o.class_name, o.subject_name),
        )

    def students_in_offering(self, offering_id: str) -> list[Student]:
        """Eingeschriebene Schüler der Klasse des Fachangebots, nach Name sortiert."""
        offering = self.offering(offering_id)
        members = [self._students[sid] for sid in self._class_members.get(offering.class_name, [])
                   if sid in self._students]
        return sorted(members, key=lambda s: s.full_name)

    # ─── Datensätze je (Schüler, Fachangebot) ─────────────────────────────────

    def evaluations_for(self, student_id: str, offering_id: str) -> list[EvaluationRecord]:
        """Noten aufsteigend nach Datum."""
        return sorted(self._evals.get((student_id, offering_id), []), key=lambda e: e.date)

    def absences_for(self, student_id: str, offering_id: str) -> list[AbsenceRecord]:
        """Fehlzeiten absteigend nach Datum (neueste zuerst)."""
        return sorted(self._absences.get((student_id, offering_id), []),
                      key=lambda a: a.date, reverse=True)

    # ─── Listen-Filter ────────────────────────────────────────────────────────

    def filter_evaluations(
        self,
        offering_id: Optional[str] = None,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        type: Optional[EvaluationType] = None,
    ) -> list[EvaluationRecord]:
        """Filtert alle Noten; None = kein Filter."""
        result = self.gradebook.evaluations
        if offering_id:
            result = [e for e in result if e.offering_id == offering_id]
        if student_id:
            result = [e for e in result if e.student_id == student_id]
        if teacher_id:
            result = [e for e in result if e.teacher_id == teacher_id]
        if type is not None:
            result = [e for e in result if e.type == type]
        return list(result)

    def filter_absences(
        self,
        offering_id: Optional[str] = None,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        justified: Optional[bool] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[AbsenceRecord]:
        """Filtert alle Fehlzeiten; Datumsgrenzen inklusive."""
        result = self.gradebook.absences
        if offering_id:
            result = [a for a in result if a.offering_id == offering_id]
        if student_id:
            result = [a for a in result if a.student_id == student_id]
        if teacher_id:
            result = [a for a in result if a.teacher_id == teacher_id]
        if justified is not None:
            result = [a for a in result if a.justified == justified]
        if date_from is not None:
            result = [a for a in result if a.date >= date_from]
        if date_to is not None:
            result = [a for a in result if a.date <= date_to]
        return list(result)
