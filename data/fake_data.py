"""Testdaten-Generator für die Leistungsbilanz.

Erzeugt ein reproduzierbares Notenbuch mit absichtlichen Sonderfällen:

  1. Ausstehend: S001 hat im ersten Fach nur eine Prüfung, keine Hausarbeit
  2. Genau auf der Grenze: S002 hat im ersten Fach Prüfung und Hausarbeit
     exakt auf der Bestehensgrenze
  3. Viele unentschuldigte Fehlstunden: S003 liegt deutlich über der Warnschwelle
  4. Typen ohne eigenes Gewicht: S004 hat Projekt und Nachprüfung im ersten Fach
  5. Leeres Fach: S005 hat im zweiten Fach weder Noten noch Fehlzeiten
"""

import random
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from config.schema import AppConfig
from models.absence import AbsenceRecord
from models.enrollment import Enrollment
from models.evaluation import EvaluationRecord, EvaluationType
from models.gradebook import GradebookData
from models.offering import SubjectOffering
from models.student import Student

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Ana", "Beatriz", "Bruno", "Camila", "Carlos", "Daniel", "Eduarda",
    "Felipe", "Gabriel", "Helena", "Igor", "Julia", "Lucas", "Mariana",
    "Mateus", "Natália", "Otávio", "Pedro", "Rafaela", "Sofia", "Thiago",
    "Valentina", "Vinícius", "Yasmin",
]

_LAST_NAMES = [
    "Silva", "Santos", "Oliveira", "Souza", "Rodrigues", "Ferreira",
    "Alves", "Pereira", "Lima", "Gomes", "Costa", "Ribeiro", "Martins",
    "Carvalho", "Almeida", "Lopes", "Soares", "Fernandes", "Vieira", "Barbosa",
]

_TEACHERS = ["Prof. Lima", "Profa. Costa", "Prof. Almeida", "Profa. Ribeiro"]

_SUBJECTS = [
    ("Matemática", "MAT"),
    ("Português", "POR"),
    ("História", "HIS"),
    ("Ciências", "CIE"),
]

_CLASSES = ["1º Ano A", "1º Ano B"]

_JUSTIFICATIONS = ["Atestado médico", "Consulta odontológica", "Viagem familiar", "Luto"]

_PERIOD_START = date(2024, 2, 5)
_PERIOD_DAYS = 140


class FakeDataGenerator:
    """Erzeugt ein Demo-Notenbuch. Gleicher Seed → gleiche Datensätze."""

    def __init__(self, config: AppConfig, seed: Optional[int] = 42,
                 students_per_class: int = 8) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.students_per_class = students_per_class
        self._grade_seq = 0
        self._absence_seq = 0

    # ─── Hilfen ───────────────────────────────────────────────────────────────

    def _random_date(self) -> date:
        return _PERIOD_START + timedelta(days=self.rng.randrange(_PERIOD_DAYS))

    def _random_value(self) -> float:
        """Note in 0,5er-Schritten, leicht Richtung Mittelfeld verteilt."""
        raw = self.rng.triangular(3.0, 10.0, 7.5)
        return round(raw * 2) / 2

    def _evaluation(self, student_id: str, offering: SubjectOffering,
                    etype: EvaluationType, value: float) -> EvaluationRecord:
        self._grade_seq += 1
        return EvaluationRecord(
            id=f"G{self._grade_seq:05d}",
            student_id=student_id,
            offering_id=offering.id,
            type=etype,
            value=value,
            date=self._random_date(),
            teacher_id=offering.teacher_id,
        )

    def _absence(self, student_id: str, offering: SubjectOffering, count: int,
                 justified: bool) -> AbsenceRecord:
        self._absence_seq += 1
        return AbsenceRecord(
            id=f"A{self._absence_seq:05d}",
            student_id=student_id,
            offering_id=offering.id,
            date=self._random_date(),
            count=count,
            justified=justified,
            justification=self.rng.choice(_JUSTIFICATIONS) if justified else None,
            teacher_id=offering.teacher_id,
        )

    # ─── Stammdaten ───────────────────────────────────────────────────────────

    def _generate_students(self) -> tuple[list[Student], list[Enrollment]]:
        students: list[Student] = []
        enrollments: list[Enrollment] = []
        used_names: set[str] = set()
        n = 0
        for class_name in _CLASSES:
            for _ in range(self.students_per_class):
                n += 1
                while True:
                    name = f"{self.rng.choice(_FIRST_NAMES)} {self.rng.choice(_LAST_NAMES)}"
                    if name not in used_names:
                        used_names.add(name)
                        break
                sid = f"S{n:03d}"
                students.append(Student(
                    id=sid,
                    full_name=name,
                    registration=f"2024{n:03d}",
                    email=f"{sid.lower()}@escola.example.org",
                ))
                enrollments.append(Enrollment(student_id=sid, class_name=class_name))
        return students, enrollments

    def _generate_offerings(self) -> list[SubjectOffering]:
        offerings: list[SubjectOffering] = []
        n = 0
        for class_name in _CLASSES:
            for i, (subject, code) in enumerate(_SUBJECTS):
                n += 1
                offerings.append(SubjectOffering(
                    id=f"O{n:03d}",
                    subject_name=subject,
                    subject_code=code,
                    class_name=class_name,
                    teacher_id=f"T{i + 1:02d}",
                    teacher_name=_TEACHERS[i],
                    workload_hours=80,
                ))
        return offerings

    # ─── Noten & Fehlzeiten ───────────────────────────────────────────────────

    def _regular_pair(self, student_id: str, offering: SubjectOffering
                      ) -> tuple[list[EvaluationRecord], list[AbsenceRecord]]:
        """Zufällige Noten (je Typ höchstens eine) und Fehlzeiten für ein Paar."""
        evaluations = [
            self._evaluation(student_id, offering, EvaluationType.EXAM, self._random_value()),
            self._evaluation(student_id, offering, EvaluationType.ASSIGNMENT, self._random_value()),
        ]
        if self.rng.random() < 0.3:
            evaluations.append(self._evaluation(
                student_id, offering, EvaluationType.PARTICIPATION, self._random_value()))
        absences = [
            self._absence(student_id, offering, self.rng.randint(1, 2), self.rng.random() < 0.4)
            for _ in range(self.rng.randint(0, 2))
        ]
        return evaluations, absences

    def _special_pair(self, student_id: str, offering: SubjectOffering, case: str
                      ) -> tuple[list[EvaluationRecord], list[AbsenceRecord]]:
        threshold = self.config.grading.pass_threshold
        if case == "pending":
            return [self._evaluation(student_id, offering, EvaluationType.EXAM, 8.0)], []
        if case == "threshold":
            return [
                self._evaluation(student_id, offering, EvaluationType.EXAM, threshold),
                self._evaluation(student_id, offering, EvaluationType.ASSIGNMENT, threshold),
            ], []
        if case == "extra_types":
            return [
                self._evaluation(student_id, offering, EvaluationType.EXAM, 5.0),
                self._evaluation(student_id, offering, EvaluationType.ASSIGNMENT, 6.5),
                self._evaluation(student_id, offering, EvaluationType.PROJECT, 9.0),
                self._evaluation(student_id, offering, EvaluationType.MAKEUP, 8.0),
            ], []
        if case == "empty":
            return [], []
        raise ValueError(f"Unbekannter Sonderfall: {case}")

    def generate(self) -> GradebookData:
        """Erzeugt den vollständigen Datensatz."""
        students, enrollments = self._generate_students()
        offerings = self._generate_offerings()
        by_class: dict[str, list[SubjectOffering]] = {}
        for o in offerings:
            by_class.setdefault(o.class_name, []).append(o)

        first, second = offerings[0].id, offerings[1].id
        special = {
            ("S001", first): "pending",
            ("S002", first): "threshold",
            ("S004", first): "extra_types",
            ("S005", second): "empty",
        }

        evaluations: list[EvaluationRecord] = []
        absences: list[AbsenceRecord] = []
        for enrollment in enrollments:
            for offering in by_class[enrollment.class_name]:
                case = special.get((enrollment.student_id, offering.id))
                if case:
                    evs, abs_ = self._special_pair(enrollment.student_id, offering, case)
                else:
                    evs, abs_ = self._regular_pair(enrollment.student_id, offering)
                evaluations.extend(evs)
                absences.extend(abs_)

        # Sonderfall 3: viele unentschuldigte Fehlstunden, über die Fächer verteilt
        heavy = self.config.attendance.unjustified_warning_threshold + 3
        s003_offerings = by_class[_CLASSES[0]]
        for i in range(heavy):
            absences.append(self._absence("S003", s003_offerings[i % len(s003_offerings)],
                                          1, False))

        now = datetime.now(timezone.utc)
        return GradebookData(
            students=students,
            offerings=offerings,
            enrollments=enrollments,
            evaluations=evaluations,
            absences=absences,
            school_name=self.config.school_name,
            created_at=now,
            modified_at=now,
        )

    def print_summary(self, data: GradebookData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        classes = sorted({o.class_name for o in data.offerings})
        by_type: dict[str, int] = {}
        for ev in data.evaluations:
            by_type[ev.type.value] = by_type.get(ev.type.value, 0) + 1
        unjustified = sum(a.count for a in data.absences if not a.justified)

        table.add_row("Schüler", str(len(data.students)), f"{len(classes)} Klassen")
        table.add_row("Fachangebote", str(len(data.offerings)), ", ".join(classes))
        table.add_row("Noten", str(len(data.evaluations)),
                      ", ".join(f"{k}: {v}" for k, v in sorted(by_type.items())))
        table.add_row("Fehlzeiten-Einträge", str(len(data.absences)),
                      f"{unjustified} unentschuldigte Fehlstunden")
        console.print(table)
        console.print(
            "[dim]Sonderfälle: S001 ausstehend, S002 genau auf der Grenze, "
            "S003 viele Fehlstunden, S004 Projekt/Nachprüfung, S005 leeres Fach[/dim]"
        )
