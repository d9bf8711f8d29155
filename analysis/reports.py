"""Auswertungen auf Basis des Leistungsrechners.

Schülerbericht (alle Fächer eines Schülers), Fachbericht (alle Schüler eines
Fachangebots), Fehlzeiten je Fach und die geschätzte Anwesenheitsquote. Jede
Zeile ruft summarize_offering unabhängig auf.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from analysis.performance import (
    AbsenceTotals,
    compute_absence_totals,
    required_value_for_pass,
    summarize_offering,
)
from config.schema import AttendancePolicy, GradingPolicy
from data.directory import RecordDirectory
from models.offering import SubjectOffering
from models.student import Student
from models.summary import PassStatus, SubjectOfferingSummary

logger = logging.getLogger(__name__)


# ─── Berichts-Modelle ─────────────────────────────────────────────────────────

class OfferingReportRow(BaseModel):
    """Ein Fach im Schülerbericht."""

    offering: SubjectOffering
    summary: SubjectOfferingSummary
    required_value: Optional[float] = None   # Mindestnote in fehlenden Pflicht-Typen


class StudentReport(BaseModel):
    """Alle Fächer eines Schülers."""

    student: Student
    rows: list[OfferingReportRow]
    pass_threshold: float
    total_absences: int
    justified_absences: int
    unjustified_absences: int
    approved_count: int
    failed_count: int
    pending_count: int
    overall_average: Optional[float]      # Mittel der Fächer mit mindestens einer Note
    unjustified_warning: bool


class StudentReportRow(BaseModel):
    """Ein Schüler im Fachbericht."""

    student: Student
    summary: SubjectOfferingSummary


class OfferingReport(BaseModel):
    """Alle Schüler eines Fachangebots."""

    offering: SubjectOffering
    rows: list[StudentReportRow]
    pass_threshold: float
    class_average: Optional[float]        # Mittel über Schüler mit mindestens einer Note
    approved_count: int
    failed_count: int
    pending_count: int
    absence_risk: list[str]               # Schüler-IDs ab Fehlzeiten-Schwelle


class SubjectAttendanceRow(BaseModel):
    """Fehlzeiten eines Schülers in einem Fach."""

    offering: SubjectOffering
    total: int
    justified: int
    unjustified: int


def _status_counts(summaries: list[SubjectOfferingSummary]) -> tuple[int, int, int]:
    approved = sum(1 for s in summaries if s.status == PassStatus.APPROVED)
    failed = sum(1 for s in summaries if s.status == PassStatus.FAILED)
    pending = sum(1 for s in summaries if s.status == PassStatus.PENDING)
    return approved, failed, pending


def _mean_of_graded(summaries: list[SubjectOfferingSummary]) -> Optional[float]:
    graded = [s.weighted_average for s in summaries if s.has_evaluations]
    return sum(graded) / len(graded) if graded else None


# ─── Schülerbericht ───────────────────────────────────────────────────────────

def build_student_report(
    directory: RecordDirectory,
    student_id: str,
    policy: Optional[GradingPolicy] = None,
    attendance: Optional[AttendancePolicy] = None,
) -> StudentReport:
    """Leistungsbilanz eines Schülers über alle belegten Fachangebote."""
    policy = policy or GradingPolicy()
    attendance = attendance or AttendancePolicy()
    student = directory.student(student_id)

    rows: list[OfferingReportRow] = []
    for offering in directory.offerings_for_student(student_id):
        evaluations = directory.evaluations_for(student_id, offering.id)
        absences = directory.absences_for(student_id, offering.id)
        summary = summarize_offering(evaluations, absences, policy)
        rows.append(OfferingReportRow(
            offering=offering,
            summary=summary,
            required_value=required_value_for_pass(evaluations, policy),
        ))

    summaries = [r.summary for r in rows]
    approved, failed, pending = _status_counts(summaries)
    total = sum(s.total_absences for s in summaries)
    justified = sum(s.justified_absences for s in summaries)

    logger.debug(
        f"Schülerbericht {student_id}: {len(rows)} Fächer, "
        f"{approved} bestanden / {failed} nicht bestanden / {pending} ausstehend"
    )
    return StudentReport(
        student=student,
        rows=rows,
        pass_threshold=policy.pass_threshold,
        total_absences=total,
        justified_absences=justified,
        unjustified_absences=total - justified,
        approved_count=approved,
        failed_count=failed,
        pending_count=pending,
        overall_average=_mean_of_graded(summaries),
        unjustified_warning=(total - justified) >= attendance.unjustified_warning_threshold,
    )


# ─── Fachbericht ──────────────────────────────────────────────────────────────

def build_offering_report(
    directory: RecordDirectory,
    offering_id: str,
    policy: Optional[GradingPolicy] = None,
    attendance: Optional[AttendancePolicy] = None,
) -> OfferingReport:
    """Leistungsbilanz aller eingeschriebenen Schüler eines Fachangebots."""
    policy = policy or GradingPolicy()
    attendance = attendance or AttendancePolicy()
    offering = directory.offering(offering_id)

    rows = [
        StudentReportRow(
            student=student,
            summary=summarize_offering(
                directory.evaluations_for(student.id, offering_id),
                directory.absences_for(student.id, offering_id),
                policy,
            ),
        )
        for student in directory.students_in_offering(offering_id)
    ]

    summaries = [r.summary for r in rows]
    approved, failed, pending = _status_counts(summaries)
    risk = [
        r.student.id for r in rows
        if r.summary.total_absences >= attendance.absence_alert_threshold
    ]
    return OfferingReport(
        offering=offering,
        rows=rows,
        pass_threshold=policy.pass_threshold,
        class_average=_mean_of_graded(summaries),
        approved_count=approved,
        failed_count=failed,
        pending_count=pending,
        absence_risk=risk,
    )


# ─── Fehlzeiten je Fach ───────────────────────────────────────────────────────

def attendance_by_subject(directory: RecordDirectory, student_id: str) -> list[SubjectAttendanceRow]:
    """Fehlzeiten des Schülers je Fachangebot (nur Fächer mit Einträgen)."""
    rows = []
    for offering in directory.offerings_for_student(student_id):
        absences = directory.absences_for(student_id, offering.id)
        if not absences:
            continue
        totals: AbsenceTotals = compute_absence_totals(absences)
        rows.append(SubjectAttendanceRow(
            offering=offering,
            total=totals.total,
            justified=totals.justified,
            unjustified=totals.unjustified,
        ))
    return rows


def estimate_attendance_rate(
    total_absences: int,
    offering_count: int,
    enrollment_count: int,
    lessons_per_period: int = 20,
) -> float:
    """Geschätzte Anwesenheitsquote in Prozent (eine Nachkommastelle).

    Annahme: jedes Fachangebot hat lessons_per_period Stunden je eingeschriebenem
    Schüler. Ohne Nenner → 100.0.
    """
    estimated_lessons = offering_count * enrollment_count * lessons_per_period
    if estimated_lessons <= 0:
        return 100.0
    rate = max(0.0, (estimated_lessons - total_absences) / estimated_lessons * 100)
    return round(rate, 1)
