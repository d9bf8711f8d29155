"""Leistungsrechner: gewichteter Durchschnitt, Bestehens-Urteil und Fehlzeiten-Bilanz.

Reine Funktionen ohne I/O. Eingabe sind die Roh-Datensätze eines Schülers in
einem Fachangebot, Ausgabe eine SubjectOfferingSummary. Gerundet wird erst bei
der Anzeige (export.helpers.format_grade).

Ungültige Werte: EvaluationRecord/AbsenceRecord lehnen sie bereits bei der
Konstruktion ab. Datensätze, die diese Prüfung umgangen haben (model_construct),
werden hier auf den gültigen Bereich begrenzt und protokolliert; nicht-endliche
Noten lösen InvalidRecordError aus.
"""

import logging
import math
from typing import Iterable, NamedTuple, Optional, Sequence

from config.schema import GradingPolicy
from models.absence import AbsenceRecord
from models.evaluation import EvaluationRecord, EvaluationType
from models.summary import SubjectOfferingSummary

logger = logging.getLogger(__name__)

MIN_VALUE = 0.0
MAX_VALUE = 10.0

# Gleitkomma-Toleranz für Vergleiche von Durchschnitten (0.7×3 + 9.7×7 ergibt 6.999…98)
AVERAGE_TOLERANCE = 1e-9


class InvalidRecordError(ValueError):
    """Datensatz kann nicht sinnvoll ausgewertet werden."""


class AbsenceTotals(NamedTuple):
    total: int
    justified: int
    unjustified: int


# ─── Eingabe-Absicherung ──────────────────────────────────────────────────────

def _safe_value(ev: EvaluationRecord) -> float:
    value = float(ev.value)
    if not math.isfinite(value):
        raise InvalidRecordError(
            f"Note für Schüler '{ev.student_id}' ({ev.type.value}) ist keine Zahl: {ev.value!r}"
        )
    if value < MIN_VALUE or value > MAX_VALUE:
        clamped = min(MAX_VALUE, max(MIN_VALUE, value))
        logger.warning(
            f"Note {value} für Schüler '{ev.student_id}' außerhalb [0, 10] – auf {clamped} begrenzt"
        )
        return clamped
    return value


def _safe_count(ab: AbsenceRecord) -> int:
    if ab.count < 0:
        logger.warning(
            f"Negative Fehlstundenzahl {ab.count} für Schüler '{ab.student_id}' – als 0 gewertet"
        )
        return 0
    return int(ab.count)


def _weights_of(policy_or_weights) -> tuple[dict, float]:
    if isinstance(policy_or_weights, GradingPolicy):
        return policy_or_weights.weights, policy_or_weights.default_weight
    return dict(policy_or_weights or {}), 1.0


# ─── Durchschnitt ─────────────────────────────────────────────────────────────

def compute_weighted_average(
    evaluations: Sequence[EvaluationRecord],
    weights: "GradingPolicy | dict[EvaluationType, float] | None" = None,
) -> float:
    """Σ(Note × Gewicht) / Σ Gewicht in voller Genauigkeit.

    Leere Liste → 0.0 (Konvention). Typen ohne Gewicht zählen mit 1
    (bzw. default_weight der Policy).
    """
    if not evaluations:
        return 0.0
    table, fallback = _weights_of(weights)

    weighted_sum = 0.0
    weight_sum = 0.0
    for ev in evaluations:
        weight = table.get(ev.type, fallback)
        if weight <= 0:
            raise InvalidRecordError(
                f"Gewicht für '{ev.type.value}' muss > 0 sein (ist {weight})."
            )
        weighted_sum += _safe_value(ev) * weight
        weight_sum += weight
    return weighted_sum / weight_sum


# ─── Vollständigkeit & Urteil ─────────────────────────────────────────────────

def missing_required_types(
    evaluations: Iterable[EvaluationRecord],
    required_types: Iterable[EvaluationType],
) -> list[EvaluationType]:
    """Pflicht-Typen, zu denen noch keine Note vorliegt (Reihenfolge wie required_types)."""
    present = {ev.type for ev in evaluations}
    return [t for t in dict.fromkeys(required_types) if t not in present]


def compute_completion_and_verdict(
    evaluations: Sequence[EvaluationRecord],
    weighted_average: float,
    required_types: Iterable[EvaluationType],
    pass_threshold: float = 7.0,
) -> tuple[bool, Optional[bool]]:
    """(has_complete_evaluations, pass_status).

    Vollständig = jeder Pflicht-Typ kommt mindestens einmal vor (Anzahl egal).
    pass_status: None solange unvollständig, sonst Durchschnitt >= Grenze
    (bis auf AVERAGE_TOLERANCE).
    """
    if not evaluations:
        return False, None
    has_complete = not missing_required_types(evaluations, required_types)
    if not has_complete:
        return False, None
    return True, weighted_average >= pass_threshold - AVERAGE_TOLERANCE


# ─── Fehlzeiten ───────────────────────────────────────────────────────────────

def compute_absence_totals(absences: Iterable[AbsenceRecord]) -> AbsenceTotals:
    """Summiert Fehlstunden; unentschuldigt = gesamt − entschuldigt."""
    total = 0
    justified = 0
    for ab in absences:
        count = _safe_count(ab)
        total += count
        if ab.justified:
            justified += count
    return AbsenceTotals(total=total, justified=justified, unjustified=total - justified)


# ─── Gesamtbilanz ─────────────────────────────────────────────────────────────

def summarize_offering(
    evaluations: Sequence[EvaluationRecord],
    absences: Sequence[AbsenceRecord],
    policy: Optional[GradingPolicy] = None,
) -> SubjectOfferingSummary:
    """Leistungsbilanz eines Schülers in einem Fachangebot."""
    policy = policy or GradingPolicy()
    evaluations = list(evaluations)
    absences = list(absences)

    average = compute_weighted_average(evaluations, policy)
    complete, verdict = compute_completion_and_verdict(
        evaluations, average, policy.required_types, policy.pass_threshold,
    )
    totals = compute_absence_totals(absences)

    return SubjectOfferingSummary(
        weighted_average=average,
        has_complete_evaluations=complete,
        pass_status=verdict,
        total_absences=totals.total,
        justified_absences=totals.justified,
        unjustified_absences=totals.unjustified,
        evaluation_count=len(evaluations),
        absence_record_count=len(absences),
        missing_types=missing_required_types(evaluations, policy.required_types),
    )


def required_value_for_pass(
    evaluations: Sequence[EvaluationRecord],
    policy: Optional[GradingPolicy] = None,
) -> Optional[float]:
    """Mindestnote, die in JEDEM fehlenden Pflicht-Typ nötig ist, um zu bestehen.

    None wenn nichts mehr fehlt oder selbst 10 nicht reicht; 0.0 wenn jede Note reicht.
    Annahme: jeder fehlende Pflicht-Typ wird mit genau einer Note nachgereicht.
    """
    policy = policy or GradingPolicy()
    missing = missing_required_types(evaluations, policy.required_types)
    if not missing:
        return None

    table, fallback = _weights_of(policy)
    weighted_sum = sum(_safe_value(ev) * table.get(ev.type, fallback) for ev in evaluations)
    weight_sum = sum(table.get(ev.type, fallback) for ev in evaluations)
    missing_weight = sum(table.get(t, fallback) for t in missing)

    # (S + x·Wm) / (W + Wm) >= T  ⇔  x >= (T·(W + Wm) − S) / Wm
    needed = (policy.pass_threshold * (weight_sum + missing_weight) - weighted_sum) / missing_weight
    if needed > MAX_VALUE + AVERAGE_TOLERANCE:
        return None
    if needed <= MIN_VALUE + AVERAGE_TOLERANCE:
        return MIN_VALUE
    return min(MAX_VALUE, needed)
