"""Vergleich zweier Gewichtungen über denselben Datensatz.

Die Alt-Oberflächen rechneten mit unterschiedlichen Gewichtstabellen. Dieser
Vergleich zeigt, bei welchen Schüler/Fach-Paaren sich Durchschnitt oder Urteil
ändern, bevor eine Tabelle verbindlich wird.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from analysis.performance import AVERAGE_TOLERANCE, summarize_offering
from data.directory import RecordDirectory

if TYPE_CHECKING:
    from config.schema import GradingPolicy
    from models.gradebook import GradebookData


@dataclass
class VerdictChange:
    """Abweichung für ein Schüler/Fach-Paar."""

    student_id: str
    offering_id: str
    average_a: float
    average_b: float
    status_a: str
    status_b: str

    @property
    def verdict_changed(self) -> bool:
        return self.status_a != self.status_b


@dataclass
class PolicyDiff:
    """Alle Abweichungen zwischen Gewichtung A und B."""

    pairs_compared: int = 0
    changes: list[VerdictChange] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Gibt True zurück wenn beide Gewichtungen überall gleich rechnen."""
        return not self.changes

    @property
    def verdict_changes(self) -> list[VerdictChange]:
        return [c for c in self.changes if c.verdict_changed]

    def to_dict(self) -> dict:
        """Serialisiert den Vergleich als Dictionary (für JSON-Ausgabe)."""
        return {
            "pairs_compared": self.pairs_compared,
            "changed_averages": len(self.changes),
            "changed_verdicts": len(self.verdict_changes),
            "changes": [
                {
                    "student_id": c.student_id,
                    "offering_id": c.offering_id,
                    "average_a": c.average_a,
                    "average_b": c.average_b,
                    "status_a": c.status_a,
                    "status_b": c.status_b,
                }
                for c in self.changes
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        """Gibt den Vergleich als JSON-String zurück."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def compare_policies(
    gradebook: "GradebookData",
    policy_a: "GradingPolicy",
    policy_b: "GradingPolicy",
) -> PolicyDiff:
    """Rechnet jedes Schüler/Fach-Paar mit Noten unter beiden Gewichtungen.

    Args:
        gradebook: Datensatz.
        policy_a: Basis-Gewichtung.
        policy_b: Vergleichs-Gewichtung.

    Returns:
        PolicyDiff mit allen Paaren, deren Durchschnitt oder Urteil abweicht.
    """
    directory = RecordDirectory(gradebook)
    pairs = sorted({(ev.student_id, ev.offering_id) for ev in gradebook.evaluations})

    diff = PolicyDiff(pairs_compared=len(pairs))
    for student_id, offering_id in pairs:
        evaluations = directory.evaluations_for(student_id, offering_id)
        absences = directory.absences_for(student_id, offering_id)
        a = summarize_offering(evaluations, absences, policy_a)
        b = summarize_offering(evaluations, absences, policy_b)
        if a.status != b.status or abs(a.weighted_average - b.weighted_average) > AVERAGE_TOLERANCE:
            diff.changes.append(VerdictChange(
                student_id=student_id,
                offering_id=offering_id,
                average_a=a.weighted_average,
                average_b=b.weighted_average,
                status_a=a.status.value,
                status_b=b.status.value,
            ))
    return diff
