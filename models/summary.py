"""Abgeleitete Leistungsbilanz eines Schülers in einem Fachangebot (wird nie gespeichert)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from models.evaluation import EvaluationType


class PassStatus(str, Enum):
    APPROVED = "approved"
    FAILED = "failed"
    PENDING = "pending"


class SubjectOfferingSummary(BaseModel):
    """Ergebnis des Leistungsrechners.

    pass_status ist dreiwertig: True/False nur bei vollständigen Pflicht-Bewertungen,
    sonst None (= Noten stehen noch aus).
    """

    weighted_average: float
    has_complete_evaluations: bool
    pass_status: Optional[bool]
    total_absences: int
    justified_absences: int
    unjustified_absences: int
    evaluation_count: int = 0
    absence_record_count: int = 0
    missing_types: list[EvaluationType] = []

    @model_validator(mode="after")
    def _check_partition(self):
        if self.justified_absences + self.unjustified_absences != self.total_absences:
            raise ValueError(
                f"Fehlzeiten inkonsistent: {self.justified_absences} + "
                f"{self.unjustified_absences} != {self.total_absences}"
            )
        if not self.has_complete_evaluations and self.pass_status is not None:
            raise ValueError("pass_status muss None sein, solange Bewertungen fehlen.")
        return self

    @property
    def status(self) -> PassStatus:
        if self.pass_status is None:
            return PassStatus.PENDING
        return PassStatus.APPROVED if self.pass_status else PassStatus.FAILED

    @property
    def has_evaluations(self) -> bool:
        return self.evaluation_count > 0

    def points_to_pass(self, threshold: float) -> float:
        """Punkte, die zum Bestehen fehlen (0.0 wenn der Schnitt reicht)."""
        return max(0.0, threshold - self.weighted_average)
