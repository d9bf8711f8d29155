"""Datenmodell für eine Bewertung (Note) eines Schülers in einem Fachangebot (Pydantic v2)."""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EvaluationType(str, Enum):
    EXAM = "exam"
    ASSIGNMENT = "assignment"
    PARTICIPATION = "participation"
    PROJECT = "project"
    MAKEUP = "makeup"

    @classmethod
    def parse(cls, raw: str) -> "EvaluationType":
        """Akzeptiert den englischen Wert oder den Backend-Code ("prova", "trabalho", ...)."""
        key = str(raw).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        if key in BACKEND_TYPE_CODES:
            return BACKEND_TYPE_CODES[key]
        raise ValueError(f"Unbekannter Bewertungstyp: {raw!r}")

    @property
    def backend_code(self) -> str:
        """Code, unter dem das Backend diesen Typ speichert."""
        for code, member in BACKEND_TYPE_CODES.items():
            if member is self:
                return code
        return self.value


# Backend-Enum "grade_type" → EvaluationType
BACKEND_TYPE_CODES: dict[str, EvaluationType] = {
    "prova": EvaluationType.EXAM,
    "trabalho": EvaluationType.ASSIGNMENT,
    "participacao": EvaluationType.PARTICIPATION,
    "projeto": EvaluationType.PROJECT,
    "recuperacao": EvaluationType.MAKEUP,
}


class EvaluationRecord(BaseModel):
    """Eine einzelne Note. Unveränderlich; Änderungen laufen über das Backend."""

    model_config = ConfigDict(frozen=True)

    student_id: str
    offering_id: str                   # class_subject_id im Backend
    type: EvaluationType
    value: float = Field(ge=0.0, le=10.0)
    date: datetime.date
    id: Optional[str] = None
    teacher_id: Optional[str] = None
    description: Optional[str] = None
