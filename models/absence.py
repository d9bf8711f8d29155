"""Datenmodell für einen Fehlzeiten-Eintrag (Pydantic v2)."""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class AbsenceRecord(BaseModel):
    """Fehlstunden eines Schülers an einem Tag in einem Fachangebot.

    Bei justified=False wird eine mitgelieferte Begründung verworfen.
    """

    model_config = ConfigDict(frozen=True)

    student_id: str
    offering_id: str
    date: datetime.date
    count: int = Field(1, ge=1)        # Anzahl Fehlstunden
    justified: bool = False
    justification: Optional[str] = None
    id: Optional[str] = None
    teacher_id: Optional[str] = None

    @field_validator("justification")
    @classmethod
    def _drop_unjustified_text(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        # justified ist hier bereits validiert (Feld steht davor)
        if not info.data.get("justified", False):
            return None
        return v

    @property
    def is_resolved(self) -> bool:
        """True wenn entschuldigt UND eine Begründung vorliegt."""
        return self.justified and bool((self.justification or "").strip())
