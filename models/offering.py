"""Datenmodell für ein Fachangebot: Fach × Klasse × Lehrkraft (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel


class SubjectOffering(BaseModel):
    """Ein Fach, das in einer bestimmten Klasse unterrichtet wird.

    Entspricht einem Eintrag der Backend-Tabelle "class_subjects".
    """

    id: str
    subject_name: str                   # "Matemática"
    subject_code: str                   # "MAT"
    class_name: str                     # "1º Ano A"
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None  # None = noch keine Lehrkraft zugewiesen
    workload_hours: Optional[int] = None

    @property
    def label(self) -> str:
        """Anzeigename, z.B. "MAT – Matemática (1º Ano A)"."""
        return f"{self.subject_code} – {self.subject_name} ({self.class_name})"
