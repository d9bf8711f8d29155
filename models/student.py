"""Datenmodell für einen Schüler (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel


class Student(BaseModel):
    """Ein Schüler (Backend-Tabelle "users" mit Rolle "aluno")."""

    id: str
    full_name: str
    registration: Optional[str] = None   # Matrikelnummer
    email: Optional[str] = None
    active: bool = True
