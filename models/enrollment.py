"""Datenmodell für eine Klassen-Einschreibung (Pydantic v2)."""

from pydantic import BaseModel


class Enrollment(BaseModel):
    """Ein Schüler ist in eine Klasse eingeschrieben und belegt damit alle Fächer der Klasse."""

    student_id: str
    class_name: str
    active: bool = True
