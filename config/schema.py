from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum

from models.evaluation import EvaluationType


class InputHandling(str, Enum):
    """Umgang mit Werten außerhalb des gültigen Bereichs beim Einlesen."""
    REJECT = "reject"
    CLAMP = "clamp"


# ─── BEWERTUNG (Gewichte, Pflicht-Typen, Bestehensgrenze) ───

class GradingPolicy(BaseModel):
    """Gewichtung und Bestehensregel für den Leistungsrechner.

    Nicht aufgeführte Bewertungstypen zählen mit Gewicht 1.
    """
    # Gewicht pro Bewertungstyp (alle > 0)
    weights: dict[EvaluationType, float] = Field(
        default={EvaluationType.EXAM: 3.0, EvaluationType.ASSIGNMENT: 7.0},
        description="Gewicht pro Bewertungstyp")
    # Diese Typen müssen alle vorliegen, bevor ein Urteil gefällt wird
    required_types: list[EvaluationType] = Field(
        default=[EvaluationType.EXAM, EvaluationType.ASSIGNMENT],
        description="Pflicht-Bewertungstypen für ein Endurteil")
    # Mindestdurchschnitt zum Bestehen (inklusive)
    pass_threshold: float = Field(7.0, ge=0.0, le=10.0,
        description="Bestehensgrenze (>=)")
    # Gewicht für nicht aufgeführte Typen
    default_weight: float = Field(1.0, gt=0.0,
        description="Gewicht für Typen ohne Eintrag")

    @field_validator("weights")
    @classmethod
    def _positive_weights(cls, v: dict[EvaluationType, float]) -> dict[EvaluationType, float]:
        for etype, weight in v.items():
            if weight <= 0:
                raise ValueError(
                    f"Gewicht für '{etype.value}' muss > 0 sein (ist {weight}).")
        return v

    @field_validator("required_types")
    @classmethod
    def _dedupe_required(cls, v: list[EvaluationType]) -> list[EvaluationType]:
        if not v:
            raise ValueError("Mindestens ein Pflicht-Bewertungstyp erforderlich.")
        return list(dict.fromkeys(v))

    def weight_for(self, etype: EvaluationType) -> float:
        """Gewicht eines Typs; Fallback default_weight."""
        return self.weights.get(etype, self.default_weight)


# ─── FEHLZEITEN ───

class AttendancePolicy(BaseModel):
    """Schwellen für Fehlzeiten-Hinweise."""
    # Ab so vielen unentschuldigten Fehlstunden erscheint ein Warnhinweis
    unjustified_warning_threshold: int = Field(5, ge=1,
        description="Warnung ab n unentschuldigten Fehlstunden")
    # Ab so vielen Fehlstunden (gesamt) wird ein Fach rot markiert
    absence_alert_threshold: int = Field(5, ge=1,
        description="Rot ab n Fehlstunden pro Fach")
    # Unterrichtstage pro Zeitraum für die geschätzte Anwesenheitsquote
    lessons_per_period: int = Field(20, ge=1,
        description="Unterrichtstage pro Monat (Schätzung Anwesenheitsquote)")


# ─── ANZEIGE ───

class GradeBand(BaseModel):
    """Notenbereich ab min_value (inklusive) mit Farbe und Bezeichnung."""
    min_value: float = Field(ge=0.0, le=10.0)
    label: str
    color: str   # RRGGBB ohne '#'


class DisplayConfig(BaseModel):
    """Darstellung von Noten. Gerundet wird nur hier, nie im Rechner."""
    # Nachkommastellen für Notenanzeige
    decimals: int = Field(1, ge=0, le=3)
    # Notenbereiche, absteigend nach min_value sortiert
    grade_bands: list[GradeBand] = Field(default_factory=lambda: [
        GradeBand(min_value=8.0, label="sehr gut", color="C6EFCE"),
        GradeBand(min_value=7.0, label="gut", color="BDD7EE"),
        GradeBand(min_value=6.0, label="knapp", color="FFEB9C"),
        GradeBand(min_value=0.0, label="ungenügend", color="FFC7CE"),
    ])

    @model_validator(mode='after')
    def _sort_bands(self):
        """Bänder absteigend sortieren; das unterste muss bei 0 beginnen."""
        self.grade_bands = sorted(self.grade_bands, key=lambda b: b.min_value, reverse=True)
        if not self.grade_bands or self.grade_bands[-1].min_value > 0.0:
            raise ValueError("Notenbereiche müssen den Wert 0 abdecken.")
        return self


# ─── GESAMT-CONFIG ───

class AppConfig(BaseModel):
    """Gesamtkonfiguration der Auswertung."""
    # Name der Schule
    school_name: str = Field("Escola Modelo",
        description="Name der Schule")
    # Gewichtung und Bestehensregel
    grading: GradingPolicy = Field(default_factory=GradingPolicy)
    # Fehlzeiten-Schwellen
    attendance: AttendancePolicy = Field(default_factory=AttendancePolicy)
    # Anzeige und Notenbänder
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    # Umgang mit ungültigen Werten beim Import
    input_handling: InputHandling = Field(InputHandling.REJECT)
