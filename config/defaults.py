from config.schema import (
    AppConfig,
    AttendancePolicy,
    DisplayConfig,
    GradingPolicy,
    InputHandling,
)
from models.evaluation import EvaluationType


# ─── Bewertungstypen ──────────────────────────────────────────────────────────
# Anzeigename und Backend-Code je Typ

EVALUATION_TYPE_METADATA: dict[EvaluationType, dict] = {
    EvaluationType.EXAM:          {"label": "Prüfung",        "backend": "prova"},
    EvaluationType.ASSIGNMENT:    {"label": "Hausarbeit",     "backend": "trabalho"},
    EvaluationType.PARTICIPATION: {"label": "Mitarbeit",      "backend": "participacao"},
    EvaluationType.PROJECT:       {"label": "Projekt",        "backend": "projeto"},
    EvaluationType.MAKEUP:        {"label": "Nachprüfung",    "backend": "recuperacao"},
}


def type_label(etype: EvaluationType) -> str:
    """Anzeigename eines Bewertungstyps."""
    return EVALUATION_TYPE_METADATA.get(etype, {}).get("label", etype.value)


def default_grading_policy() -> GradingPolicy:
    """Kanonische Gewichtung.

    Prüfung 3, Hausarbeit 7, alle anderen Typen 1.
    Endurteil erst wenn Prüfung UND Hausarbeit vorliegen; bestanden ab 7,0.
    """
    return GradingPolicy(
        weights={EvaluationType.EXAM: 3.0, EvaluationType.ASSIGNMENT: 7.0},
        required_types=[EvaluationType.EXAM, EvaluationType.ASSIGNMENT],
        pass_threshold=7.0,
    )


# ─── Abweichende Gewichtungen der Alt-Oberflächen ─────────────────────────────
# Die bisherigen Ansichten rechneten mit unterschiedlichen Tabellen. Nur zum
# Vergleich (main.py compare), nicht als Default verwenden.

LEGACY_POLICY_PROFILES: dict[str, GradingPolicy] = {
    # Fachübersicht, Seitenleiste und Notenblatt pro Fach
    "fachuebersicht": GradingPolicy(
        weights={EvaluationType.EXAM: 3.0, EvaluationType.ASSIGNMENT: 7.0},
        required_types=[EvaluationType.EXAM, EvaluationType.ASSIGNMENT],
        pass_threshold=7.0,
    ),
    # Gesamt-Notenübersicht des Schülers
    "notenuebersicht": GradingPolicy(
        weights={
            EvaluationType.EXAM: 3.0,
            EvaluationType.ASSIGNMENT: 2.0,
            EvaluationType.MAKEUP: 5.0,
        },
        required_types=[EvaluationType.EXAM, EvaluationType.ASSIGNMENT],
        pass_threshold=7.0,
    ),
}


def default_app_config() -> AppConfig:
    """Vollständige Default-Konfiguration."""
    return AppConfig(
        school_name="Escola Modelo",
        grading=default_grading_policy(),
        attendance=AttendancePolicy(),
        display=DisplayConfig(),
        input_handling=InputHandling.REJECT,
    )
