"""Gemeinsame Hilfsfunktionen für Konsole, Excel- und PDF-Export."""

from datetime import date
from typing import Optional

from config.schema import DisplayConfig, GradeBand
from models.summary import PassStatus, SubjectOfferingSummary

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "approved":  "C6EFCE",
    "failed":    "FFC7CE",
    "pending":   "FFEB9C",
    "empty":     "E0E0E0",
    "abs_ok":    "C6EFCE",
    "abs_warn":  "FFEB9C",
    "abs_alert": "FFC7CE",
    "header":    "4472C4",
}

# Rich-Stilnamen passend zur Palette
RICH_STYLES: dict[str, str] = {
    "approved":  "green",
    "failed":    "red",
    "pending":   "yellow",
    "empty":     "dim",
    "abs_ok":    "green",
    "abs_warn":  "yellow",
    "abs_alert": "red",
}

_STATUS_LABELS = {
    PassStatus.APPROVED: "Bestanden",
    PassStatus.FAILED: "Nicht bestanden",
    PassStatus.PENDING: "Ausstehend",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Noten ────────────────────────────────────────────────────────────────────

def format_grade(value: Optional[float], decimals: int = 1) -> str:
    """Einzige Stelle, an der gerundet wird. None → '–'."""
    if value is None:
        return "–"
    return f"{value:.{decimals}f}"


def grade_band(value: float, display: Optional[DisplayConfig] = None) -> GradeBand:
    """Notenbereich zu einem Wert (Bänder absteigend, erstes passendes gewinnt)."""
    display = display or DisplayConfig()
    for band in display.grade_bands:
        if value >= band.min_value:
            return band
    return display.grade_bands[-1]


# ─── Status ───────────────────────────────────────────────────────────────────

def status_key(summary: SubjectOfferingSummary) -> str:
    """Palettenschlüssel: approved/failed, pending nur mit Teilnoten, sonst empty."""
    if summary.status == PassStatus.APPROVED:
        return "approved"
    if summary.status == PassStatus.FAILED:
        return "failed"
    if summary.weighted_average > 0:
        return "pending"
    return "empty"


def status_label(summary: SubjectOfferingSummary) -> str:
    return _STATUS_LABELS[summary.status]


def status_color(summary: SubjectOfferingSummary) -> str:
    return COLORS[status_key(summary)]


def absence_key(total: int, threshold: int = 5) -> str:
    """0 → ok, ab threshold → alert, dazwischen warn."""
    if total == 0:
        return "abs_ok"
    if total >= threshold:
        return "abs_alert"
    return "abs_warn"


def absence_color(total: int, threshold: int = 5) -> str:
    return COLORS[absence_key(total, threshold)]


def pluralize_absences(count: int) -> str:
    """'1 Fehlstunde' / '3 Fehlstunden'."""
    return f"{count} Fehlstunde" if count == 1 else f"{count} Fehlstunden"
