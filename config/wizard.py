"""Interaktiver Setup-Wizard für die Ersteinrichtung der Leistungsbilanz.

Führt den Nutzer durch Schule, Gewichtung und Fehlzeiten-Schwellen.
Nutzt rich für die Konsolenausgabe.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import (
    AppConfig,
    AttendancePolicy,
    GradingPolicy,
    InputHandling,
)
from config.defaults import (
    EVALUATION_TYPE_METADATA,
    default_grading_policy,
    type_label,
)
from models.evaluation import EvaluationType

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _info(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def _show_policy_table(policy: GradingPolicy) -> None:
    """Zeigt Gewichte und Pflicht-Typen als rich-Tabelle an."""
    table = Table(title="Gewichtung", box=box.ROUNDED)
    table.add_column("Typ", style="bold")
    table.add_column("Backend-Code")
    table.add_column("Gewicht", justify="right")
    table.add_column("Pflicht", justify="center")
    for etype in EvaluationType:
        table.add_row(
            type_label(etype),
            EVALUATION_TYPE_METADATA[etype]["backend"],
            f"{policy.weight_for(etype):g}",
            "✓" if etype in policy.required_types else "",
        )
    console.print(table)
    console.print(f"Bestehensgrenze: [bold]{policy.pass_threshold:.1f}[/bold] (>=)")


# ─── SCHRITT 1: Schule ───

def _wizard_school() -> str:
    _header("Schritt 1 — Schule")
    return Prompt.ask("Name der Schule", default="Escola Modelo")


# ─── SCHRITT 2: Gewichtung ───

def _wizard_grading() -> GradingPolicy:
    _header("Schritt 2 — Gewichtung & Bestehensgrenze")
    _info("Nicht aufgeführte Bewertungstypen zählen mit Gewicht 1.")
    policy = default_grading_policy()
    _show_policy_table(policy)

    if Confirm.ask("Standard-Gewichtung übernehmen?", default=True):
        _success("Standard-Gewichtung übernommen.")
        return policy

    weights: dict[EvaluationType, float] = {}
    for etype in EvaluationType:
        w = FloatPrompt.ask(f"Gewicht {type_label(etype)}",
                            default=policy.weight_for(etype))
        weights[etype] = w

    required: list[EvaluationType] = []
    for etype in EvaluationType:
        if Confirm.ask(f"{type_label(etype)} ist Pflicht?",
                       default=etype in policy.required_types):
            required.append(etype)

    threshold = FloatPrompt.ask("Bestehensgrenze (0–10)", default=policy.pass_threshold)

    _success("Gewichtung abgeschlossen.")
    return GradingPolicy(weights=weights, required_types=required, pass_threshold=threshold)


# ─── SCHRITT 3: Fehlzeiten ───

def _wizard_attendance() -> AttendancePolicy:
    _header("Schritt 3 — Fehlzeiten")
    if Confirm.ask("Standard-Schwellen übernehmen (Warnung ab 5 Fehlstunden)?", default=True):
        return AttendancePolicy()
    warn = IntPrompt.ask("Warnung ab n unentschuldigten Fehlstunden", default=5)
    alert = IntPrompt.ask("Fach rot ab n Fehlstunden", default=5)
    return AttendancePolicy(unjustified_warning_threshold=warn, absence_alert_threshold=alert)


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[AppConfig]:
    """Führt den interaktiven Setup-Wizard aus.

    Returns:
        Fertige AppConfig oder None, wenn der Nutzer abbricht.
    """
    console.print(Panel(
        "[bold]Willkommen bei der Leistungsbilanz![/bold]\n\n"
        "Der Wizard legt Gewichtung, Bestehensgrenze und Fehlzeiten-Schwellen fest.\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        border_style="cyan",
    ))

    if not Confirm.ask("\nMöchten Sie jetzt einrichten?", default=True):
        console.print("[yellow]Einrichtung abgebrochen.[/yellow]")
        return None

    try:
        name = _wizard_school()
        grading = _wizard_grading()
        attendance = _wizard_attendance()
        clamp = Confirm.ask(
            "Ungültige Werte beim Import begrenzen statt ablehnen?", default=False)
    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None

    return AppConfig(
        school_name=name,
        grading=grading,
        attendance=attendance,
        input_handling=InputHandling.CLAMP if clamp else InputHandling.REJECT,
    )
