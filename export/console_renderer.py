"""Gemeinsamer Renderer für Berichte im Terminal (Rich).

Die Zeilen-Funktionen liefern reine String-Listen, damit sie auch in Tests und
im Excel-Export ohne Rich verwendet werden können.
"""

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from analysis.performance import compute_absence_totals
from config.defaults import type_label
from data.directory import UnknownEntityError
from export.helpers import (
    RICH_STYLES, absence_key, format_grade, status_key, status_label,
)

if TYPE_CHECKING:
    from analysis.reports import OfferingReport, StudentReport
    from config.schema import AppConfig
    from data.directory import RecordDirectory
    from models.absence import AbsenceRecord
    from models.evaluation import EvaluationRecord


def render_student_rows(report: "StudentReport", decimals: int = 1) -> list[list[str]]:
    """Tabellenzeilen für den Schülerbericht.

    Jede Zeile: [Fach, Klasse, Lehrkraft, Schnitt, Status, Fehlend, Fehlstunden (e/u)]
    """
    rows: list[list[str]] = []
    for row in report.rows:
        s = row.summary
        missing = ", ".join(type_label(t) for t in s.missing_types)
        if row.required_value is not None:
            missing += f" (≥ {format_grade(row.required_value, decimals)})"
        rows.append([
            f"{row.offering.subject_code} {row.offering.subject_name}".strip(),
            row.offering.class_name,
            row.offering.teacher_name or "nicht zugewiesen",
            format_grade(s.weighted_average if s.has_evaluations else None, decimals),
            status_label(s),
            missing or "—",
            f"{s.total_absences} ({s.justified_absences}/{s.unjustified_absences})",
        ])
    return rows


def render_offering_rows(report: "OfferingReport", decimals: int = 1) -> list[list[str]]:
    """Tabellenzeilen für den Fachbericht.

    Jede Zeile: [Schüler, Matrikel, Noten, Schnitt, Status, Fehlstunden (e/u)]
    """
    rows: list[list[str]] = []
    for row in report.rows:
        s = row.summary
        rows.append([
            row.student.full_name,
            row.student.registration or "",
            str(s.evaluation_count),
            format_grade(s.weighted_average if s.has_evaluations else None, decimals),
            status_label(s),
            f"{s.total_absences} ({s.justified_absences}/{s.unjustified_absences})",
        ])
    return rows


def print_student_report(report: "StudentReport", config: "AppConfig",
                         console: Optional[Console] = None) -> None:
    """Schülerbericht als Rich-Tabelle mit Statusfarben."""
    console = console or Console()
    decimals = config.display.decimals
    threshold = config.attendance.absence_alert_threshold

    table = Table(title=f"{report.student.full_name} — Leistungsbilanz", box=box.ROUNDED)
    for col in ("Fach", "Klasse", "Lehrkraft", "Schnitt", "Status", "Fehlt noch", "Fehlst. (e/u)"):
        table.add_column(col)

    for row, cells in zip(report.rows, render_student_rows(report, decimals)):
        st = RICH_STYLES[status_key(row.summary)]
        ab = RICH_STYLES[absence_key(row.summary.total_absences, threshold)]
        cells[4] = f"[{st}]{cells[4]}[/{st}]"
        cells[6] = f"[{ab}]{cells[6]}[/{ab}]"
        table.add_row(*cells)
    console.print(table)

    lines = [
        f"Gesamtschnitt: [bold]{format_grade(report.overall_average, decimals)}[/bold]  |  "
        f"Bestehensgrenze: {format_grade(report.pass_threshold, decimals)}",
        f"[green]{report.approved_count} bestanden[/green]  "
        f"[red]{report.failed_count} nicht bestanden[/red]  "
        f"[yellow]{report.pending_count} ausstehend[/yellow]",
        f"Fehlstunden: {report.total_absences} "
        f"(entschuldigt {report.justified_absences}, "
        f"unentschuldigt {report.unjustified_absences})",
    ]
    if report.unjustified_warning:
        lines.append(
            f"[red bold]Achtung: {report.unjustified_absences} unentschuldigte "
            f"Fehlstunden.[/red bold]"
        )
    console.print(Panel("\n".join(lines), title="Zusammenfassung", border_style="cyan"))


def print_offering_report(report: "OfferingReport", config: "AppConfig",
                          console: Optional[Console] = None) -> None:
    """Fachbericht als Rich-Tabelle."""
    console = console or Console()
    decimals = config.display.decimals
    threshold = config.attendance.absence_alert_threshold

    table = Table(title=report.offering.label, box=box.ROUNDED)
    for col in ("Schüler", "Matrikel", "Noten", "Schnitt", "Status", "Fehlst. (e/u)"):
        table.add_column(col)
    for row, cells in zip(report.rows, render_offering_rows(report, decimals)):
        st = RICH_STYLES[status_key(row.summary)]
        ab = RICH_STYLES[absence_key(row.summary.total_absences, threshold)]
        cells[4] = f"[{st}]{cells[4]}[/{st}]"
        cells[5] = f"[{ab}]{cells[5]}[/{ab}]"
        table.add_row(*cells)
    console.print(table)

    console.print(
        f"Klassenschnitt: [bold]{format_grade(report.class_average, decimals)}[/bold]  |  "
        f"[green]{report.approved_count} bestanden[/green]  "
        f"[red]{report.failed_count} nicht bestanden[/red]  "
        f"[yellow]{report.pending_count} ausstehend[/yellow]"
    )
    if report.absence_risk:
        console.print(
            f"[red]Fehlzeiten-Schwelle ({threshold}) erreicht:[/red] "
            f"{', '.join(report.absence_risk)}"
        )


# ─── Noten- und Fehlzeitenlisten ──────────────────────────────────────────────

def _student_name(directory: "RecordDirectory", student_id: str) -> str:
    try:
        return directory.student(student_id).full_name
    except UnknownEntityError:
        return student_id


def _offering_short(directory: "RecordDirectory", offering_id: str) -> str:
    try:
        o = directory.offering(offering_id)
    except UnknownEntityError:
        return offering_id
    return f"{o.subject_code} {o.class_name}"


def render_evaluation_rows(evaluations: list["EvaluationRecord"], directory: "RecordDirectory",
                           decimals: int = 1) -> list[list[str]]:
    """Zeilen der Notenliste, aufsteigend nach Datum.

    Jede Zeile: [Datum, Schüler, Fach, Typ, Note, Beschreibung]
    """
    return [
        [
            ev.date.strftime("%d.%m.%Y"),
            _student_name(directory, ev.student_id),
            _offering_short(directory, ev.offering_id),
            type_label(ev.type),
            format_grade(ev.value, decimals),
            ev.description or "",
        ]
        for ev in sorted(evaluations, key=lambda e: (e.date, e.student_id))
    ]


def render_absence_rows(absences: list["AbsenceRecord"],
                        directory: "RecordDirectory") -> list[list[str]]:
    """Zeilen der Fehlzeitenliste, neueste zuerst.

    Jede Zeile: [Datum, Schüler, Fach, Stunden, Entschuldigt, Begründung]
    """
    return [
        [
            ab.date.strftime("%d.%m.%Y"),
            _student_name(directory, ab.student_id),
            _offering_short(directory, ab.offering_id),
            str(ab.count),
            "ja" if ab.justified else "nein",
            ab.justification or "",
        ]
        for ab in sorted(absences, key=lambda a: (a.date, a.student_id), reverse=True)
    ]


def print_evaluation_list(evaluations: list["EvaluationRecord"], directory: "RecordDirectory",
                          config: "AppConfig", console: Optional[Console] = None) -> None:
    console = console or Console()
    if not evaluations:
        console.print("[yellow]Keine Noten für diese Filter.[/yellow]")
        return
    table = Table(title=f"Noten ({len(evaluations)})", box=box.ROUNDED)
    for col in ("Datum", "Schüler", "Fach", "Typ", "Note", "Beschreibung"):
        table.add_column(col, justify="right" if col == "Note" else "left")
    for cells in render_evaluation_rows(evaluations, directory, config.display.decimals):
        table.add_row(*cells)
    console.print(table)


def print_absence_list(absences: list["AbsenceRecord"], directory: "RecordDirectory",
                       console: Optional[Console] = None) -> None:
    console = console or Console()
    if not absences:
        console.print("[yellow]Keine Fehlzeiten für diese Filter.[/yellow]")
        return
    table = Table(title=f"Fehlzeiten ({len(absences)} Einträge)", box=box.ROUNDED)
    for col in ("Datum", "Schüler", "Fach", "Stunden", "Entschuldigt", "Begründung"):
        table.add_column(col, justify="right" if col == "Stunden" else "left")
    for ab, cells in zip(sorted(absences, key=lambda a: (a.date, a.student_id), reverse=True),
                         render_absence_rows(absences, directory)):
        style = RICH_STYLES["abs_ok" if ab.justified else "abs_alert"]
        cells[4] = f"[{style}]{cells[4]}[/{style}]"
        table.add_row(*cells)
    console.print(table)

    totals = compute_absence_totals(absences)
    console.print(
        f"Fehlstunden: [bold]{totals.total}[/bold] "
        f"(entschuldigt {totals.justified}, unentschuldigt {totals.unjustified})"
    )
