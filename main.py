"""Leistungsbilanz — Haupt-CLI.

Verwendung:
  python main.py setup                        Ersteinrichtung (Wizard)
  python main.py config edit                  Konfiguration bearbeiten
  python main.py config show                  Konfiguration anzeigen
  python main.py generate                     Demo-Notenbuch erzeugen
  python main.py generate --export-json       Demo-Notenbuch + JSON speichern
  python main.py template                     Excel-Import-Vorlage erzeugen
  python main.py import <datei.xlsx>          Excel importieren
  python main.py import-backend <dump.json>   Backend-Export übernehmen
  python main.py validate                     Konsistenz-Check + Kennzahlen
  python main.py student <id>                 Leistungsbilanz eines Schülers
  python main.py offering <id>                Leistungsbilanz eines Fachangebots
  python main.py grades [--student ...]       Notenliste mit Filtern
  python main.py absences [--unjustified ...] Fehlzeitenliste mit Filtern
  python main.py export                       Excel + PDF exportieren
  python main.py compare <a> <b>              Zwei Gewichtungen vergleichen
  python main.py profile save <name>          Gewichtung als Profil speichern
  python main.py profile load <name>          Profil als aktive Gewichtung setzen
  python main.py profile list                 Profile auflisten
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

from analysis.performance import InvalidRecordError
from data.backend_rows import BackendRowError
from data.directory import UnknownEntityError
from data.excel_import import ExcelImportError

console = Console()
logger = logging.getLogger(__name__)

# Standard-Pfad für das gespeicherte Notenbuch
DEFAULT_DATA_JSON = Path("output/gradebook.json")

# Fehler, die als rote Meldung + Exit-Code 1 enden
DOMAIN_ERRORS = (
    InvalidRecordError,
    UnknownEntityError,
    BackendRowError,
    ExcelImportError,
    FileNotFoundError,
    ValueError,
)


def _fail(message: str) -> None:
    console.print(f"[red bold]Fehler:[/red bold] [red]{escape(message)}[/red]")
    sys.exit(1)


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        _fail(str(e))


def _load_gradebook_or_abort(json_path: str, config, gen_first: bool = False):
    """Lädt das Notenbuch aus JSON oder erzeugt Demo-Daten (--generate)."""
    from models.gradebook import GradebookData

    if gen_first:
        from data.fake_data import FakeDataGenerator
        return FakeDataGenerator(config, seed=42).generate()

    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py generate --export-json[/bold], "
            "[bold]import --save-json[/bold] oder das [bold]--generate[/bold] Flag."
        )
        sys.exit(1)
    logger.debug(f"Lade Notenbuch: {p}")
    try:
        return GradebookData.load_json(p)
    except ValueError as e:
        _fail(f"Notenbuch ungültig: {p}\n{e}")


def _resolve_policy(mgr, config, name: str):
    """Gewichtung nach Name: 'aktiv', gespeichertes Profil oder eingebaute Alt-Tabelle."""
    from config.defaults import LEGACY_POLICY_PROFILES

    if name in ("aktiv", "active"):
        return config.grading
    if any(p["name"] == name for p in mgr.list_profiles()):
        return mgr.load_profile(name)
    if name in LEGACY_POLICY_PROFILES:
        return LEGACY_POLICY_PROFILES[name]
    raise ValueError(
        f"Gewichtung '{name}' unbekannt. Verfügbar: aktiv, "
        + ", ".join([p["name"] for p in mgr.list_profiles()] + list(LEGACY_POLICY_PROFILES))
    )


def _weights_text(policy) -> str:
    from config.defaults import type_label
    parts = [f"{type_label(t)} {w:g}" for t, w in policy.weights.items()]
    parts.append(f"sonst {policy.default_weight:g}")
    return ", ".join(parts)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Konfiguration mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]python main.py config edit[/bold] zum Bearbeiten."
        )
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Führen Sie jetzt [bold]python main.py generate --export-json[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder bearbeiten."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.defaults import type_label
    from models.evaluation import EvaluationType

    mgr, config = _load_config_or_abort()
    g = config.grading

    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  Import: {config.input_handling.value}",
        title="Konfiguration",
        border_style="cyan",
    ))

    table = Table(title="Gewichtung", box=box.ROUNDED)
    table.add_column("Typ")
    table.add_column("Gewicht", justify="right")
    table.add_column("Pflicht")
    for t in EvaluationType:
        table.add_row(
            type_label(t),
            f"{g.weight_for(t):g}",
            "ja" if t in g.required_types else "",
        )
    console.print(table)
    console.print(f"[bold]Bestehensgrenze:[/bold] {g.pass_threshold:g} (inklusive)")

    a = config.attendance
    console.print(
        f"[bold]Fehlzeiten:[/bold] Warnung ab {a.unjustified_warning_threshold} "
        f"unentschuldigten | Risiko ab {a.absence_alert_threshold} je Fach | "
        f"{a.lessons_per_period} Stunden je Zeitraum"
    )

    bands = ", ".join(f"≥{b.min_value:g} {b.label}" for b in config.display.grade_bands)
    console.print(f"[bold]Anzeige:[/bold] {config.display.decimals} Nachkommastelle(n) | {bands}")


@cmd_config.command("edit")
def config_edit():
    """Bearbeitet die Konfiguration interaktiv."""
    mgr, config = _load_config_or_abort()
    mgr.edit_interactive(config)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--export-json", is_flag=True, default=False,
              help="Datensatz als JSON speichern.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad für JSON-Export.")
@click.option("--validate/--no-validate", "run_validate", default=True,
              help="Konsistenz-Check nach Generierung.")
def cmd_generate(seed: int, export_json: bool, json_path: str, run_validate: bool):
    """Erzeugt ein Demo-Notenbuch (Schüler, Fächer, Noten, Fehlzeiten)."""
    mgr, config = _load_config_or_abort()
    from data.fake_data import FakeDataGenerator

    console.print("[bold]Demo-Daten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed)
    data = gen.generate()
    gen.print_summary(data)

    console.print(f"\n[dim]{data.summary()}[/dim]")

    if run_validate:
        data.validate_integrity().print_rich()

    if export_json:
        out_path = Path(json_path)
        data.save_json(out_path)
        console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── TEMPLATE ─────────────────────────────────────────────────────────────────

@click.command("template")
@click.option("--output", "-o", default="output/import_vorlage.xlsx",
              help="Ausgabepfad für die Excel-Vorlage.")
def cmd_template(output: str):
    """Erzeugt eine Excel-Import-Vorlage."""
    mgr, config = _load_config_or_abort()
    from data.excel_import import generate_template

    out_path = Path(output)
    console.print("[bold]Excel-Vorlage wird erzeugt...[/bold]")
    generate_template(config, out_path)
    console.print(f"[green]✓[/green] Vorlage gespeichert: {out_path}")
    console.print(
        "\nBlätter in der Vorlage:\n"
        "  [cyan]Schüler[/cyan]     – ID, Name, Matrikel, E-Mail, Klasse\n"
        "  [cyan]Fächer[/cyan]      – ID, Fach, Kürzel, Klasse, Lehrkraft\n"
        "  [cyan]Noten[/cyan]       – Schüler-ID, Fach-ID, Typ, Note, Datum\n"
        "  [cyan]Fehlzeiten[/cyan]  – Schüler-ID, Fach-ID, Datum, Anzahl, Entschuldigt"
    )


# ─── IMPORT ───────────────────────────────────────────────────────────────────

@click.command("import")
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@click.option("--save-json", is_flag=True, default=False,
              help="Importierte Daten als JSON speichern.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad für JSON-Export.")
def cmd_import(datei: Path, save_json: bool, json_path: str):
    """Importiert Notenbuch-Daten aus einer Excel-Datei."""
    mgr, config = _load_config_or_abort()
    from data.excel_import import import_from_excel

    console.print(f"[bold]Importiere:[/bold] {datei}")
    try:
        gradebook, report = import_from_excel(datei, config)
    except ExcelImportError as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{escape(str(e))}")
        sys.exit(1)

    console.print("[green]✓[/green] Import erfolgreich!")
    console.print(f"\n{gradebook.summary()}")
    report.print_rich()

    if save_json:
        out_path = Path(json_path)
        gradebook.save_json(out_path)
        console.print(f"[green]✓[/green] Daten gespeichert: {out_path}")


@click.command("import-backend")
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@click.option("--clamp", is_flag=True, default=False,
              help="Werte außerhalb des Bereichs begrenzen statt ablehnen.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Zielpfad für das Notenbuch.")
def cmd_import_backend(datei: Path, clamp: bool, json_path: str):
    """Übernimmt einen JSON-Export der Backend-Tabellen als Notenbuch."""
    from config.schema import InputHandling
    from data.backend_rows import load_backend_export

    mgr, config = _load_config_or_abort()
    handling = InputHandling.CLAMP if clamp else config.input_handling

    console.print(f"[bold]Backend-Export:[/bold] {datei} ({handling.value})")
    try:
        gradebook = load_backend_export(datei, handling, config.school_name)
    except DOMAIN_ERRORS as e:
        _fail(f"Backend-Export abgelehnt: {e}")

    console.print(f"\n{gradebook.summary()}")
    gradebook.validate_integrity().print_rich()
    out_path = Path(json_path)
    gradebook.save_json(out_path)
    console.print(f"[green]✓[/green] Notenbuch gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten zunächst generieren (Seed 42).")
def cmd_validate(json_path: str, gen_first: bool):
    """Konsistenz-Check und Kennzahlen des aktuellen Notenbuchs."""
    from analysis.reports import estimate_attendance_rate

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)

    console.print(f"\n{data.summary()}")
    active_enrollments = sum(1 for e in data.enrollments if e.active)
    rate = estimate_attendance_rate(
        sum(a.count for a in data.absences),
        len(data.offerings),
        active_enrollments,
        config.attendance.lessons_per_period,
    )
    console.print(f"Geschätzte Anwesenheitsquote: [bold]{rate:.1f} %[/bold]\n")

    report = data.validate_integrity()
    report.print_rich()

    sys.exit(0 if report.is_consistent else 1)


# ─── BERICHTE ─────────────────────────────────────────────────────────────────

@click.command("student")
@click.argument("student_id")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
@click.option("--profile", "profile_name", default=None,
              help="Gewichtung aus Profil statt der aktiven.")
def cmd_student(student_id: str, json_path: str, gen_first: bool, profile_name: str):
    """Leistungsbilanz eines Schülers über alle Fächer."""
    from analysis.reports import attendance_by_subject, build_student_report
    from data.directory import RecordDirectory
    from export.console_renderer import print_student_report

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    try:
        policy = _resolve_policy(mgr, config, profile_name) if profile_name else config.grading
        directory = RecordDirectory(data)
        report = build_student_report(directory, student_id, policy, config.attendance)
        attendance = attendance_by_subject(directory, student_id)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    print_student_report(report, config, console)

    if attendance:
        table = Table(title="Fehlzeiten je Fach", box=box.SIMPLE)
        table.add_column("Fach")
        table.add_column("Gesamt", justify="right")
        table.add_column("entschuldigt", justify="right")
        table.add_column("unentschuldigt", justify="right")
        for row in attendance:
            table.add_row(row.offering.label, str(row.total),
                          str(row.justified), str(row.unjustified))
        console.print(table)


@click.command("offering")
@click.argument("offering_id")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
@click.option("--profile", "profile_name", default=None,
              help="Gewichtung aus Profil statt der aktiven.")
def cmd_offering(offering_id: str, json_path: str, gen_first: bool, profile_name: str):
    """Leistungsbilanz aller Schüler eines Fachangebots."""
    from analysis.reports import build_offering_report
    from data.directory import RecordDirectory
    from export.console_renderer import print_offering_report

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    try:
        policy = _resolve_policy(mgr, config, profile_name) if profile_name else config.grading
        report = build_offering_report(
            RecordDirectory(data), offering_id, policy, config.attendance
        )
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    print_offering_report(report, config, console)


# ─── LISTEN ───────────────────────────────────────────────────────────────────

@click.command("grades")
@click.option("--offering", "offering_id", default=None, help="Nur dieses Fachangebot.")
@click.option("--student", "student_id", default=None, help="Nur dieser Schüler.")
@click.option("--teacher", "teacher_id", default=None, help="Nur diese Lehrkraft.")
@click.option("--type", "type_name", default=None,
              help="Nur dieser Typ (z.B. exam oder prova).")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
def cmd_grades(offering_id: str, student_id: str, teacher_id: str, type_name: str,
               json_path: str, gen_first: bool):
    """Notenliste mit Filtern nach Fach, Schüler, Lehrkraft und Typ."""
    from data.directory import RecordDirectory
    from export.console_renderer import print_evaluation_list
    from models.evaluation import EvaluationType

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    try:
        etype = EvaluationType.parse(type_name) if type_name else None
        directory = RecordDirectory(data)
        if offering_id:
            directory.offering(offering_id)
        if student_id:
            directory.student(student_id)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    evaluations = directory.filter_evaluations(
        offering_id=offering_id, student_id=student_id, teacher_id=teacher_id, type=etype,
    )
    print_evaluation_list(evaluations, directory, config, console)


@click.command("absences")
@click.option("--offering", "offering_id", default=None, help="Nur dieses Fachangebot.")
@click.option("--student", "student_id", default=None, help="Nur dieser Schüler.")
@click.option("--teacher", "teacher_id", default=None, help="Nur diese Lehrkraft.")
@click.option("--justified/--unjustified", "justified", default=None,
              help="Nur entschuldigte bzw. unentschuldigte Fehlzeiten.")
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Ab Datum (JJJJ-MM-TT, inklusive).")
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Bis Datum (JJJJ-MM-TT, inklusive).")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
def cmd_absences(offering_id: str, student_id: str, teacher_id: str, justified,
                 date_from, date_to, json_path: str, gen_first: bool):
    """Fehlzeitenliste mit Filtern nach Fach, Schüler, Lehrkraft, Status und Zeitraum."""
    from data.directory import RecordDirectory
    from export.console_renderer import print_absence_list

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    try:
        directory = RecordDirectory(data)
        if offering_id:
            directory.offering(offering_id)
        if student_id:
            directory.student(student_id)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    absences = directory.filter_absences(
        offering_id=offering_id,
        student_id=student_id,
        teacher_id=teacher_id,
        justified=justified,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
    )
    print_absence_list(absences, directory, console)


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--excel", "do_excel", is_flag=True, default=False, help="Nur Excel.")
@click.option("--pdf", "do_pdf", is_flag=True, default=False, help="Nur PDF-Zeugnisse.")
@click.option("--output-dir", "-o", default="output", help="Ausgabeverzeichnis.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
def cmd_export(do_excel: bool, do_pdf: bool, output_dir: str, json_path: str, gen_first: bool):
    """Exportiert die Leistungsbilanz als Excel und/oder PDF-Zeugnisse."""
    from export import ExcelExporter, PdfExporter

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    if not do_excel and not do_pdf:
        do_excel = do_pdf = True

    out = Path(output_dir)
    try:
        if do_excel:
            xlsx = out / "leistungsbilanz.xlsx"
            ExcelExporter(data, config.grading, config).export(xlsx)
            console.print(f"[green]✓[/green] Excel gespeichert: {xlsx}")
        if do_pdf:
            written = PdfExporter(data, config.grading, config).export_all(out / "zeugnisse")
            console.print(f"[green]✓[/green] {len(written)} PDF-Zeugnisse in {out / 'zeugnisse'}")
    except DOMAIN_ERRORS as e:
        _fail(str(e))


# ─── COMPARE ──────────────────────────────────────────────────────────────────

@click.command("compare")
@click.argument("profile_a")
@click.argument("profile_b")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--generate", "gen_first", is_flag=True, default=False,
              help="Demo-Daten statt JSON verwenden (Seed 42).")
@click.option("--as-json", is_flag=True, default=False, help="Ergebnis als JSON ausgeben.")
def cmd_compare(profile_a: str, profile_b: str, json_path: str, gen_first: bool, as_json: bool):
    """Vergleicht zwei Gewichtungen über das Notenbuch.

    Namen: 'aktiv', ein gespeichertes Profil oder eine eingebaute Alt-Tabelle
    (fachuebersicht, notenuebersicht).
    """
    from analysis.policy_diff import compare_policies
    from export.helpers import format_grade

    mgr, config = _load_config_or_abort()
    data = _load_gradebook_or_abort(json_path, config, gen_first)
    try:
        policy_a = _resolve_policy(mgr, config, profile_a)
        policy_b = _resolve_policy(mgr, config, profile_b)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    diff = compare_policies(data, policy_a, policy_b)
    if as_json:
        click.echo(diff.to_json())
        return

    console.print(f"[bold]A[/bold] {profile_a}: {_weights_text(policy_a)}")
    console.print(f"[bold]B[/bold] {profile_b}: {_weights_text(policy_b)}")
    if diff.is_empty():
        console.print(f"[green]✓ Keine Abweichungen[/green] ({diff.pairs_compared} Paare)")
        return

    decimals = config.display.decimals
    table = Table(title="Abweichungen", box=box.ROUNDED)
    for col in ("Schüler", "Fach", "Schnitt A", "Schnitt B", "Status A", "Status B"):
        table.add_column(col)
    for c in diff.changes:
        style = "bold red" if c.verdict_changed else None
        table.add_row(
            c.student_id, c.offering_id,
            format_grade(c.average_a, decimals), format_grade(c.average_b, decimals),
            c.status_a, c.status_b,
            style=style,
        )
    console.print(table)
    console.print(
        f"{len(diff.changes)} von {diff.pairs_compared} Paaren weichen ab, "
        f"davon [red]{len(diff.verdict_changes)}[/red] mit anderem Urteil."
    )


# ─── PROFILE ──────────────────────────────────────────────────────────────────

@click.group("profile")
def cmd_profile():
    """Gewichtungs-Profile verwalten (speichern, laden, auflisten)."""


@cmd_profile.command("save")
@click.argument("name")
@click.option("--description", "-d", default="", help="Beschreibung des Profils.")
@click.option("--from", "source", default="aktiv",
              help="Quelle: 'aktiv' oder eingebaute Alt-Tabelle.")
@click.option("--force", is_flag=True, default=False, help="Ohne Rückfrage überschreiben.")
def profile_save(name: str, description: str, source: str, force: bool):
    """Speichert eine Gewichtung als Profil."""
    mgr, config = _load_config_or_abort()
    try:
        policy = _resolve_policy(mgr, config, source)
    except DOMAIN_ERRORS as e:
        _fail(str(e))
    mgr.save_profile(policy, name, description, overwrite=force)


@cmd_profile.command("load")
@click.argument("name")
def profile_load(name: str):
    """Setzt ein gespeichertes Profil als aktive Gewichtung."""
    mgr, config = _load_config_or_abort()
    try:
        policy = mgr.load_profile(name)
    except DOMAIN_ERRORS as e:
        _fail(str(e))
    mgr.save(config.model_copy(update={"grading": policy}))
    console.print(f"[green]✓[/green] Profil '{name}' als aktive Gewichtung gesetzt.")


@cmd_profile.command("list")
def profile_list():
    """Listet gespeicherte Profile und eingebaute Alt-Tabellen auf."""
    from config.defaults import LEGACY_POLICY_PROFILES
    from config.manager import ConfigManager

    mgr = ConfigManager()
    profiles = mgr.list_profiles()

    table = Table(title="Gewichtungs-Profile", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Erstellt")
    table.add_column("Beschreibung")
    for p in profiles:
        table.add_row(p["name"], p.get("created", ""), p.get("description", ""))
    for name, policy in LEGACY_POLICY_PROFILES.items():
        table.add_row(name, "[dim]eingebaut[/dim]", _weights_text(policy))
    console.print(table)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben anzeigen.")
def cli(verbose: bool):
    """Leistungsbilanz: Noten und Fehlzeiten je Schüler und Fach.

    Starten Sie mit: python main.py setup
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def main():
    """Einstiegspunkt. Startet automatisch den Wizard beim ersten Aufruf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Leistungsbilanz![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_template)
cli.add_command(cmd_import)
cli.add_command(cmd_import_backend)
cli.add_command(cmd_validate)
cli.add_command(cmd_student)
cli.add_command(cmd_offering)
cli.add_command(cmd_grades)
cli.add_command(cmd_absences)
cli.add_command(cmd_export)
cli.add_command(cmd_compare)
cli.add_command(cmd_profile)


if __name__ == "__main__":
    main()
