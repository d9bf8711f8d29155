"""Konfigurationsmanager: Laden, Speichern, Validieren und interaktives Bearbeiten.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import AppConfig, GradingPolicy

console = Console()
logger = logging.getLogger(__name__)
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Leistungsbilanz — Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "grading": (
        "Gewichtung",
        "Gewicht pro Bewertungstyp; nicht aufgeführte Typen zählen mit default_weight.\n"
        "Endurteil erst wenn alle required_types vorliegen. Bestanden ab pass_threshold (>=).",
    ),
    "attendance": (
        "Fehlzeiten",
        None,
    ),
    "display": (
        "Anzeige",
        "Gerundet wird nur bei der Anzeige.",
    ),
    "input_handling": (
        "Import",
        "reject = ungültige Zeilen ablehnen, clamp = Werte auf gültigen Bereich begrenzen.",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "leistungsbilanz.yaml"
    PROFILES_DIR = Path("profiles")

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> AppConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py setup' aus."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            config = AppConfig.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e
        logger.debug(f"Konfiguration geladen: {target}")
        return config

    # ─── Speichern ───

    def save(self, config: AppConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: AppConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        grading = CommentedMap(cm["grading"])
        grading.yaml_add_eol_comment("inklusive (>=)", "pass_threshold")
        cm["grading"] = grading

        return cm

    # ─── Gewichtungs-Profile ───

    def save_profile(self, policy: GradingPolicy, name: str,
                     description: str = "", overwrite: bool = False) -> Path:
        """Speichert eine Gewichtung als benanntes Profil."""
        self.PROFILES_DIR.mkdir(parents=True, exist_ok=True)
        path = self.PROFILES_DIR / f"{name}.yaml"
        if path.exists() and not overwrite:
            if not Confirm.ask(
                f"Profil '{name}' existiert bereits. Überschreiben?", default=False
            ):
                console.print("[yellow]Abgebrochen.[/yellow]")
                return path
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(json.loads(policy.model_dump_json()), f)
        # Beschreibung in separater Metadaten-Datei
        if description:
            meta_path = self.PROFILES_DIR / f"{name}.meta.yaml"
            with open(meta_path, "w", encoding="utf-8") as f:
                yaml.dump({"name": name, "description": description,
                           "created": date.today().isoformat()}, f)
        console.print(f"[green]✓[/green] Profil '{name}' gespeichert.")
        return path

    def list_profiles(self) -> list[dict]:
        """Listet alle gespeicherten Profile auf."""
        if not self.PROFILES_DIR.exists():
            return []
        profiles = []
        for p in sorted(self.PROFILES_DIR.glob("*.yaml")):
            if p.stem.endswith(".meta"):
                continue
            meta_path = self.PROFILES_DIR / f"{p.stem}.meta.yaml"
            description = ""
            created = ""
            if meta_path.exists():
                with open(meta_path, "r", encoding="utf-8") as f:
                    meta = yaml.load(f)
                    description = meta.get("description", "")
                    created = meta.get("created", "")
            profiles.append({
                "name": p.stem,
                "path": str(p),
                "description": description,
                "created": created,
            })
        return profiles

    def load_profile(self, name: str) -> GradingPolicy:
        """Lädt ein gespeichertes Profil."""
        path = self.PROFILES_DIR / f"{name}.yaml"
        if not path.exists():
            raise FileNotFoundError(
                f"Profil '{name}' nicht gefunden. "
                f"Verfügbar: {[p['name'] for p in self.list_profiles()]}"
            )
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return GradingPolicy.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(f"Profil '{name}' ungültig: {e}") from e

    # ─── Interaktives Bearbeiten ───

    def edit_interactive(self, config: AppConfig) -> AppConfig:
        """Interaktives Bearbeitungsmenü für die Konfiguration."""
        from config.wizard import _show_policy_table, _wizard_attendance, _wizard_grading

        while True:
            console.print()
            console.print(Panel(
                "[bold]Konfiguration bearbeiten[/bold]",
                border_style="cyan",
            ))
            console.print("  [bold]1.[/bold] Schulname")
            console.print("  [bold]2.[/bold] Gewichtung & Bestehensgrenze")
            console.print("  [bold]3.[/bold] Fehlzeiten-Schwellen")
            console.print("  [bold]0.[/bold] Speichern & Zurück")

            choice = Prompt.ask("\nAuswahl", default="0")

            if choice == "1":
                name = Prompt.ask("Name der Schule", default=config.school_name)
                config = config.model_copy(update={"school_name": name})
            elif choice == "2":
                _show_policy_table(config.grading)
                config = config.model_copy(update={"grading": _wizard_grading()})
            elif choice == "3":
                config = config.model_copy(update={"attendance": _wizard_attendance()})
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Ungültige Auswahl.[/yellow]")

        return config
