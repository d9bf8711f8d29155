"""GradebookData: Vollständiger Notenbuch-Datensatz + Konsistenz-Check (Pydantic v2)."""

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.absence import AbsenceRecord
from models.enrollment import Enrollment
from models.evaluation import EvaluationRecord
from models.offering import SubjectOffering
from models.student import Student


class IntegrityReport(BaseModel):
    """Ergebnis des Konsistenz-Checks."""

    is_consistent: bool
    errors: list[str]      # Verweise ins Leere – Auswertung unzuverlässig
    warnings: list[str]    # Auffälligkeiten, Auswertung trotzdem möglich

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_consistent:
            status = "[bold green]✓ KONSISTENT[/bold green]"
        else:
            status = "[bold red]✗ INKONSISTENT[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler:[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Konsistenz-Check", border_style="cyan"))


class GradebookData(BaseModel):
    """Vollständiger Datensatz: Schüler, Fachangebote, Einschreibungen, Noten, Fehlzeiten."""

    students: list[Student]
    offerings: list[SubjectOffering]
    enrollments: list[Enrollment] = []
    evaluations: list[EvaluationRecord] = []
    absences: list[AbsenceRecord] = []
    school_name: str = ""
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        classes = {o.class_name for o in self.offerings}
        total_absences = sum(a.count for a in self.absences)
        justified = sum(a.count for a in self.absences if a.justified)
        lines = [
            f"Schule: {self.school_name}" if self.school_name else "",
            f"Schüler: {len(self.students)}",
            f"Klassen: {len(classes)}",
            f"Fachangebote: {len(self.offerings)}",
            f"Noten: {len(self.evaluations)}",
            f"Fehlzeiten-Einträge: {len(self.absences)} "
            f"({total_absences} Fehlstunden, davon {justified} entschuldigt)",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Konsistenz-Check ───

    def validate_integrity(self) -> IntegrityReport:
        """Prüft Verweise und Auffälligkeiten im Datensatz.

        Prüfungen:
        1. Noten/Fehlzeiten verweisen auf bekannte Schüler und Fachangebote
        2. Schüler ist in die Klasse des Fachangebots eingeschrieben
        3. Entschuldigte Fehlzeiten ohne Begründung
        4. Mehrere Noten desselben Typs (gehen alle in den Schnitt ein)
        """
        errors: list[str] = []
        warnings: list[str] = []

        student_ids = {s.id for s in self.students}
        offering_map = {o.id: o for o in self.offerings}
        enrolled: dict[str, set[str]] = {}
        for e in self.enrollments:
            if e.active:
                enrolled.setdefault(e.student_id, set()).add(e.class_name)

        # ── 1. Verweise ──────────────────────────────────────────────────
        for e in self.enrollments:
            if e.student_id not in student_ids:
                errors.append(f"Einschreibung: unbekannter Schüler '{e.student_id}'.")

        for kind, records in (("Note", self.evaluations), ("Fehlzeit", self.absences)):
            for r in records:
                if r.student_id not in student_ids:
                    errors.append(
                        f"{kind} vom {r.date.isoformat()}: unbekannter Schüler '{r.student_id}'."
                    )
                offering = offering_map.get(r.offering_id)
                if offering is None:
                    errors.append(
                        f"{kind} vom {r.date.isoformat()}: unbekanntes Fachangebot '{r.offering_id}'."
                    )
                    continue
                # ── 2. Einschreibung ─────────────────────────────────────
                if r.student_id in student_ids and \
                        offering.class_name not in enrolled.get(r.student_id, set()):
                    warnings.append(
                        f"{kind} für '{r.student_id}' in {offering.label}: "
                        f"Schüler ist nicht in Klasse '{offering.class_name}' eingeschrieben."
                    )

        # ── 3. Begründungen ──────────────────────────────────────────────
        unresolved = [a for a in self.absences if a.justified and not a.is_resolved]
        if unresolved:
            warnings.append(
                f"{len(unresolved)} entschuldigte Fehlzeit(en) ohne Begründungstext."
            )

        # ── 4. Mehrfach-Noten ────────────────────────────────────────────
        per_type = Counter((ev.student_id, ev.offering_id, ev.type) for ev in self.evaluations)
        for (sid, oid, etype), n in sorted(per_type.items(), key=lambda kv: (kv[0][0], kv[0][1], kv[0][2].value)):
            if n > 1:
                warnings.append(
                    f"Schüler '{sid}', Fachangebot '{oid}': {n} Noten vom Typ "
                    f"'{etype.value}' – alle gehen in den Durchschnitt ein."
                )

        return IntegrityReport(
            is_consistent=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    def save_versioned(self, base_path: Path) -> Path:
        """Speichert mit Zeitstempel im Dateinamen."""
        base_path = Path(base_path)
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
        versioned = base_path.parent / f"{base_path.stem}_{ts}{base_path.suffix}"
        self.save_json(versioned)
        return versioned

    @classmethod
    def load_json(cls, path: Path) -> "GradebookData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
