"""Tests für das Konfigurationssystem, Gewichtungs-Profile und die CLI."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import (
    AppConfig,
    AttendancePolicy,
    DisplayConfig,
    GradeBand,
    GradingPolicy,
    InputHandling,
)
from config.defaults import (
    EVALUATION_TYPE_METADATA,
    LEGACY_POLICY_PROFILES,
    default_app_config,
    default_grading_policy,
    type_label,
)
from config.manager import ConfigManager
from models.evaluation import EvaluationType


def _manager(tmp_path: Path) -> ConfigManager:
    mgr = ConfigManager()
    mgr.CONFIG_DIR = tmp_path
    mgr.DEFAULT_CONFIG = tmp_path / "leistungsbilanz.yaml"
    mgr.PROFILES_DIR = tmp_path / "profiles"
    return mgr


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_canonical_policy(self):
        """Prüfung 3, Hausarbeit 7, beide Pflicht, Grenze 7.0."""
        policy = default_grading_policy()
        assert policy.weights == {EvaluationType.EXAM: 3.0, EvaluationType.ASSIGNMENT: 7.0}
        assert policy.required_types == [EvaluationType.EXAM, EvaluationType.ASSIGNMENT]
        assert policy.pass_threshold == 7.0

    def test_schema_defaults_match_canonical(self):
        assert GradingPolicy() == default_grading_policy()

    def test_unlisted_type_weight_one(self):
        policy = default_grading_policy()
        assert policy.weight_for(EvaluationType.PARTICIPATION) == 1.0
        assert policy.weight_for(EvaluationType.MAKEUP) == 1.0
        assert policy.weight_for(EvaluationType.ASSIGNMENT) == 7.0

    def test_default_app_config_valid(self):
        config = default_app_config()
        assert config.school_name == "Escola Modelo"
        assert config.input_handling == InputHandling.REJECT
        assert config.attendance.unjustified_warning_threshold == 5
        assert config.attendance.lessons_per_period == 20
        assert config.display.decimals == 1

    def test_metadata_covers_all_types(self):
        for etype in EvaluationType:
            assert etype in EVALUATION_TYPE_METADATA
            assert EVALUATION_TYPE_METADATA[etype]["backend"] == etype.backend_code
        assert type_label(EvaluationType.EXAM) == "Prüfung"

    def test_legacy_profiles_differ(self):
        """Die Alt-Tabellen sind verfügbar und unterscheiden sich."""
        a = LEGACY_POLICY_PROFILES["fachuebersicht"]
        b = LEGACY_POLICY_PROFILES["notenuebersicht"]
        assert a == default_grading_policy()
        assert b.weight_for(EvaluationType.ASSIGNMENT) == 2.0
        assert b.weight_for(EvaluationType.MAKEUP) == 5.0


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_zero_weight_raises(self):
        with pytest.raises(ValidationError):
            GradingPolicy(weights={EvaluationType.EXAM: 0.0})

    def test_negative_weight_raises(self):
        with pytest.raises(ValidationError):
            GradingPolicy(weights={EvaluationType.PROJECT: -1.0})

    def test_empty_required_types_raises(self):
        with pytest.raises(ValidationError):
            GradingPolicy(required_types=[])

    def test_required_types_deduplicated(self):
        policy = GradingPolicy(required_types=["exam", "exam", "assignment"])
        assert policy.required_types == [EvaluationType.EXAM, EvaluationType.ASSIGNMENT]

    def test_threshold_out_of_range(self):
        with pytest.raises(ValidationError):
            GradingPolicy(pass_threshold=10.5)

    def test_weights_from_strings(self):
        """Gewichte aus YAML kommen als String-Schlüssel."""
        policy = GradingPolicy.model_validate({"weights": {"exam": 2, "makeup": 4}})
        assert policy.weight_for(EvaluationType.MAKEUP) == 4.0

    def test_grade_bands_sorted(self):
        display = DisplayConfig(grade_bands=[
            GradeBand(min_value=0.0, label="rot", color="FFC7CE"),
            GradeBand(min_value=9.0, label="grün", color="C6EFCE"),
        ])
        assert [b.min_value for b in display.grade_bands] == [9.0, 0.0]

    def test_grade_bands_must_cover_zero(self):
        with pytest.raises(ValidationError):
            DisplayConfig(grade_bands=[GradeBand(min_value=5.0, label="x", color="FFFFFF")])

    def test_attendance_threshold_positive(self):
        with pytest.raises(ValidationError):
            AttendancePolicy(absence_alert_threshold=0)


# ─── CONFIG-MANAGER ───────────────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren — vollständiger Roundtrip."""
        config = default_app_config().model_copy(update={"school_name": "Escola Teste"})
        mgr = _manager(tmp_path)

        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load(mgr.DEFAULT_CONFIG)
        assert loaded == config

    def test_saved_yaml_has_comments(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        mgr.save(default_app_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert "Leistungsbilanz" in text
        assert "Gewichtung" in text
        assert "inklusive (>=)" in text

    def test_first_run_check(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        assert mgr.first_run_check() is True
        mgr.save(default_app_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        path = tmp_path / "kaputt.yaml"
        path.write_text("grading:\n  pass_threshold: 42\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            ConfigManager().load(path)

    def test_profile_save_and_load(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        policy = GradingPolicy(pass_threshold=6.0)
        path = mgr.save_profile(policy, "mild", "Grenze 6")
        assert path.exists()
        assert mgr.load_profile("mild") == policy

    def test_profile_overwrite(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        mgr.save_profile(GradingPolicy(pass_threshold=6.0), "p")
        mgr.save_profile(GradingPolicy(pass_threshold=8.0), "p", overwrite=True)
        assert mgr.load_profile("p").pass_threshold == 8.0

    def test_list_profiles_with_metadata(self, tmp_path: Path):
        mgr = _manager(tmp_path)
        mgr.save_profile(GradingPolicy(), "a", "Beschreibung A")
        mgr.save_profile(GradingPolicy(), "b")
        profiles = mgr.list_profiles()
        assert [p["name"] for p in profiles] == ["a", "b"]
        assert profiles[0]["description"] == "Beschreibung A"
        assert profiles[1]["description"] == ""

    def test_list_profiles_empty(self, tmp_path: Path):
        assert _manager(tmp_path).list_profiles() == []

    def test_load_unknown_profile_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            _manager(tmp_path).load_profile("gibt_es_nicht")


# ─── MAIN.PY CLI ──────────────────────────────────────────────────────────────

class TestCli:
    def test_help(self):
        """main.py --help gibt Usage aus."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    @pytest.mark.parametrize("command", [
        "generate", "template", "import", "import-backend", "validate",
        "student", "offering", "grades", "absences", "export", "compare",
    ])
    def test_commands_registered(self, command):
        from click.testing import CliRunner
        from main import cli
        result = CliRunner().invoke(cli, [command, "--help"])
        assert result.exit_code == 0

    def test_config_show_no_file(self):
        """config show ohne Konfiguration → Fehlermeldung."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 1
            assert "Keine Konfiguration" in result.output

    def test_generate_report_and_export(self):
        """generate → student/offering → validate → export in einem Arbeitsverzeichnis."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())

            result = runner.invoke(cli, ["generate", "--export-json"])
            assert result.exit_code == 0, result.output
            assert Path("output/gradebook.json").exists()

            result = runner.invoke(cli, ["config", "show"])
            assert result.exit_code == 0
            assert "Escola Modelo" in result.output

            result = runner.invoke(cli, ["student", "S001"])
            assert result.exit_code == 0, result.output
            assert "ausstehend" in result.output

            result = runner.invoke(cli, ["offering", "O001"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(cli, ["validate"])
            assert result.exit_code == 0, result.output
            assert "Anwesenheitsquote" in result.output

            result = runner.invoke(cli, ["export", "--excel"])
            assert result.exit_code == 0, result.output
            assert Path("output/leistungsbilanz.xlsx").exists()

    def test_unknown_student_exits_1(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            result = runner.invoke(cli, ["student", "S999", "--generate"])
            assert result.exit_code == 1
            assert "nicht gefunden" in result.output

    def test_missing_data_file_exits_1(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            result = runner.invoke(cli, ["offering", "O001"])
            assert result.exit_code == 1
            assert "Keine Datendatei" in result.output

    def test_grades_and_absences_lists(self):
        """Noten- und Fehlzeitenliste mit Filtern auf Demo-Daten."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())

            result = runner.invoke(cli, ["grades", "--generate", "--student", "S001",
                                         "--offering", "O001", "--type", "prova"])
            assert result.exit_code == 0, result.output
            assert "Noten (1)" in result.output

            result = runner.invoke(cli, ["absences", "--generate", "--student", "S003",
                                         "--unjustified"])
            assert result.exit_code == 0, result.output
            assert "Fehlstunden:" in result.output

            result = runner.invoke(cli, ["absences", "--generate", "--from", "2030-01-01"])
            assert result.exit_code == 0, result.output
            assert "Keine Fehlzeiten" in result.output

    def test_grades_invalid_filters_exit_1(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            result = runner.invoke(cli, ["grades", "--generate", "--type", "quiz"])
            assert result.exit_code == 1
            result = runner.invoke(cli, ["grades", "--generate", "--student", "S999"])
            assert result.exit_code == 1
            assert "nicht gefunden" in result.output

    def test_import_backend_broken_row_exits_1(self):
        """Zeile ohne ID → rote Meldung statt Traceback."""
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            Path("dump.json").write_text(
                json.dumps({"users": [{"full_name": "Ana", "role": "aluno"}]}), encoding="utf-8"
            )
            result = runner.invoke(cli, ["import-backend", "dump.json"])
            assert result.exit_code == 1
            assert "Backend-Export abgelehnt" in result.output
            assert "users" in result.output
            assert not isinstance(result.exception, KeyError)

    def test_compare_legacy_tables_as_json(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            result = runner.invoke(
                cli, ["compare", "fachuebersicht", "notenuebersicht", "--generate", "--as-json"]
            )
            assert result.exit_code == 0, result.output
            payload = json.loads(result.output)
            assert payload["pairs_compared"] > 0
            assert payload["changed_averages"] > 0

    def test_compare_unknown_profile_exits_1(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())
            result = runner.invoke(cli, ["compare", "aktiv", "phantasie", "--generate"])
            assert result.exit_code == 1
            assert "unbekannt" in result.output

    def test_profile_save_list_load(self):
        from click.testing import CliRunner
        from main import cli
        runner = CliRunner()
        with runner.isolated_filesystem():
            ConfigManager().save(default_app_config())

            result = runner.invoke(cli, ["profile", "save", "alt", "--from", "notenuebersicht",
                                         "-d", "Alte Übersicht"])
            assert result.exit_code == 0, result.output

            result = runner.invoke(cli, ["profile", "list"])
            assert result.exit_code == 0
            assert "alt" in result.output

            result = runner.invoke(cli, ["profile", "load", "alt"])
            assert result.exit_code == 0, result.output
            config = ConfigManager().load()
            assert config.grading == LEGACY_POLICY_PROFILES["notenuebersicht"]
