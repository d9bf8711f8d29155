"""Tests für die Datenmodelle (Pydantic v2) und den Konsistenz-Check."""

from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from models import (
    AbsenceRecord,
    Enrollment,
    EvaluationRecord,
    EvaluationType,
    GradebookData,
    Student,
    SubjectOffering,
)
from models.evaluation import BACKEND_TYPE_CODES


def _gradebook(**overrides) -> GradebookData:
    base = dict(
        students=[Student(id="S1", full_name="Ana Souza"), Student(id="S2", full_name="Bruno Lima")],
        offerings=[SubjectOffering(id="O1", subject_name="Matemática", subject_code="MAT",
                                   class_name="1A", teacher_name="Prof. Lima")],
        enrollments=[Enrollment(student_id="S1", class_name="1A"),
                     Enrollment(student_id="S2", class_name="1A")],
        evaluations=[
            EvaluationRecord(student_id="S1", offering_id="O1", type=EvaluationType.EXAM,
                             value=8.0, date=date(2024, 3, 1)),
            EvaluationRecord(student_id="S1", offering_id="O1", type=EvaluationType.ASSIGNMENT,
                             value=6.0, date=date(2024, 4, 1)),
        ],
        absences=[
            AbsenceRecord(student_id="S2", offering_id="O1", date=date(2024, 3, 5), count=2,
                          justified=True, justification="Atestado"),
        ],
        school_name="Escola Teste",
    )
    base.update(overrides)
    return GradebookData(**base)


# ─── BEWERTUNGSTYPEN ──────────────────────────────────────────────────────────

class TestEvaluationType:
    @pytest.mark.parametrize("raw, expected", [
        ("exam", EvaluationType.EXAM),
        ("prova", EvaluationType.EXAM),
        ("Trabalho", EvaluationType.ASSIGNMENT),
        (" participacao ", EvaluationType.PARTICIPATION),
        ("projeto", EvaluationType.PROJECT),
        ("recuperacao", EvaluationType.MAKEUP),
        ("makeup", EvaluationType.MAKEUP),
    ])
    def test_parse(self, raw, expected):
        assert EvaluationType.parse(raw) is expected

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            EvaluationType.parse("quiz")

    def test_backend_code_roundtrip(self):
        for code, etype in BACKEND_TYPE_CODES.items():
            assert etype.backend_code == code
            assert EvaluationType.parse(etype.backend_code) is etype


# ─── DATENSÄTZE ───────────────────────────────────────────────────────────────

class TestRecords:
    def test_evaluation_frozen(self):
        ev = EvaluationRecord(student_id="S1", offering_id="O1", type="exam",
                              value=5, date=date(2024, 3, 1))
        with pytest.raises(ValidationError):
            ev.value = 9

    def test_evaluation_parses_iso_date(self):
        ev = EvaluationRecord(student_id="S1", offering_id="O1", type="assignment",
                              value=5, date="2024-03-15")
        assert ev.date == date(2024, 3, 15)
        assert ev.type == EvaluationType.ASSIGNMENT

    def test_evaluation_bounds_inclusive(self):
        for v in (0, 10):
            EvaluationRecord(student_id="S1", offering_id="O1", type="exam", value=v,
                             date=date(2024, 3, 1))

    def test_absence_default_count(self):
        ab = AbsenceRecord(student_id="S1", offering_id="O1", date=date(2024, 3, 1))
        assert ab.count == 1
        assert ab.justified is False

    def test_offering_label(self):
        o = SubjectOffering(id="O1", subject_name="História", subject_code="HIS", class_name="2B")
        assert o.label == "HIS – História (2B)"
        assert o.teacher_name is None


# ─── GRADEBOOK ────────────────────────────────────────────────────────────────

class TestGradebookData:
    def test_summary_contains_key_info(self):
        text = _gradebook().summary()
        assert "Escola Teste" in text
        assert "Schüler: 2" in text
        assert "Noten: 2" in text
        assert "davon 2 entschuldigt" in text

    def test_consistent_data(self):
        report = _gradebook().validate_integrity()
        assert report.is_consistent
        assert report.errors == []
        assert report.warnings == []

    def test_unknown_references_are_errors(self):
        gb = _gradebook(evaluations=[
            EvaluationRecord(student_id="S9", offering_id="O1", type="exam", value=5,
                             date=date(2024, 3, 1)),
            EvaluationRecord(student_id="S1", offering_id="O9", type="exam", value=5,
                             date=date(2024, 3, 1)),
        ])
        report = gb.validate_integrity()
        assert not report.is_consistent
        assert any("S9" in e for e in report.errors)
        assert any("O9" in e for e in report.errors)

    def test_not_enrolled_is_warning(self):
        gb = _gradebook(enrollments=[Enrollment(student_id="S2", class_name="1A")])
        report = gb.validate_integrity()
        assert report.is_consistent
        assert any("nicht in Klasse" in w for w in report.warnings)

    def test_justified_without_text_is_warning(self):
        gb = _gradebook(absences=[
            AbsenceRecord(student_id="S2", offering_id="O1", date=date(2024, 3, 5), justified=True),
        ])
        report = gb.validate_integrity()
        assert any("ohne Begründungstext" in w for w in report.warnings)

    def test_duplicate_type_is_warning(self):
        gb = _gradebook()
        extra = EvaluationRecord(student_id="S1", offering_id="O1", type="exam", value=4,
                                 date=date(2024, 5, 1))
        gb = gb.model_copy(update={"evaluations": gb.evaluations + [extra]})
        report = gb.validate_integrity()
        assert report.is_consistent
        assert any("2 Noten vom Typ 'exam'" in w for w in report.warnings)

    def test_save_and_load_json(self, tmp_path: Path):
        gb = _gradebook()
        path = tmp_path / "gradebook.json"
        gb.save_json(path)
        loaded = GradebookData.load_json(path)
        assert loaded.evaluations == gb.evaluations
        assert loaded.absences == gb.absences
        assert loaded.created_at is not None
        assert loaded.modified_at is not None

    def test_save_versioned(self, tmp_path: Path):
        path = _gradebook().save_versioned(tmp_path / "gradebook.json")
        assert path.exists()
        assert path.name.startswith("gradebook_")
        assert path.suffix == ".json"

    def test_load_json_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            GradebookData.load_json(tmp_path / "fehlt.json")
