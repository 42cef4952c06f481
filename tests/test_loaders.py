"""
Tests for grade data loaders.
"""

from pathlib import Path

import pandas as pd
import pytest

from anomaly_engine.loaders import (
    AssignmentNotFoundError,
    ExcelGradeLoader,
    InMemoryGradeLoader,
    JsonSnapshotLoader,
    LoaderError,
    create_loader,
    get_supported_extensions,
)
from anomaly_engine.models import GradedStatus


@pytest.fixture
def grades_workbook(temp_dir: Path) -> Path:
    """Workbook with one assignment, a two-criterion rubric and six rows."""
    file_path = temp_dir / "grades.xlsx"
    assignment = pd.DataFrame([{"assignment_id": 4, "title": "Lab 4", "max_points": 50}])
    rubric = pd.DataFrame(
        [
            {"criterion": "Correctness", "max_points": 35},
            {"criterion": "Style", "max_points": 15},
        ]
    )
    grades = pd.DataFrame(
        [
            {
                "submission_id": i,
                "student_identifier": f"s{i}",
                "grader_id": 1 + i % 2,
                "grader_email": f"ta{1 + i % 2}@example.com",
                "score": 40 + i,
                "graded_status": "graded",
                "criterion:Correctness": 30 + i,
                "criterion:Style": 10.0 if i != 3 else None,
            }
            for i in range(1, 6)
        ]
        + [
            {
                "submission_id": 6,
                "student_identifier": "s6",
                "grader_id": 1,
                "grader_email": "ta1@example.com",
                "score": 0,
                "graded_status": "pending",
            }
        ]
    )
    with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
        assignment.to_excel(writer, sheet_name="assignment", index=False)
        rubric.to_excel(writer, sheet_name="rubric", index=False)
        grades.to_excel(writer, sheet_name="grades", index=False)
    return file_path


class TestInMemoryGradeLoader:
    """Tests for InMemoryGradeLoader."""

    def test_fetch_context(self, loader, rubric_context) -> None:
        assert loader.fetch_assignment_context(1) == rubric_context
        assert loader.assignment_ids() == (1,)

    def test_fetch_graded_only(self, rubric_context, make_submission) -> None:
        """Test submissions not yet graded are not returned."""
        loader = InMemoryGradeLoader(
            contexts=[rubric_context],
            submissions=[
                (1, make_submission(1, 50.0)),
                (1, make_submission(2, 0.0, status=GradedStatus.PENDING)),
            ],
        )

        assert [s.submission_id for s in loader.fetch_graded_submissions(1)] == [1]

    def test_add_submission_replaces_same_id(self, loader, make_submission) -> None:
        loader.add_submission(1, make_submission(9, 77.0, grader_id=3))

        rows = loader.fetch_graded_submissions(1)
        assert len(rows) == 9
        assert [s.score for s in rows if s.submission_id == 9] == [77.0]

    def test_unknown_assignment(self, loader, make_submission) -> None:
        with pytest.raises(AssignmentNotFoundError):
            loader.fetch_assignment_context(2)
        with pytest.raises(AssignmentNotFoundError):
            loader.fetch_graded_submissions(2)
        with pytest.raises(AssignmentNotFoundError):
            loader.add_submission(2, make_submission(1, 50.0))


class TestJsonSnapshotLoader:
    """Tests for JsonSnapshotLoader."""

    def test_load_snapshot(self, snapshot_file, rubric_context) -> None:
        loader = JsonSnapshotLoader(snapshot_file)

        assert loader.assignment_ids() == (1,)
        assert loader.fetch_assignment_context(1) == rubric_context
        submissions = loader.fetch_graded_submissions(1)
        assert len(submissions) == 9
        assert submissions[8].criterion_scores == {
            "Correctness": 25.0,
            "Style": 15.0,
            "Documentation": 0.0,
        }

    def test_wrong_assignment(self, snapshot_file) -> None:
        with pytest.raises(AssignmentNotFoundError) as exc_info:
            JsonSnapshotLoader(snapshot_file).fetch_assignment_context(2)

        assert exc_info.value.assignment_id == 2
        assert str(snapshot_file) in str(exc_info.value)

    def test_missing_file(self, temp_dir) -> None:
        with pytest.raises(LoaderError, match="File does not exist"):
            JsonSnapshotLoader(temp_dir / "missing.json").assignment_ids()

    def test_invalid_snapshot(self, temp_dir) -> None:
        """Test a negative score is rejected as invalid data."""
        file_path = temp_dir / "bad.json"
        file_path.write_text(
            '{"assignment": {"assignment_id": 1, "max_points": 100},'
            ' "submissions": [{"submission_id": 1, "student_identifier": "s1",'
            ' "grader_id": 1, "score": -5}]}',
            encoding="utf-8",
        )

        with pytest.raises(LoaderError, match="Invalid snapshot") as exc_info:
            JsonSnapshotLoader(file_path).assignment_ids()

        assert exc_info.value.cause is not None

    def test_not_json(self, temp_dir) -> None:
        file_path = temp_dir / "bad.json"
        file_path.write_text("not json", encoding="utf-8")

        with pytest.raises(LoaderError):
            JsonSnapshotLoader(file_path).assignment_ids()


class TestExcelGradeLoader:
    """Tests for ExcelGradeLoader."""

    def test_load_context(self, grades_workbook) -> None:
        context = ExcelGradeLoader(grades_workbook).fetch_assignment_context(4)

        assert context.title == "Lab 4"
        assert context.max_points == 50.0
        assert context.criterion_names == ("Correctness", "Style")

    def test_load_submissions(self, grades_workbook) -> None:
        """Test graded rows are read and the pending row is dropped."""
        submissions = ExcelGradeLoader(grades_workbook).fetch_graded_submissions(4)

        assert [s.submission_id for s in submissions] == [1, 2, 3, 4, 5]
        first = submissions[0]
        assert first.student_identifier == "s1"
        assert first.grader_id == 2
        assert first.grader_email == "ta2@example.com"
        assert first.score == 41.0
        assert first.criterion_scores == {"Correctness": 31.0, "Style": 10.0}

    def test_blank_criterion_cell_is_not_scored(self, grades_workbook) -> None:
        submissions = ExcelGradeLoader(grades_workbook).fetch_graded_submissions(4)

        assert submissions[2].criterion_scores == {"Correctness": 33.0}

    def test_wrong_assignment(self, grades_workbook) -> None:
        with pytest.raises(AssignmentNotFoundError):
            ExcelGradeLoader(grades_workbook).fetch_graded_submissions(1)

    def test_missing_sheet(self, temp_dir) -> None:
        file_path = temp_dir / "partial.xlsx"
        with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
            pd.DataFrame([{"submission_id": 1}]).to_excel(writer, sheet_name="grades", index=False)

        with pytest.raises(LoaderError, match="missing sheets"):
            ExcelGradeLoader(file_path).assignment_ids()

    def test_missing_grade_columns(self, temp_dir) -> None:
        file_path = temp_dir / "columns.xlsx"
        with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
            pd.DataFrame([{"assignment_id": 1, "max_points": 10}]).to_excel(
                writer, sheet_name="assignment", index=False
            )
            pd.DataFrame([{"criterion": "A", "max_points": 10}]).to_excel(
                writer, sheet_name="rubric", index=False
            )
            pd.DataFrame([{"submission_id": 1, "score": 5}]).to_excel(
                writer, sheet_name="grades", index=False
            )

        with pytest.raises(LoaderError, match="missing columns"):
            ExcelGradeLoader(file_path).assignment_ids()

    def test_corrupted_file(self, temp_dir) -> None:
        file_path = temp_dir / "corrupt.xlsx"
        file_path.write_bytes(b"this is not a workbook")

        with pytest.raises(LoaderError):
            ExcelGradeLoader(file_path).assignment_ids()


class TestLoaderFactory:
    """Tests for create_loader."""

    def test_supported_extensions(self) -> None:
        assert get_supported_extensions() == (".json", ".xlsx")

    def test_json_loader(self, snapshot_file) -> None:
        assert isinstance(create_loader(snapshot_file), JsonSnapshotLoader)

    def test_excel_loader_case_insensitive(self) -> None:
        assert isinstance(create_loader(Path("GRADES.XLSX")), ExcelGradeLoader)

    def test_unsupported_extension(self) -> None:
        with pytest.raises(LoaderError, match="Unsupported file format"):
            create_loader(Path("grades.pdf"))
