"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from anomaly_engine.analysis import AnomalyEngine
from anomaly_engine.config import Settings
from anomaly_engine.loaders import InMemoryGradeLoader
from anomaly_engine.models import (
    AnomalyReport,
    AssignmentContext,
    GradedStatus,
    GradedSubmission,
    GradeSnapshot,
    RubricCriterion,
)

SubmissionFactory = Callable[..., GradedSubmission]


# ==============================================================================
# Directory & Settings Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Settings with documented defaults and a temporary report directory."""
    return Settings(reports_directory=temp_dir / "reports")


# ==============================================================================
# Assignment & Submission Fixtures
# ==============================================================================


@pytest.fixture
def rubric_context() -> AssignmentContext:
    """A 100-point assignment with a three-criterion rubric."""
    return AssignmentContext(
        assignment_id=1,
        title="Homework 1",
        max_points=100,
        criteria=(
            RubricCriterion(name="Correctness", max_points=50),
            RubricCriterion(name="Style", max_points=30),
            RubricCriterion(name="Documentation", max_points=20),
        ),
    )


@pytest.fixture
def make_submission() -> SubmissionFactory:
    """Factory for graded submissions with predictable identifiers."""

    def _make(
        submission_id: int,
        score: float,
        grader_id: int = 1,
        criterion_scores: dict[str, float] | None = None,
        status: GradedStatus = GradedStatus.GRADED,
    ) -> GradedSubmission:
        return GradedSubmission(
            submission_id=submission_id,
            student_identifier=f"student{submission_id:03d}",
            grader_id=grader_id,
            grader_email=f"ta{grader_id}@example.com",
            score=score,
            criterion_scores=criterion_scores or {},
            graded_status=status,
        )

    return _make


@pytest.fixture
def literal_five(make_submission: SubmissionFactory) -> list[GradedSubmission]:
    """Scores 90, 88, 92, 91, 20 from a single grader."""
    return [
        make_submission(i, score)
        for i, score in enumerate([90.0, 88.0, 92.0, 91.0, 20.0], start=1)
    ]


@pytest.fixture
def graded_round(make_submission: SubmissionFactory) -> list[GradedSubmission]:
    """
    Nine graded submissions from three graders.

    Graders 1 and 2 score around 80; grader 3 graded one submission at 40
    and gave it no documentation points.
    """
    rows = [
        # (id, grader, correctness, style, documentation)
        (1, 1, 40, 24, 16),
        (2, 1, 41, 25, 16),
        (3, 1, 39, 23, 16),
        (4, 1, 40, 24, 16),
        (5, 2, 40, 25, 16),
        (6, 2, 39, 24, 16),
        (7, 2, 40, 24, 16),
        (8, 2, 41, 23, 16),
        (9, 3, 25, 15, 0),
    ]
    return [
        make_submission(
            sid,
            float(c + s + d),
            grader_id=grader,
            criterion_scores={"Correctness": c, "Style": s, "Documentation": d},
        )
        for sid, grader, c, s, d in rows
    ]


@pytest.fixture
def loader(
    rubric_context: AssignmentContext, graded_round: list[GradedSubmission]
) -> InMemoryGradeLoader:
    """In-memory loader holding the graded round for assignment 1."""
    return InMemoryGradeLoader(
        contexts=[rubric_context],
        submissions=[(rubric_context.assignment_id, s) for s in graded_round],
    )


@pytest.fixture
def sample_report(loader: InMemoryGradeLoader, test_settings: Settings) -> AnomalyReport:
    """Report produced from the graded round."""
    return AnomalyEngine(loader, test_settings).analyze(1)


@pytest.fixture
def snapshot_file(
    temp_dir: Path,
    rubric_context: AssignmentContext,
    graded_round: list[GradedSubmission],
) -> Path:
    """The graded round written as a JSON snapshot."""
    snapshot = GradeSnapshot(assignment=rubric_context, submissions=tuple(graded_round))
    file_path = temp_dir / "grades.json"
    file_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    return file_path
