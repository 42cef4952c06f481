"""
Excel workbook loader using openpyxl and pandas.

Expects an .xlsx workbook with three sheets:

- ``assignment``: one row with ``assignment_id``, ``max_points`` and optional ``title``
- ``rubric``: one row per criterion with ``criterion`` and ``max_points``
- ``grades``: one row per submission with ``submission_id``, ``student_identifier``,
  ``grader_id``, ``grader_email``, ``score``, ``graded_status`` and one
  ``criterion:<name>`` column per rubric criterion (blank = not scored)
"""

import logging
from pathlib import Path
from typing import Any, ClassVar

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from anomaly_engine.loaders.base import AssignmentNotFoundError, GradeDataLoader, LoaderError
from anomaly_engine.models import (
    AssignmentContext,
    GradedStatus,
    GradedSubmission,
    RubricCriterion,
)

LOG = logging.getLogger(__name__)

CRITERION_PREFIX = "criterion:"

REQUIRED_SHEETS = ("assignment", "rubric", "grades")

REQUIRED_GRADE_COLUMNS = ("submission_id", "student_identifier", "grader_id", "score")


class ExcelGradeLoader(GradeDataLoader):
    """
    Loads one assignment's grades from an Excel workbook.

    The workbook is read once, on first use.
    """

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".xlsx",)

    def __init__(self, file_path: Path | str):
        self._path = Path(file_path)
        self._context: AssignmentContext | None = None
        self._submissions: list[GradedSubmission] = []

    def assignment_ids(self) -> tuple[int, ...]:
        return (self._load_context().assignment_id,)

    def fetch_assignment_context(self, assignment_id: int) -> AssignmentContext:
        context = self._load_context()
        if context.assignment_id != assignment_id:
            raise AssignmentNotFoundError(assignment_id, self._path)
        return context

    def _fetch_submissions(self, assignment_id: int) -> list[GradedSubmission]:
        self.fetch_assignment_context(assignment_id)
        return list(self._submissions)

    def _load_context(self) -> AssignmentContext:
        if self._context is None:
            self._read()
        assert self._context is not None
        return self._context

    def _read(self) -> None:
        """
        Read and validate all three sheets.

        Raises:
            LoaderError: If the workbook is missing, corrupt or malformed.
        """
        if not self._path.is_file():
            raise LoaderError("File does not exist", self._path)

        LOG.debug("Reading grade workbook %s", self._path)
        try:
            self._check_sheets()
            sheets: dict[str, pd.DataFrame] = pd.read_excel(
                self._path, sheet_name=list(REQUIRED_SHEETS), engine="openpyxl"
            )
            context = self._parse_context(sheets["assignment"], sheets["rubric"])
            submissions = self._parse_grades(sheets["grades"])
        except InvalidFileException as e:
            raise LoaderError(
                "File is not a valid Excel document or is corrupted", self._path, cause=e
            ) from e
        except ValidationError as e:
            raise LoaderError(f"Invalid grade data: {e}", self._path, cause=e) from e
        except LoaderError:
            raise
        except Exception as e:
            raise LoaderError(f"Unexpected error: {e}", self._path, cause=e) from e

        self._context = context
        self._submissions = submissions

    def _check_sheets(self) -> None:
        workbook = load_workbook(self._path, read_only=True)
        try:
            missing = [name for name in REQUIRED_SHEETS if name not in workbook.sheetnames]
        finally:
            workbook.close()
        if missing:
            raise LoaderError(f"Workbook is missing sheets: {missing}", self._path)

    def _parse_context(self, assignment: pd.DataFrame, rubric: pd.DataFrame) -> AssignmentContext:
        if assignment.empty:
            raise LoaderError("Sheet 'assignment' has no rows", self._path)
        row = assignment.iloc[0]

        criteria = tuple(
            RubricCriterion(name=str(r["criterion"]).strip(), max_points=float(r["max_points"]))
            for _, r in rubric.dropna(subset=["criterion"]).iterrows()
        )

        return AssignmentContext(
            assignment_id=int(row["assignment_id"]),
            title=_text(row.get("title")),
            max_points=float(row["max_points"]),
            criteria=criteria,
        )

    def _parse_grades(self, grades: pd.DataFrame) -> list[GradedSubmission]:
        missing = [c for c in REQUIRED_GRADE_COLUMNS if c not in grades.columns]
        if missing:
            raise LoaderError(f"Sheet 'grades' is missing columns: {missing}", self._path)

        criterion_columns = {
            column: column[len(CRITERION_PREFIX):].strip()
            for column in grades.columns
            if str(column).startswith(CRITERION_PREFIX)
        }

        submissions: list[GradedSubmission] = []
        for _, row in grades.dropna(subset=["submission_id"]).iterrows():
            criterion_scores = {
                name: float(row[column])
                for column, name in criterion_columns.items()
                if pd.notna(row[column])
            }
            status = _text(row.get("graded_status")) or GradedStatus.GRADED.value
            submissions.append(
                GradedSubmission(
                    submission_id=int(row["submission_id"]),
                    student_identifier=_text(row["student_identifier"]),
                    grader_id=int(row["grader_id"]),
                    grader_email=_text(row.get("grader_email")),
                    score=float(row["score"]),
                    criterion_scores=criterion_scores,
                    graded_status=GradedStatus(status),
                )
            )
        return submissions


def _text(value: Any) -> str:
    """Convert a cell to text, mapping blank cells to an empty string."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()
