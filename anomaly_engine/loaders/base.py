"""
Base classes for grade data loaders.

A loader is the boundary between the engine and wherever grades live.
It supplies one assignment's context and its graded submissions.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from anomaly_engine.models import AssignmentContext, GradedSubmission

LOG = logging.getLogger(__name__)


class LoaderError(Exception):
    """
    Raised when grade data cannot be loaded.

    Contains the data source and the underlying cause, if any.
    """

    def __init__(self, message: str, source: str | Path = "", cause: Exception | None = None):
        self.source = str(source)
        self.cause = cause
        if source:
            message = f"Failed to load grades from '{source}': {message}"
        super().__init__(message)


class AssignmentNotFoundError(LoaderError):
    """Raised when the loader has no data for the requested assignment."""

    def __init__(self, assignment_id: int, source: str | Path = ""):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} not found", source)


class GradeDataLoader(ABC):
    """
    Abstract base class for grade data loaders.

    Subclasses implement `assignment_ids`, `fetch_assignment_context` and
    `_fetch_submissions`; `fetch_graded_submissions` narrows the raw rows
    to graded ones.
    """

    # File-backed loaders declare the extensions they read
    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def assignment_ids(self) -> tuple[int, ...]:
        """Return the assignments this loader can supply."""
        ...

    @abstractmethod
    def fetch_assignment_context(self, assignment_id: int) -> AssignmentContext:
        """
        Return the assignment's maximum score and rubric.

        Raises:
            AssignmentNotFoundError: If the assignment is unknown.
            LoaderError: If the data source cannot be read.
        """
        ...

    @abstractmethod
    def _fetch_submissions(self, assignment_id: int) -> list[GradedSubmission]:
        """Return every submission row for the assignment, in any grading state."""
        ...

    def fetch_graded_submissions(self, assignment_id: int) -> list[GradedSubmission]:
        """
        Return the submissions of an assignment that have been graded.

        Raises:
            AssignmentNotFoundError: If the assignment is unknown.
            LoaderError: If the data source cannot be read.
        """
        rows = self._fetch_submissions(assignment_id)
        graded = [s for s in rows if s.is_graded]
        if len(graded) != len(rows):
            LOG.debug(
                "Assignment %s: dropped %d submissions not yet graded",
                assignment_id,
                len(rows) - len(graded),
            )
        return graded
