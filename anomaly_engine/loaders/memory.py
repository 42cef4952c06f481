"""In-memory grade loader for embedding callers and tests."""

from typing import Iterable

from anomaly_engine.loaders.base import AssignmentNotFoundError, GradeDataLoader
from anomaly_engine.models import AssignmentContext, GradedSubmission


class InMemoryGradeLoader(GradeDataLoader):
    """Holds assignment contexts and submissions in dictionaries."""

    def __init__(
        self,
        contexts: Iterable[AssignmentContext] = (),
        submissions: Iterable[tuple[int, GradedSubmission]] = (),
    ):
        self._contexts: dict[int, AssignmentContext] = {}
        self._submissions: dict[int, list[GradedSubmission]] = {}
        for context in contexts:
            self.add_assignment(context)
        for assignment_id, submission in submissions:
            self.add_submission(assignment_id, submission)

    def add_assignment(self, context: AssignmentContext) -> None:
        self._contexts[context.assignment_id] = context
        self._submissions.setdefault(context.assignment_id, [])

    def add_submission(self, assignment_id: int, submission: GradedSubmission) -> None:
        """
        Add or replace a submission of a known assignment.

        Raises:
            AssignmentNotFoundError: If the assignment was never added.
        """
        if assignment_id not in self._contexts:
            raise AssignmentNotFoundError(assignment_id)
        rows = [
            s for s in self._submissions[assignment_id]
            if s.submission_id != submission.submission_id
        ]
        rows.append(submission)
        self._submissions[assignment_id] = rows

    def assignment_ids(self) -> tuple[int, ...]:
        return tuple(self._contexts)

    def fetch_assignment_context(self, assignment_id: int) -> AssignmentContext:
        try:
            return self._contexts[assignment_id]
        except KeyError as e:
            raise AssignmentNotFoundError(assignment_id) from e

    def _fetch_submissions(self, assignment_id: int) -> list[GradedSubmission]:
        if assignment_id not in self._contexts:
            raise AssignmentNotFoundError(assignment_id)
        return list(self._submissions[assignment_id])
