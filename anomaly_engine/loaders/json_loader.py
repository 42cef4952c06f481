"""
JSON snapshot loader.

Reads a single ``GradeSnapshot`` document: the assignment context plus
all of its submissions.
"""

import logging
from pathlib import Path
from typing import ClassVar

from pydantic import ValidationError

from anomaly_engine.loaders.base import AssignmentNotFoundError, GradeDataLoader, LoaderError
from anomaly_engine.models import AssignmentContext, GradedSubmission, GradeSnapshot

LOG = logging.getLogger(__name__)


class JsonSnapshotLoader(GradeDataLoader):
    """Loads grades from a JSON snapshot file."""

    SUPPORTED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".json",)

    def __init__(self, file_path: Path | str):
        self._path = Path(file_path)
        self._snapshot: GradeSnapshot | None = None

    def assignment_ids(self) -> tuple[int, ...]:
        return (self.snapshot.assignment.assignment_id,)

    def fetch_assignment_context(self, assignment_id: int) -> AssignmentContext:
        return self._load(assignment_id).assignment

    def _fetch_submissions(self, assignment_id: int) -> list[GradedSubmission]:
        return list(self._load(assignment_id).submissions)

    @property
    def snapshot(self) -> GradeSnapshot:
        """The parsed snapshot, read from disk on first access."""
        if self._snapshot is None:
            self._snapshot = self._read()
        return self._snapshot

    def _load(self, assignment_id: int) -> GradeSnapshot:
        snapshot = self.snapshot
        if snapshot.assignment.assignment_id != assignment_id:
            raise AssignmentNotFoundError(assignment_id, self._path)
        return snapshot

    def _read(self) -> GradeSnapshot:
        if not self._path.is_file():
            raise LoaderError("File does not exist", self._path)

        LOG.debug("Reading grade snapshot %s", self._path)
        try:
            content = self._path.read_text(encoding="utf-8")
            return GradeSnapshot.model_validate_json(content)
        except ValidationError as e:
            raise LoaderError(f"Invalid snapshot: {e}", self._path, cause=e) from e
        except OSError as e:
            raise LoaderError(f"Cannot read file: {e}", self._path, cause=e) from e
