"""
File-backed anomaly report store.

Reports are kept as one JSON document per report under a directory per
assignment. Every write goes to a temporary file first and is then moved
into place, so a reader sees either the old file or the complete new one.
"""

import logging
import os
import tempfile
from pathlib import Path
from uuid import UUID

from pydantic import ValidationError

from anomaly_engine.models import AnomalyReport, ReportStatus

LOG = logging.getLogger(__name__)

# Allowed review lifecycle moves
_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.REVIEWED, ReportStatus.RESOLVED}),
    ReportStatus.REVIEWED: frozenset({ReportStatus.RESOLVED}),
    ReportStatus.RESOLVED: frozenset(),
}


class ReportStoreError(Exception):
    """Raised when a report cannot be stored, read or updated."""


class ReportNotFoundError(ReportStoreError):
    """Raised when no matching report exists."""


class ReportStore:
    """
    Stores anomaly reports on disk.

    Layout: ``<directory>/assignment_<id>/<report_id>.json``.
    """

    def __init__(self, directory: Path | str):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save_report(self, report: AnomalyReport) -> UUID:
        """
        Persist a report as a new version.

        Returns:
            The stored report's id.

        Raises:
            ReportStoreError: If the report cannot be written.
        """
        path = self._report_path(report.assignment_id, report.report_id)
        self._write_atomic(path, report.model_dump_json(indent=2))
        LOG.debug("Saved report %s to %s", report.report_id, path)
        return report.report_id

    def load_report(self, assignment_id: int) -> AnomalyReport:
        """
        Load the most recent report for an assignment.

        Raises:
            ReportNotFoundError: If the assignment has no reports.
        """
        reports = self.list_reports(assignment_id)
        if not reports:
            raise ReportNotFoundError(f"No anomaly report found for assignment {assignment_id}")
        return reports[-1]

    def list_reports(self, assignment_id: int) -> list[AnomalyReport]:
        """
        Return all reports of an assignment, oldest first.

        Unreadable report files are logged and skipped; `get_report`
        still raises for them.
        """
        folder = self._assignment_dir(assignment_id)
        if not folder.is_dir():
            return []
        reports = []
        for path in folder.glob("*.json"):
            try:
                reports.append(self._read(path))
            except ReportStoreError as e:
                LOG.warning("Skipping report file: %s", e)
        reports.sort(key=lambda r: r.generated_at)
        return reports

    def get_report(self, report_id: UUID | str) -> AnomalyReport:
        """
        Load a report by id.

        Raises:
            ReportNotFoundError: If no report has this id.
        """
        return self._read(self._find(report_id))

    def update_status(self, report_id: UUID | str, status: ReportStatus) -> AnomalyReport:
        """
        Move a report along the review lifecycle.

        Setting the current status again leaves the report unchanged.

        Returns:
            The report as stored after the update.

        Raises:
            ReportNotFoundError: If no report has this id.
            ReportStoreError: If the transition goes backwards.
        """
        path = self._find(report_id)
        report = self._read(path)

        if report.status == status:
            return report
        if status not in _TRANSITIONS[report.status]:
            raise ReportStoreError(
                f"Cannot change report {report.report_id} from "
                f"'{report.status.value}' to '{status.value}'"
            )

        updated = report.with_status(status)
        self._write_atomic(path, updated.model_dump_json(indent=2))
        LOG.info("Report %s status changed to %s", updated.report_id, status.value)
        return updated

    def _assignment_dir(self, assignment_id: int) -> Path:
        return self._directory / f"assignment_{assignment_id}"

    def _report_path(self, assignment_id: int, report_id: UUID) -> Path:
        return self._assignment_dir(assignment_id) / f"{report_id}.json"

    def _find(self, report_id: UUID | str) -> Path:
        try:
            key = UUID(str(report_id))
        except ValueError as e:
            raise ReportNotFoundError(f"Invalid report id: {report_id}") from e

        matches = sorted(self._directory.glob(f"assignment_*/{key}.json"))
        if not matches:
            raise ReportNotFoundError(f"No anomaly report with id {key}")
        return matches[0]

    def _read(self, path: Path) -> AnomalyReport:
        try:
            return AnomalyReport.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ReportStoreError(f"Corrupt report file '{path}': {e}") from e
        except OSError as e:
            raise ReportStoreError(f"Cannot read report file '{path}': {e}") from e

    def _write_atomic(self, path: Path, content: str) -> None:
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=".",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ReportStoreError(f"Cannot write report file '{path}': {e}") from e
