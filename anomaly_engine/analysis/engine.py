"""
Anomaly engine - the report assembler.

Validates preconditions, computes summary statistics once, runs the four
analyzers over the same immutable snapshot and assembles the report.
"""

import logging
from typing import Iterable, Protocol
from uuid import UUID

from anomaly_engine.analysis.criteria import detect_criterion_inconsistency
from anomaly_engine.analysis.outliers import detect_outliers
from anomaly_engine.analysis.risk import score_regrade_risks
from anomaly_engine.analysis.severity import detect_ta_severity
from anomaly_engine.analysis.stats import summarize
from anomaly_engine.config import Settings, get_settings
from anomaly_engine.loaders.base import GradeDataLoader
from anomaly_engine.models import (
    AnomalyReport,
    AssignmentContext,
    GradedSubmission,
    ReportStatus,
)

LOG = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Base class for failures that abort an analysis run."""


class InsufficientDataError(AnalysisError):
    """Raised when too few graded submissions exist for statistical analysis."""

    def __init__(self, graded_count: int, required: int):
        self.graded_count = graded_count
        self.required = required
        super().__init__(
            f"Not enough grades for statistical analysis yet: "
            f"{graded_count} graded, at least {required} required"
        )


class MissingRubricError(AnalysisError):
    """Raised when the assignment has no rubric attached."""

    def __init__(self, assignment_id: int):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} has no rubric attached")


class ReportSink(Protocol):
    """Anything that can persist a finished report."""

    def save_report(self, report: AnomalyReport) -> UUID: ...


class AnomalyEngine:
    """
    Main anomaly engine.

    Pulls one assignment's snapshot from a loader and turns it into an
    `AnomalyReport`. The engine holds no per-run state, so one instance
    can serve many assignments.
    """

    def __init__(self, loader: GradeDataLoader, settings: Settings | None = None):
        """
        Initialize the anomaly engine.

        Args:
            loader: Source of assignment contexts and graded submissions.
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._loader = loader
        self._settings = settings or get_settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def analyze(self, assignment_id: int) -> AnomalyReport:
        """
        Analyze one assignment.

        Args:
            assignment_id: Assignment to analyze.

        Returns:
            A new report with status `pending`.

        Raises:
            InsufficientDataError: If fewer graded submissions exist than required.
            MissingRubricError: If the assignment has no rubric.
            LoaderError: If the loader cannot supply the data.
        """
        LOG.info("Analyzing assignment %s", assignment_id)
        context = self._loader.fetch_assignment_context(assignment_id)
        submissions = self._loader.fetch_graded_submissions(assignment_id)
        return self.analyze_snapshot(context, submissions)

    def analyze_and_save(self, assignment_id: int, store: ReportSink) -> tuple[AnomalyReport, UUID]:
        """
        Analyze one assignment and persist the report.

        Nothing is saved when a precondition fails.

        Returns:
            Tuple of (report, stored report id).
        """
        report = self.analyze(assignment_id)
        report_id = store.save_report(report)
        return report, report_id

    def analyze_snapshot(
        self, context: AssignmentContext, submissions: Iterable[GradedSubmission]
    ) -> AnomalyReport:
        """
        Build a report from an already materialized snapshot.

        Submissions that are not in the `graded` state are excluded
        from the sample.

        Raises:
            InsufficientDataError: If fewer graded submissions exist than required.
            MissingRubricError: If the assignment has no rubric.
        """
        snapshot = self._select_graded(context, submissions)
        self._validate(context, snapshot)

        settings = self._settings
        summary = summarize([s.score for s in snapshot])

        severity = detect_ta_severity(
            snapshot,
            summary.average_score,
            summary.standard_deviation,
            threshold=settings.severity_threshold,
        )
        outliers = detect_outliers(
            snapshot,
            summary.average_score,
            summary.standard_deviation,
            threshold=settings.outlier_z_threshold,
        )
        criteria = detect_criterion_inconsistency(
            snapshot,
            context.criterion_names,
            cv_threshold=settings.criterion_cv_threshold,
            z_threshold=settings.criterion_outlier_z_threshold,
            min_samples=settings.min_criterion_samples,
        )
        risks = score_regrade_risks(
            snapshot,
            summary,
            outliers,
            severity,
            policy=settings.risk_policy(),
            max_points=context.max_points,
        )
        LOG.debug(
            "Assignment %s: %d severity, %d outlier, %d criterion, %d risk findings",
            context.assignment_id,
            len(severity),
            len(outliers),
            len(criteria),
            len(risks),
        )

        report = AnomalyReport(
            assignment_id=context.assignment_id,
            total_grades=summary.total_grades,
            average_score=summary.average_score,
            standard_deviation=summary.standard_deviation,
            ta_severity_issues=severity,
            outlier_grades=outliers,
            criterion_issues=criteria,
            regrade_risks=risks,
            status=ReportStatus.PENDING,
        )
        LOG.info(
            "Report %s generated for assignment %s (%d grades, mean %.2f, std-dev %.2f)",
            report.report_id,
            report.assignment_id,
            report.total_grades,
            report.average_score,
            report.standard_deviation,
        )
        return report

    def _select_graded(
        self, context: AssignmentContext, submissions: Iterable[GradedSubmission]
    ) -> tuple[GradedSubmission, ...]:
        """Materialize the graded part of the input as an immutable tuple."""
        rows = tuple(submissions)
        graded = tuple(s for s in rows if s.is_graded)
        if len(graded) != len(rows):
            LOG.info(
                "Assignment %s: excluding %d submissions not yet graded",
                context.assignment_id,
                len(rows) - len(graded),
            )
        return graded

    def _validate(self, context: AssignmentContext, snapshot: tuple[GradedSubmission, ...]) -> None:
        required = self._settings.min_graded_submissions
        if len(snapshot) < required:
            raise InsufficientDataError(len(snapshot), required)
        if not context.has_rubric:
            raise MissingRubricError(context.assignment_id)
