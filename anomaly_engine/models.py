"""
Pydantic models for the grading anomaly engine.

These models define the schemas for:
- The graded input snapshot (assignment context and submissions)
- Summary statistics and the four kinds of findings
- The immutable anomaly report handed to persistence

All models are frozen. Mappings inside them (`criterion_scores`) are plain
dicts: the analyzers only read them, and models holding one are not hashable.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from hashlib import sha256
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)


class GradedStatus(str, Enum):
    """Lifecycle of a submission in the grading workflow."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    GRADED = "graded"
    REGRADE_REQUIRED = "regrade_required"


class SeverityLabel(str, Enum):
    """Direction of a grader's deviation from the assignment mean."""

    TOO_HARSH = "too_harsh"
    TOO_LENIENT = "too_lenient"


class ReportStatus(str, Enum):
    """Review status of an anomaly report."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"


# ==============================================================================
# Input Models
# ==============================================================================


class RubricCriterion(BaseModel):
    """A single rubric criterion and the points it is worth."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name of the criterion (e.g., 'Documentation')",
    )

    max_points: float = Field(
        ...,
        gt=0,
        description="Maximum points for this criterion",
    )


class AssignmentContext(BaseModel):
    """
    Assignment-level facts the engine needs besides the grades.

    An empty criteria tuple means no rubric is attached to the assignment.
    """

    model_config = ConfigDict(frozen=True)

    assignment_id: int = Field(..., description="Identifier of the assignment")

    title: str = Field(default="", description="Human readable assignment title")

    max_points: float = Field(
        ...,
        gt=0,
        description="Maximum achievable total score",
    )

    criteria: tuple[RubricCriterion, ...] = Field(
        default=(),
        description="Ordered rubric criteria",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_rubric(self) -> bool:
        """Whether a rubric with at least one criterion is attached."""
        return len(self.criteria) > 0

    @property
    def criterion_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.criteria)

    @model_validator(mode="after")
    def validate_no_duplicate_names(self) -> "AssignmentContext":
        """Ensure no duplicate criterion names."""
        names = [c.name for c in self.criteria]
        if len(names) != len(set(names)):
            duplicates = [n for n in names if names.count(n) > 1]
            raise ValueError(f"Duplicate criterion names found: {set(duplicates)}")
        return self


class GradedSubmission(BaseModel):
    """
    One scored submission as supplied by the grade loader.

    Scores are trusted input: the engine does not re-check that criterion
    scores add up to the total. Fields cannot be reassigned, but
    `criterion_scores` is an ordinary dict that callers must not mutate.
    """

    model_config = ConfigDict(frozen=True)

    submission_id: int = Field(..., description="Identifier of the submission")

    student_identifier: str = Field(..., description="Identifier of the student")

    grader_id: int = Field(..., description="Identifier of the grader (TA)")

    grader_email: str = Field(default="", description="Grader contact, used as a label")

    score: float = Field(..., ge=0, description="Total score awarded")

    criterion_scores: dict[str, float] = Field(
        default_factory=dict,
        description="Points awarded per rubric criterion",
    )

    graded_status: GradedStatus = Field(
        default=GradedStatus.GRADED,
        description="Grading workflow status",
    )

    @property
    def is_graded(self) -> bool:
        return self.graded_status == GradedStatus.GRADED


class GradeSnapshot(BaseModel):
    """Serialized snapshot of one assignment's grading round."""

    model_config = ConfigDict(frozen=True)

    assignment: AssignmentContext
    submissions: tuple[GradedSubmission, ...] = ()


# ==============================================================================
# Finding Models
# ==============================================================================


class SummaryStatistics(BaseModel):
    """Count, mean and population standard deviation of total scores."""

    model_config = ConfigDict(frozen=True)

    total_grades: int = Field(..., ge=0)
    average_score: float
    standard_deviation: float = Field(..., ge=0)


class TASeverityFinding(BaseModel):
    """A grader whose mean score sits far from the assignment mean."""

    model_config = ConfigDict(frozen=True)

    grader_id: int
    grader_email: str = ""
    average_score: float
    grades_count: int = Field(..., ge=1)
    deviation: float = Field(
        ...,
        description="(grader mean - overall mean) / overall standard deviation",
    )
    severity: SeverityLabel


class OutlierFinding(BaseModel):
    """A total score that is a statistical outlier for the assignment."""

    model_config = ConfigDict(frozen=True)

    submission_id: int
    student_identifier: str
    score: float
    z_score: float
    grader_id: int
    grader_email: str = ""


class CriterionFinding(BaseModel):
    """A rubric criterion scored with abnormally high dispersion."""

    model_config = ConfigDict(frozen=True)

    criterion_name: str
    average_score: float
    standard_deviation: float = Field(..., ge=0)
    coefficient_of_variation: float
    inconsistent_submission_ids: tuple[int, ...] = Field(
        default=(),
        description="Submissions whose criterion score is an outlier within the criterion",
    )


class RegradeRisk(BaseModel):
    """Likelihood, from 0 to 100, that a submission's grade needs another look."""

    model_config = ConfigDict(frozen=True)

    submission_id: int
    student_identifier: str
    score: float
    risk_score: int = Field(..., ge=0, le=100)
    risk_factors: tuple[str, ...] = Field(
        default=(),
        description="Factor tags in evaluation order",
    )
    grader_id: int
    grader_email: str = ""


# ==============================================================================
# Report Models
# ==============================================================================


class AnomalyReport(BaseModel):
    """
    Immutable result of one analysis run.

    The field names form the wire contract consumed by reporting layers.
    A status change produces a new report object via `with_status`.
    """

    model_config = ConfigDict(frozen=True)

    report_id: UUID = Field(
        default_factory=uuid4,
        description="Unique identifier for this report version",
    )

    assignment_id: int

    total_grades: int = Field(..., ge=0)

    average_score: float

    standard_deviation: float = Field(..., ge=0)

    ta_severity_issues: tuple[TASeverityFinding, ...] = ()

    outlier_grades: tuple[OutlierFinding, ...] = ()

    criterion_issues: tuple[CriterionFinding, ...] = ()

    regrade_risks: tuple[RegradeRisk, ...] = ()

    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when the report was generated",
    )

    status: ReportStatus = Field(default=ReportStatus.PENDING)

    @property
    def summary(self) -> SummaryStatistics:
        return SummaryStatistics(
            total_grades=self.total_grades,
            average_score=self.average_score,
            standard_deviation=self.standard_deviation,
        )

    def with_status(self, status: ReportStatus) -> "AnomalyReport":
        """Return a copy of this report carrying a new review status."""
        return self.model_copy(update={"status": status})

    def content_hash(self) -> str:
        """
        SHA-256 of the statistical content of the report.

        Report id, generation time and status are excluded, so two runs over
        the same graded set produce the same hash.
        """
        content = self.model_dump(
            mode="json", exclude={"report_id", "generated_at", "status"}
        )
        return sha256(json.dumps(content, sort_keys=True).encode("utf-8")).hexdigest()
