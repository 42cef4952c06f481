"""
Unit tests for the regrade risk scorer.
"""

import pytest

from anomaly_engine.analysis.risk import (
    HARSH_GRADER,
    LOW_SCORE,
    STATISTICAL_OUTLIER,
    assess_submission,
    boundary_tag,
    near_boundary,
    score_regrade_risks,
)
from anomaly_engine.config import RiskPolicy
from anomaly_engine.models import (
    OutlierFinding,
    SeverityLabel,
    SummaryStatistics,
    TASeverityFinding,
)


@pytest.fixture
def summary() -> SummaryStatistics:
    return SummaryStatistics(total_grades=10, average_score=75.0, standard_deviation=10.0)


@pytest.fixture
def policy() -> RiskPolicy:
    return RiskPolicy()


def _severity(grader_id: int, severity: SeverityLabel) -> TASeverityFinding:
    return TASeverityFinding(
        grader_id=grader_id,
        grader_email=f"ta{grader_id}@example.com",
        average_score=50.0,
        grades_count=3,
        deviation=-2.0 if severity == SeverityLabel.TOO_HARSH else 2.0,
        severity=severity,
    )


def _outlier(submission) -> OutlierFinding:
    return OutlierFinding(
        submission_id=submission.submission_id,
        student_identifier=submission.student_identifier,
        score=submission.score,
        z_score=-2.5,
        grader_id=submission.grader_id,
        grader_email=submission.grader_email,
    )


class TestBoundaryTag:
    """Tests for boundary tags."""

    def test_integral_boundary(self) -> None:
        assert boundary_tag(60.0) == "near_boundary_60"

    def test_fractional_boundary(self) -> None:
        assert boundary_tag(92.5) == "near_boundary_92.5"


class TestNearBoundary:
    """Tests for near_boundary."""

    def test_window_is_inclusive(self, policy) -> None:
        """Test a score exactly at the window edge counts as near."""
        assert near_boundary(65.0, 100.0, policy) == 60.0
        assert near_boundary(55.0, 100.0, policy) == 60.0

    def test_outside_window(self, policy) -> None:
        assert near_boundary(65.5, 100.0, policy) is None

    def test_scaled_to_assignment_maximum(self, policy) -> None:
        """Test a 50-point assignment uses boundary 30 with window 2.5."""
        assert near_boundary(31.0, 50.0, policy) == 60.0
        assert near_boundary(27.5, 50.0, policy) == 60.0
        assert near_boundary(34.0, 50.0, policy) is None

    @pytest.mark.parametrize(
        "max_points, score",
        [(14.0, 7.7), (14.0, 9.1), (12.0, 7.8), (24.0, 15.6), (44.0, 28.6), (2.0, 1.3)],
    )
    def test_scaled_window_edge_is_inclusive(self, policy, max_points, score) -> None:
        """Test a score exactly five scaled points away counts when the edge is inexact."""
        assert near_boundary(score, max_points, policy) == 60.0

    def test_just_past_scaled_edge(self, policy) -> None:
        assert near_boundary(7.6, 14.0, policy) is None
        assert near_boundary(9.2, 14.0, policy) is None

    def test_first_matching_boundary_wins(self) -> None:
        """Test overlapping windows report only the first boundary."""
        policy = RiskPolicy(grade_boundaries=(70.0, 80.0))

        assert near_boundary(75.0, 100.0, policy) == 70.0
        assert near_boundary(78.0, 100.0, policy) == 80.0


class TestAssessSubmission:
    """Tests for assess_submission."""

    def test_ordinary_score_has_no_risk(self, make_submission, summary, policy) -> None:
        risk = assess_submission(make_submission(1, 80.0), summary, set(), set(), policy, 100.0)

        assert risk.risk_score == 0
        assert risk.risk_factors == ()

    def test_low_score_near_boundary(self, make_submission, summary, policy) -> None:
        """Test 64 is below mean minus one std-dev and within 5 of 60."""
        risk = assess_submission(make_submission(1, 64.0), summary, set(), set(), policy, 100.0)

        assert risk.risk_score == 45
        assert risk.risk_factors == (LOW_SCORE, "near_boundary_60")

    def test_low_score_cutoff_is_strict(self, make_submission, summary, policy) -> None:
        """Test a score exactly one std-dev below the mean is not low."""
        risk = assess_submission(make_submission(1, 65.0), summary, set(), set(), policy, 100.0)

        assert risk.risk_score == 15
        assert risk.risk_factors == ("near_boundary_60",)

    def test_all_factors_in_fixed_order(self, make_submission, summary, policy) -> None:
        """Test every factor applies and tags follow the evaluation order."""
        submission = make_submission(7, 58.0, grader_id=3)

        risk = assess_submission(submission, summary, {7}, {3}, policy, 100.0)

        assert risk.risk_score == 100
        assert risk.risk_factors == (
            LOW_SCORE,
            STATISTICAL_OUTLIER,
            HARSH_GRADER,
            "near_boundary_60",
        )
        assert risk.student_identifier == "student007"
        assert risk.grader_email == "ta3@example.com"

    def test_score_is_capped(self, make_submission, summary) -> None:
        """Test the sum of weights is capped at the maximum."""
        policy = RiskPolicy(harsh_grader_weight=50)
        submission = make_submission(7, 58.0, grader_id=3)

        risk = assess_submission(submission, summary, {7}, {3}, policy, 100.0)

        assert risk.risk_score == 100
        assert len(risk.risk_factors) == 4

    def test_boundary_weight_added_once(self, make_submission, summary) -> None:
        """Test a score near several boundaries adds the weight once."""
        policy = RiskPolicy(grade_boundaries=(70.0, 80.0))

        risk = assess_submission(make_submission(1, 75.0), summary, set(), set(), policy, 100.0)

        assert risk.risk_score == 15
        assert risk.risk_factors == ("near_boundary_70",)


class TestScoreRegradeRisks:
    """Tests for score_regrade_risks."""

    def test_zero_risk_submissions_are_omitted(self, make_submission, summary, policy) -> None:
        submissions = [make_submission(1, 80.0), make_submission(2, 90.0)]

        assert score_regrade_risks(submissions, summary, (), (), policy, 100.0) == ()

    def test_only_harsh_graders_add_risk(self, make_submission, summary, policy) -> None:
        """Test a too_lenient grader does not add the harsh factor."""
        submissions = [make_submission(1, 80.0, grader_id=1), make_submission(2, 80.0, grader_id=2)]
        severity = (
            _severity(1, SeverityLabel.TOO_HARSH),
            _severity(2, SeverityLabel.TOO_LENIENT),
        )

        risks = score_regrade_risks(submissions, summary, (), severity, policy, 100.0)

        assert [r.submission_id for r in risks] == [1]
        assert risks[0].risk_factors == (HARSH_GRADER,)
        assert risks[0].risk_score == 25

    def test_outliers_add_risk(self, make_submission, summary, policy) -> None:
        submission = make_submission(3, 100.0)

        risks = score_regrade_risks([submission], summary, (_outlier(submission),), (), policy, 100.0)

        assert risks[0].risk_factors == (STATISTICAL_OUTLIER,)
        assert risks[0].risk_score == 30

    def test_ordering_by_risk_then_submission_id(self, make_submission, summary, policy) -> None:
        submissions = [
            make_submission(4, 62.0),
            make_submission(3, 58.0),
            make_submission(2, 64.0),
            make_submission(1, 80.0),
        ]
        outliers = (_outlier(submissions[1]),)

        risks = score_regrade_risks(submissions, summary, outliers, (), policy, 100.0)

        assert [(r.submission_id, r.risk_score) for r in risks] == [(3, 75), (2, 45), (4, 45)]

    def test_report_threshold_filters_low_risks(self, make_submission, summary) -> None:
        policy = RiskPolicy(report_threshold=15)
        submissions = [make_submission(1, 64.0), make_submission(2, 65.0)]

        risks = score_regrade_risks(submissions, summary, (), (), policy, 100.0)

        assert [r.submission_id for r in risks] == [1]
