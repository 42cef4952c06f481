"""
Regrade risk scorer.

Adds up fixed weights for independent risk factors and caps the sum.
Factors are evaluated in a fixed order, which is also the order of the
tags on the resulting risk:

1. unusually_low_score - more than N std-devs below the mean
2. statistical_outlier - listed by the outlier detector
3. harsh_grader        - grader flagged too_harsh by the severity analyzer
4. near_boundary_<B>   - within the window of a grade boundary B
"""

import math
from typing import Iterable, Sequence

from anomaly_engine.config import RiskPolicy
from anomaly_engine.models import (
    GradedSubmission,
    OutlierFinding,
    RegradeRisk,
    SeverityLabel,
    SummaryStatistics,
    TASeverityFinding,
)

LOW_SCORE = "unusually_low_score"
STATISTICAL_OUTLIER = "statistical_outlier"
HARSH_GRADER = "harsh_grader"
NEAR_BOUNDARY_PREFIX = "near_boundary_"


def boundary_tag(boundary: float) -> str:
    """Tag for a boundary, e.g. ``near_boundary_60``."""
    return f"{NEAR_BOUNDARY_PREFIX}{boundary:g}"


def near_boundary(score: float, max_points: float, policy: RiskPolicy) -> float | None:
    """
    Return the first configured boundary the score is near, if any.

    Boundaries and the window are given on the policy's reference scale
    and are scaled to the assignment maximum before comparing. A score
    exactly at the window edge is near, within float tolerance.
    """
    scale = max_points / policy.boundary_reference_max
    window = policy.boundary_window * scale
    for boundary in policy.grade_boundaries:
        distance = abs(score - boundary * scale)
        if distance <= window or math.isclose(distance, window):
            return boundary
    return None


def assess_submission(
    submission: GradedSubmission,
    summary: SummaryStatistics,
    outlier_ids: set[int],
    harsh_grader_ids: set[int],
    policy: RiskPolicy,
    max_points: float,
) -> RegradeRisk:
    """Compute the regrade risk of a single submission."""
    score = 0
    factors: list[str] = []

    low_cutoff = summary.average_score - policy.low_score_std_devs * summary.standard_deviation
    if submission.score < low_cutoff:
        score += policy.low_score_weight
        factors.append(LOW_SCORE)

    if submission.submission_id in outlier_ids:
        score += policy.outlier_weight
        factors.append(STATISTICAL_OUTLIER)

    if submission.grader_id in harsh_grader_ids:
        score += policy.harsh_grader_weight
        factors.append(HARSH_GRADER)

    boundary = near_boundary(submission.score, max_points, policy)
    if boundary is not None:
        score += policy.near_boundary_weight
        factors.append(boundary_tag(boundary))

    return RegradeRisk(
        submission_id=submission.submission_id,
        student_identifier=submission.student_identifier,
        score=submission.score,
        risk_score=min(score, policy.max_risk_score),
        risk_factors=tuple(factors),
        grader_id=submission.grader_id,
        grader_email=submission.grader_email,
    )


def harsh_graders(findings: Iterable[TASeverityFinding]) -> set[int]:
    return {f.grader_id for f in findings if f.severity == SeverityLabel.TOO_HARSH}


def score_regrade_risks(
    submissions: Sequence[GradedSubmission],
    summary: SummaryStatistics,
    outliers: Sequence[OutlierFinding],
    severity_findings: Sequence[TASeverityFinding],
    policy: RiskPolicy,
    max_points: float,
) -> tuple[RegradeRisk, ...]:
    """
    Score every submission and keep those above the policy's report threshold.

    Returns:
        Risks ordered by descending risk score, ties by submission id.
    """
    outlier_ids = {o.submission_id for o in outliers}
    harsh_ids = harsh_graders(severity_findings)

    risks = [
        assess_submission(s, summary, outlier_ids, harsh_ids, policy, max_points)
        for s in submissions
    ]
    reported = [r for r in risks if r.risk_score > policy.report_threshold]
    reported.sort(key=lambda r: (-r.risk_score, r.submission_id))
    return tuple(reported)
