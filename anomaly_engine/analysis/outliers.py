"""
Outlier detector.

A total score is an outlier when its z-score against the whole
assignment exceeds the threshold, regardless of who graded it.
"""

from typing import Sequence

from anomaly_engine.analysis.stats import z_score
from anomaly_engine.models import GradedSubmission, OutlierFinding


def detect_outliers(
    submissions: Sequence[GradedSubmission],
    overall_mean: float,
    overall_std_dev: float,
    threshold: float,
) -> tuple[OutlierFinding, ...]:
    """
    Flag submissions whose |z-score| is strictly greater than `threshold`.

    Returns:
        Findings ordered by descending |z-score|, ties by submission id.
    """
    findings = []
    for submission in submissions:
        z = z_score(submission.score, overall_mean, overall_std_dev)
        if abs(z) > threshold:
            findings.append(
                OutlierFinding(
                    submission_id=submission.submission_id,
                    student_identifier=submission.student_identifier,
                    score=submission.score,
                    z_score=z,
                    grader_id=submission.grader_id,
                    grader_email=submission.grader_email,
                )
            )

    findings.sort(key=lambda f: (-abs(f.z_score), f.submission_id))
    return tuple(findings)
