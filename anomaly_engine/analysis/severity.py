"""
TA severity analyzer.

Flags graders whose mean score is shifted away from the assignment mean.
Deviation is measured against the overall spread, not the grader's own,
so a grader who is consistently off by the same amount is still caught.
"""

import logging
from typing import Sequence

from anomaly_engine.analysis.stats import mean, z_score
from anomaly_engine.models import GradedSubmission, SeverityLabel, TASeverityFinding

LOG = logging.getLogger(__name__)


def detect_ta_severity(
    submissions: Sequence[GradedSubmission],
    overall_mean: float,
    overall_std_dev: float,
    threshold: float,
) -> tuple[TASeverityFinding, ...]:
    """
    Find graders whose mean deviates from the overall mean by more than `threshold`.

    Args:
        submissions: Graded submissions of one assignment.
        overall_mean: Mean of all total scores.
        overall_std_dev: Population std-dev of all total scores.
        threshold: Exclusive bound on |deviation|, in std-devs.

    Returns:
        Findings ordered by descending |deviation|, ties by grader id.
    """
    scores_by_grader: dict[int, list[float]] = {}
    emails: dict[int, str] = {}

    for submission in submissions:
        scores_by_grader.setdefault(submission.grader_id, []).append(submission.score)
        emails.setdefault(submission.grader_id, submission.grader_email)

    findings: list[TASeverityFinding] = []

    for grader_id in sorted(scores_by_grader):
        scores = scores_by_grader[grader_id]
        grader_mean = mean(scores)
        deviation = z_score(grader_mean, overall_mean, overall_std_dev)
        if abs(deviation) <= threshold:
            continue

        severity = SeverityLabel.TOO_HARSH if deviation < 0 else SeverityLabel.TOO_LENIENT
        LOG.debug(
            "Grader %s flagged %s (mean %.2f, deviation %.3f)",
            grader_id,
            severity.value,
            grader_mean,
            deviation,
        )
        findings.append(
            TASeverityFinding(
                grader_id=grader_id,
                grader_email=emails[grader_id],
                average_score=grader_mean,
                grades_count=len(scores),
                deviation=deviation,
                severity=severity,
            )
        )

    # sort is stable, so equal magnitudes keep grader-id order
    findings.sort(key=lambda f: abs(f.deviation), reverse=True)
    return tuple(findings)
