"""
Criterion inconsistency analyzer.

Looks at each rubric criterion on its own. A criterion whose scores are
widely spread (high coefficient of variation) is reported together with
the submissions that are outliers inside that criterion's distribution,
which exposes grading noise that never shows up in the totals.
"""

import logging
from typing import Sequence

from anomaly_engine.analysis.stats import (
    EmptyInputError,
    coefficient_of_variation,
    mean,
    population_std_dev,
    z_score,
)
from anomaly_engine.models import CriterionFinding, GradedSubmission

LOG = logging.getLogger(__name__)


def collect_criterion_scores(
    submissions: Sequence[GradedSubmission], criterion_name: str
) -> list[tuple[int, float]]:
    """
    Collect (submission id, points) pairs for one criterion.

    Submissions that were not scored on the criterion are left out
    rather than counted as zero.
    """
    return [
        (s.submission_id, s.criterion_scores[criterion_name])
        for s in submissions
        if criterion_name in s.criterion_scores
    ]


def analyze_criterion(
    criterion_name: str,
    samples: Sequence[tuple[int, float]],
    cv_threshold: float,
    z_threshold: float,
) -> CriterionFinding | None:
    """
    Analyze one criterion's samples.

    Returns:
        A finding when the coefficient of variation exceeds `cv_threshold`,
        otherwise None.

    Raises:
        EmptyInputError: If `samples` is empty.
    """
    scores = [score for _, score in samples]
    criterion_mean = mean(scores)
    std_dev = population_std_dev(scores, criterion_mean)
    cv = coefficient_of_variation(std_dev, criterion_mean)

    if cv <= cv_threshold:
        return None

    inconsistent = sorted(
        submission_id
        for submission_id, score in samples
        if abs(z_score(score, criterion_mean, std_dev)) > z_threshold
    )

    return CriterionFinding(
        criterion_name=criterion_name,
        average_score=criterion_mean,
        standard_deviation=std_dev,
        coefficient_of_variation=cv,
        inconsistent_submission_ids=tuple(inconsistent),
    )


def detect_criterion_inconsistency(
    submissions: Sequence[GradedSubmission],
    criterion_names: Sequence[str],
    cv_threshold: float,
    z_threshold: float,
    min_samples: int = 2,
) -> tuple[CriterionFinding, ...]:
    """
    Find rubric criteria that were scored inconsistently.

    Args:
        submissions: Graded submissions of one assignment.
        criterion_names: Rubric criteria, in rubric order.
        cv_threshold: Exclusive bound on the coefficient of variation.
        z_threshold: Exclusive bound on |z| within a criterion.
        min_samples: Criteria with fewer scored instances are skipped.

    Returns:
        Findings in rubric order.
    """
    findings: list[CriterionFinding] = []

    for name in criterion_names:
        samples = collect_criterion_scores(submissions, name)
        if 0 < len(samples) < min_samples:
            LOG.debug("Skipping criterion %r: only %d scored", name, len(samples))
            continue

        try:
            finding = analyze_criterion(name, samples, cv_threshold, z_threshold)
        except EmptyInputError:
            LOG.debug("Skipping criterion %r: never scored", name)
            continue

        if finding is not None:
            findings.append(finding)

    return tuple(findings)
