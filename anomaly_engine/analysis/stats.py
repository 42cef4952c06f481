"""
Statistics primitives.

Population statistics (divisor N) over plain sequences of scores.
Degenerate spreads return 0 instead of raising: a flat distribution
carries no anomaly signal.
"""

import statistics
from typing import Sequence

from anomaly_engine.models import SummaryStatistics


class EmptyInputError(ValueError):
    """Raised when a statistic is requested over zero samples."""

    def __init__(self, what: str = "values"):
        self.what = what
        super().__init__(f"Cannot compute a statistic over empty {what}")


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean of a non-empty sequence.

    Raises:
        EmptyInputError: If `values` is empty.
    """
    if not values:
        raise EmptyInputError()
    # statistics.mean is exactly rounded, so identical values give back that value
    return float(statistics.mean(values))


def population_std_dev(values: Sequence[float], mean_value: float) -> float:
    """
    Population standard deviation of `values` around `mean_value`.

    Returns 0 for a single value.

    Raises:
        EmptyInputError: If `values` is empty.
    """
    if not values:
        raise EmptyInputError()
    if len(values) == 1:
        return 0.0
    return float(statistics.pstdev(values, mu=mean_value))


def z_score(value: float, mean_value: float, std_dev: float) -> float:
    """Distance of `value` from the mean in std-devs; 0 when there is no spread."""
    if std_dev == 0:
        return 0.0
    return (value - mean_value) / std_dev


def coefficient_of_variation(std_dev: float, mean_value: float) -> float:
    """Std-dev relative to the mean; 0 when the mean is 0."""
    if mean_value == 0:
        return 0.0
    return std_dev / mean_value


def summarize(scores: Sequence[float]) -> SummaryStatistics:
    """
    Compute count, mean and population std-dev of total scores.

    Raises:
        EmptyInputError: If `scores` is empty.
    """
    avg = mean(scores)
    return SummaryStatistics(
        total_grades=len(scores),
        average_score=avg,
        standard_deviation=population_std_dev(scores, avg),
    )
