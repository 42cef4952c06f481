"""
Anomaly Analysis Module.

Statistics primitives, the four stateless analyzers and the engine
that assembles their findings into a report.
"""

from anomaly_engine.analysis.criteria import detect_criterion_inconsistency
from anomaly_engine.analysis.engine import (
    AnalysisError,
    AnomalyEngine,
    InsufficientDataError,
    MissingRubricError,
)
from anomaly_engine.analysis.outliers import detect_outliers
from anomaly_engine.analysis.risk import score_regrade_risks
from anomaly_engine.analysis.severity import detect_ta_severity
from anomaly_engine.analysis.stats import (
    EmptyInputError,
    coefficient_of_variation,
    mean,
    population_std_dev,
    summarize,
    z_score,
)

__all__ = [
    "AnalysisError",
    "AnomalyEngine",
    "EmptyInputError",
    "InsufficientDataError",
    "MissingRubricError",
    "coefficient_of_variation",
    "detect_criterion_inconsistency",
    "detect_outliers",
    "detect_ta_severity",
    "mean",
    "population_std_dev",
    "score_regrade_risks",
    "summarize",
    "z_score",
]
