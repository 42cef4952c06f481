"""
Configuration management for the grading anomaly engine.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
Every statistical threshold and risk weight lives here so that analyzers
receive them explicitly instead of reading module constants.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RiskPolicy(BaseModel):
    """Weights and boundaries used by the regrade risk scorer."""

    model_config = ConfigDict(frozen=True)

    low_score_std_devs: float = 1.0
    low_score_weight: int = 30
    outlier_weight: int = 30
    harsh_grader_weight: int = 25
    near_boundary_weight: int = 15
    grade_boundaries: tuple[float, ...] = (60.0,)
    boundary_window: float = 5.0
    boundary_reference_max: float = 100.0
    max_risk_score: int = 100
    report_threshold: int = 0


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Variables use the ``ANOMALY_`` prefix, e.g. ``ANOMALY_SEVERITY_THRESHOLD``.
    Defaults are the documented thresholds.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANOMALY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Statistical Validity
    # ==========================================================================
    min_graded_submissions: int = Field(
        default=5,
        ge=1,
        description="Minimum graded submissions required before analysis runs",
    )

    # ==========================================================================
    # Analyzer Thresholds
    # ==========================================================================
    severity_threshold: float = Field(
        default=1.5,
        gt=0.0,
        description="Grader deviation (in overall std-devs) above which a grader is flagged",
    )

    outlier_z_threshold: float = Field(
        default=2.0,
        gt=0.0,
        description="Absolute z-score above which a total score is an outlier",
    )

    criterion_cv_threshold: float = Field(
        default=0.3,
        gt=0.0,
        description="Coefficient of variation above which a criterion is inconsistent",
    )

    criterion_outlier_z_threshold: float = Field(
        default=2.0,
        gt=0.0,
        description="Absolute z-score within a criterion that marks a submission inconsistent",
    )

    min_criterion_samples: int = Field(
        default=2,
        ge=2,
        description="Minimum scored instances before a criterion is analyzed",
    )

    # ==========================================================================
    # Regrade Risk
    # ==========================================================================
    grade_boundaries: tuple[float, ...] = Field(
        default=(60.0,),
        description="Grade boundaries on a 0-100 scale; scaled to the assignment maximum",
    )

    boundary_window: float = Field(
        default=5.0,
        ge=0.0,
        description="Distance from a boundary (on the reference scale) counted as near",
    )

    boundary_reference_max: float = Field(
        default=100.0,
        gt=0.0,
        description="Maximum score the boundaries and window are expressed against",
    )

    low_score_std_devs: float = Field(
        default=1.0,
        gt=0.0,
        description="Std-devs below the mean that count as an unusually low score",
    )

    low_score_weight: int = Field(default=30, ge=0, le=100)
    outlier_weight: int = Field(default=30, ge=0, le=100)
    harsh_grader_weight: int = Field(default=25, ge=0, le=100)
    near_boundary_weight: int = Field(default=15, ge=0, le=100)

    max_risk_score: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Cap applied to the summed risk weights",
    )

    risk_report_threshold: int = Field(
        default=0,
        ge=0,
        description="Only risks strictly above this score are listed in the report",
    )

    # ==========================================================================
    # Storage & Logging
    # ==========================================================================
    reports_directory: Path = Field(
        default=Path("./reports"),
        description="Directory where anomaly reports are stored",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the command line interface",
    )

    @field_validator("grade_boundaries")
    @classmethod
    def validate_boundaries(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        """Ensure boundaries are non-negative."""
        if any(b < 0 for b in v):
            raise ValueError(f"Grade boundaries must be non-negative: {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_risk_threshold(self) -> "Settings":
        """Ensure the report threshold leaves room for some risk to be reported."""
        if self.risk_report_threshold >= self.max_risk_score:
            raise ValueError(
                f"risk_report_threshold ({self.risk_report_threshold}) must be below "
                f"max_risk_score ({self.max_risk_score})"
            )
        return self

    def risk_policy(self) -> RiskPolicy:
        """Bundle the regrade risk settings for the risk scorer."""
        return RiskPolicy(
            low_score_std_devs=self.low_score_std_devs,
            low_score_weight=self.low_score_weight,
            outlier_weight=self.outlier_weight,
            harsh_grader_weight=self.harsh_grader_weight,
            near_boundary_weight=self.near_boundary_weight,
            grade_boundaries=self.grade_boundaries,
            boundary_window=self.boundary_window,
            boundary_reference_max=self.boundary_reference_max,
            max_risk_score=self.max_risk_score,
            report_threshold=self.risk_report_threshold,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
