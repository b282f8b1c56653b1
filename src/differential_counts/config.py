"""Pipeline settings read from keyword arguments, ``DIFFCOUNTS_*`` environment variables or a ``.env`` file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Settings for one pipeline run.

    Every field can be set from the environment with the ``DIFFCOUNTS_``
    prefix (e.g. ``DIFFCOUNTS_COUNTS_SOURCE``) or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(env_prefix="DIFFCOUNTS_", env_file=".env", extra="ignore")

    counts_source: str
    metadata_source: Optional[str] = None
    sample_col: str = "sample"
    condition_col: str = "condition"
    subject_col: str = "subject"
    run_col: Optional[str] = None
    reference_level: Optional[str] = None

    design: str = "~ condition"
    collapse_by: Optional[str] = None
    min_total_count: int = 0
    alpha: float = 0.05
    lfc_threshold: float = 0.0

    output_path: Optional[Path] = None
    volcano_path: Optional[Path] = None
    pca_path: Optional[Path] = None
    log_path: Optional[Path] = None

    @field_validator("alpha")
    @classmethod
    def _alpha_in_unit_interval(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {v}")
        return v

    @field_validator("min_total_count")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"min_total_count must be >= 0, got {v}")
        return v

    @field_validator("design")
    @classmethod
    def _is_formula(cls, v: str) -> str:
        if not v.strip().startswith("~"):
            raise ValueError(f"design must be an R formula starting with '~', got {v!r}")
        return v.strip()
