"""
Pydantic configuration models for the comparison report.

Holds everything a run needs: where the tables live, the units they are
stored in, which variables and experiments a model must provide, the SPEI
reference period and the validation thresholds.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..contracts.climate_series import (
    ObservedColumns,
    ReferencePeriod,
    SeriesExclusion,
    SourceUnits,
    YearMonthWindow,
)
from ...validation.core.config import ValidationConfig


class ReportConfiguration(BaseModel):
    """Complete configuration for one comparison report run."""

    report_name: str = Field(default="CMIP6 models vs observations",
                             description="Title used in the rendered report")

    # Inputs
    model_dir: Path = Field(default=Path("data/models"),
                            description="Directory holding one table per model")
    model_pattern: str = Field(default="*.csv", description="Glob for model tables")
    observed_path: Path = Field(default=Path("data/observed.csv"),
                                description="Observed monthly table")
    source_units: SourceUnits = Field(default_factory=SourceUnits)
    observed_columns: ObservedColumns = Field(default_factory=ObservedColumns)

    # Outputs
    output_dir: Path = Field(default=Path("report_outputs"))
    plot_dpi: int = Field(default=150, ge=50, le=600)
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=Path("cmip_drought.log"))

    # Completeness filter
    required_variables: List[str] = Field(default=["pr", "tas", "hfls", "hfss"])
    required_experiments: List[str] = Field(default=["historical", "ssp245", "ssp585"])

    # Caller-supplied cleaning rules applied before index computation
    exclusions: List[SeriesExclusion] = Field(default_factory=list)

    # Standardized index
    spei_scale: int = Field(default=3, ge=1, le=48, description="Accumulation window in months")
    reference_period: ReferencePeriod = Field(
        default_factory=lambda: ReferencePeriod(start="1981-01", end="2010-12")
    )
    prepend_historical: bool = Field(
        default=True,
        description="Standardize future experiments on historical + future"
    )
    drought_threshold: float = Field(default=-1.0)

    # Climatology window used for the correlation ranking
    climatology_window: YearMonthWindow = Field(
        default_factory=lambda: YearMonthWindow(start="1981-01", end="2010-12")
    )

    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator('required_variables')
    @classmethod
    def validate_required_variables(cls, v):
        if "pr" not in v:
            raise ValueError("Precipitation ('pr') must be a required variable")
        return v

    @property
    def validation_output_dir(self) -> Path:
        return self.output_dir / "validation"

    @property
    def figures_dir(self) -> Path:
        return self.output_dir / "figures"
