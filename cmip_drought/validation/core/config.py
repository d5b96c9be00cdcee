"""Validation configuration and constants."""

from typing import Dict, List, Tuple
from pydantic import BaseModel, Field, model_validator


class ValidationConfig(BaseModel):
    """Configuration for the validation phase."""

    # Failing-row fractions: above warn_at a WARNING is raised,
    # above stop_at the issue becomes CRITICAL
    warn_at: float = Field(default=0.01, ge=0.0, le=1.0)
    stop_at: float = Field(default=0.10, ge=0.0, le=1.0)
    stop_on_critical: bool = True

    # Plausible ranges, monthly values after unit conversion
    variable_ranges: Dict[str, Tuple[float, float]] = {
        "pr": (0.0, 2000.0),        # mm/month
        "tas": (-60.0, 50.0),       # degC
        "tasmin": (-70.0, 45.0),
        "tasmax": (-50.0, 60.0),
        "hfls": (-100.0, 400.0),    # W m-2
        "hfss": (-200.0, 400.0),
        "pet": (-200.0, 500.0),     # mm/month, negative PET is legitimate
        "balance": (-700.0, 2000.0),
    }

    # Standardized index values beyond this range are reported as INFO only
    spei_soft_range: Tuple[float, float] = (-3.5, 3.5)

    # Expected year span per experiment, checked as INFO
    expected_experiment_years: Dict[str, Tuple[int, int]] = {
        "historical": (1850, 2014),
        "ssp126": (2015, 2100),
        "ssp245": (2015, 2100),
        "ssp370": (2015, 2100),
        "ssp585": (2015, 2100),
    }

    # Temperature relationship tolerance (tasmin <= tas <= tasmax)
    temp_logic_tolerance: float = 0.1  # degrees C

    # Output settings
    output_dir: str = "validation_outputs"
    report_format: str = "json"
    save_reports: bool = True

    # Validation modules to run
    run_completeness_check: bool = True
    run_temporal_check: bool = True
    run_plausibility_check: bool = True

    @model_validator(mode='after')
    def validate_thresholds(self):
        if self.stop_at < self.warn_at:
            raise ValueError(
                f"stop_at ({self.stop_at}) must not be below warn_at ({self.warn_at})"
            )
        return self

    @property
    def validators_enabled(self) -> List[str]:
        enabled = []
        if self.run_completeness_check:
            enabled.append("completeness")
        if self.run_temporal_check:
            enabled.append("temporal")
        if self.run_plausibility_check:
            enabled.append("plausibility")
        return enabled
