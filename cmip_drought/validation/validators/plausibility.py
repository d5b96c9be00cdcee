"""Physical plausibility validator for monthly climate series."""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Optional

from ..core.validator import BaseValidator, ValidationResult, ValidationSeverity
from ..core.config import ValidationConfig
from ...shared.contracts.climate_series import SERIES_KEYS, series_label


class PlausibilityValidator(BaseValidator):
    """
    Checks that input and derived values fall inside plausible ranges.

    The failing fraction of non-missing rows is compared per series and
    variable against the configured action levels: above ``warn_at`` gives a
    WARNING, above ``stop_at`` a CRITICAL issue. Extreme standardized index
    values are an expected artifact of the distribution fit and are only
    reported as INFO.
    """

    def __init__(self, config: Optional[ValidationConfig] = None,
                 output_dir: Optional[Path] = None):
        super().__init__(name="plausibility", config=config, output_dir=output_dir)

    def validate(self, data: pd.DataFrame, dataset_path: str = "climate_series") -> ValidationResult:
        """
        Validate value ranges of every series in ``data``.

        Args:
            data: Long series frame
            dataset_path: Label used in reports

        Returns:
            ValidationResult with plausibility findings
        """
        self.logger.info(f"Starting plausibility validation for {dataset_path}")
        self._begin(data, dataset_path)
        self.df = data

        self.result.metrics["ranges"] = self._validate_ranges()
        self.result.metrics["temperature_logic"] = self._validate_temperature_logic()
        self.result.metrics["spei_extremes"] = self._check_index_extremes()

        return self._complete()

    def _series_groups(self):
        keys = [key for key in SERIES_KEYS if key in self.df.columns]
        if not keys:
            yield "dataset", self.df
            return
        for values, group in self.df.groupby(keys, sort=False):
            values = values if isinstance(values, tuple) else (values,)
            yield series_label(*values) if len(values) == 2 else str(values[0]), group

    def _validate_ranges(self) -> Dict:
        """Failing fraction per series and variable."""
        self.logger.info("Validating physical ranges...")
        fractions: Dict[str, Dict[str, float]] = {}

        for label, group in self._series_groups():
            for variable, (low, high) in self.config.variable_ranges.items():
                if variable not in group.columns:
                    continue
                values = group[variable].dropna()
                if values.empty:
                    continue
                failing = int(((values < low) | (values > high)).sum())
                fraction = failing / len(values)
                fractions.setdefault(label, {})[variable] = fraction

                severity = self._classify_fraction(fraction)
                if severity is not None:
                    self.result.add_issue(
                        severity,
                        "plausibility",
                        f"'{variable}' has {failing} of {len(values)} values "
                        f"({fraction:.1%}) outside [{low}, {high}]",
                        {"variable": variable, "count": failing,
                         "fraction": fraction, "range": [low, high]},
                        series=label,
                    )
        return fractions

    def _validate_temperature_logic(self) -> Dict:
        """tasmin <= tas <= tasmax within tolerance."""
        columns = ["tasmin", "tas", "tasmax"]
        if not all(column in self.df.columns for column in columns):
            return {}

        self.logger.info("Validating temperature relationships...")
        tolerance = self.config.temp_logic_tolerance
        violations = {}
        for label, group in self._series_groups():
            rows = group[columns].dropna()
            if rows.empty:
                continue
            bad = ((rows["tasmin"] > rows["tas"] + tolerance)
                   | (rows["tas"] > rows["tasmax"] + tolerance))
            fraction = float(bad.mean())
            violations[label] = int(bad.sum())
            severity = self._classify_fraction(fraction)
            if severity is not None:
                self.result.add_issue(
                    severity,
                    "logical",
                    f"{int(bad.sum())} months violate tasmin <= tas <= tasmax",
                    {"count": int(bad.sum()), "fraction": fraction},
                    series=label,
                )
        return violations

    def _check_index_extremes(self) -> Dict:
        """Count standardized index values beyond the soft range."""
        if "spei" not in self.df.columns:
            return {}

        low, high = self.config.spei_soft_range
        extremes = {}
        for label, group in self._series_groups():
            values = group["spei"].dropna()
            n_extreme = int(((values < low) | (values > high)).sum())
            if n_extreme:
                extremes[label] = n_extreme
                self.result.add_issue(
                    ValidationSeverity.INFO,
                    "numeric_domain",
                    f"{n_extreme} index values beyond [{low}, {high}] "
                    f"({int(np.isinf(values).sum())} unbounded)",
                    {"count": n_extreme},
                    series=label,
                )
        return extremes
