"""Data completeness validator for monthly climate series."""

import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..core.validator import BaseValidator, ValidationResult, ValidationSeverity
from ..core.config import ValidationConfig
from ...shared.contracts.climate_series import SERIES_KEYS, series_label


class CompletenessValidator(BaseValidator):
    """
    Reports missing values per series and variable, and the models dropped by
    the completeness filter.
    """

    def __init__(self, config: Optional[ValidationConfig] = None,
                 output_dir: Optional[Path] = None):
        super().__init__(name="completeness", config=config, output_dir=output_dir)

    def validate(self, data: pd.DataFrame, dataset_path: str = "climate_series",
                 variables: Optional[Sequence[str]] = None,
                 excluded_models: Optional[Dict[str, List[str]]] = None) -> ValidationResult:
        """
        Validate completeness of every series in ``data``.

        Args:
            data: Long series frame
            dataset_path: Label used in reports
            variables: Variables to check; defaults to every configured range
                variable present in the frame
            excluded_models: Models removed by the completeness filter with
                their reasons

        Returns:
            ValidationResult with completeness findings
        """
        self.logger.info(f"Starting completeness validation for {dataset_path}")
        self._begin(data, dataset_path)
        self.df = data

        if variables is None:
            variables = [v for v in self.config.variable_ranges if v in data.columns]

        missing_fractions: Dict[str, Dict[str, float]] = {}
        for (source_id, experiment_id), group in data.groupby(SERIES_KEYS, sort=False):
            label = series_label(source_id, experiment_id)
            for variable in variables:
                if variable not in group.columns:
                    self.result.add_issue(
                        ValidationSeverity.WARNING,
                        "completeness",
                        f"Variable '{variable}' is absent",
                        {"variable": variable},
                        series=label,
                    )
                    continue
                if group[variable].isna().all():
                    # Not provided by this series at all (e.g. fluxes in the
                    # observed table); incomplete models are reported below
                    self.result.add_issue(
                        ValidationSeverity.INFO,
                        "completeness",
                        f"Variable '{variable}' is not provided",
                        {"variable": variable},
                        series=label,
                    )
                    continue
                fraction = float(group[variable].isna().mean())
                missing_fractions.setdefault(label, {})[variable] = fraction
                severity = self._classify_fraction(fraction)
                if severity is not None:
                    self.result.add_issue(
                        severity,
                        "completeness",
                        f"Variable '{variable}' has {fraction:.1%} missing values",
                        {"variable": variable, "missing_fraction": fraction},
                        series=label,
                    )

        for source_id, reasons in (excluded_models or {}).items():
            self.result.add_issue(
                ValidationSeverity.WARNING,
                "missing_input",
                f"Model {source_id} excluded from comparison: {'; '.join(reasons)}",
                {"reasons": reasons},
                series=source_id,
            )

        self.result.metrics["missing_fractions"] = missing_fractions
        self.result.metrics["excluded_models"] = dict(excluded_models or {})
        self.result.metrics["series_count"] = int(data.groupby(SERIES_KEYS).ngroups) if len(data) else 0

        return self._complete()
