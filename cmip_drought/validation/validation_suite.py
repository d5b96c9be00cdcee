"""
Validation suite running every configured validator over a series frame.

This module provides a single entry point for the completeness, temporal and
plausibility checks, saves their reports and decides whether the run may
continue.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import json
from datetime import datetime

from .core.config import ValidationConfig
from .core.validator import (
    BaseValidator,
    ValidationResult,
    ValidationSeverity,
    ValidationStopError,
)
from .validators.completeness import CompletenessValidator
from .validators.plausibility import PlausibilityValidator
from .validators.temporal import TemporalValidator


logger = logging.getLogger(__name__)


class NumpyJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles numpy types."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, (pd.Timestamp, datetime)):
            return obj.isoformat()
        return super().default(obj)


class ValidationSuite:
    """
    Runs the validators and aggregates their results.

    Provides:
    - Unified interface for all validators
    - Report saving per validator
    - A JSON summary across validators
    - ``enforce`` to stop the run above the stop threshold
    """

    def __init__(
        self,
        config: Optional[ValidationConfig] = None,
        output_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize validation suite.

        Args:
            config: Validation configuration
            output_dir: Directory for outputs
        """
        self.config = config or ValidationConfig()
        self.output_dir = Path(output_dir) if output_dir else Path(self.config.output_dir)

        self.validators: Dict[str, BaseValidator] = {
            'completeness': CompletenessValidator(self.config, self.output_dir / 'completeness'),
            'temporal': TemporalValidator(self.config, self.output_dir / 'temporal'),
            'plausibility': PlausibilityValidator(self.config, self.output_dir / 'plausibility'),
        }

        self.results: Dict[str, ValidationResult] = {}
        self.report_paths: Dict[str, str] = {}

    def run_all_validations(
        self,
        data: pd.DataFrame,
        validators_to_run: Optional[List[str]] = None,
        dataset_path: str = "climate_series",
        **kwargs
    ) -> Dict[str, ValidationResult]:
        """
        Run validation checks.

        Args:
            data: Long series frame
            validators_to_run: Specific validators to run (default: enabled in config)
            dataset_path: Label used in reports
            **kwargs: Passed to validators that accept them (``variables``,
                ``excluded_models`` for completeness)

        Returns:
            Dictionary of validation results
        """
        logger.info(f"Starting validation suite on {dataset_path}")

        if validators_to_run is None:
            validators_to_run = self.config.validators_enabled

        for name in validators_to_run:
            if name not in self.validators:
                logger.warning(f"Unknown validator: {name}")
                continue
            logger.info(f"Running {name} validator...")
            validator = self.validators[name]
            if name == 'completeness':
                result = validator.validate(data, dataset_path=dataset_path, **kwargs)
            else:
                result = validator.validate(data, dataset_path=dataset_path)
            self.results[name] = result

            if self.config.save_reports:
                path = validator.save_report(self.config.report_format)
                self.report_paths[name] = str(path)

        return self.results

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results.values())

    def critical_issues(self) -> List[str]:
        messages = []
        for name, result in self.results.items():
            for issue in result.issues_for(ValidationSeverity.CRITICAL):
                where = f" [{issue.series}]" if issue.series else ""
                messages.append(f"{name}{where}: {issue.message}")
        return messages

    def structurally_invalid_series(self) -> List[str]:
        temporal = self.validators['temporal']
        if 'temporal' not in self.results:
            return []
        return temporal.structurally_invalid_series()

    def overall_quality(self) -> str:
        """Worst quality score across validators."""
        order = ["EXCELLENT", "GOOD", "FAIR", "POOR"]
        scores = [result.quality_score for result in self.results.values() if result.quality_score]
        if not scores:
            return "UNKNOWN"
        return max(scores, key=order.index)

    def generate_summary(self) -> Dict:
        """Summary of every validator's result."""
        summary = {
            'report_date': datetime.now().isoformat(),
            'overall_quality': self.overall_quality(),
            'passed': self.passed,
            'validation_summary': {},
            'report_paths': dict(self.report_paths),
        }
        for name, result in self.results.items():
            summary['validation_summary'][name] = {
                'passed': result.passed,
                'quality_score': result.quality_score,
                'issues': result.issue_count,
                'duration_seconds': result.duration,
            }
        return summary

    def save_summary(self) -> Path:
        """Write the summary as JSON next to the validator reports."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / "validation_summary.json"
        with open(path, "w") as f:
            json.dump(self.generate_summary(), f, indent=2, cls=NumpyJSONEncoder)
        logger.info(f"Saved validation summary to {path}")
        return path

    def enforce(self, ignore_series: Optional[List[str]] = None) -> None:
        """
        Stop the run when a validator failed and stopping is configured.

        Args:
            ignore_series: Series whose critical issues are handled elsewhere
                (structural failures only block that series' index)

        Raises:
            ValidationStopError: When a critical issue remains
        """
        if not self.config.stop_on_critical:
            return
        ignored = set(ignore_series or [])
        blocking = []
        for name, result in self.results.items():
            for issue in result.issues_for(ValidationSeverity.CRITICAL):
                if issue.series in ignored:
                    continue
                where = f" [{issue.series}]" if issue.series else ""
                blocking.append(f"{name}{where}: {issue.message}")
        if blocking:
            for message in blocking:
                logger.error(message)
            raise ValidationStopError(
                f"Validation stopped the run with {len(blocking)} critical issue(s)",
                results=self.results,
            )
