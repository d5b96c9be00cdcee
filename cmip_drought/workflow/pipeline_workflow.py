"""
End-to-end workflow for the model vs observation comparison report.

Loads the model and observed tables, applies the configured cleaning rules
and the completeness filter, derives PET, water balance and SPEI, validates
the result, aggregates climatologies, rankings and drought statistics, and
renders the report.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from ..metrics.core import (
    LogLogisticSPEI,
    StandardizedIndexEstimator,
    compute_frame_spei,
    derive_water_balance,
    monthly_climatology,
    rank_models,
    summarize_frame_droughts,
)
from ..metrics.core.ranking import RANKED_VARIABLES
from ..metrics.utils import (
    apply_exclusions,
    discover_model_files,
    load_model_tables,
    load_observed_table,
    select_complete_models,
)
from ..report import ComparisonReport, build_comparison_table
from ..shared.config.report_config import ReportConfiguration
from ..shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    SERIES_KEYS,
    TIME_COLUMN,
    Experiment,
)
from ..validation import ValidationSuite
from ..validation.core.validator import ValidationResult
from ..validation.visualization import ClimateVisualizer

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    """Every table produced by one run of the workflow."""

    models: pd.DataFrame
    observed: pd.DataFrame
    excluded_models: Dict[str, List[str]] = field(default_factory=dict)
    spei_failures: Dict[str, str] = field(default_factory=dict)
    validation: Dict[str, ValidationResult] = field(default_factory=dict)
    validation_summary: Dict = field(default_factory=dict)
    model_climatology: Optional[pd.DataFrame] = None
    observed_climatology: Optional[pd.DataFrame] = None
    ranking: Optional[pd.DataFrame] = None
    drought_summary: Optional[pd.DataFrame] = None
    comparison_table: Optional[pd.DataFrame] = None
    figures: Dict[str, Optional[Path]] = field(default_factory=dict)
    outputs: Dict[str, Path] = field(default_factory=dict)

    @property
    def ranked_models(self) -> List[str]:
        if self.ranking is None:
            return []
        return list(self.ranking["source_id"])


class ComparisonWorkflow:
    """
    Runs the comparison report for one configuration.

    The individual steps are public so callers (and tests) can run them on
    frames they already hold; ``run`` chains them from the configured files.
    """

    def __init__(self, config: Optional[ReportConfiguration] = None,
                 estimator: Optional[StandardizedIndexEstimator] = None):
        self.config = config or ReportConfiguration()
        self.estimator = estimator or LogLogisticSPEI()
        self.output_dir = Path(self.config.output_dir)

    # ------------------------------------------------------------------
    # Steps

    def load_inputs(self):
        """Read every model table and the observed table."""
        files = discover_model_files(self.config.model_dir, self.config.model_pattern)
        if not files:
            raise FileNotFoundError(
                f"No model tables matching '{self.config.model_pattern}' in {self.config.model_dir}"
            )
        models = load_model_tables(files, self.config.source_units)
        observed = load_observed_table(self.config.observed_path, self.config.observed_columns)
        return models, observed

    def prepare_models(self, models: pd.DataFrame):
        """Apply cleaning rules and keep only complete models."""
        cleaned = apply_exclusions(models, self.config.exclusions)
        return select_complete_models(
            cleaned, self.config.required_variables, self.config.required_experiments
        )

    def derive(self, models: pd.DataFrame, observed: pd.DataFrame):
        """
        Add ``pet``, ``balance`` and ``spei``.

        Returns:
            Tuple of (models, observed, failures). ``failures`` maps a series
            label to the structural problem that left its index empty.
        """
        logger.info("Deriving PET and water balance...")
        models = derive_water_balance(models)

        logger.info(f"Computing {self.config.spei_scale}-month SPEI "
                    f"(reference {self.config.reference_period})...")
        models, failures = compute_frame_spei(
            models, self.estimator, self.config.reference_period,
            scale=self.config.spei_scale,
            prepend_historical=self.config.prepend_historical,
        )
        observed, observed_failures = compute_frame_spei(
            observed, self.estimator, self.config.reference_period,
            scale=self.config.spei_scale, prepend_historical=False,
        )
        failures.update(observed_failures)
        if failures:
            logger.warning(f"Index left empty for {len(failures)} series: {sorted(failures)}")
        return models, observed, failures

    def validate(self, models: pd.DataFrame, observed: pd.DataFrame,
                 excluded_models: Optional[Dict[str, List[str]]] = None,
                 spei_failures: Optional[Dict[str, str]] = None,
                 enforce: bool = True) -> ValidationSuite:
        """
        Run the validation suite over models and observations together.

        Raises:
            ValidationStopError: When ``enforce`` is set and a critical issue
                remains outside the series whose index already failed
        """
        suite = ValidationSuite(self.config.validation, self.config.validation_output_dir)
        combined = pd.concat([models, observed], ignore_index=True, sort=False)
        suite.run_all_validations(
            combined,
            dataset_path=str(self.config.model_dir),
            excluded_models=excluded_models or {},
        )
        suite.save_summary()

        if enforce:
            ignored = set(suite.structurally_invalid_series()) | set(spei_failures or {})
            suite.enforce(ignore_series=sorted(ignored))
        return suite

    def aggregate(self, result: ComparisonResult) -> ComparisonResult:
        """Climatologies, correlation ranking and drought statistics."""
        window = self.config.climatology_window
        historical = result.models[result.models[EXPERIMENT_COLUMN] == Experiment.HISTORICAL.value]

        result.model_climatology = monthly_climatology(historical, window)
        result.observed_climatology = monthly_climatology(result.observed, window, by=[])

        variables = [v for v in RANKED_VARIABLES if v in result.model_climatology.columns]
        result.ranking = rank_models(result.model_climatology, result.observed_climatology, variables)

        series = pd.concat([result.models, result.observed], ignore_index=True, sort=False)
        result.drought_summary = summarize_frame_droughts(
            series, threshold=self.config.drought_threshold
        )
        result.comparison_table = build_comparison_table(result.ranking, result.drought_summary)

        if not result.ranking.empty:
            best = result.ranking.iloc[0]
            logger.info(f"Best matching model: {best['source_id']} "
                        f"(combined rank {best['combined_rank']})")
        return result

    def render(self, result: ComparisonResult) -> ComparisonResult:
        """Figures, CSV tables, the HTML report and the console summary."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        visualizer = ClimateVisualizer(self.config.figures_dir, dpi=self.config.plot_dpi)

        result.figures = {
            "climatology": visualizer.create_climatology_comparison(
                result.model_climatology, result.observed_climatology),
            "spei": visualizer.create_spei_timeseries(
                result.models, result.observed, self.config.drought_threshold),
            "drought": visualizer.create_drought_duration_chart(result.drought_summary),
        }
        if result.validation_summary:
            result.figures["validation"] = visualizer.create_validation_summary_plot(
                result.validation_summary)

        series = pd.concat([result.models, result.observed], ignore_index=True, sort=False)
        leading = SERIES_KEYS + [TIME_COLUMN]
        series = series[leading + [c for c in series.columns if c not in leading]]
        series_path = self.output_dir / "derived_series.csv"
        series.to_csv(series_path, index=False)
        climatology_path = self.output_dir / "model_climatology.csv"
        result.model_climatology.to_csv(climatology_path, index=False)

        report = ComparisonReport(self.output_dir, title=self.config.report_name)
        notes = [f"{source}: excluded ({'; '.join(reasons)})"
                 for source, reasons in result.excluded_models.items()]
        notes += [f"{label}: index not computed ({reason})"
                  for label, reason in result.spei_failures.items()]

        result.outputs = {
            "series": series_path,
            "climatology": climatology_path,
            "table": report.save_csv(result.comparison_table),
            "html": report.render_html(
                result.comparison_table, result.model_climatology,
                result.observed_climatology, notes=notes,
                figures={name: path for name, path in result.figures.items() if path},
            ),
        }
        report.print_summary(result.comparison_table, result.excluded_models)
        return result

    # ------------------------------------------------------------------
    # Entry points

    def run_from_frames(self, models: pd.DataFrame, observed: pd.DataFrame,
                        render: bool = True) -> ComparisonResult:
        """Run every step after loading on frames already in memory."""
        kept, excluded = self.prepare_models(models)
        if kept.empty:
            raise ValueError("No model provides every required variable and experiment")

        derived, observed, failures = self.derive(kept, observed)
        suite = self.validate(derived, observed, excluded, failures)

        result = ComparisonResult(
            models=derived,
            observed=observed,
            excluded_models=excluded,
            spei_failures=failures,
            validation=dict(suite.results),
            validation_summary=suite.generate_summary(),
        )
        self.aggregate(result)
        if render:
            self.render(result)
        return result

    def run(self, render: bool = True) -> ComparisonResult:
        """Run the complete report from the configured input files."""
        logger.info(f"Starting comparison report '{self.config.report_name}'")
        models, observed = self.load_inputs()
        result = self.run_from_frames(models, observed, render=render)
        logger.info(f"Comparison report finished: {len(result.ranked_models)} model(s) ranked")
        return result

    def run_validation_only(self) -> ValidationSuite:
        """Load, derive and validate without aggregating or rendering."""
        models, observed = self.load_inputs()
        kept, excluded = self.prepare_models(models)
        if kept.empty:
            raise ValueError("No model provides every required variable and experiment")
        derived, observed, failures = self.derive(kept, observed)
        return self.validate(derived, observed, excluded, failures, enforce=False)
