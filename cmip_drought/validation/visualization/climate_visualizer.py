"""Climate comparison figures for the report and validation outputs."""

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
from typing import Dict, Optional
import logging

from ...shared.contracts.climate_series import SOURCE_COLUMN, EXPERIMENT_COLUMN


VARIABLE_LABELS = {
    "pr": "Precipitation (mm/month)",
    "tas": "Temperature (°C)",
    "pet": "PET (mm/month)",
    "balance": "Water balance (mm/month)",
}


class ClimateVisualizer:
    """
    Creates figures comparing model series against observations.
    """

    def __init__(self, output_dir: Optional[Path] = None, dpi: int = 150):
        """Initialize visualizer."""
        self.output_dir = Path(output_dir) if output_dir else Path("report_outputs/figures")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.dpi = dpi
        self.logger = logging.getLogger(__name__)

        # Set style
        plt.style.use('default')
        sns.set_palette("husl")

    def _save(self, fig, filename: str) -> Path:
        output_path = self.output_dir / filename
        fig.savefig(output_path, dpi=self.dpi, bbox_inches='tight')
        plt.close(fig)
        self.logger.info(f"Saved {filename} to {output_path}")
        return output_path

    def create_climatology_comparison(self, model_climatology: pd.DataFrame,
                                      observed_climatology: pd.DataFrame,
                                      variables=("pr", "tas")) -> Optional[Path]:
        """Monthly climatology of every model against the observed one."""
        self.logger.info("Creating climatology comparison...")
        available = [v for v in variables if v in model_climatology.columns]
        if not available or model_climatology.empty:
            self.logger.warning("No climatology variables to plot")
            return None

        fig, axes = plt.subplots(1, len(available), figsize=(7 * len(available), 5), squeeze=False)
        for ax, variable in zip(axes[0], available):
            sns.lineplot(data=model_climatology, x="month", y=variable, hue=SOURCE_COLUMN,
                         ax=ax, linewidth=1, alpha=0.8)
            if variable in observed_climatology.columns:
                ax.plot(observed_climatology["month"], observed_climatology[variable],
                        color="black", linewidth=2.5, label="observed")
            ax.set_xticks(range(1, 13))
            ax.set_xlabel("Month")
            ax.set_ylabel(VARIABLE_LABELS.get(variable, variable))
            ax.grid(True, alpha=0.3)
            ax.legend(fontsize=7)

        fig.suptitle("Monthly climatology: models vs observations", fontsize=14)
        fig.tight_layout()
        return self._save(fig, "climatology_comparison.png")

    def create_spei_timeseries(self, frame: pd.DataFrame, observed: Optional[pd.DataFrame] = None,
                               threshold: float = -1.0) -> Optional[Path]:
        """Index time series per model, one panel per experiment."""
        self.logger.info("Creating SPEI time series...")
        if "spei" not in frame.columns or frame["spei"].notna().sum() == 0:
            self.logger.warning("No index values to plot")
            return None

        experiments = list(frame[EXPERIMENT_COLUMN].unique())
        fig, axes = plt.subplots(len(experiments), 1, figsize=(14, 3.5 * len(experiments)),
                                 squeeze=False, sharey=True)
        for ax, experiment in zip(axes[:, 0], experiments):
            subset = frame[frame[EXPERIMENT_COLUMN] == experiment]
            finite = subset[np.isfinite(subset["spei"])]
            sns.lineplot(data=finite, x="time", y="spei", hue=SOURCE_COLUMN,
                         ax=ax, linewidth=0.8, alpha=0.7)
            if observed is not None and experiment == "historical" and "spei" in observed.columns:
                ax.plot(observed["time"], observed["spei"], color="black", linewidth=1.2,
                        label="observed")
            ax.axhline(threshold, color="red", linestyle="--", linewidth=1)
            ax.set_title(experiment)
            ax.set_ylabel("SPEI")
            ax.grid(True, alpha=0.3)
            ax.legend(fontsize=7, ncol=2)

        fig.tight_layout()
        return self._save(fig, "spei_timeseries.png")

    def create_drought_duration_chart(self, drought_summary: pd.DataFrame) -> Optional[Path]:
        """Mean drought duration with standard deviation per model and experiment."""
        self.logger.info("Creating drought duration chart...")
        data = drought_summary.dropna(subset=["mean_duration"])
        if data.empty:
            self.logger.warning("No drought events to plot")
            return None

        means = data.pivot(index=SOURCE_COLUMN, columns=EXPERIMENT_COLUMN, values="mean_duration")
        spread = data.pivot(index=SOURCE_COLUMN, columns=EXPERIMENT_COLUMN,
                            values="std_duration").reindex_like(means).fillna(0.0)

        fig, ax = plt.subplots(figsize=(12, 6))
        means.plot(kind="bar", yerr=spread, capsize=3, ax=ax)
        ax.set_xlabel("Model")
        ax.set_ylabel("Mean drought duration (months)")
        ax.set_title("Drought duration (SPEI < -1)")
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=45, ha="right")
        fig.tight_layout()
        return self._save(fig, "drought_durations.png")

    def create_validation_summary_plot(self, summary: Dict) -> Optional[Path]:
        """Issue counts by severity for each validator."""
        self.logger.info("Creating validation summary plot...")
        per_validator = summary.get("validation_summary", {})
        if not per_validator:
            return None

        counts = pd.DataFrame({name: info["issues"] for name, info in per_validator.items()}).T
        colors = {'critical': 'red', 'warning': 'orange', 'info': 'blue'}
        fig, ax = plt.subplots(figsize=(8, 5))
        counts.plot(kind="bar", ax=ax, color=[colors.get(c, 'gray') for c in counts.columns])
        ax.set_title(f"Validation issues (overall: {summary.get('overall_quality', 'n/a')})")
        ax.set_ylabel("Count")
        plt.setp(ax.xaxis.get_majorticklabels(), rotation=0)
        fig.tight_layout()
        return self._save(fig, "validation_summary.png")
