"""
Comparison report of climate models against observations.

Combines the correlation ranking with drought-duration statistics into one
table, renders it as HTML with a small climatology plot per model, writes it
as CSV and prints a summary table to the console.
"""

import base64
import html
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table
from rich import box

from ..shared.contracts.climate_series import (
    EXPERIMENT_COLUMN,
    OBSERVED_SOURCE_ID,
    SOURCE_COLUMN,
)

logger = logging.getLogger(__name__)


def sparkline(values, reference=None, width: float = 1.6, height: float = 0.45) -> str:
    """Small line plot as a base64 PNG data URI."""
    fig, ax = plt.subplots(figsize=(width, height))
    x = np.arange(1, len(values) + 1)
    if reference is not None:
        ax.plot(x, np.asarray(reference, dtype=float), color="black", linewidth=1.0)
    ax.plot(x, np.asarray(values, dtype=float), color="tab:blue", linewidth=1.2)
    ax.set_axis_off()
    ax.margins(x=0, y=0.1)
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=100, bbox_inches="tight", pad_inches=0, transparent=True)
    plt.close(fig)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def build_comparison_table(ranking: pd.DataFrame,
                           drought_summary: pd.DataFrame) -> pd.DataFrame:
    """
    One row per model: ranking columns followed by drought statistics.

    Drought columns are named ``{experiment}_mean_duration``,
    ``{experiment}_std_duration`` and ``{experiment}_events``. The observed
    series, when summarised, is appended as a final row without ranks.
    """
    table = ranking.copy()
    if drought_summary.empty:
        return table

    wide = drought_summary.pivot(index=SOURCE_COLUMN, columns=EXPERIMENT_COLUMN,
                                 values=["mean_duration", "std_duration", "n_events"])
    wide.columns = [
        f"{experiment}_{'events' if stat == 'n_events' else stat}"
        for stat, experiment in wide.columns
    ]
    experiments = list(dict.fromkeys(drought_summary[EXPERIMENT_COLUMN]))
    ordered = [f"{e}_{s}" for e in experiments
               for s in ("mean_duration", "std_duration", "events")
               if f"{e}_{s}" in wide.columns]
    wide = wide[ordered].reset_index()

    table = table.merge(wide, on=SOURCE_COLUMN, how="left")
    if OBSERVED_SOURCE_ID in set(wide[SOURCE_COLUMN]):
        observed = wide[wide[SOURCE_COLUMN] == OBSERVED_SOURCE_ID]
        table = pd.concat([table, observed], ignore_index=True)
    return table


class ComparisonReport:
    """Renders the comparison table in HTML, CSV and on the console."""

    def __init__(self, output_dir: Path, title: str = "CMIP6 models vs observations",
                 console: Optional[Console] = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.title = title
        self.console = console or Console()

    def _sparklines(self, model_climatology: pd.DataFrame,
                    observed_climatology: pd.DataFrame, variable: str) -> Dict[str, str]:
        reference = None
        if variable in observed_climatology.columns:
            reference = observed_climatology.sort_values("month")[variable].to_numpy()
        images = {}
        for source_id, group in model_climatology.groupby(SOURCE_COLUMN, sort=False):
            if variable not in group.columns:
                continue
            values = group.sort_values("month")[variable].to_numpy()
            images[source_id] = sparkline(values, reference)
        return images

    def render_html(self, table: pd.DataFrame, model_climatology: pd.DataFrame,
                    observed_climatology: pd.DataFrame, notes: Optional[List[str]] = None,
                    figures: Optional[Dict[str, Path]] = None) -> Path:
        """Write ``comparison_report.html`` with embedded sparklines."""
        html_table = table.copy()
        for column in html_table.columns:
            if not pd.api.types.is_numeric_dtype(html_table[column]):
                html_table[column] = html_table[column].map(
                    lambda v: html.escape(v) if isinstance(v, str) else v)
        for variable in ("pr", "tas"):
            images = self._sparklines(model_climatology, observed_climatology, variable)
            html_table[f"{variable}_climatology"] = [
                f'<img src="{images[s]}" alt="{variable} {html.escape(str(s))}"/>' if s in images else ""
                for s in table[SOURCE_COLUMN]
            ]

        html_table.columns = [html.escape(str(column)) for column in html_table.columns]
        body = html_table.to_html(index=False, escape=False, na_rep="",
                                  float_format=lambda v: f"{v:.2f}")
        notes_html = "".join(f"<li>{html.escape(note)}</li>" for note in (notes or []))
        figures_html = "".join(
            f'<figure><img src="{html.escape(Path(path).name)}" style="max-width:100%"/>'
            f"<figcaption>{html.escape(name)}</figcaption></figure>"
            for name, path in (figures or {}).items() if path
        )
        title = html.escape(self.title)
        page = (
            "<!DOCTYPE html><html><head><meta charset='utf-8'>"
            f"<title>{title}</title>"
            "<style>body{font-family:sans-serif}table{border-collapse:collapse}"
            "td,th{border:1px solid #ccc;padding:2px 6px;text-align:right}</style>"
            "</head><body>"
            f"<h1>{title}</h1>"
            f"<p>Generated {datetime.now():%Y-%m-%d %H:%M}. Black line: observed climatology.</p>"
            f"{body}"
            + (f"<h2>Notes</h2><ul>{notes_html}</ul>" if notes_html else "")
            + figures_html
            + "</body></html>"
        )

        path = self.output_dir / "comparison_report.html"
        path.write_text(page, encoding="utf-8")
        logger.info(f"Saved HTML report to {path}")
        return path

    def save_csv(self, table: pd.DataFrame) -> Path:
        path = self.output_dir / "comparison_table.csv"
        table.to_csv(path, index=False)
        logger.info(f"Saved comparison table to {path}")
        return path

    def print_summary(self, table: pd.DataFrame, excluded: Optional[Dict[str, List[str]]] = None):
        """Print the ranking to the console as a rich table."""
        rich_table = Table(title=self.title, box=box.SIMPLE_HEAVY)
        columns = [c for c in table.columns if c != SOURCE_COLUMN]
        rich_table.add_column("Model", style="bold cyan")
        for column in columns:
            rich_table.add_column(column, justify="right")

        for _, row in table.iterrows():
            cells = []
            for column in columns:
                value = row[column]
                if isinstance(value, (float, np.floating)):
                    cells.append("" if np.isnan(value) else f"{value:.2f}")
                else:
                    cells.append(str(value))
            rich_table.add_row(str(row[SOURCE_COLUMN]), *cells)

        self.console.print(rich_table)
        for source_id, reasons in (excluded or {}).items():
            self.console.print(f"[yellow]Excluded {source_id}:[/yellow] {'; '.join(reasons)}")
