"""Rendering of the comparison report."""

from .comparison_report import ComparisonReport, build_comparison_table, sparkline

__all__ = ["ComparisonReport", "build_comparison_table", "sparkline"]
