"""Figures for the comparison report."""

from .climate_visualizer import ClimateVisualizer

__all__ = ["ClimateVisualizer"]
