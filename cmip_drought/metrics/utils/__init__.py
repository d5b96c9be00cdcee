"""Ingestion utilities: file discovery, table loading, units and filters."""

from .file_discovery import discover_model_files, parse_series_filename
from .table_loader import load_model_table, load_model_tables, load_observed_table
from .units import (
    convert_precipitation_units,
    convert_temperature_units,
    standardize_variable_units,
)
from .series_filters import apply_exclusions, select_complete_models

__all__ = [
    'discover_model_files',
    'parse_series_filename',
    'load_model_table',
    'load_model_tables',
    'load_observed_table',
    'convert_precipitation_units',
    'convert_temperature_units',
    'standardize_variable_units',
    'apply_exclusions',
    'select_complete_models',
]
