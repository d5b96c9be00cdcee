"""
Configuration for the comparison report.

Provides the pydantic ``ReportConfiguration`` and a loader for YAML/JSON
files with environment variable overrides.
"""

from .report_config import ReportConfiguration
from .config_loader import ConfigurationLoader, ConfigurationError, load_config

__all__ = [
    "ReportConfiguration",
    "ConfigurationLoader",
    "ConfigurationError",
    "load_config",
]
