"""
CMIP6 Drought Comparison Package

Compares CMIP6 climate models against an observed climate table:
- Energy-only potential evapotranspiration and climatic water balance
- Standardized precipitation-evapotranspiration index (SPEI)
- Monthly climatologies, correlation ranking and drought durations
- Rule-based validation and an HTML comparison report
"""

__version__ = "0.1.0"
__author__ = "Climate Data Processing Team"

from . import metrics
from . import shared

__all__ = [
    "metrics",
    "shared",
]
