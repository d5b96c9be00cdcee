"""
Climate Metrics - derived variables and comparison statistics.

Derives PET, water balance and SPEI for model series and aggregates them into
climatologies, drought-duration statistics and correlation rankings.
"""

__submodule__ = "metrics"

__all__ = [
    "__submodule__"
]
