"""
Core numeric functions of the comparison report.

Available computations:
- evapotranspiration: energy-only PET and climatic water balance
- spei: standardized precipitation-evapotranspiration index
- climatology: calendar-month means per series
- drought: drought classification and duration statistics
- ranking: correlation ranking of models against observations

Example usage:
    >>> from cmip_drought.metrics.core import derive_water_balance, LogLogisticSPEI
    >>> derived = derive_water_balance(models)
    >>> spei = LogLogisticSPEI().estimate(series, 3, reference)
"""

from .evapotranspiration import (
    latent_heat_of_vaporization,
    potential_evapotranspiration,
    climatic_water_balance,
    derive_water_balance,
)
from .spei import (
    StandardizedIndexEstimator,
    LogLogisticSPEI,
    check_monthly_sequence,
    compute_frame_spei,
)
from .climatology import monthly_climatology
from .drought import (
    classify_drought,
    drought_run_lengths,
    summarize_drought_durations,
    summarize_frame_droughts,
)
from .ranking import monthly_correlation, rank_models

__all__ = [
    'latent_heat_of_vaporization',
    'potential_evapotranspiration',
    'climatic_water_balance',
    'derive_water_balance',
    'StandardizedIndexEstimator',
    'LogLogisticSPEI',
    'check_monthly_sequence',
    'compute_frame_spei',
    'monthly_climatology',
    'classify_drought',
    'drought_run_lengths',
    'summarize_drought_durations',
    'summarize_frame_droughts',
    'monthly_correlation',
    'rank_models',
]
