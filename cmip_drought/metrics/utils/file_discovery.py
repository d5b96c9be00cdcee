"""
File discovery utilities for pre-downloaded model tables.

Model tables are expected as one file per model (all experiments stacked) or
one file per model and experiment, named ``{source_id}_{experiment_id}.csv``.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from ...shared.contracts.climate_series import Experiment

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".csv", ".nc"}

_EXPERIMENTS = "|".join(e.value for e in Experiment)
FILENAME_PATTERN = re.compile(rf'^(?P<source_id>.+?)(?:_(?P<experiment_id>{_EXPERIMENTS}))?$')


def discover_model_files(directory: Union[str, Path], pattern: str = "*.csv") -> List[Path]:
    """
    List model tables in a directory, sorted by name.

    Args:
        directory: Directory holding the model tables
        pattern: Glob pattern, e.g. ``*.csv`` or ``*.nc``

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Model directory not found: {directory}")

    files = sorted(
        path for path in directory.glob(pattern)
        if path.is_file() and path.suffix in SUPPORTED_SUFFIXES
    )
    if not files:
        logger.warning(f"No model tables matching '{pattern}' in {directory}")
    else:
        logger.info(f"Found {len(files)} model table(s) in {directory}")
    return files


def parse_series_filename(path: Union[str, Path]) -> Dict[str, Optional[str]]:
    """
    Extract ``source_id`` and ``experiment_id`` from a table filename.

    Examples:
        ``MPI-ESM1-2-LR_ssp245.csv`` -> source MPI-ESM1-2-LR, experiment ssp245
        ``MPI-ESM1-2-LR.csv`` -> source MPI-ESM1-2-LR, experiment None
    """
    stem = Path(path).stem
    match = FILENAME_PATTERN.match(stem)
    if not match:
        return {"source_id": stem, "experiment_id": None}
    return {
        "source_id": match.group("source_id"),
        "experiment_id": match.group("experiment_id"),
    }
