"""
Loading of report configurations.

A configuration comes from a YAML or JSON file (given by path, or by name
and looked up in the search directories), from a plain dictionary, or from
the defaults alone. ``CMIP_DROUGHT_*`` environment variables are applied
last and win over file values.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from .report_config import ReportConfiguration

logger = logging.getLogger(__name__)

ConfigSource = Union[str, Path, Dict[str, Any], None]

CONFIG_SUFFIXES = ('.yaml', '.yml', '.json')

# (variable suffix, dotted configuration key, converter)
ENV_OVERRIDES: List[Tuple[str, str, Callable[[str], Any]]] = [
    ("MODEL_DIR", "model_dir", Path),
    ("OBSERVED_PATH", "observed_path", Path),
    ("OUTPUT_DIR", "output_dir", Path),
    ("LOG_LEVEL", "log_level", str),
    ("SPEI_SCALE", "spei_scale", int),
    ("WARN_AT", "validation.warn_at", float),
    ("STOP_AT", "validation.stop_at", float),
]


class ConfigurationError(Exception):
    """A configuration could not be found, parsed or validated."""


class ConfigurationLoader:
    """Resolves, reads and validates ``ReportConfiguration`` objects."""

    ENV_PREFIX = "CMIP_DROUGHT_"

    def __init__(self, config_search_paths: Optional[List[Path]] = None):
        """
        Args:
            config_search_paths: Directories searched when a configuration is
                given by name. Defaults to the working directory and
                ``~/.cmip-drought``.
        """
        if config_search_paths is None:
            config_search_paths = [Path.cwd(), Path.home() / ".cmip-drought"]
        self.search_paths = [Path(p) for p in config_search_paths]

    def load_report_config(self, config_source: ConfigSource = None,
                           validate: bool = True) -> ReportConfiguration:
        """
        Build a report configuration.

        Args:
            config_source: File path, configuration name, dictionary, or None
                for the defaults
            validate: Run pydantic validation (otherwise values are taken as is)

        Raises:
            ConfigurationError: On a missing file, an unreadable file or
                invalid values
        """
        if config_source is None:
            values: Dict[str, Any] = {}
        elif isinstance(config_source, dict):
            values = dict(config_source)
        elif isinstance(config_source, (str, Path)):
            values = self._read(self._resolve(config_source))
        else:
            raise ConfigurationError(f"Unsupported config source type: {type(config_source)}")

        values = self._with_environment(values)
        try:
            if validate:
                return ReportConfiguration(**values)
            return ReportConfiguration.model_construct(**values)
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid report configuration: {e}") from e

    def find_config_file(self, config_name: str) -> Optional[Path]:
        """First existing ``<dir>/<name>`` or ``<dir>/<name><suffix>`` in the search paths."""
        for directory in self.search_paths:
            candidates = [directory / config_name]
            candidates += [directory / f"{config_name}{suffix}" for suffix in CONFIG_SUFFIXES]
            for candidate in candidates:
                if candidate.is_file():
                    return candidate
        return None

    def write_sample_config(self, output_path: Union[str, Path]) -> Path:
        """Write the default configuration, with one example exclusion, as YAML."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        sample = ReportConfiguration().model_dump(mode="json")
        sample["exclusions"] = [{
            "source_id": "EXAMPLE-MODEL",
            "experiment_id": "historical",
            "start": "2014-01",
            "end": "2014-12",
            "reason": "historical run overlaps the scenario run by one year",
        }]
        output_path.write_text(yaml.safe_dump(sample, default_flow_style=False, indent=2,
                                              sort_keys=False))
        return output_path

    def _resolve(self, source: Union[str, Path]) -> Path:
        path = Path(source)
        if path.is_file():
            return path
        found = self.find_config_file(str(source))
        if found is None:
            raise ConfigurationError(f"Configuration file not found: {source}")
        return found

    def _read(self, path: Path) -> Dict[str, Any]:
        if path.suffix not in CONFIG_SUFFIXES:
            raise ConfigurationError(f"Unsupported file format: {path.suffix}")
        text = path.read_text()
        try:
            data = json.loads(text) if path.suffix == '.json' else yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not parse {path}: {e}") from e
        logger.debug(f"Loaded configuration from {path}")
        return data or {}

    def _with_environment(self, values: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(values)
        for suffix, key, convert in ENV_OVERRIDES:
            raw = os.environ.get(f"{self.ENV_PREFIX}{suffix}")
            if raw is None:
                continue
            try:
                converted = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"{self.ENV_PREFIX}{suffix}={raw!r}: {e}") from e

            *parents, leaf = key.split('.')
            target = values
            for parent in parents:
                target[parent] = dict(target.get(parent) or {})
                target = target[parent]
            target[leaf] = converted
        return values


def load_config(config_source: ConfigSource = None) -> ReportConfiguration:
    """Convenience wrapper around ``ConfigurationLoader.load_report_config``."""
    return ConfigurationLoader().load_report_config(config_source)
