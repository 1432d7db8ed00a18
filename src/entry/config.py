"""Configuration for note entry.

Handles loading YAML config and merging with command-line overrides.
Command-line values have higher priority than config file values.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict

import yaml

from src.score.durations import measure_capacity


MODES = ('overwrite', 'insert')
INSERT_OVERFLOW_POLICIES = ('flag', 'reject')


@dataclass
class EntryConfig:
    """Entry and score defaults."""
    time_signature: str = "4/4"
    initial_measures: int = 4
    track_count: int = 1
    default_mode: str = "overwrite"
    # What insert mode does when pushed elements overflow a measure
    insert_overflow: str = "flag"
    max_steps: int = 256

    def __post_init__(self):
        """Validate configuration values."""
        measure_capacity(self.time_signature)
        if self.initial_measures < 1:
            raise ValueError(f"Invalid initial_measures: {self.initial_measures}. Must be >= 1.")
        if self.track_count < 1:
            raise ValueError(f"Invalid track_count: {self.track_count}. Must be >= 1.")
        if self.default_mode not in MODES:
            raise ValueError(f"Invalid default_mode: {self.default_mode}. Must be one of {MODES}.")
        if self.insert_overflow not in INSERT_OVERFLOW_POLICIES:
            raise ValueError(
                f"Invalid insert_overflow: {self.insert_overflow}. "
                f"Must be one of {INSERT_OVERFLOW_POLICIES}."
            )
        if self.max_steps < 1:
            raise ValueError(f"Invalid max_steps: {self.max_steps}. Must be >= 1.")

    @property
    def time_signature_tuple(self):
        numerator, denominator = self.time_signature.split('/')
        return int(numerator), int(denominator)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file, 'r', encoding='utf-8') as f:
        config_dict = yaml.safe_load(f)

    return config_dict or {}


def merge_configs(base_config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override config into base config."""
    merged = base_config.copy()

    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        elif value is not None:  # Only override if value is not None
            merged[key] = value

    return merged


def dict_to_config(config_dict: Dict[str, Any]) -> EntryConfig:
    """Convert dictionary (optionally nested under 'entry') to EntryConfig."""
    section = config_dict.get('entry', config_dict)
    known = set(EntryConfig.__dataclass_fields__)
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")
    return EntryConfig(**section)
