"""
Run configuration for the adequacy pipeline

The core never embeds domain defaults. Callers build an AdequacyConfig
directly or load one from YAML (see config/lsff_config.yaml).
"""

import logging
import numbers
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import ArgumentError
from .utilities.common import load_yaml_config

logger = logging.getLogger(__name__)


@dataclass
class AdequacyConfig:
    """Parameters of one pre/post fortification adequacy run."""
    aggregation_group: List[str]
    food_vehicle_name: str
    years: List[int] = field(default_factory=list)
    nutrients: List[str] = field(default_factory=list)

    def __post_init__(self):
        # A bare string is a single nutrient, not a sequence of characters
        if isinstance(self.nutrients, str):
            self.nutrients = [self.nutrients]
        if isinstance(self.aggregation_group, str):
            self.aggregation_group = [self.aggregation_group]

    def validate(self) -> "AdequacyConfig":
        """
        Check argument types before any computation
        
        Returns:
            self, so calls can be chained
        
        Raises:
            ArgumentError: If any field has the wrong type, is empty or
                repeats an entry
        """
        if not _is_list_of_strings(self.aggregation_group):
            raise ArgumentError(
                "aggregation_group must be a list of strings e.g. ['admin0Name', 'admin1Name']"
            )
        if len(self.aggregation_group) == 0:
            raise ArgumentError("aggregation_group cannot be empty")
        if len(set(self.aggregation_group)) != len(self.aggregation_group):
            raise ArgumentError(f"aggregation_group has duplicate columns: {self.aggregation_group}")

        if not _is_list_of_strings(self.nutrients):
            raise ArgumentError("nutrients must be a list of strings e.g. ['A', 'Ca']")
        if len(set(self.nutrients)) != len(self.nutrients):
            raise ArgumentError(f"nutrients has duplicate entries: {self.nutrients}")

        if not isinstance(self.food_vehicle_name, str) or not self.food_vehicle_name:
            raise ArgumentError("food_vehicle_name must be a non-empty string e.g. 'wheat flour'")

        if not isinstance(self.years, (list, tuple)) or not all(
            isinstance(year, numbers.Integral) and not isinstance(year, bool)
            for year in self.years
        ):
            raise ArgumentError("years must be a list of integers e.g. [2021, 2022]")
        if len(set(self.years)) != len(self.years):
            raise ArgumentError(f"years has duplicate entries: {self.years}")

        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_list_of_strings(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def config_from_dict(data: Dict[str, Any]) -> AdequacyConfig:
    """
    Build an AdequacyConfig from a mapping
    
    Args:
        data: Mapping with aggregation_group, food_vehicle_name, years, nutrients.
            years may also be given as {'start': 2021, 'end': 2024}.
    
    Raises:
        ArgumentError: On unknown or missing keys
    """
    known = {'aggregation_group', 'food_vehicle_name', 'years', 'nutrients'}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ArgumentError(f"Unknown configuration keys: {', '.join(unknown)}")

    missing = sorted(k for k in ('aggregation_group', 'food_vehicle_name') if k not in data)
    if missing:
        raise ArgumentError(f"Missing configuration keys: {', '.join(missing)}")

    years = data.get('years', [])
    if isinstance(years, dict):
        try:
            years = list(range(int(years['start']), int(years['end']) + 1))
        except KeyError as e:
            raise ArgumentError(f"years range needs 'start' and 'end', missing {e}")

    return AdequacyConfig(
        aggregation_group=data['aggregation_group'],
        food_vehicle_name=data['food_vehicle_name'],
        years=years,
        nutrients=data.get('nutrients', []),
    ).validate()


def load_config(config_path: Union[str, Path]) -> AdequacyConfig:
    """
    Load the 'adequacy' section of a YAML configuration file
    
    Args:
        config_path: Path to YAML file
    
    Returns:
        Validated AdequacyConfig
    """
    raw = load_yaml_config(config_path)
    if not isinstance(raw, dict) or 'adequacy' not in raw:
        raise ArgumentError(f"No 'adequacy' section in {config_path}")

    config = config_from_dict(raw['adequacy'])
    logger.info(
        f"Loaded config: vehicle={config.food_vehicle_name!r}, "
        f"{len(config.nutrients)} nutrients, years={config.years}"
    )
    return config
