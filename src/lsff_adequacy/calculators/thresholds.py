"""
Threshold and fortification level lookups

Both lookups return None rather than raising when nothing is defined, so a
long nutrient list can be run against partial threshold or fortification
coverage. Callers must check for None explicitly; NaN never leaves this module.
"""

import logging
from typing import Dict, Iterable, NamedTuple, Optional

import pandas as pd

from ..exceptions import ArgumentError, DataError
from ..utilities.common import validate_required_columns

logger = logging.getLogger(__name__)

THRESHOLD_KINDS = ('ear', 'ul')

FORTIFICATION_LEVEL_COLUMNS = ['food_vehicle_name', 'year', 'nutrient', 'fortification_level']


class NutrientThresholds(NamedTuple):
    """EAR and UL of one nutrient; either may be undefined."""
    nutrient: str
    ear: Optional[float]
    ul: Optional[float]


def get_threshold(
    thresholds: pd.DataFrame,
    nutrient: str,
    kind: str
) -> Optional[float]:
    """
    Look up the EAR or UL of a nutrient
    
    Args:
        thresholds: Intake thresholds with 'nutrient', 'ear' and 'ul' columns
        nutrient: Nutrient code (e.g., 'A', 'Zn')
        kind: 'ear' or 'ul'
    
    Returns:
        Threshold value, or None if the nutrient has no row or no value
    
    Raises:
        ArgumentError: If kind is not 'ear' or 'ul'
        DataError: If the nutrient has more than one row
    
    Example:
        >>> df = pd.DataFrame({'nutrient': ['A'], 'ear': [490.0], 'ul': [None]})
        >>> get_threshold(df, 'A', 'ear')
        490.0
        >>> get_threshold(df, 'A', 'ul') is None
        True
    """
    if kind not in THRESHOLD_KINDS:
        raise ArgumentError(f"Threshold kind must be one of {THRESHOLD_KINDS}, got {kind!r}")

    if kind not in thresholds.columns:
        return None

    matches = thresholds.loc[thresholds['nutrient'] == nutrient, kind]

    if len(matches) == 0:
        return None
    if len(matches) > 1:
        raise DataError(f"Intake thresholds have {len(matches)} rows for nutrient {nutrient!r}")

    value = pd.to_numeric(matches.iloc[0], errors='coerce')
    if pd.isna(value):
        return None

    return float(value)


def get_thresholds(
    thresholds: pd.DataFrame,
    nutrients: Iterable[str]
) -> Dict[str, NutrientThresholds]:
    """
    Resolve EAR and UL for every nutrient up front
    
    Args:
        thresholds: Intake thresholds table
        nutrients: Nutrient codes to resolve
    
    Returns:
        Dict mapping nutrient code to NutrientThresholds
    """
    resolved = {}
    for nutrient in nutrients:
        resolved[nutrient] = NutrientThresholds(
            nutrient=nutrient,
            ear=get_threshold(thresholds, nutrient, 'ear'),
            ul=get_threshold(thresholds, nutrient, 'ul'),
        )
        if resolved[nutrient].ear is None and resolved[nutrient].ul is None:
            logger.info(f"No EAR or UL defined for {nutrient}, no indicators will be produced")
    return resolved


def year_average_fortification_level(
    levels: pd.DataFrame,
    vehicle: str,
    year: int,
    nutrient: str
) -> Optional[float]:
    """
    Average fortification level of a vehicle for one year and nutrient
    
    Args:
        levels: Table with food_vehicle_name, year, nutrient and
            fortification_level (mg/100 g) columns
        vehicle: Fortification vehicle name (e.g., 'wheat flour')
        year: Projection year
        nutrient: Nutrient code
    
    Returns:
        Mean level over matching rows, or None if no row matches
    """
    matches = levels.loc[
        (levels['food_vehicle_name'] == vehicle)
        & (levels['year'] == year)
        & (levels['nutrient'] == nutrient),
        'fortification_level'
    ]
    matches = pd.to_numeric(matches, errors='coerce').dropna()

    if matches.empty:
        return None

    return float(matches.mean())


class FortificationLevelLookup:
    """
    Callable fortification level collaborator backed by a levels table
    
    Usage:
        lookup = FortificationLevelLookup(levels_df)
        lookup('wheat flour', 2021, 'A')
    """
    
    def __init__(self, levels: pd.DataFrame):
        validate_required_columns(levels, FORTIFICATION_LEVEL_COLUMNS, "fortificationLevels")
        self.levels = levels.copy()
        self.levels['year'] = pd.to_numeric(self.levels['year'], errors='coerce')

    def __call__(self, vehicle: str, year: int, nutrient: str) -> Optional[float]:
        return year_average_fortification_level(self.levels, vehicle, year, nutrient)
