"""
Adequacy Classifier

Flags each household as inadequate (supply below EAR) or in exceedance
(supply above UL), for baseline supply and for baseline plus LSFF supply in
every projection year. Indicators are 0/1 integers.

A nutrient only produces EAR indicators when its EAR is defined and UL
indicators when its UL is defined.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

import pandas as pd

from .supply import BASE_SUPPLY, TOTAL_SUPPLY, SupplyKey, SupplyTable
from .thresholds import NutrientThresholds

logger = logging.getLogger(__name__)

EAR_INADEQUACY = 'ear_inadequacy'
UL_EXCEEDANCE = 'ul_exceedance'


class IndicatorKey(NamedTuple):
    """Identifies one household indicator; year is None for baseline."""
    nutrient: str
    year: Optional[int]
    kind: str


IndicatorTable = Dict[IndicatorKey, pd.Series]


def indicator_column_name(key: IndicatorKey) -> str:
    """
    Serialized column name of an indicator

    Example:
        >>> indicator_column_name(IndicatorKey('A', None, EAR_INADEQUACY))
        'A_base_supply_ear_inadequacy'
        >>> indicator_column_name(IndicatorKey('A', 2021, UL_EXCEEDANCE))
        'A_2021_base_and_lsff_ul_exceedance'
    """
    if key.year is not None:
        return f"{key.nutrient}_{key.year}_base_and_lsff_{key.kind}"
    if key.kind == EAR_INADEQUACY:
        return f"{key.nutrient}_base_supply_{key.kind}"
    return f"{key.nutrient}_base_{key.kind}"


def below_threshold(supply: pd.Series, threshold: float) -> pd.Series:
    """1 where supply < threshold, else 0; supply equal to the threshold is adequate"""
    return (supply < threshold).astype(int)


def above_threshold(supply: pd.Series, threshold: float) -> pd.Series:
    """1 where supply > threshold, else 0"""
    return (supply > threshold).astype(int)


def classify_adequacy(
    household_supply: SupplyTable,
    thresholds: Dict[str, NutrientThresholds],
    nutrients: List[str],
    years: List[int]
) -> IndicatorTable:
    """
    Build EAR inadequacy and UL exceedance indicators per household

    Args:
        household_supply: Per-household supply from aggregate_household_supply
        thresholds: Resolved thresholds per nutrient
        nutrients: Nutrients to classify
        years: Projection years

    Returns:
        Mapping of IndicatorKey to a 0/1 Series indexed by householdId
    """
    indicators: IndicatorTable = {}

    for nutrient in nutrients:
        limits = thresholds.get(nutrient)
        if limits is None:
            continue

        base = household_supply[SupplyKey(nutrient, None, BASE_SUPPLY)]
        yearly = {
            year: household_supply[SupplyKey(nutrient, year, TOTAL_SUPPLY)]
            for year in years
        }

        if limits.ear is not None:
            indicators[IndicatorKey(nutrient, None, EAR_INADEQUACY)] = below_threshold(base, limits.ear)
            for year, total in yearly.items():
                indicators[IndicatorKey(nutrient, year, EAR_INADEQUACY)] = below_threshold(total, limits.ear)

        if limits.ul is not None:
            indicators[IndicatorKey(nutrient, None, UL_EXCEEDANCE)] = above_threshold(base, limits.ul)
            for year, total in yearly.items():
                indicators[IndicatorKey(nutrient, year, UL_EXCEEDANCE)] = above_threshold(total, limits.ul)

    logger.info(f"Built {len(indicators)} adequacy indicators for {len(nutrients)} nutrients")
    return indicators
