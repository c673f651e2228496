"""
Nutrient Supply Projector

Computes baseline and fortified (LSFF) nutrient supply per consumed item and
rolls it up to per-household totals.

Supply quantities are kept in a mapping keyed by SupplyKey
(nutrient, year, metric) rather than in string-named columns. Names such as
'A_2021_LSFFSupply' are only produced by supply_column_name() when a table
is serialized.

Formulas (nutrient content already AFE-normalized):
    BaseSupply             = nutrient / 100 * amountConsumedInG
    LSFFSupply             = BaseSupply * level(vehicle, year, nutrient)
                             * fortifiable_portion / 100
    BaseAndLSFFTotalSupply = BaseSupply + LSFFSupply   (per household)
"""

import logging
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

import pandas as pd

logger = logging.getLogger(__name__)

BASE_SUPPLY = 'BaseSupply'
LSFF_SUPPLY = 'LSFFSupply'
TOTAL_SUPPLY = 'BaseAndLSFFTotalSupply'

FortificationLevelFn = Callable[[str, int, str], Optional[float]]


class SupplyKey(NamedTuple):
    """Identifies one supply quantity; year is None for baseline supply."""
    nutrient: str
    year: Optional[int]
    metric: str


SupplyTable = Dict[SupplyKey, pd.Series]


def supply_column_name(key: SupplyKey) -> str:
    """
    Serialized column name of a supply quantity

    Example:
        >>> supply_column_name(SupplyKey('A', None, BASE_SUPPLY))
        'A_BaseSupply'
        >>> supply_column_name(SupplyKey('A', 2021, LSFF_SUPPLY))
        'A_2021_LSFFSupply'
    """
    if key.year is None:
        return f"{key.nutrient}_{key.metric}"
    return f"{key.nutrient}_{key.year}_{key.metric}"


def supply_keys(nutrients: Iterable[str], years: Iterable[int]) -> List[SupplyKey]:
    """All supply keys a run produces, in presentation order"""
    years = list(years)
    keys = []
    for nutrient in nutrients:
        keys.append(SupplyKey(nutrient, None, BASE_SUPPLY))
        for year in years:
            keys.append(SupplyKey(nutrient, year, LSFF_SUPPLY))
            keys.append(SupplyKey(nutrient, year, TOTAL_SUPPLY))
    return keys


def project_item_supply(
    enriched: pd.DataFrame,
    nutrients: List[str],
    years: List[int],
    vehicle: str,
    fortification_level: FortificationLevelFn
) -> SupplyTable:
    """
    Baseline and LSFF supply of every consumed item

    Args:
        enriched: AFE-normalized consumption rows with amountConsumedInG,
            fortifiable_portion and one column per nutrient
        nutrients: Nutrients to project
        years: Projection years
        vehicle: Selected fortification vehicle
        fortification_level: Callable (vehicle, year, nutrient) -> mg/100 g or None

    Returns:
        Mapping of SupplyKey to a Series aligned with enriched's index.
        Contains BaseSupply and LSFFSupply keys only.
    """
    amount = enriched['amountConsumedInG']
    # Items outside the selected vehicle carry no fortificant
    portion = pd.to_numeric(enriched['fortifiable_portion'], errors='coerce').fillna(0)

    supply: SupplyTable = {}
    for nutrient in nutrients:
        base = enriched[nutrient] / 100 * amount
        supply[SupplyKey(nutrient, None, BASE_SUPPLY)] = base

        for year in years:
            level = fortification_level(vehicle, year, nutrient)
            if level is None:
                logger.info(f"No fortification level for {vehicle} / {nutrient} / {year}, assuming 0")
                level = 0.0
            supply[SupplyKey(nutrient, year, LSFF_SUPPLY)] = base * level * portion / 100

    return supply


def aggregate_household_supply(
    item_supply: SupplyTable,
    household_ids: pd.Series
) -> SupplyTable:
    """
    Sum item supply per household and add the combined yearly totals

    Args:
        item_supply: Output of project_item_supply
        household_ids: householdId of each item, aligned with item_supply

    Returns:
        Mapping of SupplyKey to a Series indexed by householdId, including
        BaseAndLSFFTotalSupply for every (nutrient, year)
    """
    if not item_supply:
        return {}

    items = pd.DataFrame({supply_column_name(key): values for key, values in item_supply.items()})
    # Missing contributions count as zero
    totals = items.groupby(household_ids.rename('householdId'), sort=True).sum(min_count=0)

    household_supply: SupplyTable = {
        key: totals[supply_column_name(key)] for key in item_supply
    }

    for key in list(item_supply):
        if key.metric != LSFF_SUPPLY:
            continue
        base = household_supply[SupplyKey(key.nutrient, None, BASE_SUPPLY)]
        household_supply[SupplyKey(key.nutrient, key.year, TOTAL_SUPPLY)] = base + household_supply[key]

    logger.info(f"Aggregated {len(household_supply)} supply quantities for {len(totals):,} households")
    return household_supply


def supply_to_frame(supply: SupplyTable, metrics: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Materialize a supply mapping with serialized column names

    Args:
        supply: Mapping of SupplyKey to Series
        metrics: Only include these metrics (default: all)
    """
    wanted = set(metrics) if metrics is not None else None
    return pd.DataFrame({
        supply_column_name(key): values
        for key, values in supply.items()
        if wanted is None or key.metric in wanted
    })
