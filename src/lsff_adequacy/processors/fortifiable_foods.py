"""
Fortifiable food items

Maps foods to the fortification vehicle they belong to and the share of
their mass (0-100%) that can carry the fortificant.
"""

import logging
from typing import Dict, List, Union

import pandas as pd

from ..exceptions import DataError
from ..utilities.common import validate_required_columns

logger = logging.getLogger(__name__)

FORTIFIABLE_FOOD_COLUMNS = ['food_genus_id', 'food_vehicle_name', 'fortifiable_portion']


def build_fortifiable_food_items(items: Union[pd.DataFrame, List[Dict]]) -> pd.DataFrame:
    """
    Validate and normalize the fortifiable food items table
    
    Args:
        items: Table or records with food_genus_id, food_vehicle_name and
            fortifiable_portion
    
    Returns:
        New DataFrame with numeric fortifiable_portion and exact duplicate
        rows removed
    
    Raises:
        SchemaError: If required columns are missing
        DataError: If a portion is outside 0-100 or a food is listed twice
            for the same vehicle with different portions
    """
    table = pd.DataFrame(items).copy()
    validate_required_columns(table, FORTIFIABLE_FOOD_COLUMNS, "fortifiableFoodItems")

    portion = pd.to_numeric(table['fortifiable_portion'], errors='coerce')
    out_of_range = portion.isna() | (portion < 0) | (portion > 100)
    if out_of_range.any():
        raise DataError(
            f"fortifiable_portion must be between 0 and 100; invalid for foods: "
            f"{', '.join(table.loc[out_of_range, 'food_genus_id'].astype(str).tolist()[:10])}"
        )
    table['fortifiable_portion'] = portion

    table = table.drop_duplicates(subset=FORTIFIABLE_FOOD_COLUMNS).reset_index(drop=True)

    conflicting = table.duplicated(subset=['food_genus_id', 'food_vehicle_name'])
    if conflicting.any():
        raise DataError(
            f"Foods listed twice for the same vehicle: "
            f"{', '.join(table.loc[conflicting, 'food_genus_id'].astype(str).tolist()[:10])}"
        )

    return table


def select_vehicle(items: pd.DataFrame, vehicle: str) -> pd.DataFrame:
    """
    Fortifiable items of one vehicle
    
    Args:
        items: Output of build_fortifiable_food_items
        vehicle: Fortification vehicle name (e.g., 'wheat flour')
    
    Returns:
        Rows of items for that vehicle; empty if the vehicle is unknown
    """
    selected = items.loc[items['food_vehicle_name'] == vehicle].reset_index(drop=True)

    if selected.empty:
        logger.warning(f"No fortifiable food items for vehicle {vehicle!r}; LSFF supply will be zero")
    else:
        logger.info(f"{len(selected)} fortifiable food items for vehicle {vehicle!r}")

    return selected
