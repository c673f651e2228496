"""
Adult Female Equivalent (AFE) normalization

Divides nutrient content and amounts consumed by the per-food AFE factor so
that household supply is expressed per adult female equivalent.
"""

import logging
from typing import List

import pandas as pd

from ..exceptions import DataError

logger = logging.getLogger(__name__)


def _to_numeric(enriched: pd.DataFrame, column: str) -> pd.Series:
    """
    Numeric copy of a column; missing values stay missing

    Raises:
        DataError: If a recorded value cannot be parsed as a number
    """
    values = pd.to_numeric(enriched[column], errors='coerce')
    unparseable = enriched[column].notna() & values.isna()
    if unparseable.any():
        rows = enriched.loc[unparseable]
        examples = [
            f"{household}/{food}={value!r}"
            for household, food, value in zip(
                rows['householdId'], rows['foodGenusId'], rows[column]
            )
        ]
        raise DataError(
            f"{column} has {int(unparseable.sum())} non-numeric values "
            f"(householdId/foodGenusId: {', '.join(examples[:10])})"
        )
    return values


def normalize_to_afe(enriched: pd.DataFrame, nutrients: List[str]) -> pd.DataFrame:
    """
    Convert nutrient content and amount consumed to an AFE basis
    
    nutrient_afe = nutrient / afeFactor
    amountConsumedInGAfe = amountConsumedInG / afeFactor
    
    Args:
        enriched: Consumption rows joined with the NCT. Must contain
            amountConsumedInG, afeFactor and every nutrient column.
        nutrients: Nutrient columns to normalize
    
    Returns:
        New DataFrame with normalized nutrient columns and amountConsumedInGAfe
    
    Raises:
        DataError: If a row with a recorded amount has a missing, zero or
            negative afeFactor, or a recorded value is not numeric
    """
    normalized = enriched.copy()

    amount = _to_numeric(normalized, 'amountConsumedInG')
    afe_factor = _to_numeric(normalized, 'afeFactor')

    degenerate = amount.notna() & (afe_factor.isna() | (afe_factor <= 0))
    if degenerate.any():
        bad_foods = sorted(normalized.loc[degenerate, 'foodGenusId'].astype(str).unique())
        raise DataError(
            f"afeFactor must be positive for every consumed item; "
            f"{int(degenerate.sum())} rows affected (foods: {', '.join(bad_foods[:10])})"
        )

    # Rows left with a non-positive factor have no amount and supply nothing
    afe_factor = afe_factor.where(afe_factor > 0)

    for nutrient in nutrients:
        normalized[nutrient] = _to_numeric(normalized, nutrient) / afe_factor

    normalized['amountConsumedInG'] = amount
    normalized['afeFactor'] = afe_factor
    normalized['amountConsumedInGAfe'] = amount / afe_factor

    logger.debug(f"AFE-normalized {len(normalized):,} consumption rows for {len(nutrients)} nutrients")
    return normalized
