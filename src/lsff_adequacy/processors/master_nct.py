"""
Master Nutrient Composition Table (NCT)

Combines one or more composition tables into a single wide table with one
row per food: foodGenusId, afeFactor and one column per nutrient giving the
content per 100 g.

Sources may be in long form (one row per food and nutrient, identified by
micronutrientId) or already wide. When several sources cover the same food
and nutrient, the earliest source in the list wins.
"""

import logging
from typing import List, Sequence, Union

import pandas as pd

from ..exceptions import DataError
from ..utilities.common import validate_required_columns

logger = logging.getLogger(__name__)

FOOD_ID = 'foodGenusId'
NUTRIENT_ID = 'micronutrientId'
CONTENT = 'micronutrientCompositionPer100g'
AFE_FACTOR = 'afeFactor'

LONG_NCT_COLUMNS = [FOOD_ID, NUTRIENT_ID, CONTENT, AFE_FACTOR]
WIDE_NCT_COLUMNS = [FOOD_ID, AFE_FACTOR]


def is_long_form(nct: pd.DataFrame) -> bool:
    return NUTRIENT_ID in nct.columns


def required_nct_columns(nct: pd.DataFrame) -> List[str]:
    """Columns an NCT source must have, depending on its form"""
    return LONG_NCT_COLUMNS if is_long_form(nct) else WIDE_NCT_COLUMNS


def _afe_factor_per_food(nct: pd.DataFrame) -> pd.Series:
    factors = nct.dropna(subset=[AFE_FACTOR]).groupby(FOOD_ID)[AFE_FACTOR]
    conflicting = factors.nunique()
    conflicting = conflicting[conflicting > 1]
    if not conflicting.empty:
        raise DataError(
            f"Foods with more than one afeFactor in the NCT: "
            f"{', '.join(map(str, conflicting.index[:10]))}"
        )
    return factors.first().reindex(nct[FOOD_ID].unique())


def _to_wide(nct: pd.DataFrame, source: str) -> pd.DataFrame:
    validate_required_columns(nct, required_nct_columns(nct), source)

    if not is_long_form(nct):
        duplicated = nct[FOOD_ID].duplicated()
        if duplicated.any():
            raise DataError(
                f"{source} has duplicate foods: "
                f"{', '.join(map(str, nct.loc[duplicated, FOOD_ID].unique()[:10]))}"
            )
        return nct.set_index(FOOD_ID)

    duplicated = nct.duplicated([FOOD_ID, NUTRIENT_ID])
    if duplicated.any():
        raise DataError(f"{source} has {int(duplicated.sum())} duplicate food/nutrient rows")

    wide = nct.pivot(index=FOOD_ID, columns=NUTRIENT_ID, values=CONTENT)
    wide.columns = [str(c) for c in wide.columns]
    wide.insert(0, AFE_FACTOR, _afe_factor_per_food(nct))
    return wide


def build_master_nct(nct_list: Union[pd.DataFrame, Sequence[pd.DataFrame]]) -> pd.DataFrame:
    """
    Build the master NCT from one or more composition tables
    
    Args:
        nct_list: A table, or tables in priority order
    
    Returns:
        Wide table with foodGenusId, afeFactor and one column per nutrient
    
    Raises:
        SchemaError: If a source lacks required columns
        DataError: On duplicate or conflicting rows within a source
    """
    if isinstance(nct_list, pd.DataFrame):
        nct_list = [nct_list]

    if len(nct_list) == 0:
        raise DataError("At least one nutrient composition table is required")

    master = None
    for position, nct in enumerate(nct_list):
        wide = _to_wide(nct, f"nctTable[{position}]" if len(nct_list) > 1 else "nctTable")
        master = wide if master is None else master.combine_first(wide)

    master.index.name = FOOD_ID
    master = master.reset_index()

    logger.info(f"Master NCT: {len(master):,} foods, {len(master.columns) - 2} nutrients")
    return master
