"""
Aggregation Engine

Summarizes per-household quantities by administrative group.

Every household is assigned a GroupKey: the ordered tuple of its labels in
the aggregation group columns, as strings. Each summary is a DataFrame
indexed by GroupKey (a MultiIndex named after the aggregation columns) and
summaries are merged on that index, never by row position.

Household-level quantities (totals, per-household means and medians) are
always computed before grouping so that households with many items do not
weigh more than households with few.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from ..exceptions import DataError
from .adequacy import IndicatorTable, indicator_column_name
from .supply import BASE_SUPPLY, SupplyTable, supply_to_frame

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, ...]

HOUSEHOLDS_COUNT = 'householdsCount'
VEHICLE_REACH_COUNT = 'fortification_vehicle_reach_hh_count'
COUNT_SUFFIX = '_count'
PERCENT_SUFFIX = '_perc'


def build_group_keys(household_details: pd.DataFrame, aggregation_group: List[str]) -> pd.Series:
    """
    GroupKey of every household

    Args:
        household_details: One row per household
        aggregation_group: Label columns, outermost first

    Returns:
        Series indexed by householdId with GroupKey tuples as values

    Raises:
        DataError: If any household has a missing group label
    """
    labels = household_details[aggregation_group]
    missing = labels.isna().any(axis=1)
    if missing.any():
        bad = household_details.loc[missing, 'householdId'].astype(str).tolist()
        raise DataError(
            f"{len(bad)} households have missing {', '.join(aggregation_group)} labels: "
            f"{', '.join(bad[:10])}"
        )

    keys = [tuple(str(v) for v in row) for row in labels.itertuples(index=False, name=None)]
    return pd.Series(keys, index=household_details['householdId'].values, name='groupKey')


def _group_index(keys: Iterable, names: Sequence[str]) -> pd.MultiIndex:
    tuples = [key if isinstance(key, tuple) else (key,) for key in keys]
    return pd.MultiIndex.from_tuples(tuples, names=list(names))


def group_by_household(data, group_keys: pd.Series):
    """Group a householdId-indexed Series or DataFrame by GroupKey"""
    return data.groupby(group_keys.reindex(data.index))


def _regroup(result: pd.DataFrame, names: Sequence[str]) -> pd.DataFrame:
    result = result.copy()
    result.index = _group_index(result.index, names)
    return result


def households_count_summary(
    household_ids: Iterable,
    group_keys: pd.Series,
    names: Sequence[str],
    column: str = HOUSEHOLDS_COUNT
) -> pd.DataFrame:
    """
    Distinct household count per group

    Args:
        household_ids: Households to count (duplicates are ignored)
        group_keys: GroupKey per householdId
        names: Aggregation column names
        column: Output column name
    """
    ids = pd.Index(pd.unique(pd.Series(list(household_ids), dtype=object)))
    ones = pd.Series(1, index=ids)
    counts = group_by_household(ones, group_keys).sum().astype(int)
    return _regroup(counts.to_frame(column), names)


def vehicle_reach_summary(
    enriched: pd.DataFrame,
    group_keys: pd.Series,
    names: Sequence[str]
) -> pd.DataFrame:
    """Distinct households with at least one item of the selected vehicle, per group"""
    reached = enriched.loc[enriched['food_vehicle_name'].notna(), 'householdId']
    if reached.empty:
        return pd.DataFrame(columns=[VEHICLE_REACH_COUNT], index=_group_index([], names), dtype=int)
    return households_count_summary(reached, group_keys, names, VEHICLE_REACH_COUNT)


def consumption_summary(
    enriched: pd.DataFrame,
    group_keys: pd.Series,
    names: Sequence[str]
) -> pd.DataFrame:
    """Mean and median of each household's total AFE-normalized amount consumed"""
    per_household = enriched.groupby('householdId')['amountConsumedInGAfe'].sum(min_count=0)
    grouped = group_by_household(per_household, group_keys)
    summary = pd.DataFrame({
        'meanDailyAmountConsumedPerAfeInG': grouped.mean(),
        'medianDailyAmountConsumedPerAfeInG': grouped.median(),
    })
    return _regroup(summary, names)


def vehicle_consumption_summary(
    enriched: pd.DataFrame,
    group_keys: pd.Series,
    names: Sequence[str]
) -> pd.DataFrame:
    """
    Consumption of the fortification vehicle among reached households

    Two columns pairs, both computed per household first:
        - total AFE amount of vehicle items, then mean/median across households
        - mean/median AFE amount per vehicle item, then mean of means and
          median of medians across households
    """
    columns = [
        'meanDailyAmountConsumedContainingFortificantInG',
        'medianDailyAmountConsumedContainingFortificantInG',
        'mean_fortification_vehicle_amountConsumedInGAfe',
        'median_fortification_vehicle_amountConsumedInGAfe',
    ]
    vehicle_items = enriched.loc[enriched['food_vehicle_name'].notna()]
    if vehicle_items.empty:
        return pd.DataFrame(columns=columns, index=_group_index([], names), dtype=float)

    amounts = vehicle_items.groupby('householdId')['amountConsumedInGAfe']
    per_household = pd.DataFrame({
        'total': amounts.sum(min_count=0),
        'mean': amounts.mean(),
        'median': amounts.median(),
    })
    grouped = group_by_household(per_household, group_keys)

    summary = pd.DataFrame({
        columns[0]: grouped['total'].mean(),
        columns[1]: grouped['total'].median(),
        columns[2]: grouped['mean'].mean(),
        columns[3]: grouped['median'].median(),
    })
    return _regroup(summary, names)


def supply_summary(
    household_supply: SupplyTable,
    household_ids: pd.Index,
    group_keys: pd.Series,
    names: Sequence[str]
) -> pd.DataFrame:
    """
    Mean and median baseline supply per group, rounded to whole units

    Columns are named '<nutrient>_BaseSupplyMeanSupply' and
    '<nutrient>_BaseSupplyMedianSupply'.
    """
    base = supply_to_frame(household_supply, metrics=[BASE_SUPPLY]).reindex(household_ids)
    grouped = group_by_household(base, group_keys)

    summary = pd.DataFrame(index=grouped.size().index)
    for column in base.columns:
        summary[f"{column}MeanSupply"] = grouped[column].mean().round(0)
        summary[f"{column}MedianSupply"] = grouped[column].median().round(0)
    return _regroup(summary, names)


def indicator_summary(
    indicators: IndicatorTable,
    household_ids: pd.Index,
    group_keys: pd.Series,
    names: Sequence[str]
) -> pd.DataFrame:
    """Number of households flagged by each indicator, per group"""
    flags = pd.DataFrame(
        {indicator_column_name(key): values for key, values in indicators.items()},
        index=household_ids,
    )
    grouped = group_by_household(flags, group_keys)

    summary = pd.DataFrame(index=grouped.size().index)
    for column in flags.columns:
        summary[f"{column}{COUNT_SUFFIX}"] = grouped[column].sum().astype(int)
    return _regroup(summary, names)


def merge_group_summaries(
    base: pd.DataFrame,
    complete: List[pd.DataFrame],
    partial: List[pd.DataFrame]
) -> pd.DataFrame:
    """
    Merge group summaries on GroupKey

    Args:
        base: Summary defining the set of groups (households count)
        complete: Summaries that must cover exactly the base groups
        partial: Summaries over a subset of households; absent groups get
            0 for *_count columns and stay missing otherwise

    Raises:
        DataError: If a summary has groups unknown to base, or a complete
            summary lacks a base group
    """
    merged = base.copy()

    for summary in complete + partial:
        unknown = summary.index.difference(base.index)
        if len(unknown) > 0:
            raise DataError(f"Summary has groups missing from the households count: {list(unknown)[:5]}")

    for summary in complete:
        absent = base.index.difference(summary.index)
        if len(absent) > 0:
            raise DataError(f"Summary is missing groups {list(absent)[:5]} (join key mismatch)")
        merged = merged.join(summary, how='left')

    for summary in partial:
        merged = merged.join(summary, how='left')
        for column in summary.columns:
            if column.endswith(COUNT_SUFFIX):
                merged[column] = merged[column].fillna(0).astype(int)

    return merged


def add_percentages(summary: pd.DataFrame) -> pd.DataFrame:
    """
    Add '<col>_perc' = round(<col> * 100 / householdsCount, 2) for every *_count column
    """
    with_percentages = summary.copy()
    for column in summary.columns:
        if column.endswith(COUNT_SUFFIX):
            with_percentages[f"{column}{PERCENT_SUFFIX}"] = (
                summary[column] * 100 / summary[HOUSEHOLDS_COUNT]
            ).round(2)
    return with_percentages


def restore_group_labels(
    summary: pd.DataFrame,
    household_details: pd.DataFrame,
    aggregation_group: List[str]
) -> pd.DataFrame:
    """
    Replace the string GroupKey labels in the group columns of a flat summary
    with the original household_details values and dtypes

    Args:
        summary: Summary with the group columns as regular columns
        household_details: Households the GroupKeys were built from
        aggregation_group: Label columns

    Returns:
        New DataFrame; row order is unchanged
    """
    restored = summary.copy()
    for column in aggregation_group:
        source = household_details[column]
        labels = {str(value): value for value in source}
        restored[column] = restored[column].map(labels).astype(source.dtype)
    return restored
