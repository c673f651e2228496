"""
Pre and post LSFF adequacy summaries (AFE method)

Wires the calculators together:

    consumption + household details + NCT + vehicle items
        -> enriched, AFE-normalized consumption (one row per item)
        -> nutrient supply per household (baseline and per projection year)
        -> EAR inadequacy / UL exceedance indicators per household
        -> summary table per administrative group

Each stage returns a new table; inputs are never modified.
"""

import logging
from typing import List, Sequence, Union

import pandas as pd

from .calculators.adequacy import classify_adequacy
from .calculators.afe import normalize_to_afe
from .calculators.aggregation import (
    HOUSEHOLDS_COUNT,
    add_percentages,
    build_group_keys,
    consumption_summary,
    households_count_summary,
    indicator_summary,
    merge_group_summaries,
    restore_group_labels,
    supply_summary,
    vehicle_consumption_summary,
    vehicle_reach_summary,
)
from .calculators.supply import (
    FortificationLevelFn,
    aggregate_household_supply,
    project_item_supply,
)
from .calculators.thresholds import get_thresholds
from .exceptions import ArgumentError, DataError, SchemaError
from .processors.fortifiable_foods import (
    FORTIFIABLE_FOOD_COLUMNS,
    build_fortifiable_food_items,
    select_vehicle,
)
from .processors.master_nct import build_master_nct, required_nct_columns
from .settings import AdequacyConfig
from .utilities.common import find_missing_columns, validate_required_columns

logger = logging.getLogger(__name__)

REQUIRED_CONSUMPTION_COLUMNS = ['householdId', 'foodGenusId', 'amountConsumedInG']
REQUIRED_DETAILS_COLUMNS = ['householdId', 'memberCount']
REQUIRED_THRESHOLD_COLUMNS = ['nutrient', 'ear', 'ul']

NctInput = Union[pd.DataFrame, Sequence[pd.DataFrame]]


def validate_inputs(
    consumption: pd.DataFrame,
    household_details: pd.DataFrame,
    nct_table: NctInput,
    intake_thresholds: pd.DataFrame,
    fortifiable_food_items: pd.DataFrame,
    config: AdequacyConfig
) -> None:
    """
    Check every input table for required columns before any computation

    Raises:
        SchemaError: Naming the first table with missing columns
    """
    validate_required_columns(consumption, REQUIRED_CONSUMPTION_COLUMNS, "householdConsumptionDf")
    validate_required_columns(
        household_details,
        REQUIRED_DETAILS_COLUMNS + [c for c in config.aggregation_group if c not in REQUIRED_DETAILS_COLUMNS],
        "householdDetailsDf",
    )

    nct_sources = [nct_table] if isinstance(nct_table, pd.DataFrame) else list(nct_table)
    for position, nct in enumerate(nct_sources):
        validate_required_columns(nct, required_nct_columns(nct), f"nctTable[{position}]")

    validate_required_columns(intake_thresholds, REQUIRED_THRESHOLD_COLUMNS, "intakeThresholdsDf")
    validate_required_columns(
        pd.DataFrame(fortifiable_food_items), FORTIFIABLE_FOOD_COLUMNS, "fortifiableFoodItemsDf"
    )


def enrich_consumption(
    consumption: pd.DataFrame,
    household_details: pd.DataFrame,
    master_nct: pd.DataFrame,
    vehicle_items: pd.DataFrame,
    aggregation_group: List[str],
    nutrients: List[str]
) -> pd.DataFrame:
    """
    Join household details, NCT and vehicle items onto consumption rows

    Raises:
        DataError: If household ids are duplicated in the details, or a
            consumption row references an unknown household or food
    """
    duplicated = household_details['householdId'].duplicated()
    if duplicated.any():
        raise DataError(
            f"householdDetailsDf has duplicate householdId values: "
            f"{', '.join(household_details.loc[duplicated, 'householdId'].astype(str).unique()[:10])}"
        )

    unknown_households = ~consumption['householdId'].isin(household_details['householdId'])
    if unknown_households.any():
        raise DataError(
            f"{int(unknown_households.sum())} consumption rows reference unknown households: "
            f"{', '.join(consumption.loc[unknown_households, 'householdId'].astype(str).unique()[:10])}"
        )

    unknown_foods = ~consumption['foodGenusId'].isin(master_nct['foodGenusId'])
    if unknown_foods.any():
        raise DataError(
            f"{int(unknown_foods.sum())} consumption rows reference foods missing from the NCT: "
            f"{', '.join(consumption.loc[unknown_foods, 'foodGenusId'].astype(str).unique()[:10])}"
        )

    detail_columns = list(dict.fromkeys(REQUIRED_DETAILS_COLUMNS + aggregation_group))

    enriched = (
        consumption[REQUIRED_CONSUMPTION_COLUMNS]
        .merge(household_details[detail_columns], on='householdId', how='left', validate='many_to_one')
        .merge(master_nct[['foodGenusId', 'afeFactor'] + nutrients], on='foodGenusId', how='left',
               validate='many_to_one')
        .merge(vehicle_items[FORTIFIABLE_FOOD_COLUMNS], left_on='foodGenusId', right_on='food_genus_id',
               how='left', validate='many_to_one')
        .drop(columns=['food_genus_id'])
    )

    logger.info(f"Enriched {len(enriched):,} consumption rows")
    return enriched


def order_summary_columns(summary: pd.DataFrame, aggregation_group: List[str]) -> pd.DataFrame:
    """Sort columns alphabetically, then put the group columns and householdsCount first"""
    front = list(aggregation_group) + [HOUSEHOLDS_COUNT]
    rest = [column for column in sorted(summary.columns) if column not in front]
    return summary[front + rest]


def compute_adequacy_summary(
    consumption: pd.DataFrame,
    household_details: pd.DataFrame,
    nct_table: NctInput,
    intake_thresholds: pd.DataFrame,
    fortifiable_food_items: pd.DataFrame,
    fortification_level: FortificationLevelFn,
    config: AdequacyConfig
) -> pd.DataFrame:
    """
    Baseline and post-fortification nutrient adequacy per administrative group

    Args:
        consumption: One row per (household, food) with householdId,
            foodGenusId and amountConsumedInG
        household_details: One row per household with householdId,
            memberCount and the aggregation group columns
        nct_table: Nutrient composition table(s), long or wide form
        intake_thresholds: nutrient, ear and ul columns
        fortifiable_food_items: food_genus_id, food_vehicle_name and
            fortifiable_portion columns
        fortification_level: Callable (vehicle, year, nutrient) -> mg/100 g,
            returning None when no level is defined
        config: Aggregation group, vehicle, years and nutrients of the run

    Returns:
        One row per group with householdsCount, vehicle reach, consumption
        statistics, mean/median baseline supply, and inadequacy/exceedance
        counts and percentages

    Raises:
        ArgumentError: On invalid config values
        SchemaError: On missing input columns
        DataError: On unresolved joins or degenerate AFE factors
    """
    if not isinstance(config, AdequacyConfig):
        raise ArgumentError(f"config must be an AdequacyConfig, got {type(config).__name__}")
    config.validate()

    group = list(config.aggregation_group)
    nutrients = list(config.nutrients)
    years = [int(year) for year in config.years]
    vehicle = config.food_vehicle_name

    validate_inputs(consumption, household_details, nct_table, intake_thresholds,
                    fortifiable_food_items, config)

    if len(consumption) == 0:
        raise DataError("householdConsumptionDf has no rows")

    logger.info(
        f"Computing adequacy for {len(nutrients)} nutrients, years {years}, "
        f"vehicle {vehicle!r}, grouped by {', '.join(group)}"
    )

    master_nct = build_master_nct(nct_table)
    missing_nutrients = find_missing_columns(master_nct, nutrients)
    if missing_nutrients:
        raise SchemaError("nctTable", missing_nutrients)

    vehicle_items = select_vehicle(build_fortifiable_food_items(fortifiable_food_items), vehicle)
    thresholds = get_thresholds(intake_thresholds, nutrients)

    enriched = enrich_consumption(consumption, household_details, master_nct, vehicle_items,
                                  group, nutrients)
    enriched = normalize_to_afe(enriched, nutrients)

    # Supply and adequacy per household
    item_supply = project_item_supply(enriched, nutrients, years, vehicle, fortification_level)
    household_supply = aggregate_household_supply(item_supply, enriched['householdId'])
    indicators = classify_adequacy(household_supply, thresholds, nutrients, years)

    # Group summaries
    consuming = household_details.loc[household_details['householdId'].isin(enriched['householdId'])]
    group_keys = build_group_keys(consuming, group)
    household_ids = pd.Index(enriched['householdId'].drop_duplicates(), name='householdId')

    base = households_count_summary(household_ids, group_keys, group)
    merged = merge_group_summaries(
        base,
        complete=[
            consumption_summary(enriched, group_keys, group),
            supply_summary(household_supply, household_ids, group_keys, group),
            indicator_summary(indicators, household_ids, group_keys, group),
        ],
        partial=[
            vehicle_reach_summary(enriched, group_keys, group),
            vehicle_consumption_summary(enriched, group_keys, group),
        ],
    )

    summary = add_percentages(merged).reset_index()
    summary = order_summary_columns(restore_group_labels(summary, consuming, group), group)

    logger.info(f"Summary: {len(summary)} groups, {len(summary.columns)} columns")
    return summary
