"""
LSFF Adequacy
Pre and post fortification micronutrient adequacy

A toolkit for estimating, per administrative group and nutrient, the share
of households whose AFE-normalized nutrient supply falls below the EAR or
exceeds the UL, at baseline and under projected large-scale food
fortification.
"""

__version__ = "0.1.0"

from .calculators.thresholds import (
    FortificationLevelLookup,
    get_threshold,
    year_average_fortification_level,
)
from .exceptions import ArgumentError, DataError, LSFFAdequacyError, SchemaError
from .pipeline import compute_adequacy_summary
from .processors.fortifiable_foods import build_fortifiable_food_items
from .processors.master_nct import build_master_nct
from .settings import AdequacyConfig, load_config

__all__ = [
    "compute_adequacy_summary",
    "AdequacyConfig",
    "load_config",
    "get_threshold",
    "year_average_fortification_level",
    "FortificationLevelLookup",
    "build_master_nct",
    "build_fortifiable_food_items",
    "LSFFAdequacyError",
    "SchemaError",
    "ArgumentError",
    "DataError",
]
