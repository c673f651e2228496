"""
Shared pytest fixtures for the LSFF adequacy tests

All fixtures build small in-memory pandas tables so the tests run without
any data files.

Usage:
    pytest tests/ -v
"""

import pandas as pd
import pytest

from lsff_adequacy.settings import AdequacyConfig


# --- Input Table Fixtures ---

@pytest.fixture
def consumption():
    """
    H1 eats 100 g of wheat flour (F1); H2 eats 150 g of maize (F2).
    """
    return pd.DataFrame({
        'householdId': ['H1', 'H2'],
        'foodGenusId': ['F1', 'F2'],
        'amountConsumedInG': [100.0, 150.0],
    })


@pytest.fixture
def household_details():
    return pd.DataFrame({
        'householdId': ['H1', 'H2'],
        'memberCount': [4, 3],
        'admin0Name': ['X', 'X'],
        'admin1Name': ['X1', 'X2'],
    })


@pytest.fixture
def nct_long():
    """Long-form NCT: F1 has 50 units of A per 100 g, F2 has 10"""
    return pd.DataFrame({
        'foodGenusId': ['F1', 'F2'],
        'micronutrientId': ['A', 'A'],
        'micronutrientCompositionPer100g': [50.0, 10.0],
        'afeFactor': [2.0, 1.0],
    })


@pytest.fixture
def intake_thresholds():
    return pd.DataFrame({
        'nutrient': ['A', 'Zn'],
        'CND': [None, None],
        'ear': [20.0, 6.0],
        'ul': [100.0, None],
    })


@pytest.fixture
def fortifiable_food_items():
    return pd.DataFrame({
        'food_genus_id': ['F1', 'F3'],
        'food_vehicle_name': ['wheat flour', 'maize flour'],
        'fortifiable_portion': [100.0, 80.0],
    })


@pytest.fixture
def fortification_level():
    """10 mg/100 g of A in wheat flour in 2021 only"""
    levels = {('wheat flour', 2021, 'A'): 10.0}

    def lookup(vehicle, year, nutrient):
        return levels.get((vehicle, year, nutrient))

    return lookup


@pytest.fixture
def config():
    return AdequacyConfig(
        aggregation_group=['admin0Name'],
        food_vehicle_name='wheat flour',
        years=[2021],
        nutrients=['A'],
    )


@pytest.fixture
def pipeline_inputs(consumption, household_details, nct_long, intake_thresholds,
                    fortifiable_food_items, fortification_level, config):
    """Keyword arguments for compute_adequacy_summary"""
    return {
        'consumption': consumption,
        'household_details': household_details,
        'nct_table': nct_long,
        'intake_thresholds': intake_thresholds,
        'fortifiable_food_items': fortifiable_food_items,
        'fortification_level': fortification_level,
        'config': config,
    }
