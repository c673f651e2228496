"""
Tests for master NCT and fortifiable food item construction

Run: pytest tests/test_processors.py -v
"""

import numpy as np
import pandas as pd
import pytest

from lsff_adequacy.exceptions import DataError, SchemaError
from lsff_adequacy.processors.fortifiable_foods import (
    build_fortifiable_food_items,
    select_vehicle,
)
from lsff_adequacy.processors.master_nct import build_master_nct


@pytest.fixture
def long_nct():
    return pd.DataFrame({
        'foodGenusId': ['F1', 'F1', 'F2'],
        'micronutrientId': ['A', 'Zn', 'A'],
        'micronutrientCompositionPer100g': [50.0, 1.5, 10.0],
        'afeFactor': [2.0, 2.0, 1.0],
    })


class TestBuildMasterNct:
    """Tests for combining composition tables"""

    def test_pivots_long_table(self, long_nct):
        master = build_master_nct(long_nct).set_index('foodGenusId')

        assert set(master.columns) == {'afeFactor', 'A', 'Zn'}
        assert master.loc['F1', 'A'] == 50.0
        assert master.loc['F1', 'Zn'] == 1.5
        assert master.loc['F2', 'afeFactor'] == 1.0
        assert np.isnan(master.loc['F2', 'Zn'])

    def test_wide_table_passes_through(self):
        wide = pd.DataFrame({'foodGenusId': ['F1'], 'afeFactor': [2.0], 'A': [50.0]})

        master = build_master_nct(wide)

        assert master.to_dict('records') == [{'foodGenusId': 'F1', 'afeFactor': 2.0, 'A': 50.0}]

    def test_earlier_source_wins(self, long_nct):
        fallback = pd.DataFrame({
            'foodGenusId': ['F1', 'F2', 'F3'],
            'afeFactor': [9.0, 9.0, 3.0],
            'A': [999.0, np.nan, 7.0],
            'Zn': [999.0, 4.0, 0.5],
        })

        master = build_master_nct([long_nct, fallback]).set_index('foodGenusId')

        assert master.loc['F1', 'A'] == 50.0
        assert master.loc['F1', 'afeFactor'] == 2.0
        # Gaps are filled from the fallback source
        assert master.loc['F2', 'Zn'] == 4.0
        assert master.loc['F3', 'A'] == 7.0

    def test_duplicate_food_nutrient_rows_raise(self, long_nct):
        with pytest.raises(DataError):
            build_master_nct(pd.concat([long_nct, long_nct.iloc[:1]]))

    def test_conflicting_afe_factors_raise(self, long_nct):
        long_nct.loc[1, 'afeFactor'] = 3.0

        with pytest.raises(DataError, match='F1'):
            build_master_nct(long_nct)

    def test_missing_columns_raise(self, long_nct):
        with pytest.raises(SchemaError):
            build_master_nct(long_nct.drop(columns=['micronutrientCompositionPer100g']))

    def test_empty_list_raises(self):
        with pytest.raises(DataError):
            build_master_nct([])


@pytest.fixture
def items():
    return pd.DataFrame({
        'food_genus_id': ['F1', 'F2', 'F2'],
        'food_vehicle_name': ['wheat flour', 'wheat flour', 'wheat flour'],
        'fortifiable_portion': ['100', 60, 60],
    })


class TestFortifiableFoodItems:
    """Tests for the fortifiable food items table"""

    def test_normalizes_portion_and_drops_duplicates(self, items):
        table = build_fortifiable_food_items(items)

        assert table['fortifiable_portion'].tolist() == [100.0, 60.0]

    def test_accepts_records(self):
        table = build_fortifiable_food_items([
            {'food_genus_id': 'F1', 'food_vehicle_name': 'wheat flour', 'fortifiable_portion': 100},
        ])
        assert len(table) == 1

    @pytest.mark.parametrize('portion', [-1, 101, 'n/a'])
    def test_portion_out_of_range_raises(self, items, portion):
        items.loc[0, 'fortifiable_portion'] = portion

        with pytest.raises(DataError, match='F1'):
            build_fortifiable_food_items(items)

    def test_conflicting_portions_raise(self, items):
        items.loc[2, 'fortifiable_portion'] = 80

        with pytest.raises(DataError, match='F2'):
            build_fortifiable_food_items(items)

    def test_same_food_in_two_vehicles(self, items):
        items.loc[2, 'food_vehicle_name'] = 'maize flour'

        table = build_fortifiable_food_items(items)

        assert len(select_vehicle(table, 'wheat flour')) == 2
        assert len(select_vehicle(table, 'maize flour')) == 1

    def test_unknown_vehicle_is_empty(self, items):
        assert select_vehicle(build_fortifiable_food_items(items), 'rice').empty

    def test_missing_columns_raise(self, items):
        with pytest.raises(SchemaError):
            build_fortifiable_food_items(items.drop(columns=['food_vehicle_name']))
