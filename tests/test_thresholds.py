"""
Tests for threshold and fortification level lookups

Run: pytest tests/test_thresholds.py -v
"""

import pandas as pd
import pytest

from lsff_adequacy.calculators.thresholds import (
    FortificationLevelLookup,
    get_threshold,
    get_thresholds,
    year_average_fortification_level,
)
from lsff_adequacy.exceptions import ArgumentError, DataError, SchemaError


class TestGetThreshold:
    """Tests for single EAR/UL lookups"""

    def test_returns_ear(self, intake_thresholds):
        assert get_threshold(intake_thresholds, 'A', 'ear') == 20.0

    def test_returns_ul(self, intake_thresholds):
        assert get_threshold(intake_thresholds, 'A', 'ul') == 100.0

    def test_missing_value_is_none(self, intake_thresholds):
        """A stored NaN is reported as None, not NaN"""
        assert get_threshold(intake_thresholds, 'Zn', 'ul') is None

    def test_unknown_nutrient_is_none(self, intake_thresholds):
        """Unknown nutrients never raise"""
        assert get_threshold(intake_thresholds, 'Se', 'ear') is None

    def test_missing_threshold_column_is_none(self):
        thresholds = pd.DataFrame({'nutrient': ['A'], 'ear': [20.0]})
        assert get_threshold(thresholds, 'A', 'ul') is None

    def test_numeric_strings_are_converted(self):
        thresholds = pd.DataFrame({'nutrient': ['A'], 'ear': ['490'], 'ul': ['NA']})
        assert get_threshold(thresholds, 'A', 'ear') == 490.0
        assert get_threshold(thresholds, 'A', 'ul') is None

    def test_invalid_kind_raises(self, intake_thresholds):
        with pytest.raises(ArgumentError):
            get_threshold(intake_thresholds, 'A', 'rda')

    def test_duplicate_rows_raise(self):
        thresholds = pd.DataFrame({'nutrient': ['A', 'A'], 'ear': [20.0, 25.0], 'ul': [None, None]})
        with pytest.raises(DataError):
            get_threshold(thresholds, 'A', 'ear')


class TestGetThresholds:
    """Tests for resolving thresholds of a nutrient list"""

    def test_resolves_every_nutrient(self, intake_thresholds):
        resolved = get_thresholds(intake_thresholds, ['A', 'Zn', 'Se'])

        assert resolved['A'].ear == 20.0
        assert resolved['A'].ul == 100.0
        assert resolved['Zn'].ear == 6.0
        assert resolved['Zn'].ul is None
        assert resolved['Se'].ear is None and resolved['Se'].ul is None


@pytest.fixture
def levels():
    return pd.DataFrame({
        'food_vehicle_name': ['wheat flour', 'wheat flour', 'wheat flour', 'maize flour'],
        'year': [2021, 2021, 2022, 2021],
        'nutrient': ['A', 'A', 'A', 'A'],
        'fortification_level': [10.0, 20.0, 5.0, 99.0],
    })


class TestFortificationLevels:
    """Tests for year-average fortification levels"""

    def test_averages_matching_rows(self, levels):
        assert year_average_fortification_level(levels, 'wheat flour', 2021, 'A') == 15.0

    def test_filters_by_vehicle_and_year(self, levels):
        assert year_average_fortification_level(levels, 'wheat flour', 2022, 'A') == 5.0
        assert year_average_fortification_level(levels, 'maize flour', 2021, 'A') == 99.0

    def test_no_match_is_none(self, levels):
        assert year_average_fortification_level(levels, 'wheat flour', 2030, 'A') is None
        assert year_average_fortification_level(levels, 'wheat flour', 2021, 'Zn') is None

    def test_lookup_is_callable(self, levels):
        lookup = FortificationLevelLookup(levels)
        assert lookup('wheat flour', 2021, 'A') == 15.0
        assert lookup('rice', 2021, 'A') is None

    def test_lookup_accepts_string_years(self, levels):
        """Years read from CSV files may arrive as text"""
        lookup = FortificationLevelLookup(levels.assign(year=levels['year'].astype(str)))
        assert lookup('wheat flour', 2022, 'A') == 5.0

    def test_lookup_requires_columns(self, levels):
        with pytest.raises(SchemaError):
            FortificationLevelLookup(levels.drop(columns=['fortification_level']))
