"""
Tests for AFE normalization

Run: pytest tests/test_afe.py -v
"""

import numpy as np
import pandas as pd
import pytest

from lsff_adequacy.calculators.afe import normalize_to_afe
from lsff_adequacy.exceptions import DataError


@pytest.fixture
def enriched():
    return pd.DataFrame({
        'householdId': ['H1', 'H1', 'H2'],
        'foodGenusId': ['F1', 'F2', 'F1'],
        'amountConsumedInG': [100.0, 30.0, 7.5],
        'afeFactor': [2.0, 1.5, 2.0],
        'A': [50.0, 12.0, 50.0],
    })


class TestNormalizeToAfe:
    """Tests for converting consumption to an AFE basis"""

    def test_divides_nutrients_and_amounts(self, enriched):
        result = normalize_to_afe(enriched, ['A'])

        assert result['A'].tolist() == [25.0, 8.0, 25.0]
        assert result['amountConsumedInGAfe'].tolist() == [50.0, 20.0, 3.75]

    def test_afe_invariant(self, enriched):
        """amountConsumedInGAfe * afeFactor == amountConsumedInG for every row"""
        result = normalize_to_afe(enriched, ['A'])

        np.testing.assert_allclose(
            result['amountConsumedInGAfe'] * result['afeFactor'],
            result['amountConsumedInG'],
        )

    def test_input_not_modified(self, enriched):
        original = enriched.copy()
        normalize_to_afe(enriched, ['A'])
        pd.testing.assert_frame_equal(enriched, original)

    # --- Degenerate AFE factors ---

    @pytest.mark.parametrize('factor', [0.0, -1.0, np.nan])
    def test_degenerate_factor_raises(self, enriched, factor):
        enriched.loc[1, 'afeFactor'] = factor

        with pytest.raises(DataError, match='F2'):
            normalize_to_afe(enriched, ['A'])

    def test_degenerate_factor_without_amount_is_allowed(self, enriched):
        """Rows with no recorded amount cannot bias any sum"""
        enriched.loc[1, 'afeFactor'] = 0.0
        enriched.loc[1, 'amountConsumedInG'] = np.nan

        result = normalize_to_afe(enriched, ['A'])

        assert np.isnan(result.loc[1, 'amountConsumedInGAfe'])
        assert not np.isinf(result['A']).any()

    # --- Non-numeric values ---

    def test_unparseable_amount_raises(self, enriched):
        enriched['amountConsumedInG'] = ['100', 'abc', '7.5']

        with pytest.raises(DataError, match='amountConsumedInG') as excinfo:
            normalize_to_afe(enriched, ['A'])

        assert "H1/F2='abc'" in str(excinfo.value)

    def test_unparseable_nutrient_content_raises(self, enriched):
        enriched['A'] = [50.0, 'n/a', 50.0]

        with pytest.raises(DataError, match="H1/F2='n/a'"):
            normalize_to_afe(enriched, ['A'])

    def test_numeric_strings_are_parsed(self, enriched):
        enriched['amountConsumedInG'] = ['100', '30', '7.5']

        result = normalize_to_afe(enriched, ['A'])

        assert result['amountConsumedInGAfe'].tolist() == [50.0, 20.0, 3.75]

    def test_missing_nutrient_content_stays_missing(self, enriched):
        enriched.loc[0, 'A'] = np.nan

        result = normalize_to_afe(enriched, ['A'])

        assert np.isnan(result.loc[0, 'A'])
        assert result.loc[2, 'A'] == 25.0
