"""
tests/test_scoring.py
Confidence arithmetic and completeness rules.
"""

from itertools import product

import pytest

from dhansetu.features.sms.schemas import MessageCategory
from dhansetu.features.sms.scoring import (
    CONFIDENCE_WEIGHTS,
    assess,
    find_missing_fields,
    score_confidence,
)


class TestScoreConfidence:

    def test_all_signals_is_one(self):
        assert score_confidence(True, True, True, True, True) == 1.0

    def test_no_signals_is_zero(self):
        assert score_confidence(False, False, False, False, False) == 0.0

    def test_every_combination_is_the_documented_sum(self):
        weights = [0.40, 0.30, 0.10, 0.10, 0.10]
        for flags in product([True, False], repeat=5):
            expected = round(sum(w for w, on in zip(weights, flags) if on), 2)
            score = score_confidence(*flags)
            assert score == expected
            assert 0.0 <= score <= 1.0

    def test_weights_sum_to_one(self):
        assert round(sum(CONFIDENCE_WEIGHTS.values()), 2) == 1.0


class TestMissingFields:

    @pytest.mark.parametrize("category", [MessageCategory.CREDIT_CARD, MessageCategory.UPI])
    def test_merchant_expected_for_card_and_upi(self, category):
        assert find_missing_fields(category, None, "food") == ["merchant"]

    @pytest.mark.parametrize("category", [
        MessageCategory.BANK_ACCOUNT, MessageCategory.WALLET, MessageCategory.UNKNOWN,
    ])
    def test_merchant_not_expected_elsewhere(self, category):
        assert find_missing_fields(category, None, "food") == []

    def test_category_missing_without_suggestion(self):
        assert find_missing_fields(MessageCategory.BANK_ACCOUNT, None, None) == ["category"]

    def test_order_is_merchant_then_category(self):
        assert find_missing_fields(MessageCategory.UPI, None, None) == ["merchant", "category"]

    def test_nothing_missing(self):
        assert find_missing_fields(MessageCategory.CREDIT_CARD, "Amazon", "shopping") == []


class TestAssess:

    def test_threshold_is_exclusive(self):
        result = assess(0.70, [], 0.70)
        assert result.needs_review is False
        assert result.requires_user_input is False

    def test_below_threshold_needs_review(self):
        result = assess(0.69, [], 0.70)
        assert result.needs_review is True
        assert result.requires_user_input is True

    def test_missing_fields_require_input_even_when_confident(self):
        result = assess(1.0, ["category"], 0.70)
        assert result.needs_review is False
        assert result.requires_user_input is True
