"""
Unit tests — points formulas in ``core.services.RewardCalculatorService``.

No database access; these are pure functions.
"""

from __future__ import annotations

import random

import pytest

from core.constants import COLLECT_REWARD_MAX, COLLECT_REWARD_MIN
from core.services import RewardCalculatorService


class TestEstimatedValuePoints:

    @pytest.mark.parametrize(
        "estimated_value,expected",
        [
            ("Approximately 1000-2000 KSH", 150),
            ("500-1000", 75),
            ("KSH 15-20 per kg", 1),      # mean 17.5 rounds to 18
            ("99-100", 10),               # mean 99.5 rounds half-up to 100
            ("5-6", 0),
            ("100-200 and later 5000-9000", 15),  # first pair wins
        ],
    )
    def test_parses_first_range(self, estimated_value, expected):
        assert RewardCalculatorService.compute_points_from_estimated_value(estimated_value) == expected

    @pytest.mark.parametrize("estimated_value", [None, "", "about 1000 KSH", "priceless"])
    def test_missing_or_malformed_value_yields_zero(self, estimated_value):
        assert RewardCalculatorService.compute_points_from_estimated_value(estimated_value) == 0

    def test_range_arithmetic(self):
        assert RewardCalculatorService.compute_points_from_range(1000, 2000) == 150
        assert RewardCalculatorService.compute_points_from_range(0, 0) == 0

    def test_reversed_range_is_not_validated(self):
        assert RewardCalculatorService.compute_points_from_range(2000, 1000) == 150


class TestCollectionReward:

    def test_reward_within_bounds(self):
        rng = random.Random(1234)
        rolls = {RewardCalculatorService.roll_collection_reward(rng) for _ in range(500)}
        assert min(rolls) >= COLLECT_REWARD_MIN
        assert max(rolls) <= COLLECT_REWARD_MAX
        assert (COLLECT_REWARD_MIN, COLLECT_REWARD_MAX) == (10, 59)

    def test_default_rng(self):
        assert COLLECT_REWARD_MIN <= RewardCalculatorService.roll_collection_reward() <= COLLECT_REWARD_MAX


class TestVerificationAcceptance:

    def test_accepts_both_matches_above_threshold(self):
        assert RewardCalculatorService.is_verification_accepted(
            type_match=True, quantity_match=True, confidence=0.85,
        )

    def test_threshold_is_strict(self):
        assert not RewardCalculatorService.is_verification_accepted(
            type_match=True, quantity_match=True, confidence=0.7,
        )

    @pytest.mark.parametrize("type_match,quantity_match", [(True, False), (False, True), (False, False)])
    def test_any_mismatch_rejects(self, type_match, quantity_match):
        assert not RewardCalculatorService.is_verification_accepted(
            type_match=type_match, quantity_match=quantity_match, confidence=0.99,
        )
