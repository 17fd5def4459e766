"""
Tests for outcome classification.

Four tiers in strict priority order: natural 8, meet-or-beat,
one short, and everything else.
"""

import pytest
from celtic_realm.rules.outcome import ChallengeOutcome, classify_outcome
from celtic_realm.state.schema import ChallengeCategory, OutcomeTier


class TestNaturalEight:
    """A natural 8 always succeeds exceptionally."""

    @pytest.mark.parametrize("total,difficulty", [(8, 20), (10, 3), (8, 8), (12, 0)])
    def test_natural_eight_ignores_difficulty(self, total, difficulty):
        """Difficulty and bonus do not matter on an 8."""
        assert classify_outcome(8, total, difficulty) == (OutcomeTier.SUCCESS, True)


class TestMargins:
    """Test the margin-based tiers."""

    def test_meeting_difficulty_is_plain_success(self):
        """total == d is a non-exceptional success."""
        assert classify_outcome(5, 7, 7) == (OutcomeTier.SUCCESS, False)

    def test_one_over_is_plain_success(self):
        """total == d + 1 is still non-exceptional."""
        assert classify_outcome(5, 8, 7) == (OutcomeTier.SUCCESS, False)

    def test_two_over_is_exceptional(self):
        """total == d + 2 is an exceptional success."""
        assert classify_outcome(5, 9, 7) == (OutcomeTier.SUCCESS, True)

    def test_one_short_is_partial(self):
        """total == d - 1 is a partial success."""
        assert classify_outcome(5, 6, 7) == (OutcomeTier.PARTIAL_SUCCESS, False)

    def test_two_short_is_plain_failure(self):
        """total == d - 2 is a non-exceptional failure."""
        assert classify_outcome(3, 5, 7) == (OutcomeTier.FAILURE, False)

    def test_three_short_is_exceptional_failure(self):
        """total == d - 3 is an exceptional failure."""
        assert classify_outcome(2, 4, 7) == (OutcomeTier.FAILURE, True)

    def test_far_short_is_exceptional_failure(self):
        """Anything further below stays exceptional."""
        assert classify_outcome(1, 1, 9) == (OutcomeTier.FAILURE, True)


class TestChallengeOutcome:
    """Test the outcome record."""

    def _outcome(self, result, exceptional, total=7, difficulty=7):
        return ChallengeOutcome(
            challenge_name="Wild Beasts",
            category=ChallengeCategory.PHYSICAL,
            result=result,
            exceptional=exceptional,
            roll=5,
            bonus_total=total - 5,
            total=total,
            difficulty=difficulty,
        )

    def test_narratives(self):
        """Each tier reads distinctly."""
        cases = [
            (OutcomeTier.SUCCESS, True, "exceptional success"),
            (OutcomeTier.SUCCESS, False, "success"),
            (OutcomeTier.PARTIAL_SUCCESS, False, "partial success"),
            (OutcomeTier.FAILURE, True, "exceptional failure"),
            (OutcomeTier.FAILURE, False, "failure"),
        ]
        for result, exceptional, expected in cases:
            assert self._outcome(result, exceptional).narrative == expected

    def test_margin(self):
        """Margin is total minus difficulty."""
        outcome = self._outcome(OutcomeTier.PARTIAL_SUCCESS, False, total=6, difficulty=7)
        assert outcome.margin == -1
        assert outcome.success is False

    def test_side_effects_default_empty(self):
        """A fresh outcome reports no side effects."""
        outcome = self._outcome(OutcomeTier.SUCCESS, False)
        assert outcome.resources_gained == []
        assert outcome.blessing_gained == 0
        assert outcome.threat_added == 0
