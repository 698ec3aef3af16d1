"""Tests for promptpal.core.scoring – hint penalty calculation."""

from __future__ import annotations

import pytest

from promptpal.core.levels import Difficulty
from promptpal.core.scoring import (
    DEFAULT_PENALTY_PER_HINT,
    DEFAULT_POLICY,
    ScoreBreakdown,
    ScoringPolicy,
    compute_score,
)


# ---------------------------------------------------------------------------
# ScoringPolicy
# ---------------------------------------------------------------------------

class TestScoringPolicy:
    def test_default_table(self):
        assert DEFAULT_POLICY.penalty_for(Difficulty.EASY) == 8
        assert DEFAULT_POLICY.penalty_for(Difficulty.MEDIUM) == 6
        assert DEFAULT_POLICY.penalty_for(Difficulty.HARD) == 4
        assert DEFAULT_POLICY.penalty_for(Difficulty.EXPERT) == 3

    def test_harder_tiers_cost_less_per_hint(self):
        ordered = [DEFAULT_PENALTY_PER_HINT[d] for d in sorted(Difficulty)]
        assert ordered == sorted(ordered, reverse=True)

    def test_accepts_difficulty_names(self):
        assert DEFAULT_POLICY.penalty_for("expert") == 3

    def test_from_mapping_overrides_some_tiers(self):
        policy = ScoringPolicy.from_mapping({"easy": 10})
        assert policy.penalty_for(Difficulty.EASY) == 10
        assert policy.penalty_for(Difficulty.HARD) == 4

    def test_from_mapping_does_not_mutate_defaults(self):
        ScoringPolicy.from_mapping({"easy": 1})
        assert DEFAULT_PENALTY_PER_HINT[Difficulty.EASY] == 8

    def test_missing_tier_rejected(self):
        with pytest.raises(ValueError, match="missing tiers"):
            ScoringPolicy(penalty_per_hint={Difficulty.EASY: 8})

    def test_negative_penalty_rejected(self):
        with pytest.raises(ValueError):
            ScoringPolicy.from_mapping({"medium": -1})

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError, match="unknown difficulty"):
            ScoringPolicy.from_mapping({"legendary": 1})

    def test_table_copied_on_construction(self):
        table = {d: 1 for d in Difficulty}
        policy = ScoringPolicy(penalty_per_hint=table)
        table[Difficulty.EASY] = -50
        assert policy.penalty_for(Difficulty.EASY) == 1
        b = compute_score(20, 10, Difficulty.EASY, 1, policy)
        assert b.final_score == 19
        assert b.final_score <= b.raw_score

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_POLICY.penalty_per_hint[Difficulty.EASY] = 99  # type: ignore[index]
        assert DEFAULT_POLICY.penalty_for(Difficulty.EASY) == 8

    def test_hashable(self):
        assert hash(ScoringPolicy()) == hash(DEFAULT_POLICY)
        assert ScoringPolicy() == DEFAULT_POLICY


# ---------------------------------------------------------------------------
# compute_score – documented scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_easy_two_hints(self):
        b = compute_score(90, 75, Difficulty.EASY, 2)
        assert b.penalty_per_hint == 8
        assert b.penalty_points == 16
        assert b.final_score == 74

    def test_expert_five_hints(self):
        b = compute_score(60, 50, Difficulty.EXPERT, 5)
        assert b.penalty_per_hint == 3
        assert b.penalty_points == 15
        assert b.final_score == 45

    def test_penalty_capped_at_raw_score(self):
        b = compute_score(20, 75, Difficulty.EASY, 10)
        assert b.penalty_points == 20  # not 80
        assert b.final_score == 0

    def test_hints_can_fail_a_raw_pass(self):
        b = compute_score(85, 75, Difficulty.EASY, 2)
        assert b.raw_score >= b.passing_score
        assert b.final_score == 69
        assert b.passed is False


# ---------------------------------------------------------------------------
# compute_score – properties
# ---------------------------------------------------------------------------

class TestProperties:
    @pytest.mark.parametrize("raw", [0, 1, 49.5, 75, 99, 100])
    def test_no_hints_returns_raw_exactly(self, raw):
        b = compute_score(raw, 50, Difficulty.MEDIUM, 0)
        assert b.final_score == raw
        assert b.penalty_points == 0

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_final_within_bounds_and_below_raw(self, difficulty):
        for raw in (0, 7, 33.3, 64, 100):
            for hints in range(0, 20):
                b = compute_score(raw, 50, difficulty, hints)
                assert 0 <= b.final_score <= 100
                assert b.final_score <= b.raw_score

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_non_increasing_in_hints(self, difficulty):
        finals = [compute_score(70, 50, difficulty, hints).final_score for hints in range(30)]
        assert all(a >= b for a, b in zip(finals, finals[1:]))

    def test_pass_on_exact_threshold(self):
        assert compute_score(75, 75, Difficulty.EASY, 0).passed is True

    def test_breakdown_is_immutable(self):
        b = compute_score(50, 50, Difficulty.EASY, 0)
        with pytest.raises(AttributeError):
            b.final_score = 100  # type: ignore[misc]

    def test_custom_policy(self):
        policy = ScoringPolicy.from_mapping({"hard": 10})
        b = compute_score(80, 50, Difficulty.HARD, 3, policy)
        assert b == ScoreBreakdown(
            raw_score=80,
            passing_score=50,
            hints_used=3,
            penalty_per_hint=10,
            penalty_points=30,
            final_score=50,
        )


# ---------------------------------------------------------------------------
# compute_score – invalid input
# ---------------------------------------------------------------------------

class TestInvalidInput:
    @pytest.mark.parametrize("raw", [-1, 100.5, "90", None, True])
    def test_bad_raw_score(self, raw):
        with pytest.raises(ValueError):
            compute_score(raw, 50, Difficulty.EASY, 0)

    @pytest.mark.parametrize("passing", [-5, 101])
    def test_bad_passing_score(self, passing):
        with pytest.raises(ValueError):
            compute_score(50, passing, Difficulty.EASY, 0)

    @pytest.mark.parametrize("hints", [-1, 1.5, False])
    def test_bad_hint_count(self, hints):
        with pytest.raises(ValueError):
            compute_score(50, 50, Difficulty.EASY, hints)
