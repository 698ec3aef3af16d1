from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from promptpal.core.levels import Difficulty

Number = Union[int, float]

# Points deducted per revealed hint. Harder tiers deduct less since they
# legitimately need more help.
DEFAULT_PENALTY_PER_HINT: Dict[Difficulty, int] = {
    Difficulty.EASY: 8,
    Difficulty.MEDIUM: 6,
    Difficulty.HARD: 4,
    Difficulty.EXPERT: 3,
}

MIN_SCORE = 0
MAX_SCORE = 100


def _default_table() -> Dict[Difficulty, int]:
    return dict(DEFAULT_PENALTY_PER_HINT)


@dataclass(frozen=True)
class ScoringPolicy:
    """Hint penalty table, one entry per difficulty tier."""

    penalty_per_hint: Mapping[Difficulty, int] = field(default_factory=_default_table)

    def __post_init__(self) -> None:
        missing = [d.label for d in Difficulty if d not in self.penalty_per_hint]
        if missing:
            raise ValueError(f"penalty table missing tiers: {', '.join(missing)}")
        for difficulty, points in self.penalty_per_hint.items():
            if isinstance(points, bool) or not isinstance(points, int) or points < 0:
                raise ValueError(f"penalty for {difficulty.label} must be a non-negative integer, got {points!r}")
        object.__setattr__(self, "penalty_per_hint", MappingProxyType(dict(self.penalty_per_hint)))

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.penalty_per_hint.items())))

    def penalty_for(self, difficulty: Difficulty) -> int:
        return self.penalty_per_hint[Difficulty.parse(difficulty)]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ScoringPolicy":
        """Build a policy from ``{"easy": 8, ...}``; tiers not given keep their defaults."""
        table = _default_table()
        for name, points in raw.items():
            table[Difficulty.parse(name)] = points
        return cls(penalty_per_hint=table)


DEFAULT_POLICY = ScoringPolicy()


@dataclass(frozen=True)
class ScoreBreakdown:
    raw_score: Number
    passing_score: Number
    hints_used: int
    penalty_per_hint: int
    penalty_points: Number
    final_score: Number

    @property
    def passed(self) -> bool:
        return self.final_score >= self.passing_score


def _check_score(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ValueError(f"{name} must be within {MIN_SCORE}-{MAX_SCORE}, got {value!r}")


def compute_score(
    raw_score: Number,
    passing_score: Number,
    difficulty: Difficulty,
    hints_used: int,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> ScoreBreakdown:
    """Apply the hint penalty to an evaluator score.

    The penalty is capped at ``raw_score`` so it can zero a score but never
    push it negative, and with no hints the raw score is returned untouched.

    A raw score at or above ``passing_score`` can still fail once hints are
    deducted: hints have a real cost, and ``passed`` is judged on the final
    score only.
    """
    _check_score("raw_score", raw_score)
    _check_score("passing_score", passing_score)
    if isinstance(hints_used, bool) or not isinstance(hints_used, int) or hints_used < 0:
        raise ValueError(f"hints_used must be a non-negative integer, got {hints_used!r}")

    per_hint = policy.penalty_for(difficulty)
    if hints_used == 0:
        return ScoreBreakdown(
            raw_score=raw_score,
            passing_score=passing_score,
            hints_used=0,
            penalty_per_hint=per_hint,
            penalty_points=0,
            final_score=raw_score,
        )

    penalty_points = min(hints_used * per_hint, raw_score)
    final_score = min(max(raw_score - penalty_points, MIN_SCORE), MAX_SCORE)
    return ScoreBreakdown(
        raw_score=raw_score,
        passing_score=passing_score,
        hints_used=hints_used,
        penalty_per_hint=per_hint,
        penalty_points=penalty_points,
        final_score=final_score,
    )
