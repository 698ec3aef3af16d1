from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from promptpal.core.config import GameConfig
from promptpal.core.errors import (
    EvaluatorError,
    SessionStateError,
    StaleResponseDiscarded,
    SubmissionInProgressError,
    UnknownLevelError,
    ValidationError,
)
from promptpal.core.hints import HintLedger
from promptpal.core.levels import Level, LevelProvider
from promptpal.core.progress import ProgressStore
from promptpal.core.scoring import MAX_SCORE, MIN_SCORE, Number, ScoreBreakdown, compute_score

logger = logging.getLogger(__name__)


class Evaluator(Protocol):
    """External AI evaluator scoring a prompt against a level's target (0-100)."""

    async def evaluate(self, level_id: str, prompt: str) -> Number: ...


class SessionState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SCORED = "scored"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one scored attempt and what it did to progress."""

    breakdown: ScoreBreakdown
    lives_remaining: int
    new_best: bool = False
    unlocked_level: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.breakdown.passed

    @property
    def out_of_lives(self) -> bool:
        return not self.passed and self.lives_remaining == 0


class ChallengeSession:
    """Drives one level attempt: Idle -> Submitting -> Scored -> Passed | Failed.

    Only one submit may be in flight. Every ``reset()`` starts a new attempt
    generation, and an evaluator response that comes back for an older
    generation is discarded without touching progress.

    Hint usage is read when the evaluator responds, not when the prompt is
    sent: hints revealed while waiting for the score count against the
    attempt.
    """

    def __init__(
        self,
        level_id: str,
        levels: LevelProvider,
        ledger: HintLedger,
        progress: ProgressStore,
        evaluator: Evaluator,
        config: Optional[GameConfig] = None,
    ) -> None:
        self._level_id = level_id
        self._levels = levels
        self._ledger = ledger
        self._progress = progress
        self._evaluator = evaluator
        self._config = config or GameConfig()
        self._level: Optional[Level] = None
        self._state = SessionState.IDLE
        self._generation = 0
        self._last_outcome: Optional[AttemptOutcome] = None
        self.reset()

    @property
    def level(self) -> Optional[Level]:
        return self._level

    @property
    def level_id(self) -> str:
        return self._level_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_outcome(self) -> Optional[AttemptOutcome]:
        return self._last_outcome

    @property
    def hints_used(self) -> int:
        return self._ledger.usage_count(self._level_id)

    def reset(self) -> None:
        """Begin a new attempt (level entry or retry), clearing the hint ledger."""
        level = self._levels.get(self._level_id)
        if level is None:
            raise UnknownLevelError(self._level_id)
        self._level = level
        self._generation += 1
        self._ledger.reset(level.key)
        self._state = SessionState.IDLE
        self._last_outcome = None
        logger.debug("Level %s attempt %d started", level.key, self._generation)

    def teardown(self) -> None:
        """Abandon the session. Any in-flight response is discarded; ``reset()`` reopens it."""
        self._generation += 1
        self._ledger.discard(self._level_id)
        self._level = None
        self._state = SessionState.IDLE

    def reveal_hint(self) -> Optional[str]:
        """Reveal the next hint for this level, or None when none remain."""
        level = self._require_level()
        index = self._ledger.reveal_next(level.key)
        if index is None:
            return None
        return level.hints[index]

    async def submit(self, prompt: str) -> Optional[AttemptOutcome]:
        """Score ``prompt`` and apply the outcome to progress.

        Returns None if the attempt was reset or torn down while the evaluator
        was working. Evaluator errors propagate; the session then returns to
        Idle so the player can retry without losing a life.
        """
        if self._state is SessionState.SUBMITTING:
            raise SubmissionInProgressError(f"level {self._level_id}: a prompt is already being scored")
        if self._state is not SessionState.IDLE:
            raise SessionStateError(f"level {self._level_id}: attempt already {self._state.value}, reset to retry")
        level = self._require_level()
        text = (prompt or "").strip()
        if not text:
            raise ValidationError("Please enter a prompt")

        generation = self._generation
        self._state = SessionState.SUBMITTING
        try:
            raw_score = await self._evaluate(level.key, text)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._state = SessionState.IDLE
            raise
        except Exception as e:
            if generation != self._generation:
                logger.info("Ignoring evaluator failure for abandoned attempt %d: %s", generation, e)
                return None
            self._state = SessionState.IDLE
            logger.warning("Evaluator failed for level %s: %s", level.key, e)
            raise

        try:
            self._check_generation(generation)
        except StaleResponseDiscarded as e:
            logger.info("%s", e)
            return None
        return self._apply(level, raw_score)

    async def _evaluate(self, level_id: str, prompt: str) -> Number:
        timeout = self._config.evaluator_timeout
        try:
            raw_score = await asyncio.wait_for(self._evaluator.evaluate(level_id, prompt), timeout=timeout)
        except asyncio.TimeoutError:
            raise EvaluatorError(f"evaluator timed out after {timeout:g}s") from None
        if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)):
            raise EvaluatorError(f"evaluator returned a non-numeric score: {raw_score!r}")
        if not MIN_SCORE <= raw_score <= MAX_SCORE:
            raise EvaluatorError(f"evaluator returned an out-of-range score: {raw_score!r}")
        return raw_score

    def _apply(self, level: Level, raw_score: Number) -> AttemptOutcome:
        hints_used = self._ledger.usage_count(level.key)
        breakdown = compute_score(
            raw_score,
            level.passing_score,
            level.difficulty,
            hints_used,
            self._config.scoring,
        )
        self._state = SessionState.SCORED

        if breakdown.passed:
            self._state = SessionState.PASSED
            new_best = self._progress.record_attempt(level.key, breakdown.final_score, passed=True)
            unlocked = None
            next_level = self._levels.next_after(level.key)
            if next_level is not None and self._progress.unlock_level(next_level.key):
                unlocked = next_level.key
            outcome = AttemptOutcome(
                breakdown=breakdown,
                lives_remaining=self._progress.current_lives(),
                new_best=new_best,
                unlocked_level=unlocked,
            )
        else:
            self._state = SessionState.FAILED
            self._progress.record_attempt(level.key, breakdown.final_score, passed=False)
            outcome = AttemptOutcome(breakdown=breakdown, lives_remaining=self._progress.deduct_life())

        logger.info(
            "Level %s %s: raw %s, %d hint(s), final %s (need %s)",
            level.key,
            self._state.value,
            breakdown.raw_score,
            breakdown.hints_used,
            breakdown.final_score,
            breakdown.passing_score,
        )
        self._last_outcome = outcome
        return outcome

    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleResponseDiscarded(generation, self._generation)

    def _require_level(self) -> Level:
        if self._level is None:
            raise SessionStateError(f"level {self._level_id}: session was torn down, reset to start again")
        return self._level
