"""Exceptions raised by the PromptPal core."""

from __future__ import annotations


class PromptPalError(Exception):
    """Base class for all PromptPal core errors."""


class ValidationError(PromptPalError, ValueError):
    """User input rejected locally, before any remote call (e.g. empty prompt)."""


class EvaluatorError(PromptPalError):
    """The external evaluator failed, timed out or returned an unusable score.

    The attempt stays retryable: no life is deducted and no penalty applied.
    """


class UnknownLevelError(PromptPalError, LookupError):
    """The level id is not known to the level content provider."""

    def __init__(self, level_id: str) -> None:
        super().__init__(f"Level '{level_id}' not found")
        self.level_id = level_id


class StaleResponseDiscarded(PromptPalError):
    """An evaluator response arrived for an attempt that was already abandoned.

    Never surfaced to callers; ``ChallengeSession.submit`` drops it and returns None.
    """

    def __init__(self, generation: int, current: int) -> None:
        super().__init__(f"Response for attempt {generation} discarded (current attempt {current})")
        self.generation = generation
        self.current = current


class SessionStateError(PromptPalError):
    """Operation not allowed in the session's current state."""


class SubmissionInProgressError(SessionStateError):
    """A second submit was attempted while one is still awaiting the evaluator."""
