"""Player-facing text for attempt results."""

from __future__ import annotations

import re
from typing import Optional

from promptpal.core.levels import ChallengeType
from promptpal.core.scoring import Number, ScoreBreakdown

_SCORE_LABELS = {
    ChallengeType.IMAGE: "SIMILARITY SCORE",
    ChallengeType.COPYWRITING: "COPY SCORE",
    ChallengeType.CODE: "LOGIC VALIDATION",
}

_FENCED_BLOCK = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)


def _pct(value: Number) -> str:
    return f"{value:g}%"


def score_label(challenge_type: Optional[ChallengeType]) -> str:
    return _SCORE_LABELS.get(challenge_type, "LOGIC VALIDATION")


def failure_message(breakdown: ScoreBreakdown) -> str:
    """E.g. "Your score: 69% (Base: 85%, -16 from 2 hints). You need 75% to pass." """
    message = f"Your score: {_pct(breakdown.final_score)}"
    if breakdown.hints_used > 0:
        plural = "s" if breakdown.hints_used > 1 else ""
        message += (
            f" (Base: {_pct(breakdown.raw_score)}, -{breakdown.penalty_points:g}"
            f" from {breakdown.hints_used} hint{plural})"
        )
    return message + f". You need {_pct(breakdown.passing_score)} to pass."


def share_message(challenge_type: Optional[ChallengeType], score: Number) -> str:
    if challenge_type is ChallengeType.IMAGE:
        return f"I just scored {_pct(score)} similarity on an image challenge in PromptPal!"
    if challenge_type is ChallengeType.CODE:
        return f"I just passed a code challenge in PromptPal with a score of {_pct(score)}!"
    return f"I just completed a PromptPal challenge with a score of {_pct(score)}!"


def extract_code_from_markdown(text: str) -> str:
    """Body of the first fenced code block in ``text``, or the whole text when there is none."""
    match = _FENCED_BLOCK.search(text)
    if match is None:
        return text.strip()
    return match.group(1).strip()
