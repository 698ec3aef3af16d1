"""AI proxy quota arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class CallCounts:
    text_calls: int = 0
    image_calls: int = 0


@dataclass(frozen=True)
class UsageStats:
    tier: str
    used: CallCounts
    limits: CallCounts
    period_start: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UsageStats":
        """Parse the proxy's ``/api/user/usage`` response body."""
        tier = payload.get("tier", "free")
        if tier not in ("free", "pro"):
            raise ValueError(f"unknown usage tier: {tier!r}")

        def _counts(raw: Any) -> CallCounts:
            raw = raw or {}
            return CallCounts(
                text_calls=int(raw.get("textCalls", 0)),
                image_calls=int(raw.get("imageCalls", 0)),
            )

        return cls(
            tier=tier,
            used=_counts(payload.get("used")),
            limits=_counts(payload.get("limits")),
            period_start=int(payload.get("periodStart", 0)),
        )

    def remaining_calls(self) -> Dict[str, int]:
        return {
            "text_calls": max(0, self.limits.text_calls - self.used.text_calls),
            "image_calls": max(0, self.limits.image_calls - self.used.image_calls),
        }

    def is_near_limit(self, threshold_percent: float = 80) -> bool:
        """True when either call type has used at least ``threshold_percent`` of its limit."""
        return (
            _percent(self.used.text_calls, self.limits.text_calls) >= threshold_percent
            or _percent(self.used.image_calls, self.limits.image_calls) >= threshold_percent
        )


def _percent(used: int, limit: int) -> float:
    # same as used / limit in the proxy client: 0/0 never counts as near the limit
    if limit <= 0:
        return float("inf") if used > 0 else float("nan")
    return used / limit * 100.0
