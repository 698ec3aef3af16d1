from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from promptpal.core.levels import LevelProvider

logger = logging.getLogger(__name__)


@dataclass
class HintUsageRecord:
    """Hints revealed during one level attempt, as (index, reveal timestamp) pairs."""

    level_id: str
    total_hints: int
    revealed: List[Tuple[int, float]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.revealed)

    def is_exhausted(self) -> bool:
        return self.count >= self.total_hints


class HintLedger:
    """Tracks progressive hint disclosure per level attempt.

    Hints are revealed in ascending order; hint N assumes hints 0..N-1 were
    already shown. Levels that were never reset (or are unknown to the
    provider) report zero usage rather than raising.
    """

    def __init__(self, levels: LevelProvider, clock: Callable[[], float] = time.time) -> None:
        self._levels = levels
        self._clock = clock
        self._records: Dict[str, HintUsageRecord] = {}

    def reset(self, level_id: str) -> None:
        """Start a clean slate for a new attempt at ``level_id``.

        Calling this mid-attempt forfeits the attempt's penalty history.
        """
        level = self._levels.get(level_id)
        if level is None:
            self._records.pop(level_id, None)
            logger.debug("Hint reset for unknown level %s ignored", level_id)
            return
        self._records[level_id] = HintUsageRecord(level_id=level_id, total_hints=level.hint_count)

    def reveal_next(self, level_id: str) -> Optional[int]:
        """Reveal and return the next hint index, or None when none remain."""
        record = self._records.get(level_id)
        if record is None or record.is_exhausted():
            return None
        index = record.count
        record.revealed.append((index, self._clock()))
        logger.info("Revealed hint %d/%d for level %s", index + 1, record.total_hints, level_id)
        return index

    def usage_count(self, level_id: str) -> int:
        record = self._records.get(level_id)
        return record.count if record is not None else 0

    def revealed_hints(self, level_id: str) -> List[str]:
        """Texts of the hints revealed so far, in disclosure order."""
        record = self._records.get(level_id)
        level = self._levels.get(level_id)
        if record is None or level is None:
            return []
        return [level.hints[index] for index, _ in record.revealed]

    def record(self, level_id: str) -> Optional[HintUsageRecord]:
        return self._records.get(level_id)

    def discard(self, level_id: str) -> None:
        self._records.pop(level_id, None)

    def clear(self) -> None:
        self._records.clear()
