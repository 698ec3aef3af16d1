from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from promptpal.core.levels import Level

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_FILE = Path.home() / ".promptpal" / "progress.json"


@dataclass
class LevelProgress:
    best_score: float = 0.0
    attempts: int = 0
    completed: bool = False
    unlocked: bool = False


@dataclass
class LevelStatus:
    """Display state for a single level: progress plus unlock status."""

    level: Level
    unlocked: bool
    completed: bool
    best_score: float
    is_current: bool = False


class ProgressStore:
    """Lives and per-level progress. Persists to disk across app restarts.

    File: ~/.promptpal/progress.json by default. ``completed`` and ``unlocked``
    only ever go from False to True; the best score only ever rises. Updates
    are serialized so concurrent sessions cannot lose a read-modify-write.
    """

    def __init__(self, file_path: Optional[Path] = None, max_lives: int = 3) -> None:
        self._file_path = Path(file_path) if file_path is not None else DEFAULT_PROGRESS_FILE
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._max_lives = max_lives
        self._lock = threading.RLock()
        self._progress, self._lives = self._load()

    @property
    def max_lives(self) -> int:
        return self._max_lives

    def current_lives(self) -> int:
        return self._lives

    def get_level_progress(self, level_key: str) -> LevelProgress:
        current = self._progress.get(level_key, LevelProgress())
        return LevelProgress(**asdict(current))

    def is_unlocked(self, level_key: str) -> bool:
        return self._progress.get(level_key, LevelProgress()).unlocked

    def record_attempt(self, level_key: str, final_score: float, passed: bool) -> bool:
        """Count a scored attempt; on a pass mark the level completed and keep the best score.

        Returns True when ``final_score`` is a new best for the level.
        """
        with self._lock:
            current = self._progress.get(level_key, LevelProgress())
            current.attempts += 1
            new_best = False
            if passed:
                new_best = not current.completed or final_score > current.best_score
                current.completed = True
                current.unlocked = True
                current.best_score = max(current.best_score, float(final_score))
            self._progress[level_key] = current
            self._save()
        return new_best

    def unlock_level(self, level_key: str) -> bool:
        """Unlock a level. Returns True if it was locked before."""
        with self._lock:
            current = self._progress.get(level_key, LevelProgress())
            if current.unlocked:
                return False
            current.unlocked = True
            self._progress[level_key] = current
            self._save()
        logger.info("Unlocked level %s", level_key)
        return True

    def deduct_life(self) -> int:
        """Take one life, floored at 0. Returns the lives left."""
        with self._lock:
            self._lives = max(0, self._lives - 1)
            self._save()
            lives = self._lives
        if lives == 0:
            logger.info("Out of lives")
        return lives

    def refill_lives(self) -> None:
        with self._lock:
            self._lives = self._max_lives
            self._save()

    def level_statuses(self, levels: Iterable[Level], current_key: Optional[str] = None) -> List[LevelStatus]:
        """Unlock/completion view over ``levels`` in play order; the first level is always unlocked."""
        statuses: List[LevelStatus] = []
        for index, level in enumerate(levels):
            progress = self._progress.get(level.key, LevelProgress())
            statuses.append(
                LevelStatus(
                    level=level,
                    unlocked=index == 0 or progress.unlocked,
                    completed=progress.completed,
                    best_score=progress.best_score,
                    is_current=level.key == current_key,
                )
            )
        return statuses

    def reset_level(self, level_key: str) -> None:
        """Clear progress for a single level."""
        with self._lock:
            self._progress[level_key] = LevelProgress()
            self._save()

    def reset(self) -> None:
        """Clear all progress and restore full lives."""
        with self._lock:
            self._progress = {}
            self._lives = self._max_lives
            self._save()

    def save(self) -> None:
        """Persist current state to disk (e.g. on app exit)."""
        with self._lock:
            self._save()

    def _load(self) -> Tuple[Dict[str, LevelProgress], int]:
        progress: Dict[str, LevelProgress] = {}
        lives = self._max_lives
        if not self._file_path.exists():
            return progress, lives
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return progress, lives
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed progress file %s", self._file_path)
            return progress, lives

        levels = payload.get("levels", {})
        if isinstance(levels, dict):
            for key, value in levels.items():
                if not isinstance(value, dict):
                    continue
                progress[key] = LevelProgress(
                    best_score=float(value.get("best_score", 0.0)),
                    attempts=int(value.get("attempts", 0)),
                    completed=bool(value.get("completed", False)),
                    unlocked=bool(value.get("unlocked", False)),
                )
        stored_lives = payload.get("lives")
        if isinstance(stored_lives, int) and not isinstance(stored_lives, bool):
            lives = min(max(stored_lives, 0), self._max_lives)
        return progress, lives

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "levels": {key: asdict(value) for key, value in self._progress.items()},
            "lives": self._lives,
        }
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
