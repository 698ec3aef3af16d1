from __future__ import annotations

import logging
from typing import Dict, List, Optional

from promptpal.core.config import GameConfig
from promptpal.core.errors import UnknownLevelError
from promptpal.core.hints import HintLedger
from promptpal.core.levels import LevelRepository
from promptpal.core.progress import LevelStatus, ProgressStore
from promptpal.core.session import ChallengeSession, Evaluator

logger = logging.getLogger(__name__)


class Game:
    """Owns the level content, hint ledger and progress store for one player.

    A UI holds one ``Game`` and asks it for a ``ChallengeSession`` whenever a
    level is entered; entering a level again abandons the previous attempt.
    """

    def __init__(
        self,
        levels: LevelRepository,
        progress: ProgressStore,
        evaluator: Evaluator,
        config: Optional[GameConfig] = None,
    ) -> None:
        self.levels = levels
        self.progress = progress
        if config is None:
            config = GameConfig(max_lives=progress.max_lives)
        elif config.max_lives != progress.max_lives:
            raise ValueError(
                f"config allows {config.max_lives} lives but the progress store was built for {progress.max_lives}"
            )
        self.config = config
        self.ledger = HintLedger(levels)
        self._evaluator = evaluator
        self._sessions: Dict[str, ChallengeSession] = {}

    def start_level(self, level_id: str) -> ChallengeSession:
        """Enter a level with a fresh attempt."""
        if self.levels.get(level_id) is None:
            raise UnknownLevelError(level_id)
        session = self._sessions.get(level_id)
        if session is not None:
            session.reset()
            return session
        session = ChallengeSession(
            level_id,
            levels=self.levels,
            ledger=self.ledger,
            progress=self.progress,
            evaluator=self._evaluator,
            config=self.config,
        )
        self._sessions[level_id] = session
        return session

    def leave_level(self, level_id: str) -> None:
        session = self._sessions.pop(level_id, None)
        if session is not None:
            session.teardown()

    def level_statuses(self, current_key: Optional[str] = None) -> List[LevelStatus]:
        return self.progress.level_statuses(self.levels.all(), current_key=current_key)

    def is_out_of_lives(self) -> bool:
        return self.progress.current_lives() == 0

    def restart(self) -> None:
        """Refill lives after running out; level progress is kept."""
        logger.info("Refilling lives to %d", self.progress.max_lives)
        self.progress.refill_lives()

    def teardown(self) -> None:
        for level_id in list(self._sessions):
            self.leave_level(level_id)
        self.ledger.clear()
        self.progress.save()
