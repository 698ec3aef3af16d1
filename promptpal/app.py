"""Entry point for host applications embedding the PromptPal core."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from promptpal.core.config import GameConfig
from promptpal.core.game import Game
from promptpal.core.levels import LevelRepository
from promptpal.core.progress import ProgressStore
from promptpal.core.session import Evaluator


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_game(
    evaluator: Evaluator,
    config_path: Optional[Path] = None,
    levels_dir: Optional[Path] = None,
    progress_file: Optional[Path] = None,
) -> Game:
    """Load config, levels and saved progress, and wire them to ``evaluator``."""
    config = GameConfig.load(config_path)
    levels = LevelRepository(levels_dir)
    progress_store = ProgressStore(progress_file, max_lives=config.max_lives)
    logging.getLogger(__name__).info(
        "Loaded %d levels, %d/%d lives",
        len(levels.all()),
        progress_store.current_lives(),
        progress_store.max_lives,
    )
    return Game(levels, progress_store, evaluator, config=config)
