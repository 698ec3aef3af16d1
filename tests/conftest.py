"""Pytest fixtures for PromptPal core tests."""

from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from promptpal.core.config import GameConfig
from promptpal.core.hints import HintLedger
from promptpal.core.levels import LevelRepository
from promptpal.core.progress import ProgressStore
from promptpal.core.session import ChallengeSession

LEVEL_FILES = {
    "level1.yaml": """
        title: Harbor Sunset
        type: image
        difficulty: easy
        passing_score: 75
        target_image: targets/harbor.png
        hints:
          - first
          - second
          - third
    """,
    "level2.yaml": """
        title: FizzBuzz
        type: code
        difficulty: medium
        passing_score: 80
        requirement: Write fizzbuzz(n).
        test_cases: [one, fifteen]
        hints:
          - name the function
          - give the return type
    """,
    "level3.yaml": """
        title: Coffee Launch
        type: copywriting
        difficulty: expert
        passing_score: 40
        brief: Announce a coffee shop.
        hints: [a, b, c, d, e, f]
    """,
}


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class FakeEvaluator:
    """Returns a fixed score (or raises) immediately."""

    def __init__(self, score: object = 90, error: Optional[BaseException] = None) -> None:
        self.score = score
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    async def evaluate(self, level_id: str, prompt: str):
        self.calls.append((level_id, prompt))
        if self.error is not None:
            raise self.error
        return self.score


class GatedEvaluator:
    """Blocks every call until ``release()``; scores are handed out in call order."""

    def __init__(self, *scores: object, error: Optional[BaseException] = None) -> None:
        self.scores = list(scores)
        self.error = error
        self.calls: List[Tuple[str, str]] = []
        self._gate: Optional[asyncio.Event] = None

    def _event(self) -> asyncio.Event:
        # created lazily so it binds to the running loop
        if self._gate is None:
            self._gate = asyncio.Event()
        return self._gate

    def release(self) -> None:
        self._event().set()

    async def evaluate(self, level_id: str, prompt: str):
        self.calls.append((level_id, prompt))
        index = len(self.calls) - 1
        await self._event().wait()
        if self.error is not None:
            raise self.error
        return self.scores[index]


async def settle() -> None:
    """Let freshly created tasks run up to their first real suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture()
def levels_dir(tmp_path: Path) -> Path:
    d = tmp_path / "levels"
    d.mkdir()
    for name, body in LEVEL_FILES.items():
        (d / name).write_text(textwrap.dedent(body), encoding="utf-8")
    return d


@pytest.fixture()
def levels(levels_dir: Path) -> LevelRepository:
    return LevelRepository(levels_dir)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ledger(levels: LevelRepository, clock: FakeClock) -> HintLedger:
    return HintLedger(levels, clock=clock)


@pytest.fixture()
def store(tmp_path: Path) -> ProgressStore:
    """ProgressStore backed by a temp file so tests don't touch ~/.promptpal."""
    return ProgressStore(tmp_path / "progress.json", max_lives=3)


@pytest.fixture()
def make_session(
    levels: LevelRepository, ledger: HintLedger, store: ProgressStore
) -> Callable[..., ChallengeSession]:
    def _make(level_id: str, evaluator, config: Optional[GameConfig] = None) -> ChallengeSession:
        return ChallengeSession(
            level_id,
            levels=levels,
            ledger=ledger,
            progress=store,
            evaluator=evaluator,
            config=config,
        )

    return _make
