from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LEVELS_DIR = Path(__file__).resolve().parent.parent / "data" / "levels"


class Difficulty(enum.IntEnum):
    """Difficulty tiers; the integer value gives the ordering easy < medium < hard < expert."""

    EASY = 1
    MEDIUM = 2
    HARD = 3
    EXPERT = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"unknown difficulty: {value!r}") from None


class ChallengeType(str, enum.Enum):
    IMAGE = "image"  # visual
    CODE = "code"  # logic
    COPYWRITING = "copywriting"  # textual


@dataclass(frozen=True)
class Level:
    """Fields shared by every challenge type. Scoring only reads these."""

    key: str
    title: str
    difficulty: Difficulty
    passing_score: int
    hints: Tuple[str, ...] = ()

    challenge_type: ClassVar[Optional[ChallengeType]] = None

    @property
    def hint_count(self) -> int:
        return len(self.hints)


@dataclass(frozen=True)
class ImageLevel(Level):
    challenge_type: ClassVar[Optional[ChallengeType]] = ChallengeType.IMAGE

    target_image: str = ""
    description: str = ""


@dataclass(frozen=True)
class CodeLevel(Level):
    challenge_type: ClassVar[Optional[ChallengeType]] = ChallengeType.CODE

    requirement: str = ""
    language: str = "python"
    test_cases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CopywritingLevel(Level):
    challenge_type: ClassVar[Optional[ChallengeType]] = ChallengeType.COPYWRITING

    brief: str = ""
    audience: str = ""
    metrics: Tuple[str, ...] = ()


def _string_list(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, list):
        return tuple(str(item).strip() for item in raw if str(item).strip())
    # allow a multiline string, one entry per line
    text = str(raw).strip()
    return tuple(line.strip() for line in text.splitlines() if line.strip())


def parse_level(key: str, raw: Any, name: Optional[str] = None) -> Level:
    """Build the level variant described by one YAML document."""
    name = name or key
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{name}: expected YAML mapping with 'title', 'type' and 'passing_score'")
    title = raw.get("title")
    if not title or not isinstance(title, str):
        raise ValueError(f"{name}: missing or invalid 'title'")
    try:
        challenge_type = ChallengeType(str(raw.get("type", "")).strip().lower())
    except ValueError:
        raise ValueError(f"{name}: invalid 'type' {raw.get('type')!r}") from None
    difficulty = Difficulty.parse(raw.get("difficulty", "easy"))
    passing_score = raw.get("passing_score")
    if isinstance(passing_score, bool) or not isinstance(passing_score, (int, float)):
        raise ValueError(f"{name}: missing or invalid 'passing_score'")
    if not 0 <= passing_score <= 100:
        raise ValueError(f"{name}: 'passing_score' must be within 0-100")

    common = dict(
        key=key,
        title=title.strip(),
        difficulty=difficulty,
        passing_score=int(passing_score),
        hints=_string_list(raw.get("hints")),
    )
    if challenge_type is ChallengeType.IMAGE:
        target = raw.get("target_image")
        if not target:
            raise ValueError(f"{name}: image level needs 'target_image'")
        return ImageLevel(
            target_image=str(target).strip(),
            description=str(raw.get("description", "")).strip(),
            **common,
        )
    if challenge_type is ChallengeType.CODE:
        requirement = raw.get("requirement")
        if not requirement:
            raise ValueError(f"{name}: code level needs 'requirement'")
        return CodeLevel(
            requirement=str(requirement).strip(),
            language=str(raw.get("language", "python")).strip(),
            test_cases=_string_list(raw.get("test_cases")),
            **common,
        )
    brief = raw.get("brief")
    if not brief:
        raise ValueError(f"{name}: copywriting level needs 'brief'")
    return CopywritingLevel(
        brief=str(brief).strip(),
        audience=str(raw.get("audience", "")).strip(),
        metrics=_string_list(raw.get("metrics")),
        **common,
    )


class LevelProvider(Protocol):
    """Read-only source of level content."""

    def get(self, key: str) -> Optional[Level]: ...

    def next_after(self, key: str) -> Optional[Level]: ...


class LevelRepository:
    """Immutable level content loaded from ``level*.yaml`` files."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else DEFAULT_LEVELS_DIR
        self._levels = self._load_levels()
        self._order: List[str] = list(self._levels)

    def all(self) -> List[Level]:
        return list(self._levels.values())

    def get(self, key: str) -> Optional[Level]:
        return self._levels.get(key)

    def first(self) -> Level:
        return self._levels[self._order[0]]

    def next_after(self, key: str) -> Optional[Level]:
        """Return the level following ``key`` in play order, or None for the last/unknown level."""
        try:
            index = self._order.index(key)
        except ValueError:
            return None
        if index + 1 >= len(self._order):
            return None
        return self._levels[self._order[index + 1]]

    def _load_levels(self) -> Dict[str, Level]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Levels directory not found: {base_dir}")

        levels: Dict[str, Level] = {}

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^level(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        for level_path in sorted(base_dir.glob("level*.yaml"), key=_sort_key):
            raw = yaml.safe_load(level_path.read_text(encoding="utf-8"))
            levels[level_path.stem] = parse_level(level_path.stem, raw, level_path.name)

        if not levels:
            raise ValueError(f"No level files (level*.yaml) found in {base_dir}")
        logger.debug("Loaded %d levels from %s", len(levels), base_dir)
        return levels
