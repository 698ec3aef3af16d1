from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from promptpal.core.scoring import DEFAULT_POLICY, ScoringPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "data" / "config.yaml"
USER_CONFIG_FILE = Path.home() / ".promptpal" / "config.yaml"


@dataclass(frozen=True)
class GameConfig:
    """Game rules: lives, evaluator timeout and the hint penalty table."""

    max_lives: int = 3
    evaluator_timeout: float = 30.0
    scoring: ScoringPolicy = field(default=DEFAULT_POLICY)

    def __post_init__(self) -> None:
        if isinstance(self.max_lives, bool) or not isinstance(self.max_lives, int) or self.max_lives < 1:
            raise ValueError(f"max_lives must be a positive integer, got {self.max_lives!r}")
        if isinstance(self.evaluator_timeout, bool) or not isinstance(self.evaluator_timeout, (int, float)):
            raise ValueError(f"evaluator_timeout must be a number, got {self.evaluator_timeout!r}")
        if self.evaluator_timeout <= 0:
            raise ValueError("evaluator_timeout must be positive")

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> "GameConfig":
        lives = raw.get("lives", {}) or {}
        evaluator = raw.get("evaluator", {}) or {}
        penalties = raw.get("hint_penalties", {}) or {}
        if not all(isinstance(section, dict) for section in (lives, evaluator, penalties)):
            raise ValueError("'lives', 'evaluator' and 'hint_penalties' must be mappings")
        return cls(
            max_lives=lives.get("max", cls.max_lives),
            evaluator_timeout=evaluator.get("timeout_seconds", cls.evaluator_timeout),
            scoring=ScoringPolicy.from_mapping(penalties),
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "GameConfig":
        """Read the packaged defaults, overlaid by ``path`` (or ~/.promptpal/config.yaml if present)."""
        merged = _read_yaml(DEFAULT_CONFIG_FILE)
        override_path = Path(path) if path is not None else USER_CONFIG_FILE
        if path is not None and not override_path.exists():
            raise FileNotFoundError(f"Config file not found: {override_path}")
        if override_path.exists():
            logger.info("Loading config overrides from %s", override_path)
            for section, values in _read_yaml(override_path).items():
                if isinstance(values, dict) and isinstance(merged.get(section), dict):
                    merged[section] = {**merged[section], **values}
                else:
                    merged[section] = values
        return cls.from_mapping(merged)


def _read_yaml(path: Path) -> Dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected a YAML mapping")
    return raw
