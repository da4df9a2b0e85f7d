"""Runtime configuration and shared constants for the puzzle engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Grid constraints
MIN_GRID_SIZE = 10
MAX_GRID_SIZE = 501
DEFAULT_GRID_WIDTH = 50
DEFAULT_GRID_HEIGHT = 50

# Challenge settings
DEFAULT_TARGET_TURN = 150
MAX_TARGET_TURN = 1000

# Detector settings
DEFAULT_FALLOFF_PERIOD = 10
MIN_FALLOFF_PERIOD = 1
MAX_FALLOFF_PERIOD = 100

# Number of generations a scenario run advances per host turn.
SCENARIO_BATCH_SIZE = 32

CHALLENGE_ENV_VAR = "LIFE_PUZZLE_CHALLENGE_ROOT"
PATTERN_ENV_VAR = "LIFE_PUZZLE_PATTERN_ROOT"
MAX_GRID_ENV_VAR = "LIFE_PUZZLE_MAX_GRID_SIZE"


def clamp_falloff(value: Optional[int]) -> int:
    try:
        period = int(value) if value is not None else DEFAULT_FALLOFF_PERIOD
    except (TypeError, ValueError):
        period = DEFAULT_FALLOFF_PERIOD
    return max(MIN_FALLOFF_PERIOD, min(MAX_FALLOFF_PERIOD, period))


def max_grid_size() -> int:
    """Return the allocation ceiling for grids, honouring the environment."""

    value = os.environ.get(MAX_GRID_ENV_VAR)
    if not value:
        return MAX_GRID_SIZE
    try:
        size = int(value)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", MAX_GRID_ENV_VAR, value)
        return MAX_GRID_SIZE
    if size <= 0:
        logger.warning("Ignoring non-positive %s=%r", MAX_GRID_ENV_VAR, value)
        return MAX_GRID_SIZE
    return size


@dataclass(frozen=True)
class DataDirectories:
    """Bundle with resolved directories for challenge and pattern files."""

    challenge_root: Path
    pattern_root: Path


def _default_challenge_root() -> Path:
    return Path(__file__).resolve().parent / "challenges"


def _default_pattern_root() -> Path:
    return Path(__file__).resolve().parent / "patterns"


def _read_directory(env_var: str, fallback: Path) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value).expanduser()
    return fallback


def resolve_directories(check_exists: bool = True) -> DataDirectories:
    """Resolve data directories using environment variables.

    Parameters
    ----------
    check_exists:
        When *True*, raise :class:`FileNotFoundError` if a resolved directory does
        not exist on disk.
    """

    challenge_root = _read_directory(CHALLENGE_ENV_VAR, _default_challenge_root())
    pattern_root = _read_directory(PATTERN_ENV_VAR, _default_pattern_root())

    if check_exists:
        missing = [path for path in (challenge_root, pattern_root) if not path.exists()]
        if missing:
            missing_str = ", ".join(str(path) for path in missing)
            raise FileNotFoundError(
                f"Required data directories do not exist: {missing_str}"
            )

    return DataDirectories(challenge_root=challenge_root, pattern_root=pattern_root)
