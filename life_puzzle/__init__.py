"""Life puzzle package."""

from .challenge import Challenge, ChallengeLoader
from .game import Completion, PuzzleGame
from .patterns import Pattern, PatternCatalog, PatternKind, PatternLoader
from .scenarios import ScenarioReport, ScenarioValidator

__all__ = [
    "Challenge",
    "ChallengeLoader",
    "Completion",
    "Pattern",
    "PatternCatalog",
    "PatternKind",
    "PatternLoader",
    "PuzzleGame",
    "ScenarioReport",
    "ScenarioValidator",
]
