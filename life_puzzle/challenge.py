"""Challenge definitions and their JSON loader.

Coordinates inside a challenge are relative to the grid centre
(``floor(dimension / 2)``) and are converted to grid-absolute positions
only when an engine needs them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from . import config
from . import detectors as detector_engine
from .detectors import ACTIVE, INACTIVE, Detector
from .grid import EditableSpace, center_offsets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetupItem:
    """A brush stamped at a centre-relative position."""

    x: int
    y: int
    brush: str
    rotate: int = 0
    flip_x: bool = False
    flip_y: bool = False


@dataclass(frozen=True)
class ChallengeDetector:
    x: int
    y: int
    target_state: int = 0
    index: Optional[int] = None


@dataclass(frozen=True)
class ScenarioExpectation:
    """Expected detector state after a scenario has run."""

    index: int
    state: str = INACTIVE

    @property
    def key(self) -> str:
        return f"detector_{self.index}"


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str = ""
    setup: Tuple[SetupItem, ...] = ()
    detectors: Tuple[ScenarioExpectation, ...] = ()


@dataclass
class Challenge:
    """In-memory representation of a challenge definition."""

    id: str
    name: str
    width: int = config.DEFAULT_GRID_WIDTH
    height: int = config.DEFAULT_GRID_HEIGHT
    target_turn: int = config.DEFAULT_TARGET_TURN
    editable_space: Optional[EditableSpace] = None
    detectors: List[ChallengeDetector] = field(default_factory=list)
    detector_falloff_period: int = config.DEFAULT_FALLOFF_PERIOD
    setup: List[SetupItem] = field(default_factory=list)
    test_scenarios: List[Scenario] = field(default_factory=list)
    brushes: List[str] = field(default_factory=list)
    pattern: List[Tuple[int, int]] = field(default_factory=list)
    solution: List[SetupItem] = field(default_factory=list)
    description: str = ""

    @property
    def metadata(self) -> Dict[str, object]:
        metadata: Dict[str, object] = {
            "name": self.name,
            "dimensions": f"{self.width}x{self.height}",
            "target_turn": self.target_turn,
        }
        if self.detectors:
            metadata["detectors"] = len(self.detectors)
        if self.test_scenarios:
            metadata["test_scenarios"] = len(self.test_scenarios)
        return metadata

    @property
    def has_test_scenarios(self) -> bool:
        return bool(self.test_scenarios)

    def offsets(
        self, width: Optional[int] = None, height: Optional[int] = None
    ) -> Tuple[int, int]:
        return center_offsets(width or self.width, height or self.height)

    def grid_detectors(
        self, width: Optional[int] = None, height: Optional[int] = None
    ) -> List[Detector]:
        """Fresh detectors at grid-absolute positions for a grid of this size."""

        offset_x, offset_y = self.offsets(width, height)
        records = [
            {
                "x": offset_x + detector.x,
                "y": offset_y + detector.y,
                "state": ACTIVE if detector.target_state else INACTIVE,
                "index": detector.index,
            }
            for detector in self.detectors
        ]
        return detector_engine.initialize_challenge_detectors(
            records, self.detector_falloff_period
        )


def _parse_setup(items: Sequence[Mapping[str, object]]) -> List[SetupItem]:
    return [
        SetupItem(
            x=int(item["x"]),
            y=int(item["y"]),
            brush=str(item["brush"]),
            rotate=int(item.get("rotate", 0) or 0),
            flip_x=bool(item.get("flipX", False)),
            flip_y=bool(item.get("flipY", False)),
        )
        for item in items
    ]


def _parse_editable_space(data: Optional[Mapping[str, object]]) -> Optional[EditableSpace]:
    if not data:
        return None
    return EditableSpace(
        min_x=int(data["minX"]),
        max_x=int(data["maxX"]),
        min_y=int(data["minY"]),
        max_y=int(data["maxY"]),
    )


def _parse_scenario(data: Mapping[str, object]) -> Scenario:
    expectations = []
    for record in data.get("detectors", []):
        if record.get("index") is None:
            raise ValueError(f"Scenario detector without index in {data.get('name')!r}")
        expectations.append(
            ScenarioExpectation(
                index=int(record["index"]),
                state=ACTIVE if detector_engine.target_state_of(record) else INACTIVE,
            )
        )
    return Scenario(
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        setup=tuple(_parse_setup(data.get("setup", []))),
        detectors=tuple(expectations),
    )


def parse_challenge(data: Mapping[str, object], challenge_id: str = "") -> Challenge:
    """Build a challenge from its JSON record, applying defaults."""

    try:
        width = int(data.get("width") or config.DEFAULT_GRID_WIDTH)
        height = int(data.get("height") or config.DEFAULT_GRID_HEIGHT)
        target_turn = int(data.get("targetTurn") or config.DEFAULT_TARGET_TURN)
        detectors = []
        for record in data.get("detectors", []):
            index = record.get("index")
            detectors.append(
                ChallengeDetector(
                    x=int(record["x"]),
                    y=int(record["y"]),
                    target_state=detector_engine.target_state_of(record),
                    index=int(index) if index is not None else None,
                )
            )
        challenge = Challenge(
            id=str(challenge_id or data.get("id", "")),
            name=str(data.get("name") or f"{challenge_id}. Unknown"),
            width=width,
            height=height,
            target_turn=min(target_turn, config.MAX_TARGET_TURN),
            editable_space=_parse_editable_space(data.get("editableSpace")),
            detectors=detectors,
            detector_falloff_period=config.clamp_falloff(data.get("detectorFalloffPeriod")),
            setup=_parse_setup(data.get("setup", [])),
            test_scenarios=[_parse_scenario(item) for item in data.get("testScenarios", [])],
            brushes=[str(brush) for brush in data.get("brushes", [])],
            pattern=[(int(dy), int(dx)) for dy, dx in data.get("pattern", [])],
            solution=_parse_setup(data.get("solution", [])),
            description=str(data.get("description", "")),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed challenge {challenge_id!r}: {exc}") from exc

    if width <= 0 or height <= 0:
        raise ValueError(f"Challenge {challenge_id!r} has invalid size {width}x{height}")
    return challenge


class ChallengeLoader:
    """Load challenge files stored as JSON."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def load(self, challenge_id: str) -> Challenge:
        path = self.root / f"{challenge_id}.json"
        if not path.exists():
            raise FileNotFoundError(path)
        data = json.loads(path.read_text())
        return parse_challenge(data, str(challenge_id))

    def available(self) -> List[str]:
        """Challenge ids, numeric ids first and in numeric order."""

        stems = [path.stem for path in self.root.glob("*.json")]
        return sorted(stems, key=lambda stem: (not stem.isdigit(), int(stem) if stem.isdigit() else 0, stem))
