"""Detector state machine used as the win/lose oracle of a challenge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from . import config
from . import grid as grid_engine
from .grid import Grid
from .patterns import Pattern

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]  # (dy, dx)

ACTIVE = "active"
INACTIVE = "inactive"


class DetectorState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DECAYING = "decaying"


@dataclass(frozen=True)
class Detector:
    """A fixed group of cells reporting coverage with a falloff delay."""

    id: str
    pattern: Tuple[Cell, ...]
    position: Tuple[int, int]  # (x, y) of the pattern's top-left cell
    falloff_period: int = config.DEFAULT_FALLOFF_PERIOD
    current_value: int = 0
    activation_timer: int = 0
    last_covered_generation: int = -1
    initial_value: int = 0
    target_state: Optional[int] = None
    index: Optional[int] = None
    is_challenge: bool = False

    @property
    def state(self) -> DetectorState:
        if self.current_value == 0:
            return DetectorState.IDLE
        if self.activation_timer == self.falloff_period:
            return DetectorState.ACTIVE
        return DetectorState.DECAYING

    @property
    def label(self) -> str:
        return ACTIVE if self.current_value > 0 else INACTIVE

    def cells(self) -> List[Tuple[int, int]]:
        """Absolute ``(x, y)`` positions watched by the detector."""

        x, y = self.position
        return [(x + dx, y + dy) for dy, dx in self.pattern]


def is_fully_covered(detector: Detector, grid: Optional[Grid]) -> bool:
    if not detector.pattern or not grid:
        return False
    return all(grid_engine.is_alive(grid, x, y) for x, y in detector.cells())


def _advance(detector: Detector, covered: bool, generation: int) -> Detector:
    if covered:
        return replace(
            detector,
            current_value=1,
            activation_timer=detector.falloff_period,
            last_covered_generation=generation,
        )
    if detector.activation_timer > 0:
        return replace(
            detector,
            current_value=1,
            activation_timer=detector.activation_timer - 1,
        )
    return replace(detector, current_value=0, activation_timer=0)


def update(
    detectors: Sequence[Detector], grid: Optional[Grid], generation: int
) -> List[Detector]:
    """Return the detectors after observing ``grid`` at ``generation``.

    A covered detector is refreshed to a full timer.  An uncovered detector
    stays on while its timer, read before this tick's decrement, is positive.
    """

    if not grid_engine.is_valid(grid):
        logger.warning("Detector update skipped: grid is missing or malformed")
        return list(detectors)

    return [
        _advance(detector, is_fully_covered(detector, grid), generation)
        for detector in detectors
    ]


def initialize_states(
    detectors: Sequence[Detector], grid: Optional[Grid], generation: int = 0
) -> List[Detector]:
    """Activate detectors that are already covered when play starts."""

    result = []
    for detector in detectors:
        if is_fully_covered(detector, grid):
            detector = _advance(detector, True, generation)
        result.append(detector)
    return result


def check_win_condition(detectors: Iterable[Detector]) -> bool:
    return all(
        detector.current_value == detector.target_state
        for detector in detectors
        if detector.target_state is not None
    )


def target_state_of(record: Mapping[str, object]) -> int:
    # Older challenge files store the expected state under "direction".
    state = record.get("state") or record.get("direction")
    return 1 if state == ACTIVE else 0


def initialize_challenge_detectors(
    records: Iterable[Mapping[str, object]], falloff_period: Optional[int] = None
) -> List[Detector]:
    """Single-cell detectors from grid-absolute challenge records."""

    period = config.clamp_falloff(falloff_period)
    detectors = []
    for number, record in enumerate(records):
        index = record.get("index")
        detectors.append(
            Detector(
                id=f"challenge_detector_{number}",
                pattern=((0, 0),),
                position=(int(record["x"]), int(record["y"])),
                falloff_period=period,
                target_state=target_state_of(record),
                index=int(index) if index is not None else None,
                is_challenge=True,
            )
        )
    return detectors


def initialize_detectors(
    placed: Iterable[Tuple[Pattern, Tuple[int, int]]],
    falloff_period: Optional[int] = None,
    initial_value: int = 0,
) -> List[Detector]:
    """Detectors for detector patterns dropped by the player."""

    detectors: List[Detector] = []
    for pattern, position in placed:
        detectors = add_detector(detectors, pattern, position, falloff_period, initial_value)
    return detectors


def _next_detector_id(detectors: Iterable[Detector]) -> str:
    used = [
        int(detector.id.rsplit("_", 1)[1])
        for detector in detectors
        if detector.id.startswith("detector_") and detector.id.rsplit("_", 1)[1].isdigit()
    ]
    return f"detector_{max(used, default=-1) + 1}"


def add_detector(
    detectors: Sequence[Detector],
    pattern: Pattern,
    position: Tuple[int, int],
    falloff_period: Optional[int] = None,
    initial_value: int = 0,
) -> List[Detector]:
    if not pattern.is_detector:
        logger.debug("Adding non-detector pattern %s as a detector", pattern.name)
    period = falloff_period if falloff_period is not None else pattern.falloff_period
    detector = Detector(
        id=_next_detector_id(detectors),
        pattern=tuple(pattern.cells),
        position=(int(position[0]), int(position[1])),
        falloff_period=config.clamp_falloff(period),
        current_value=1 if initial_value else 0,
        initial_value=1 if initial_value else 0,
    )
    return [*detectors, detector]


def remove_detectors_at(
    detectors: Sequence[Detector],
    position: Tuple[int, int],
    erase_cells: Iterable[Cell],
) -> List[Detector]:
    """Drop detectors that overlap an eraser stamped at ``position``."""

    x, y = position
    erased = {(x + dx, y + dy) for dy, dx in erase_cells}
    return [
        detector
        for detector in detectors
        if not any(cell in erased for cell in detector.cells())
    ]


def find_by_index(detectors: Iterable[Detector], index: int) -> Optional[Detector]:
    for detector in detectors:
        if detector.index == index:
            return detector
    return None
