"""Grade a player's construction by replaying a challenge's test scenarios."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import config
from . import detectors as detector_engine
from . import grid as grid_engine
from .challenge import Challenge, Scenario, SetupItem
from .detectors import Detector
from .grid import Grid
from .patterns import Pattern, orient

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"


class ScenarioPhase(Enum):
    IDLE = "idle"
    SETUP = "setup"
    RUNNING = "running"
    VALIDATING = "validating"
    REPORTING = "reporting"


@dataclass(frozen=True)
class DetectorResult:
    expected: str
    actual: str

    @property
    def passed(self) -> bool:
        return self.expected == self.actual


@dataclass
class ScenarioResult:
    name: str
    details: Dict[str, DetectorResult] = field(default_factory=dict)
    description: str = ""

    @property
    def passed(self) -> bool:
        return all(detail.passed for detail in self.details.values())

    @property
    def message(self) -> str:
        if self.passed:
            return self.description or "Test scenario passed!"
        failures = [
            f"Detector {key.split('_', 1)[1]}: expected {detail.expected}, got {detail.actual}"
            for key, detail in self.details.items()
            if not detail.passed
        ]
        return f"Test scenario failed: {', '.join(failures)}"


@dataclass
class ScenarioReport:
    scenarios: List[ScenarioResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return all(result.passed for result in self.scenarios)

    @property
    def message(self) -> str:
        passed = sum(1 for result in self.scenarios if result.passed)
        return f"{passed}/{len(self.scenarios)} test scenarios passed"


def stamp_setup(
    grid: Optional[Grid],
    items: Iterable[SetupItem],
    patterns: Mapping[str, Pattern],
) -> Optional[Grid]:
    """Stamp centre-relative setup items onto a copy of ``grid``.

    Unknown brushes are skipped with a warning so the rest of the setup
    still applies.
    """

    width, height = grid_engine.dimensions(grid)
    offsets = grid_engine.center_offsets(width, height)
    working = grid_engine.copy_grid(grid)
    for item in items:
        source = patterns.get(item.brush)
        if source is None:
            logger.warning("Setup brush %r not found; nothing stamped", item.brush)
            continue
        oriented = orient(source, item.rotate, item.flip_x, item.flip_y)
        x, y = grid_engine.to_grid_coords(item.x, item.y, offsets)
        working, placed = grid_engine.stamp(working, oriented.cells, x, y)
        logger.debug(
            "Placed %s/%s cells for brush %r at (%s, %s)",
            placed,
            len(oriented.cells),
            item.brush,
            x,
            y,
        )
    return working


class ScenarioRun:
    """Fast-forward of one scenario that a host may advance in chunks.

    Advancing in one call or in many produces the same final state.
    Abandoning a run before :attr:`done` exposes nothing.
    """

    def __init__(self, grid: Optional[Grid], detectors: Sequence[Detector], generations: int):
        self.grid = grid
        self.detectors: List[Detector] = list(detectors)
        self.target = max(0, int(generations))
        self.generation = 0

    @property
    def done(self) -> bool:
        return self.generation >= self.target

    def advance(self, count: int = config.SCENARIO_BATCH_SIZE) -> int:
        processed = 0
        while processed < count and not self.done:
            self.grid = grid_engine.step(self.grid)
            self.generation += 1
            self.detectors = detector_engine.update(self.detectors, self.grid, self.generation)
            processed += 1
        return processed

    def finish(self) -> Tuple[Optional[Grid], List[Detector]]:
        while not self.done:
            self.advance(self.target - self.generation)
        return self.grid, list(self.detectors)


def validate(scenario: Scenario, detectors: Sequence[Detector]) -> ScenarioResult:
    """Compare detector states to the scenario's expectations, by index."""

    result = ScenarioResult(name=scenario.name, description=scenario.description)
    for expectation in scenario.detectors:
        detector = detector_engine.find_by_index(detectors, expectation.index)
        actual = detector.label if detector is not None else NOT_FOUND
        result.details[expectation.key] = DetectorResult(
            expected=expectation.state, actual=actual
        )
    return result


class ScenarioValidator:
    """Run a challenge's scenarios one after another on a shared snapshot."""

    def __init__(
        self,
        challenge: Challenge,
        patterns: Mapping[str, Pattern],
        generations: Optional[int] = None,
        batch_size: int = config.SCENARIO_BATCH_SIZE,
    ):
        self.challenge = challenge
        self.patterns = patterns
        self.generations = challenge.target_turn if generations is None else generations
        self.batch_size = max(1, int(batch_size))
        self.phase = ScenarioPhase.IDLE
        self.grid: Optional[Grid] = None
        self._snapshot: Optional[Grid] = None

    def load_snapshot(self, grid: Optional[Grid]) -> None:
        """Keep the construction every scenario starts from.

        Detectors are not part of the snapshot: each scenario clones fresh ones
        from the challenge.
        """

        self._snapshot = grid_engine.copy_grid(grid)
        self._restore()

    def _restore(self) -> None:
        self.grid = grid_engine.copy_grid(self._snapshot)

    def start(self, scenario: Scenario) -> ScenarioRun:
        """Setup phase: stamp the scenario and clone the challenge detectors."""

        self.phase = ScenarioPhase.SETUP
        width, height = grid_engine.dimensions(self.grid)
        working = stamp_setup(self.grid, scenario.setup, self.patterns)
        detectors = self.challenge.grid_detectors(width or None, height or None)
        logger.debug(
            "Scenario %r set up with %s live cells and %s detectors",
            scenario.name,
            grid_engine.count_alive(working),
            len(detectors),
        )
        self.phase = ScenarioPhase.RUNNING
        return ScenarioRun(working, detectors, self.generations)

    def complete(self, scenario: Scenario, run: ScenarioRun) -> ScenarioResult:
        """Validate a finished run, then restore the pre-scenario snapshot."""

        _, detectors = run.finish()
        self.phase = ScenarioPhase.VALIDATING
        result = validate(scenario, detectors)
        self.phase = ScenarioPhase.REPORTING
        logger.info(
            "Scenario %r %s", scenario.name, "passed" if result.passed else "failed"
        )
        self._restore()
        return result

    def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        run = self.start(scenario)
        while not run.done:
            run.advance(self.batch_size)
        return self.complete(scenario, run)

    def run_all(self, grid: Optional[Grid]) -> ScenarioReport:
        self.load_snapshot(grid)
        report = ScenarioReport()
        for scenario in self.challenge.test_scenarios:
            report.scenarios.append(self.run_scenario(scenario))
        self.phase = ScenarioPhase.IDLE
        return report
