"""Session-level game manager tying the engines together for one challenge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Tuple

from . import detectors as detector_engine
from . import grid as grid_engine
from . import guidance
from . import placed as registry
from .challenge import Challenge
from .detectors import Detector
from .grid import Grid
from .guidance import GuidancePhase
from .patterns import Pattern, PatternKind, orient
from .placed import PlacedObject
from .scenarios import ScenarioReport, ScenarioValidator, stamp_setup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completion:
    completed: bool = False
    failed: bool = False
    needs_tests: bool = False
    test_based: bool = False
    message: str = ""


class PuzzleGame:
    """High level game manager handling ticks, placements and win conditions."""

    def __init__(
        self,
        challenge: Challenge,
        patterns: Mapping[str, Pattern],
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        self.challenge = challenge
        self.patterns = patterns
        self.width = width or challenge.width
        self.height = height or challenge.height
        self.placed_objects: List[PlacedObject] = []
        self.test_report: Optional[ScenarioReport] = None
        self.reset()

    @property
    def offsets(self) -> Tuple[int, int]:
        return grid_engine.center_offsets(self.width, self.height)

    def reset(self) -> None:
        """Return to generation 0, keeping objects placed before play started."""

        empty = grid_engine.create_empty(self.width, self.height)
        self.base_grid = stamp_setup(empty, self.challenge.setup, self.patterns)
        self.generation = 0
        self.placed_objects = [obj for obj in self.placed_objects if obj.generation == 0]
        self.grid = registry.apply_to_grid(self.base_grid, self.placed_objects)
        self.detectors: List[Detector] = self.challenge.grid_detectors(self.width, self.height)
        self.placed_objects = registry.refresh_integrity(
            self.placed_objects, self.grid, self.patterns
        )

    def clear(self) -> None:
        self.placed_objects = []
        self.test_report = None
        self.reset()

    def resize(self, width: int, height: int) -> None:
        """Change the viewport size, keeping the construction centred."""

        if (width, height) == (self.width, self.height):
            return
        dx = width // 2 - self.width // 2
        dy = height // 2 - self.height // 2
        self.width = width
        self.height = height
        self.placed_objects = [
            registry.move(obj, obj.grid_x + dx, obj.grid_y + dy) for obj in self.placed_objects
        ]
        self.grid = grid_engine.resize(self.grid, width, height)
        self.base_grid = grid_engine.resize(self.base_grid, width, height)
        self.detectors = [
            replace(detector, position=(detector.position[0] + dx, detector.position[1] + dy))
            for detector in self.detectors
        ]

    def is_editable(self, x: int, y: int, override_all: bool = False) -> bool:
        return grid_engine.is_editable_cell(
            x, y, self.challenge.editable_space, self.offsets, override_all
        )

    def _pattern(self, brush_id: str) -> Pattern:
        pattern = self.patterns.get(brush_id)
        if pattern is None:
            raise ValueError(f"Unknown brush: {brush_id}")
        return pattern

    def place(
        self,
        brush_id: str,
        x: int,
        y: int,
        rotation: int = 0,
        flip_x: bool = False,
        flip_y: bool = False,
        override_all: bool = False,
    ) -> Optional[PlacedObject]:
        """Drop a brush at grid position ``(x, y)``.

        Detector brushes add a detector and erasers clear cells; neither
        produces a placed object.
        """

        pattern = self._pattern(brush_id)
        oriented = orient(pattern, rotation, flip_x, flip_y)
        cells = [(x + dx, y + dy) for dy, dx in oriented.cells]
        if not all(self.is_editable(cx, cy, override_all) for cx, cy in cells):
            logger.warning("Placement of %s at (%s, %s) leaves the editable area", brush_id, x, y)
            return None

        if pattern.kind is PatternKind.DETECTOR:
            self.detectors = detector_engine.add_detector(self.detectors, oriented, (x, y))
            return None
        if pattern.kind is PatternKind.ERASER:
            self._erase(oriented, x, y)
            return None

        obj = registry.place(
            pattern, x, y, self.generation, rotation, flip_x, flip_y, source_id=brush_id
        )
        self.placed_objects.append(obj)
        self.grid = registry.apply_to_grid(self.grid, [obj])
        return obj

    def _erase(self, eraser: Pattern, x: int, y: int) -> None:
        erased = {(x + dx, y + dy) for dy, dx in eraser.cells}
        self.placed_objects = [
            obj for obj in self.placed_objects if not any(p in erased for p in obj.pixels)
        ]
        # Challenge detectors are fixed; only player detectors can be erased.
        fixed = [detector for detector in self.detectors if detector.is_challenge]
        player = [detector for detector in self.detectors if not detector.is_challenge]
        self.detectors = fixed + detector_engine.remove_detectors_at(player, (x, y), eraser.cells)
        self.grid = grid_engine.clear_cells(self.grid, erased)
        self.base_grid = grid_engine.clear_cells(self.base_grid, erased)
        self.placed_objects = registry.refresh_integrity(
            self.placed_objects, self.grid, self.patterns
        )

    def _replace_object(self, old: PlacedObject, new: Optional[PlacedObject]) -> None:
        index = self.placed_objects.index(old)
        if new is None:
            del self.placed_objects[index]
        else:
            self.placed_objects[index] = new
        if self.generation == 0:
            self.grid = registry.apply_to_grid(self.base_grid, self.placed_objects)
        else:
            self.grid = grid_engine.clear_cells(self.grid, old.pixels)
            if new is not None:
                self.grid = registry.apply_to_grid(self.grid, [new])
        self.placed_objects = registry.refresh_integrity(
            self.placed_objects, self.grid, self.patterns
        )

    def _object(self, object_id: str) -> PlacedObject:
        for obj in self.placed_objects:
            if obj.id == object_id:
                return obj
        raise ValueError(f"Unknown placed object: {object_id}")

    def move_object(self, object_id: str, x: int, y: int) -> PlacedObject:
        old = self._object(object_id)
        new = registry.move(old, x, y)
        self._replace_object(old, new)
        return self._object(object_id)

    def rotate_object(self, object_id: str, delta_degrees: int) -> PlacedObject:
        old = self._object(object_id)
        new = registry.rotate(old, delta_degrees)
        self._replace_object(old, new)
        return self._object(object_id)

    def erase_object(self, object_id: str) -> None:
        self._replace_object(self._object(object_id), None)

    def object_at(self, x: int, y: int) -> Optional[PlacedObject]:
        return registry.find_at(self.placed_objects, x, y)

    def step(self) -> Grid:
        """Advance one tick: grid, detectors, then placed-object integrity."""

        self.grid = grid_engine.step(self.grid)
        self.generation += 1
        self.detectors = detector_engine.update(self.detectors, self.grid, self.generation)
        self.placed_objects = registry.refresh_integrity(
            self.placed_objects, self.grid, self.patterns
        )
        return self.grid

    def run(self, ticks: Optional[int] = None) -> None:
        target = self.challenge.target_turn if ticks is None else self.generation + ticks
        while self.generation < target:
            self.step()

    def guidance_pixels(self) -> List[Tuple[int, int, GuidancePhase]]:
        lines = registry.visible_guidance_lines(self.placed_objects)
        return guidance.guidance_pixels(lines, self.generation, self.width, self.height)

    def construction(self) -> Optional[Grid]:
        """The generation-0 grid rebuilt from the setup and placed objects."""

        return registry.apply_to_grid(self.base_grid, self.placed_objects)

    def run_tests(self) -> ScenarioReport:
        validator = ScenarioValidator(self.challenge, self.patterns)
        self.test_report = validator.run_all(self.construction())
        return self.test_report

    def target_pattern_complete(self) -> bool:
        offset_x, offset_y = self.offsets
        return all(
            grid_engine.is_alive(self.grid, offset_x + dx, offset_y + dy)
            for dy, dx in self.challenge.pattern
        )

    def check_completion(self) -> Completion:
        target_turn = self.challenge.target_turn
        if self.generation < target_turn:
            return Completion()

        if self.challenge.has_test_scenarios:
            if self.test_report is None:
                return Completion(needs_tests=True)
            if self.test_report.all_passed:
                if self.generation == target_turn:
                    return Completion(completed=True, test_based=True)
                return Completion()
            return Completion(failed=True, test_based=True, message=self.test_report.message)

        complete = self.target_pattern_complete()
        if self.challenge.detectors:
            complete = complete and detector_engine.check_win_condition(self.detectors)
        if complete and self.generation == target_turn:
            return Completion(completed=True)
        if complete:
            return Completion()
        return Completion(failed=True)

    def playthrough(self) -> Dict[str, object]:
        self.run()
        completion = self.check_completion()
        return {
            "metadata": self.challenge.metadata,
            "generation": self.generation,
            "alive": grid_engine.count_alive(self.grid),
            "detectors": {
                str(detector.index): detector.label
                for detector in self.detectors
                if detector.index is not None
            },
            "completed": completion.completed,
            "failed": completion.failed,
        }
