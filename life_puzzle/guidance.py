"""Guidance lines: predicted glider trajectories drawn over the grid.

A guidance line is a ray from an origin cell along one of the eight compass
directions.  When several lines are visible, each is first traced on its
own; a line is then cut short where it would run along another line for at
least two consecutive cells and its origin is farther from that cell than
the other line's origin.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

INFINITE = "infinite"

Length = Union[int, str]
PathCell = Tuple[int, int]  # (y, x)


class Direction(Enum):
    """Compass directions as ``(dx, dy)`` vectors with y pointing down."""

    N = (0, -1)
    NE = (1, -1)
    E = (1, 0)
    SE = (1, 1)
    S = (0, 1)
    SW = (-1, 1)
    W = (-1, 0)
    NW = (-1, -1)

    @property
    def vector(self) -> Tuple[int, int]:
        return self.value

    @staticmethod
    def from_name(name: str) -> "Direction":
        name = str(name).upper()
        try:
            return Direction[name]
        except KeyError as exc:
            raise ValueError(f"Unknown direction: {name}") from exc

    @staticmethod
    def from_vector(dx: int, dy: int) -> "Direction":
        for direction in Direction:
            if direction.value == (dx, dy):
                return direction
        raise ValueError(f"Not a compass vector: {(dx, dy)}")

    def turn_right(self) -> "Direction":
        """Quarter turn clockwise: N -> E -> S -> W -> N."""

        dx, dy = self.value
        return Direction.from_vector(-dy, dx)

    def turn_left(self) -> "Direction":
        dx, dy = self.value
        return Direction.from_vector(dy, -dx)

    def reverse(self) -> "Direction":
        dx, dy = self.value
        return Direction.from_vector(-dx, -dy)

    def mirror_vertical(self) -> "Direction":
        """Mirror across the horizontal axis (rows flipped)."""

        dx, dy = self.value
        return Direction.from_vector(dx, -dy)

    def mirror_horizontal(self) -> "Direction":
        """Mirror across the vertical axis (columns flipped)."""

        dx, dy = self.value
        return Direction.from_vector(-dx, dy)

    def rotated(self, quarter_turns: int) -> "Direction":
        direction = self
        for _ in range(quarter_turns % 4):
            direction = direction.turn_right()
        return direction


class GuidancePhase(Enum):
    """Alternating colour bands along a guidance line."""

    A = "guidanceColor1"
    B = "guidanceColor2"


def _normalise_length(value: object) -> Length:
    if isinstance(value, str) and value.lower() == INFINITE:
        return INFINITE
    try:
        return int(value)
    except (TypeError, ValueError):
        return INFINITE


def _normalise_speed(value: object) -> int:
    try:
        speed = int(value)
    except (TypeError, ValueError):
        return 1
    return max(1, speed)


@dataclass(frozen=True)
class GuidanceSpec:
    """Guidance line attached to a pattern, relative to its top-left cell."""

    direction: Optional[Direction]
    start_x: int = 0
    start_y: int = 0
    length: Length = INFINITE
    speed: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "GuidanceSpec":
        raw_direction = data.get("direction")
        direction = Direction.from_name(raw_direction) if raw_direction else None
        return cls(
            direction=direction,
            start_x=int(data.get("startX", 0) or 0),
            start_y=int(data.get("startY", 0) or 0),
            length=_normalise_length(data.get("length", INFINITE)),
            speed=_normalise_speed(data.get("speed", 1)),
        )

    def mapped(
        self,
        point: Callable[[int, int], Tuple[int, int]],
        turn: Callable[[Direction], Direction],
    ) -> "GuidanceSpec":
        """Apply a point mapping ``(x, y) -> (x', y')`` and matching turn."""

        start_x, start_y = point(self.start_x, self.start_y)
        direction = turn(self.direction) if self.direction is not None else None
        return replace(self, direction=direction, start_x=start_x, start_y=start_y)

    def shifted(self, dx: int, dy: int) -> "GuidanceSpec":
        return replace(self, start_x=self.start_x + dx, start_y=self.start_y + dy)


def _new_line_id() -> str:
    return f"guidance_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class GuidanceLine:
    """Immutable guidance line placed on the grid."""

    generation: int
    origin_x: int
    origin_y: int
    direction: Direction
    length: Length = INFINITE
    speed: int = 1
    id: str = field(default_factory=_new_line_id)

    @property
    def origin(self) -> Tuple[int, int]:
        return self.origin_x, self.origin_y

    def is_visible(self, generation: int) -> bool:
        return self.generation <= generation

    def translated(self, dx: int, dy: int) -> "GuidanceLine":
        return replace(self, origin_x=self.origin_x + dx, origin_y=self.origin_y + dy)

    def rotated(self, quarter_turns: int) -> "GuidanceLine":
        return replace(self, direction=self.direction.rotated(quarter_turns))

    def path(self, grid_width: int, grid_height: int) -> List[PathCell]:
        return ray_path(self.origin, self.direction, self.length, grid_width, grid_height)


def infinite_length(grid_width: int, grid_height: int) -> int:
    return math.ceil(2 * math.hypot(grid_width, grid_height))


def ray_path(
    origin: Tuple[int, int],
    direction: Direction,
    length: Length,
    grid_width: int,
    grid_height: int,
) -> List[PathCell]:
    """Cells ``(y, x)`` visited from ``origin = (x, y)``, origin included."""

    steps = infinite_length(grid_width, grid_height) if length == INFINITE else int(length)
    dx, dy = direction.vector
    x, y = origin
    cells: List[PathCell] = []
    for _ in range(max(0, steps)):
        if not (0 <= x < grid_width and 0 <= y < grid_height):
            break
        cells.append((y, x))
        x += dx
        y += dy
    return cells


def color_phase(index: int, speed: int) -> GuidancePhase:
    if (index // max(1, speed)) % 2 == 0:
        return GuidancePhase.A
    return GuidancePhase.B


def create_from_brush_spec(
    spec: Optional[GuidanceSpec],
    generation: int,
    placement_x: int,
    placement_y: int,
) -> Optional[GuidanceLine]:
    if spec is None or spec.direction is None:
        return None
    return GuidanceLine(
        generation=generation,
        origin_x=placement_x + spec.start_x,
        origin_y=placement_y + spec.start_y,
        direction=spec.direction,
        length=spec.length,
        speed=spec.speed,
    )


def visible_lines(lines: Iterable[GuidanceLine], generation: int) -> List[GuidanceLine]:
    return [line for line in lines if line.is_visible(generation)]


def reset_lines(lines: Iterable[GuidanceLine]) -> List[GuidanceLine]:
    """Keep only lines present before the first generation."""

    return [line for line in lines if line.generation == 0]


def _squared_distance(cell: PathCell, origin: Tuple[int, int]) -> int:
    y, x = cell
    return (x - origin[0]) ** 2 + (y - origin[1]) ** 2


def truncated_paths(
    lines: Sequence[GuidanceLine], grid_width: int, grid_height: int
) -> List[List[PathCell]]:
    """Trace every line, cutting it where it collides with a nearer line.

    The result is aligned with ``lines``.  Equidistant collisions truncate the
    line whose id sorts later.
    """

    full_paths = [line.path(grid_width, grid_height) for line in lines]
    occupied = [set(path) for path in full_paths]
    rank = {
        index: position
        for position, index in enumerate(
            sorted(range(len(lines)), key=lambda i: (lines[i].id, i))
        )
    }

    result: List[List[PathCell]] = []
    for index, line in enumerate(lines):
        path = full_paths[index]
        cut = len(path)
        # The last cell has no successor, so it can never start a collision.
        for position in range(1, len(path) - 1):
            cell = path[position]
            following = path[position + 1]
            if _yields_at(index, line, cell, following, lines, occupied, rank):
                cut = position
                break
        result.append(path[:cut])
    return result


def _yields_at(
    index: int,
    line: GuidanceLine,
    cell: PathCell,
    following: PathCell,
    lines: Sequence[GuidanceLine],
    occupied: Sequence[set],
    rank: Dict[int, int],
) -> bool:
    own_distance = _squared_distance(cell, line.origin)
    for other_index, other in enumerate(lines):
        if other_index == index:
            continue
        cells = occupied[other_index]
        if cell not in cells or following not in cells:
            continue
        other_distance = _squared_distance(cell, other.origin)
        if own_distance > other_distance:
            return True
        if own_distance == other_distance and rank[index] > rank[other_index]:
            return True
    return False


def guidance_pixels(
    lines: Iterable[GuidanceLine],
    generation: int,
    grid_width: int,
    grid_height: int,
) -> List[Tuple[int, int, GuidancePhase]]:
    """Truncated, colour-phased pixels of every line visible at ``generation``."""

    shown = visible_lines(lines, generation)
    pixels: List[Tuple[int, int, GuidancePhase]] = []
    for line, path in zip(shown, truncated_paths(shown, grid_width, grid_height)):
        for position, (y, x) in enumerate(path):
            pixels.append((y, x, color_phase(position, line.speed)))
    return pixels
