"""Registry of player-placed patterns and their guidance lines.

A placed object binds the cells stamped by one brush drop to the guidance
lines that brush predicts.  Both are always derived from the same oriented
pattern, so moving or rotating an object carries its lines along with it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from . import grid as grid_engine
from .guidance import GuidanceLine, create_from_brush_spec
from .grid import Grid
from .patterns import Pattern, orient, quarter_turns

logger = logging.getLogger(__name__)

Pixel = Tuple[int, int]  # (x, y)


def _new_object_id() -> str:
    return f"placed_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class PlacedObject:
    source_pattern_id: str
    grid_x: int
    grid_y: int
    pixels: Tuple[Pixel, ...]
    guidance_lines: Tuple[GuidanceLine, ...] = ()
    rotation: int = 0
    flip_x: bool = False
    flip_y: bool = False
    intact: bool = True
    generation: int = 0
    id: str = field(default_factory=_new_object_id)

    def covers(self, x: int, y: int) -> bool:
        return (x, y) in self.pixels


def place(
    source: Pattern,
    x: int,
    y: int,
    generation: int = 0,
    rotation: int = 0,
    flip_x: bool = False,
    flip_y: bool = False,
    source_id: Optional[str] = None,
) -> PlacedObject:
    """Drop ``source`` with its top-left cell at ``(x, y)``."""

    oriented = orient(source, rotation, flip_x, flip_y)
    pixels = tuple((x + dx, y + dy) for dy, dx in oriented.cells)
    lines = []
    for spec in oriented.guidance:
        line = create_from_brush_spec(spec, generation, x, y)
        if line is not None:
            lines.append(line)
    return PlacedObject(
        source_pattern_id=source_id or source.name,
        grid_x=x,
        grid_y=y,
        pixels=pixels,
        guidance_lines=tuple(lines),
        rotation=int(rotation) % 360,
        flip_x=flip_x,
        flip_y=flip_y,
        generation=generation,
    )


def with_position(obj: PlacedObject, x: int, y: int) -> PlacedObject:
    dx = x - obj.grid_x
    dy = y - obj.grid_y
    return replace(
        obj,
        grid_x=x,
        grid_y=y,
        pixels=tuple((px + dx, py + dy) for px, py in obj.pixels),
        guidance_lines=tuple(line.translated(dx, dy) for line in obj.guidance_lines),
    )


def move(obj: PlacedObject, new_x: int, new_y: int) -> PlacedObject:
    return with_position(obj, new_x, new_y)


def rotate(obj: PlacedObject, delta_degrees: int) -> PlacedObject:
    """Rotate cells and line origins about the placement point.

    Each clockwise quarter turn maps an offset ``(x, y)`` to ``(-y, x)``;
    the result is re-anchored so its top-left cell sits on the placement
    point again, exactly as a fresh placement at the new rotation would be.
    """

    turns = quarter_turns(delta_degrees)
    rotation = (obj.rotation + int(delta_degrees)) % 360
    if turns == 0:
        return replace(obj, rotation=rotation)

    offsets = [(px - obj.grid_x, py - obj.grid_y) for px, py in obj.pixels]
    origins = [
        (line.origin_x - obj.grid_x, line.origin_y - obj.grid_y)
        for line in obj.guidance_lines
    ]
    for _ in range(turns):
        offsets = [(-oy, ox) for ox, oy in offsets]
        origins = [(-oy, ox) for ox, oy in origins]

    shift_x = -min((ox for ox, _ in offsets), default=0)
    shift_y = -min((oy for _, oy in offsets), default=0)

    pixels = tuple(
        (obj.grid_x + ox + shift_x, obj.grid_y + oy + shift_y) for ox, oy in offsets
    )
    lines = tuple(
        replace(
            line.rotated(turns),
            origin_x=obj.grid_x + ox + shift_x,
            origin_y=obj.grid_y + oy + shift_y,
        )
        for line, (ox, oy) in zip(obj.guidance_lines, origins)
    )
    return replace(obj, rotation=rotation, pixels=pixels, guidance_lines=lines)


def with_rotation(obj: PlacedObject, rotation: int) -> PlacedObject:
    return rotate(obj, int(rotation) - obj.rotation)


def with_intact(obj: PlacedObject, intact: bool) -> PlacedObject:
    if obj.intact == intact:
        return obj
    return replace(obj, intact=intact)


def check_integrity(
    obj: PlacedObject, grid: Optional[Grid], patterns: Mapping[str, Pattern]
) -> bool:
    """Whether every cell of the object's current source shape is live."""

    source = patterns.get(obj.source_pattern_id)
    if source is None:
        logger.warning(
            "Pattern %s for placed object %s is no longer available",
            obj.source_pattern_id,
            obj.id,
        )
        return False
    expected = orient(source, obj.rotation, obj.flip_x, obj.flip_y)
    return all(
        grid_engine.is_alive(grid, obj.grid_x + dx, obj.grid_y + dy)
        for dy, dx in expected.cells
    )


def refresh_integrity(
    objects: Iterable[PlacedObject],
    grid: Optional[Grid],
    patterns: Mapping[str, Pattern],
) -> List[PlacedObject]:
    return [with_intact(obj, check_integrity(obj, grid, patterns)) for obj in objects]


def visible_guidance_lines(objects: Iterable[PlacedObject]) -> List[GuidanceLine]:
    return [line for obj in objects if obj.intact for line in obj.guidance_lines]


def apply_to_grid(base_grid: Optional[Grid], objects: Iterable[PlacedObject]) -> Optional[Grid]:
    """Stamp every object onto a copy of ``base_grid``."""

    if not base_grid:
        return grid_engine.copy_grid(base_grid)
    new_grid = grid_engine.copy_grid(base_grid)
    width, height = grid_engine.dimensions(new_grid)
    for obj in objects:
        for x, y in obj.pixels:
            if 0 <= x < width and 0 <= y < height:
                new_grid[y][x] = 1
    return new_grid


def find_at(objects: Sequence[PlacedObject], x: int, y: int) -> Optional[PlacedObject]:
    for obj in objects:
        if obj.covers(x, y):
            return obj
    return None


def remove_by_id(objects: Iterable[PlacedObject], object_id: str) -> List[PlacedObject]:
    return [obj for obj in objects if obj.id != object_id]
