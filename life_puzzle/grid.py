"""Grid evolution for the B3/S23 automaton.

Grids are row-major lists of rows holding ``0`` or ``1``.  Every function
returns a fresh grid; inputs are never mutated.  An empty list stands for
"no grid" and is passed through rather than rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from . import config

logger = logging.getLogger(__name__)

Grid = List[List[int]]
Cell = Tuple[int, int]

_NEIGHBOURS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


@dataclass(frozen=True)
class EditableSpace:
    """Closed box in centre-relative coordinates where players may draw."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def dimensions(grid: Optional[Grid]) -> Tuple[int, int]:
    """Return ``(width, height)``; ``(0, 0)`` for a missing grid."""

    if not grid:
        return 0, 0
    return len(grid[0]), len(grid)


def is_valid(grid: Optional[Grid]) -> bool:
    if not grid or not isinstance(grid, list):
        return False
    width = len(grid[0])
    return width > 0 and all(len(row) == width for row in grid)


def step(grid: Optional[Grid]) -> Optional[Grid]:
    """Advance one generation with a dead (zero-padded) border."""

    if not grid:
        return grid
    if not is_valid(grid):
        logger.warning("Step skipped: grid rows have uneven lengths")
        return grid

    height = len(grid)
    width = len(grid[0])
    new_grid = [[0] * width for _ in range(height)]

    for y in range(height):
        row = grid[y]
        for x in range(width):
            neighbours = 0
            for dy, dx in _NEIGHBOURS:
                ny = y + dy
                nx = x + dx
                if 0 <= ny < height and 0 <= nx < width:
                    neighbours += grid[ny][nx]
            if row[x] == 1:
                new_grid[y][x] = 1 if neighbours in (2, 3) else 0
            else:
                new_grid[y][x] = 1 if neighbours == 3 else 0

    return new_grid


def create_empty(width: int, height: Optional[int] = None) -> Grid:
    """Allocate a dead grid, or ``[]`` when the size exceeds the ceiling."""

    grid_height = width if height is None else height
    limit = config.max_grid_size()
    if width > limit or grid_height > limit:
        logger.warning(
            "Grid size %sx%s exceeds maximum %sx%s", width, grid_height, limit, limit
        )
        return []
    if width <= 0 or grid_height <= 0:
        return []
    return [[0] * width for _ in range(grid_height)]


def copy_grid(grid: Optional[Grid]) -> Optional[Grid]:
    if grid is None:
        return None
    return [list(row) for row in grid]


def center_offsets(width: int, height: int) -> Tuple[int, int]:
    return width // 2, height // 2


def to_grid_coords(x: int, y: int, offsets: Tuple[int, int]) -> Tuple[int, int]:
    """Convert a centre-relative coordinate into a grid-absolute one."""

    return offsets[0] + x, offsets[1] + y


def resize(grid: Optional[Grid], new_width: int, new_height: int) -> Grid:
    """Re-centre live cells on a grid of the new size.

    The same object is returned when the size does not change.
    """

    if not grid:
        return create_empty(new_width, new_height)

    old_width, old_height = dimensions(grid)
    if old_width == new_width and old_height == new_height:
        return grid

    new_grid = create_empty(new_width, new_height)
    if not new_grid:
        return new_grid

    old_cx, old_cy = center_offsets(old_width, old_height)
    new_cx, new_cy = center_offsets(new_width, new_height)

    for y, row in enumerate(grid):
        for x, value in enumerate(row):
            if value != 1:
                continue
            nx = new_cx + (x - old_cx)
            ny = new_cy + (y - old_cy)
            if 0 <= nx < new_width and 0 <= ny < new_height:
                new_grid[ny][nx] = 1

    return new_grid


def is_editable_cell(
    x: int,
    y: int,
    editable_space: Optional[EditableSpace],
    offsets: Tuple[int, int],
    override_all: bool = False,
) -> bool:
    if override_all or editable_space is None:
        return True
    return editable_space.contains(x - offsets[0], y - offsets[1])


def count_alive(grid: Optional[Grid]) -> int:
    if not grid:
        return 0
    return sum(sum(1 for cell in row if cell == 1) for row in grid)


def grid_bounds(grid: Optional[Grid]) -> Tuple[int, int, int, int]:
    """Return ``(min_x, max_x, min_y, max_y)`` of the live cells."""

    if not grid:
        return 0, 0, 0, 0
    live = [(x, y) for y, row in enumerate(grid) for x, cell in enumerate(row) if cell]
    if not live:
        return 0, 0, 0, 0
    xs = [x for x, _ in live]
    ys = [y for _, y in live]
    return min(xs), max(xs), min(ys), max(ys)


def is_alive(grid: Optional[Grid], x: int, y: int) -> bool:
    width, height = dimensions(grid)
    if not (0 <= x < width and 0 <= y < height):
        return False
    return grid[y][x] == 1


def stamp(
    grid: Optional[Grid], cells: Iterable[Cell], x: int, y: int
) -> Tuple[Optional[Grid], int]:
    """Set pattern cells ``(dy, dx)`` live at ``(x + dx, y + dy)``.

    Returns the new grid together with the number of cells that landed inside
    the bounds.
    """

    if not grid:
        return grid, 0
    new_grid = copy_grid(grid)
    width, height = dimensions(new_grid)
    placed = 0
    for dy, dx in cells:
        gx = x + dx
        gy = y + dy
        if 0 <= gx < width and 0 <= gy < height:
            new_grid[gy][gx] = 1
            placed += 1
    return new_grid, placed


def clear_cells(grid: Optional[Grid], cells: Iterable[Tuple[int, int]]) -> Optional[Grid]:
    """Return a copy of ``grid`` with the ``(x, y)`` cells set dead."""

    if not grid:
        return copy_grid(grid)
    new_grid = copy_grid(grid)
    width, height = dimensions(new_grid)
    for x, y in cells:
        if 0 <= x < width and 0 <= y < height:
            new_grid[y][x] = 0
    return new_grid


def from_rows(rows: Sequence[str], live: str = "#") -> Grid:
    """Build a grid from text rows, handy for fixtures."""

    return [[1 if char == live else 0 for char in row] for row in rows]
