"""Pattern records, their orientation transform and the on-disk catalog.

Patterns arrive already decoded: a list of ``(row, col)`` offsets plus any
guidance specs.  The kind of each pattern is decided once, when the catalog
is built, and carried on the record from then on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .guidance import Direction, GuidanceSpec

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]  # (dy, dx)


class PatternKind(Enum):
    NORMAL = "normal"
    DETECTOR = "detector"
    ERASER = "eraser"

    @staticmethod
    def from_name(name: str) -> "PatternKind":
        try:
            return PatternKind(str(name).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown pattern kind: {name}") from exc

    @staticmethod
    def infer(pattern_name: str) -> "PatternKind":
        lowered = pattern_name.lower()
        if "detector" in lowered:
            return PatternKind.DETECTOR
        if "eraser" in lowered:
            return PatternKind.ERASER
        return PatternKind.NORMAL


@dataclass(frozen=True)
class Pattern:
    """Immutable brush pattern anchored at its top-left cell.

    ``name`` is the brush id the pattern is catalogued under; ``title`` is the
    display name.
    """

    name: str
    cells: Tuple[Cell, ...]
    guidance: Tuple[GuidanceSpec, ...] = ()
    kind: PatternKind = PatternKind.NORMAL
    falloff_period: Optional[int] = None
    title: str = ""

    @property
    def is_detector(self) -> bool:
        return self.kind is PatternKind.DETECTOR

    @property
    def is_eraser(self) -> bool:
        return self.kind is PatternKind.ERASER


def quarter_turns(degrees: int) -> int:
    """Number of clockwise quarter turns for a rotation in degrees."""

    degrees = int(degrees)
    if degrees % 90:
        raise ValueError(f"Rotation must be a multiple of 90 degrees: {degrees}")
    return (degrees // 90) % 4


def _anchor_shift(cells: Iterable[Cell]) -> Tuple[int, int]:
    cells = list(cells)
    if not cells:
        return 0, 0
    return -min(dy for dy, _ in cells), -min(dx for _, dx in cells)


def make_pattern(
    name: str,
    cells: Iterable[Sequence[int]],
    guidance: Iterable[GuidanceSpec] = (),
    kind: Optional[PatternKind] = None,
    falloff_period: Optional[int] = None,
    title: str = "",
) -> Pattern:
    """Build a pattern, anchoring its cells (and guidance starts) at (0, 0)."""

    coords = [(int(dy), int(dx)) for dy, dx in cells]
    shift_y, shift_x = _anchor_shift(coords)
    return Pattern(
        name=name,
        cells=tuple((dy + shift_y, dx + shift_x) for dy, dx in coords),
        guidance=tuple(spec.shifted(shift_x, shift_y) for spec in guidance),
        kind=kind if kind is not None else PatternKind.infer(name),
        falloff_period=falloff_period,
        title=title or name,
    )


def _apply(
    pattern: Pattern,
    point: Callable[[int, int], Tuple[int, int]],
    turn: Callable[[Direction], Direction],
) -> Pattern:
    cells = []
    for dy, dx in pattern.cells:
        x, y = point(dx, dy)
        cells.append((y, x))
    guidance = tuple(spec.mapped(point, turn) for spec in pattern.guidance)
    return replace(pattern, cells=tuple(cells), guidance=guidance)


def _centre(values: Sequence[int]) -> int:
    return (max(values) + min(values)) // 2 if values else 0


def flip_rows(pattern: Pattern) -> Pattern:
    """Mirror top to bottom about the pattern's centre row."""

    centre_y = _centre([dy for dy, _ in pattern.cells])
    return _apply(pattern, lambda x, y: (x, 2 * centre_y - y), Direction.mirror_vertical)


def flip_columns(pattern: Pattern) -> Pattern:
    """Mirror left to right about the pattern's centre column."""

    centre_x = _centre([dx for _, dx in pattern.cells])
    return _apply(pattern, lambda x, y: (2 * centre_x - x, y), Direction.mirror_horizontal)


def rotate_clockwise(pattern: Pattern) -> Pattern:
    return _apply(pattern, lambda x, y: (-y, x), Direction.turn_right)


def anchor(pattern: Pattern) -> Pattern:
    shift_y, shift_x = _anchor_shift(pattern.cells)
    if not shift_y and not shift_x:
        return pattern
    return replace(
        pattern,
        cells=tuple((dy + shift_y, dx + shift_x) for dy, dx in pattern.cells),
        guidance=tuple(spec.shifted(shift_x, shift_y) for spec in pattern.guidance),
    )


def orient(
    pattern: Pattern, rotation: int = 0, flip_x: bool = False, flip_y: bool = False
) -> Pattern:
    """Flip, then rotate clockwise by ``rotation`` degrees, then re-anchor.

    ``flip_x`` mirrors rows and ``flip_y`` mirrors columns.  Cells and
    guidance specs always go through the same mapping.
    """

    oriented = pattern
    if flip_x:
        oriented = flip_rows(oriented)
    if flip_y:
        oriented = flip_columns(oriented)
    for _ in range(quarter_turns(rotation)):
        oriented = rotate_clockwise(oriented)
    return anchor(oriented)


def pattern_from_dict(name: str, data: Mapping[str, object]) -> Pattern:
    raw_kind = data.get("kind")
    kind = PatternKind.from_name(raw_kind) if raw_kind else PatternKind.infer(name)
    guidance_data = data.get("guidanceLines")
    if guidance_data is None:
        single = data.get("guidanceLine")
        guidance_data = [single] if single else []
    falloff = data.get("falloffPeriod")
    return make_pattern(
        name=name,
        cells=data.get("cells", []),
        guidance=[GuidanceSpec.from_dict(spec) for spec in guidance_data],
        kind=kind,
        falloff_period=int(falloff) if falloff is not None else None,
        title=str(data.get("name") or name),
    )


@dataclass
class PatternCatalog:
    """Named patterns available to challenges, keyed by brush id."""

    patterns: Dict[str, Pattern] = field(default_factory=dict)

    def __contains__(self, brush_id: object) -> bool:
        return brush_id in self.patterns

    def __iter__(self) -> Iterator[str]:
        return iter(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def __getitem__(self, brush_id: str) -> Pattern:
        return self.patterns[brush_id]

    def get(self, brush_id: str) -> Optional[Pattern]:
        return self.patterns.get(brush_id)

    def add(self, brush_id: str, pattern: Pattern) -> None:
        if pattern.name != brush_id:
            pattern = replace(pattern, name=brush_id)
        self.patterns[brush_id] = pattern

    def of_kind(self, kind: PatternKind) -> List[str]:
        return sorted(key for key, value in self.patterns.items() if value.kind is kind)

    def for_challenge(self, brush_ids: Iterable[str]) -> List[Pattern]:
        return [self.patterns[key] for key in brush_ids if key in self.patterns]


class PatternLoader:
    """Load decoded pattern files stored as JSON, one pattern per file."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def load(self, brush_id: str) -> Pattern:
        path = self.root / f"{brush_id}.json"
        if not path.exists():
            raise FileNotFoundError(path)
        data = json.loads(path.read_text())
        return pattern_from_dict(brush_id, data)

    def load_all(self) -> PatternCatalog:
        catalog = PatternCatalog()
        for path in sorted(self.root.glob("*.json")):
            try:
                catalog.add(path.stem, self.load(path.stem))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping pattern %s: %s", path.name, exc)
        return catalog
