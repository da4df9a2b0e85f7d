from __future__ import annotations

import pytest

from life_puzzle import guidance
from life_puzzle.guidance import (
    INFINITE,
    Direction,
    GuidanceLine,
    GuidancePhase,
    GuidanceSpec,
)


def line(x: int, y: int, direction: Direction, **kwargs) -> GuidanceLine:
    return GuidanceLine(generation=0, origin_x=x, origin_y=y, direction=direction, **kwargs)


@pytest.mark.parametrize("direction", list(Direction))
def test_four_right_turns_return_to_start(direction: Direction):
    turned = direction
    for _ in range(4):
        turned = turned.turn_right()

    assert turned is direction
    assert direction.rotated(4) is direction


@pytest.mark.parametrize("direction", list(Direction))
def test_inverse_operations(direction: Direction):
    assert direction.turn_right().turn_left() is direction
    assert direction.reverse().reverse() is direction
    assert direction.mirror_vertical().mirror_vertical() is direction
    assert direction.mirror_horizontal().mirror_horizontal() is direction


def test_turn_right_cycles_cardinals_and_diagonals():
    assert [Direction.N.rotated(i) for i in range(4)] == [
        Direction.N,
        Direction.E,
        Direction.S,
        Direction.W,
    ]
    assert [Direction.NE.rotated(i) for i in range(4)] == [
        Direction.NE,
        Direction.SE,
        Direction.SW,
        Direction.NW,
    ]


def test_from_name_is_case_insensitive_and_strict():
    assert Direction.from_name("se") is Direction.SE
    with pytest.raises(ValueError):
        Direction.from_name("up")


def test_spec_from_dict_normalises_values():
    spec = GuidanceSpec.from_dict({"direction": "nw", "startX": 2, "length": "12", "speed": 0})

    assert spec.direction is Direction.NW
    assert (spec.start_x, spec.start_y) == (2, 0)
    assert spec.length == 12
    assert spec.speed == 1
    assert GuidanceSpec.from_dict({"length": "forever"}).length == INFINITE


def test_create_from_brush_spec_offsets_origin():
    spec = GuidanceSpec(direction=Direction.SE, start_x=1, start_y=2, speed=3)

    created = guidance.create_from_brush_spec(spec, 4, 10, 20)

    assert created.origin == (11, 22)
    assert created.generation == 4
    assert created.speed == 3
    assert guidance.create_from_brush_spec(GuidanceSpec(direction=None), 0, 0, 0) is None
    assert guidance.create_from_brush_spec(None, 0, 0, 0) is None


def test_ray_path_stops_at_length_and_edge():
    assert guidance.ray_path((0, 0), Direction.E, 3, 10, 10) == [(0, 0), (0, 1), (0, 2)]
    assert guidance.ray_path((8, 0), Direction.E, INFINITE, 10, 10) == [(0, 8), (0, 9)]
    assert guidance.ray_path((-1, 0), Direction.E, INFINITE, 10, 10) == []


def test_infinite_length_covers_grid():
    assert guidance.infinite_length(3, 4) == 10


def test_collinear_rays_truncate_the_farther_origin():
    ray_a = line(0, 0, Direction.SE)
    ray_b = line(1, 1, Direction.SE)

    paths = guidance.truncated_paths([ray_a, ray_b], 10, 10)

    assert paths[0] == [(0, 0)]
    assert paths[1] == [(i, i) for i in range(1, 10)]


def test_single_shared_cell_is_not_a_collision():
    ray_a = line(0, 0, Direction.SE)
    ray_c = line(4, 0, Direction.SW)

    paths = guidance.truncated_paths([ray_a, ray_c], 10, 10)

    assert paths[0] == ray_a.path(10, 10)
    assert paths[1] == ray_c.path(10, 10)
    assert (2, 2) in paths[0] and (2, 2) in paths[1]


def test_equidistant_collision_truncates_later_id():
    first = line(0, 0, Direction.SE, id="a")
    second = line(0, 0, Direction.SE, id="b")

    for ordering in ([first, second], [second, first]):
        paths = dict(zip((item.id for item in ordering), guidance.truncated_paths(ordering, 6, 6)))

        assert paths["a"] == [(i, i) for i in range(6)]
        assert paths["b"] == [(0, 0)]


def test_color_phase_alternates_by_speed():
    phases = [guidance.color_phase(i, 2) for i in range(6)]

    assert phases == [
        GuidancePhase.A,
        GuidancePhase.A,
        GuidancePhase.B,
        GuidancePhase.B,
        GuidancePhase.A,
        GuidancePhase.A,
    ]


def test_guidance_pixels_only_show_started_lines():
    early = line(0, 0, Direction.E, length=3)
    late = GuidanceLine(generation=5, origin_x=0, origin_y=2, direction=Direction.E, length=2)

    pixels = guidance.guidance_pixels([early, late], 3, 8, 8)

    assert pixels == [(0, 0, GuidancePhase.A), (0, 1, GuidancePhase.B), (0, 2, GuidancePhase.A)]
    assert len(guidance.guidance_pixels([early, late], 5, 8, 8)) == 5


def test_visible_and_reset_lines():
    kept = line(0, 0, Direction.N)
    added = GuidanceLine(generation=3, origin_x=0, origin_y=0, direction=Direction.N)

    assert guidance.visible_lines([kept, added], 2) == [kept]
    assert guidance.reset_lines([kept, added]) == [kept]


def test_line_translation_and_rotation():
    moved = line(2, 3, Direction.NE).translated(1, -1).rotated(1)

    assert moved.origin == (3, 2)
    assert moved.direction is Direction.SE
