from __future__ import annotations

import pytest

from life_puzzle import detectors
from life_puzzle import grid
from life_puzzle.detectors import Detector, DetectorState
from life_puzzle.patterns import make_pattern


def single_cell(falloff_period: int = 5, **kwargs) -> Detector:
    return Detector(
        id="probe", pattern=((0, 0),), position=(1, 1), falloff_period=falloff_period, **kwargs
    )


def board(covered: bool):
    cells = grid.create_empty(3, 3)
    if covered:
        cells[1][1] = 1
    return cells


def test_falloff_keeps_detector_on_for_exact_period():
    probe = [single_cell(falloff_period=5)]
    probe = detectors.update(probe, board(True), 10)
    assert probe[0].current_value == 1

    values = {}
    for generation in range(11, 20):
        probe = detectors.update(probe, board(False), generation)
        values[generation] = probe[0].current_value

    assert [values[g] for g in range(11, 16)] == [1] * 5
    assert [values[g] for g in range(16, 20)] == [0] * 4


def test_recoverage_resets_timer():
    probe = [single_cell(falloff_period=5)]
    probe = detectors.update(probe, board(True), 1)
    for generation in (2, 3, 4):
        probe = detectors.update(probe, board(False), generation)
    assert probe[0].activation_timer == 2

    probe = detectors.update(probe, board(True), 5)

    assert probe[0].activation_timer == 5
    assert probe[0].last_covered_generation == 5


def test_state_reports_idle_active_and_decaying():
    probe = [single_cell(falloff_period=3)]
    assert probe[0].state is DetectorState.IDLE

    probe = detectors.update(probe, board(True), 1)
    assert probe[0].state is DetectorState.ACTIVE
    assert probe[0].label == detectors.ACTIVE

    probe = detectors.update(probe, board(False), 2)
    assert probe[0].state is DetectorState.DECAYING


def test_partial_coverage_is_not_coverage():
    wide = Detector(id="wide", pattern=((0, 0), (0, 1)), position=(0, 1), falloff_period=2)
    cells = board(True)

    assert not detectors.is_fully_covered(wide, cells)
    cells[1][0] = 1
    assert detectors.is_fully_covered(wide, cells)


def test_update_skips_invalid_grid():
    probe = [single_cell()]

    assert detectors.update(probe, [], 1) == probe
    assert detectors.update(probe, None, 1) == probe


def test_update_does_not_mutate_input():
    probe = [single_cell()]

    detectors.update(probe, board(True), 1)

    assert probe[0].current_value == 0


def test_initialize_states_activates_covered_detectors():
    probes = [single_cell(), Detector(id="other", pattern=((0, 0),), position=(0, 0))]

    result = detectors.initialize_states(probes, board(True))

    assert [probe.current_value for probe in result] == [1, 0]


def test_win_condition_ignores_detectors_without_target():
    on = single_cell(current_value=1, target_state=1)
    free = single_cell(current_value=0)

    assert detectors.check_win_condition([on, free])
    assert not detectors.check_win_condition([on, single_cell(current_value=1, target_state=0)])


@pytest.mark.parametrize(
    "record,expected",
    [
        ({"state": "active"}, 1),
        ({"state": "inactive"}, 0),
        ({"direction": "active"}, 1),
        ({}, 0),
    ],
)
def test_target_state_of(record, expected: int):
    assert detectors.target_state_of(record) == expected


def test_initialize_challenge_detectors():
    records = [
        {"x": 4, "y": 5, "state": "active", "index": 0},
        {"x": 7, "y": 2, "direction": "inactive"},
    ]

    result = detectors.initialize_challenge_detectors(records, 500)

    assert [probe.id for probe in result] == ["challenge_detector_0", "challenge_detector_1"]
    assert result[0].position == (4, 5)
    assert result[0].target_state == 1
    assert result[1].index is None
    assert all(probe.is_challenge for probe in result)
    assert all(probe.falloff_period == 100 for probe in result)


def test_add_and_remove_player_detectors():
    pattern = make_pattern("detector", [(0, 0), (0, 1)], falloff_period=4)
    placed = detectors.initialize_detectors([(pattern, (2, 2)), (pattern, (6, 6))])

    assert [probe.id for probe in placed] == ["detector_0", "detector_1"]
    assert placed[0].falloff_period == 4
    assert placed[0].cells() == [(2, 2), (3, 2)]

    remaining = detectors.remove_detectors_at(placed, (3, 2), [(0, 0)])

    assert [probe.position for probe in remaining] == [(6, 6)]


def test_find_by_index():
    probes = detectors.initialize_challenge_detectors(
        [{"x": 0, "y": 0, "index": 3}, {"x": 1, "y": 1, "index": 8}]
    )

    assert detectors.find_by_index(probes, 8).position == (1, 1)
    assert detectors.find_by_index(probes, 5) is None


def test_player_detector_ids_stay_unique_after_removal():
    pattern = make_pattern("detector", [(0, 0)])
    placed = detectors.initialize_detectors([(pattern, (1, 1)), (pattern, (4, 4))])
    remaining = detectors.remove_detectors_at(placed, (1, 1), [(0, 0)])

    added = detectors.add_detector(remaining, pattern, (7, 7))

    assert [probe.id for probe in added] == ["detector_1", "detector_2"]


def test_initial_value_starts_detector_on():
    pattern = make_pattern("detector", [(0, 0)], falloff_period=2)

    lit = detectors.initialize_detectors([(pattern, (1, 1))], initial_value=1)

    assert lit[0].current_value == 1
    assert lit[0].initial_value == 1
    assert detectors.update(lit, board(False), 1)[0].current_value == 0
