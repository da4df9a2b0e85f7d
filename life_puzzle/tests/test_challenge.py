from __future__ import annotations

import json
from pathlib import Path

import pytest

from life_puzzle.challenge import ChallengeLoader, parse_challenge
from life_puzzle.config import (
    DEFAULT_FALLOFF_PERIOD,
    DEFAULT_GRID_WIDTH,
    MAX_TARGET_TURN,
    resolve_directories,
)
from life_puzzle.detectors import ACTIVE, INACTIVE


def test_parse_applies_defaults():
    challenge = parse_challenge({}, "7")

    assert challenge.id == "7"
    assert challenge.name == "7. Unknown"
    assert challenge.width == DEFAULT_GRID_WIDTH
    assert challenge.detector_falloff_period == DEFAULT_FALLOFF_PERIOD
    assert challenge.editable_space is None
    assert not challenge.has_test_scenarios


def test_parse_reads_full_record():
    challenge = parse_challenge(
        {
            "name": "Sample",
            "width": 40,
            "height": 20,
            "targetTurn": 5000,
            "editableSpace": {"minX": -2, "maxX": 2, "minY": -1, "maxY": 1},
            "detectors": [{"x": 1, "y": 2, "direction": "active", "index": 4}],
            "detectorFalloffPeriod": 3,
            "setup": [{"x": 0, "y": 0, "brush": "glider", "rotate": 90, "flipX": True}],
            "testScenarios": [
                {
                    "name": "one",
                    "detectors": [{"index": 4, "state": "inactive"}],
                }
            ],
            "pattern": [[0, 1]],
        },
        "s",
    )

    assert challenge.target_turn == MAX_TARGET_TURN
    assert challenge.editable_space.contains(2, -1)
    assert challenge.detectors[0].target_state == 1
    assert challenge.setup[0].rotate == 90 and challenge.setup[0].flip_x
    assert challenge.test_scenarios[0].detectors[0].key == "detector_4"
    assert challenge.test_scenarios[0].detectors[0].state == INACTIVE
    assert challenge.pattern == [(0, 1)]
    assert challenge.metadata["test_scenarios"] == 1


@pytest.mark.parametrize(
    "data",
    [
        {"detectors": [{"y": 1}]},
        {"setup": [{"x": 0, "y": 0}]},
        {"testScenarios": [{"name": "x", "detectors": [{"state": "active"}]}]},
        {"width": -4},
    ],
)
def test_parse_rejects_malformed_records(data):
    with pytest.raises(ValueError):
        parse_challenge(data, "bad")


def test_grid_detectors_are_centre_relative():
    challenge = parse_challenge(
        {
            "width": 30,
            "height": 30,
            "detectors": [{"x": -7, "y": -8, "state": "active", "index": 1}],
        }
    )

    detectors = challenge.grid_detectors()
    wider = challenge.grid_detectors(41, 31)

    assert detectors[0].position == (8, 7)
    assert detectors[0].target_state == 1
    assert detectors[0].label == INACTIVE
    assert wider[0].position == (13, 7)


def test_loader_lists_numeric_ids_first(tmp_path: Path):
    for stem in ("10", "2", "bonus"):
        (tmp_path / f"{stem}.json").write_text(json.dumps({"name": stem}))

    loader = ChallengeLoader(tmp_path)

    assert loader.available() == ["2", "10", "bonus"]
    assert loader.load("bonus").name == "bonus"
    with pytest.raises(FileNotFoundError):
        loader.load("missing")


def test_bundled_challenges_load():
    loader = ChallengeLoader(resolve_directories().challenge_root)

    first = loader.load("1")

    assert "1" in loader.available()
    assert first.has_test_scenarios
    assert [detector.index for detector in first.detectors] == [0, 1]
    assert first.test_scenarios[1].detectors[1].state == ACTIVE
