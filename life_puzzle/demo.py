"""Command line demo: replay a challenge's bundled solution against its tests."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from .challenge import ChallengeLoader
from .config import CHALLENGE_ENV_VAR, PATTERN_ENV_VAR, resolve_directories
from .game import PuzzleGame
from .grid import to_grid_coords
from .patterns import PatternLoader

DEFAULT_CHALLENGE = "1"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Life puzzle challenge runner")
    parser.add_argument(
        "--list-challenges",
        action="store_true",
        help="Print the available challenges and exit.",
    )
    parser.add_argument(
        "--challenge",
        default=DEFAULT_CHALLENGE,
        help="Challenge id to run (default: %(default)s).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def apply_solution(game: PuzzleGame) -> int:
    """Place the challenge's solution items; returns how many were placed."""

    placed = 0
    for item in game.challenge.solution:
        x, y = to_grid_coords(item.x, item.y, game.offsets)
        obj = game.place(
            item.brush, x, y, item.rotate, item.flip_x, item.flip_y, override_all=True
        )
        if obj is not None:
            placed += 1
    return placed


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        directories = resolve_directories()
    except FileNotFoundError as exc:
        print(exc)
        print(f"Set {CHALLENGE_ENV_VAR} and {PATTERN_ENV_VAR} to point to custom directories.")
        return 2

    challenges = ChallengeLoader(directories.challenge_root)
    if args.list_challenges:
        print("Available challenges:")
        for challenge_id in challenges.available():
            print(f"  {challenge_id}: {challenges.load(challenge_id).name}")
        return 0

    try:
        challenge = challenges.load(args.challenge)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Cannot load challenge {args.challenge!r}: {exc}")
        return 2

    catalog = PatternLoader(directories.pattern_root).load_all()
    game = PuzzleGame(challenge, catalog)
    placed = apply_solution(game)

    print("=== Life Puzzle Demo ===")
    print(f"Challenge: {challenge.name} ({challenge.width}x{challenge.height})")
    print(f"Solution objects placed: {placed}")

    if not challenge.has_test_scenarios:
        results = game.playthrough()
        print(f"Generations simulated: {results['generation']}")
        print("Challenge complete" if results["completed"] else "Challenge not complete")
        return 0 if results["completed"] else 1

    report = game.run_tests()
    lines: List[str] = []
    for result in report.scenarios:
        status = "PASS" if result.passed else "FAIL"
        lines.append(f"  [{status}] {result.name}: {result.message}")
    print("\n".join(lines))
    print(report.message)
    return 0 if report.all_passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
