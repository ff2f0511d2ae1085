#!/usr/bin/env python3
"""
CLI for the GripRank scoring engine.

Reads a competition snapshot (JSON, as exported by the persistence layer)
and prints the computed standings.

Usage:
    griprank boulder-leaderboard --input quals.json          # Ranked boulder leaderboard
    griprank boulder-finalists --input quals.json --count 8  # Finalist cut with ties
    griprank speed-qualifiers --input speed.json             # Qualifier standings
    griprank speed-seed --input speed.json                   # Seed the finals bracket
    griprank speed-bracket --input speed.json                # Bracket with lane results
    griprank speed-overall --input speed.json                # Overall ranking
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter

from .core.config import settings
from .schemas.boulder import BoulderSnapshot, FinalsStartlistEntry, LeaderboardRow
from .schemas.speed import (
    BracketMatch,
    OverallRankingRow,
    SpeedSnapshot,
    SpeedStanding,
)
from .services.bracket import (
    bracket_order,
    decide_pending_winners,
    final_matches,
    lane_result_label,
    seed_bracket,
)
from .services.leaderboard import (
    build_finals_startlist,
    competition_ranks,
    leaderboard_from_attempts,
    select_finalists,
)
from .services.overall import build_overall_ranking
from .services.speed import build_qualifier_standings, format_ms

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

BOULDER_COMMANDS = ("boulder-leaderboard", "boulder-finalists")


def _dump(model_type, rows) -> str:
    return TypeAdapter(list[model_type]).dump_json(rows, by_alias=True, indent=2).decode()


def _load_boulder(path: Path) -> BoulderSnapshot:
    return BoulderSnapshot.model_validate_json(path.read_text(encoding="utf-8"))


def _load_speed(path: Path) -> SpeedSnapshot:
    return SpeedSnapshot.model_validate_json(path.read_text(encoding="utf-8"))


def run_boulder(args: argparse.Namespace) -> int:
    snapshot = _load_boulder(args.input)
    logger.info(
        f"Loaded {len(snapshot.attempts)} attempts for {len(snapshot.athletes)} athletes"
    )

    rows = leaderboard_from_attempts(
        snapshot.attempts, snapshot.athletes, snapshot.objectives
    )

    if args.command == "boulder-leaderboard":
        if args.json:
            print(_dump(LeaderboardRow, rows))
        else:
            _print_leaderboard(rows)
        return 0

    count = args.count or snapshot.finalist_count or settings.DEFAULT_FINALIST_COUNT
    if args.json:
        print(_dump(FinalsStartlistEntry, build_finals_startlist(rows, count)))
        return 0

    finalists = select_finalists(rows, count)
    _print_leaderboard(finalists)
    print(f"\n✅ {len(finalists)} finalists ({count} requested)")
    if len(finalists) > count:
        print("   Ties at the cut position: all tied athletes advance")
    return 0


def run_speed(args: argparse.Namespace) -> int:
    snapshot = _load_speed(args.input)
    precision = args.precision or snapshot.precision or settings.TIMING_PRECISION
    logger.info(
        f"Loaded {len(snapshot.athletes)} athletes, "
        f"{len(snapshot.qualifiers)} qualifier results, {len(snapshot.rounds)} rounds"
    )

    if args.command in ("speed-qualifiers", "speed-seed"):
        standings = build_qualifier_standings(
            snapshot.athletes, snapshot.qualifiers, precision
        )
        if args.command == "speed-qualifiers":
            if args.json:
                print(_dump(SpeedStanding, standings))
            else:
                _print_standings(standings)
            return 0

        meta, matches = seed_bracket(standings)
        if args.json:
            print(meta.model_dump_json(by_alias=True, indent=2))
            print(_dump(BracketMatch, matches))
        else:
            print(f"Bracket size: {meta.size}")
            for seed in meta.seeds:
                print(f"  Seed {seed.seed:>2}: {seed.athlete_id}")
            _print_matches(matches, precision)
        return 0

    rule = snapshot.false_start_rule or settings.FALSE_START_RULE
    rounds = decide_pending_winners(snapshot.rounds, rule)

    if args.command == "speed-bracket":
        for round_id in bracket_order(snapshot.size):
            matches = rounds.get(round_id, [])
            print(f"\n{round_id}")
            _print_matches(matches, precision, is_final=round_id == "F")
        return 0

    ranking = build_overall_ranking(snapshot.athletes, rounds, snapshot.qualifiers)
    if args.json:
        print(_dump(OverallRankingRow, ranking))
    else:
        _print_overall(ranking, precision)
    return 0


def _print_leaderboard(rows: list[LeaderboardRow]) -> None:
    """Print boulder leaderboard summary."""
    print(f"{'Rank':>4}  {'Bib':<5} {'Name':<28} {'Points':>7} {'T':>3} {'Z':>3}")
    for row, rank in zip(rows, competition_ranks(rows)):
        print(
            f"{rank:>4}  {row.bib:<5} {row.name:<28} {row.points:>7.1f} {row.tops:>3} {row.zones:>3}"
        )


def _print_standings(standings: list[SpeedStanding]) -> None:
    """Print speed qualifier standings."""
    print(f"{'Rank':>4}  {'Name':<28} {'Best':>8} {'Second':>8}")
    for row in standings:
        print(f"{row.rank:>4}  {row.name:<28} {row.best_label:>8} {row.second_label:>8}")


def _print_matches(matches: list[BracketMatch], precision: str, is_final: bool = False) -> None:
    small_final, big_final = final_matches(matches) if is_final else (None, None)
    for match in sorted(matches, key=lambda m: m.match_index):
        is_big = big_final is not None and match.match_index == big_final.match_index
        label_a = lane_result_label(
            match.lane_a,
            match.lane_b,
            is_winner=match.winner == "A",
            is_big_final=is_big,
            allow_winner_run=match.allow_winner_run,
            precision=precision,
        )
        label_b = lane_result_label(
            match.lane_b,
            match.lane_a,
            is_winner=match.winner == "B",
            is_big_final=is_big,
            allow_winner_run=match.allow_winner_run,
            precision=precision,
        )
        tag = " (big final)" if is_big else " (small final)" if match is small_final else ""
        print(
            f"  m{match.match_index}{tag}: {match.athlete_a or '—'} [{label_a}] vs "
            f"{match.athlete_b or '—'} [{label_b}]"
        )


def _print_overall(ranking: list[OverallRankingRow], precision: str) -> None:
    """Print speed overall ranking."""
    print(f"{'Rank':>4}  {'Name':<28} {'Stage':<5} {'Best':>8}")
    for row in ranking:
        print(
            f"{row.rank:>4}  {row.name:<28} {row.stage.value:<5} {format_ms(row.best_ms, precision):>8}"
        )


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="GripRank - Competition Scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  griprank boulder-leaderboard --input quals.json
  griprank boulder-finalists --input quals.json --count 6 --json
  griprank speed-qualifiers --input speed.json --precision ms2
  griprank speed-overall --input speed.json
        """,
    )

    parser.add_argument(
        "command",
        choices=[
            "boulder-leaderboard",
            "boulder-finalists",
            "speed-qualifiers",
            "speed-seed",
            "speed-bracket",
            "speed-overall",
        ],
        help="Builder to run",
    )

    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a JSON competition snapshot",
    )

    parser.add_argument(
        "--count",
        type=int,
        help=f"Requested finalist count (default: {settings.DEFAULT_FINALIST_COUNT})",
    )

    parser.add_argument(
        "--precision",
        choices=["ms2", "ms3"],
        help=f"Timing display precision (default: {settings.TIMING_PRECISION})",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        if args.command in BOULDER_COMMANDS:
            return run_boulder(args)
        return run_speed(args)
    except Exception as e:
        logger.error(f"Scoring failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
