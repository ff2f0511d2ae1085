"""
Speed Finals Bracket

Round topology by bracket size, seeding from qualifier standings,
round advancement and lane result labels.
"""

import logging
from typing import Optional

from griprank.core.errors import InvalidBracketSizeError, NotEnoughQualifiersError
from griprank.schemas.speed import (
    BracketMatch,
    FinalsMeta,
    FinalsSeed,
    SpeedRun,
    SpeedRunStatus,
    FalseStartRule,
    SpeedStanding,
    TimingPrecision,
)
from griprank.services.speed import NO_RESULT, decide_winner, format_ms

logger = logging.getLogger(__name__)

# Rounds from first to final, keyed by bracket size
ROUND_ORDER = {
    2: ["F"],
    4: ["SF", "F"],
    8: ["QF", "SF", "F"],
    16: ["R16", "QF", "SF", "F"],
}

NEXT_ROUND = {"R16": "QF", "QF": "SF", "SF": "F"}

# First-round pairings as (seed, seed), in match order
FIRST_ROUND_PAIRINGS = {
    2: [(1, 2)],
    4: [(1, 4), (2, 3)],
    8: [(1, 8), (4, 5), (2, 7), (3, 6)],
    16: [
        (1, 16),
        (8, 9),
        (4, 13),
        (5, 12),
        (2, 15),
        (7, 10),
        (3, 14),
        (6, 11),
    ],
}

SMALL_FINAL_INDEX = 1
BIG_FINAL_INDEX = 2

WINNER_SUFFIX = " ✓"
NO_RUN_NEEDED = "–"


def bracket_order(size: Optional[int] = None) -> list[str]:
    """Round ids from first round to final. Unknown size means a bare final."""
    if size is None:
        size = 2
    if size not in ROUND_ORDER:
        raise InvalidBracketSizeError(size)
    return list(ROUND_ORDER[size])


def decide_bracket_size(valid_count: int) -> int:
    """Largest supported bracket that the timed qualifiers can fill."""
    for size in sorted(ROUND_ORDER, reverse=True):
        if valid_count >= size:
            return size
    return 2


def first_round_pairings(size: int) -> list[tuple[int, int]]:
    if size not in FIRST_ROUND_PAIRINGS:
        raise InvalidBracketSizeError(size)
    return list(FIRST_ROUND_PAIRINGS[size])


def seed_bracket(
    standings: list[SpeedStanding],
) -> tuple[FinalsMeta, list[BracketMatch]]:
    """
    Seed the finals bracket from ranked qualifier standings.

    Only athletes with a valid qualifier time can be seeded. The bracket size
    is the largest of 16/8/4/2 that they fill; seeds follow standings order.

    Raises:
        NotEnoughQualifiersError: If fewer than two athletes have a time
    """
    timed = [s for s in standings if s.best_ms is not None]
    if len(timed) < 2:
        raise NotEnoughQualifiersError(len(timed))

    size = decide_bracket_size(len(timed))
    seeds = [
        FinalsSeed(seed=idx, athlete_id=standing.athlete_id)
        for idx, standing in enumerate(timed[:size], start=1)
    ]
    by_seed = {s.seed: s.athlete_id for s in seeds}

    first_round = bracket_order(size)[0]
    matches = [
        BracketMatch(
            id=f"m{idx}",
            round_id=first_round,
            match_index=idx,
            athlete_a=by_seed.get(seed_a),
            athlete_b=by_seed.get(seed_b),
        )
        for idx, (seed_a, seed_b) in enumerate(first_round_pairings(size), start=1)
    ]

    logger.info(f"Seeded {size}-athlete bracket from {len(timed)} timed qualifiers")
    return FinalsMeta(size=size, seeds=seeds), matches


def final_matches(
    matches: list[BracketMatch],
) -> tuple[Optional[BracketMatch], Optional[BracketMatch]]:
    """
    Split the final round into (small final, big final).

    A final round with a single match is a size-2 bracket: that match is the big final.
    """
    ordered = sorted(matches, key=lambda m: m.match_index)
    if len(ordered) == 1:
        return None, ordered[0]

    small = next((m for m in ordered if m.match_index == SMALL_FINAL_INDEX), None)
    big = next((m for m in ordered if m.match_index == BIG_FINAL_INDEX), None)
    return small, big


def decide_pending_winners(
    rounds: dict[str, list[BracketMatch]], rule: FalseStartRule = "IFSC"
) -> dict[str, list[BracketMatch]]:
    """
    Fill in the winner of every match that has lane results but no winner yet.

    Recorded winners are kept. Matches are copied, the input is not modified.
    """
    decided: dict[str, list[BracketMatch]] = {}
    for round_id, matches in rounds.items():
        decided[round_id] = []
        for match in matches:
            if match.winner is None and (match.lane_a is not None or match.lane_b is not None):
                winner = decide_winner(match.lane_a, match.lane_b, rule)
                if winner is not None:
                    logger.debug(f"{round_id} m{match.match_index}: lane {winner} wins ({rule})")
                    match = match.model_copy(update={"winner": winner})
            decided[round_id].append(match)
    return decided


def _next_match(
    round_id: str,
    match_index: int,
    athlete_a: Optional[str],
    athlete_b: Optional[str],
) -> BracketMatch:
    return BracketMatch(
        id=f"m{match_index}",
        round_id=round_id,
        match_index=match_index,
        athlete_a=athlete_a,
        athlete_b=athlete_b,
    )


def advance_round(
    round_id: str, matches: list[BracketMatch]
) -> Optional[list[BracketMatch]]:
    """
    Build the next round once every match of ``round_id`` has a winner.

    Semifinal losers meet in the small final (match 1) and semifinal winners
    in the big final (match 2). Other rounds pair the winners of consecutive
    matches.

    Returns:
        The next round's matches, or None if the round is the final or
        still has undecided matches
    """
    next_round = NEXT_ROUND.get(round_id)
    if next_round is None:
        return None

    ordered = sorted(matches, key=lambda m: m.match_index)
    if not ordered or any(m.winner not in ("A", "B") for m in ordered):
        return None

    if round_id == "SF":
        first = ordered[0]
        second = ordered[1] if len(ordered) > 1 else None
        next_matches = [
            _next_match(
                next_round,
                SMALL_FINAL_INDEX,
                first.loser_id,
                second.loser_id if second else None,
            ),
            _next_match(
                next_round,
                BIG_FINAL_INDEX,
                first.winner_id,
                second.winner_id if second else None,
            ),
        ]
    else:
        next_matches = []
        for idx in range(0, len(ordered) - 1, 2):
            a, b = ordered[idx], ordered[idx + 1]
            next_matches.append(
                _next_match(next_round, idx // 2 + 1, a.winner_id, b.winner_id)
            )

    logger.info(f"Advanced {round_id} to {next_round} ({len(next_matches)} matches)")
    return next_matches


def lane_result_label(
    lane: Optional[SpeedRun],
    opponent: Optional[SpeedRun] = None,
    is_winner: bool = False,
    is_big_final: bool = False,
    allow_winner_run: bool = False,
    precision: TimingPrecision = "ms3",
) -> str:
    """
    Human-readable outcome of one lane.

    A big-final winner whose opponent false-started or did not start does not
    need to run; their lane shows a dash unless a winner run was allowed.
    """
    if lane is None:
        label = NO_RESULT
    elif (
        is_winner
        and is_big_final
        and not allow_winner_run
        and opponent is not None
        and opponent.status in (SpeedRunStatus.FS, SpeedRunStatus.DNS)
    ):
        label = NO_RUN_NEEDED
    elif lane.has_time:
        label = f"{format_ms(lane.ms, precision)} s"
    elif lane.status is not None:
        label = lane.status.value
    else:
        label = NO_RESULT

    if is_winner:
        label += WINNER_SUFFIX
    return label
