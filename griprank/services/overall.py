"""
Speed Overall Ranking

Merges the finals bracket with qualifier times into one ranking that spans
finalists and athletes eliminated in qualification.
"""

import logging
from typing import Iterable, Mapping, Optional

from griprank.schemas.speed import (
    BracketMatch,
    BracketStage,
    OverallRankingRow,
    SpeedAthlete,
    SpeedQualifierResult,
)
from griprank.services.bracket import final_matches

logger = logging.getLogger(__name__)

# Elimination rounds before the final, most advanced first
ELIMINATION_ROUNDS = [BracketStage.SF, BracketStage.QF, BracketStage.R16]

INFINITY = float("inf")


def _time_key(times: list[int]) -> tuple[float, ...]:
    """Whole ascending time array; a shorter array loses where it runs out."""
    return tuple(times) + (INFINITY,)


def _collect_times(
    athlete_id: str,
    rounds: Mapping[str, list[BracketMatch]],
    qualifiers: Mapping[str, SpeedQualifierResult],
) -> list[int]:
    """Qualifier times plus every timed bracket lane, fastest first."""
    result = qualifiers.get(athlete_id)
    times = result.times() if result else []
    for matches in rounds.values():
        for match in matches:
            lane = match.lane_for(athlete_id)
            if lane is not None and lane.has_time:
                times.append(lane.ms)
    return sorted(times)


def _stage_for(
    athlete_id: str,
    rounds: Mapping[str, list[BracketMatch]],
    small_final: Optional[BracketMatch],
    big_final: Optional[BracketMatch],
) -> BracketStage:
    """Walk the bracket back from the final to find where the athlete went out."""
    if big_final is not None and big_final.involves(athlete_id):
        if big_final.winner_id == athlete_id:
            return BracketStage.WIN
        return BracketStage.F

    if small_final is not None and small_final.involves(athlete_id):
        return BracketStage.SF

    for stage in ELIMINATION_ROUNDS:
        if any(m.involves(athlete_id) for m in rounds.get(stage.value, [])):
            return stage

    return BracketStage.QUAL


def _roster(
    athletes: Iterable[SpeedAthlete],
    rounds: Mapping[str, list[BracketMatch]],
    qualifiers: Mapping[str, SpeedQualifierResult],
) -> list[SpeedAthlete]:
    roster = list(athletes)
    known = {athlete.id for athlete in roster}

    extra = set(qualifiers)
    for matches in rounds.values():
        for match in matches:
            extra.update(aid for aid in (match.athlete_a, match.athlete_b) if aid)

    for athlete_id in sorted(extra - known):
        roster.append(SpeedAthlete(id=athlete_id))
    return roster


class _Entry:
    """Working row while groups are assembled."""

    def __init__(self, athlete: SpeedAthlete, times: list[int], stage: BracketStage):
        self.athlete_id = athlete.id
        self.name = athlete.name or athlete.id
        self.team = athlete.team or ""
        self.times = times
        self.stage = stage

    @property
    def time_key(self) -> tuple[float, ...]:
        return _time_key(self.times)


def _match_keys(match: BracketMatch, entries: list[_Entry]) -> dict[str, tuple]:
    """
    Order key for the athletes of one head-to-head match.

    A recorded winner goes first. Without a winner, lane times decide when
    both athletes ran; otherwise cumulative times do.
    """
    if match.winner_id is not None:
        return {
            e.athlete_id: (0,) if e.athlete_id == match.winner_id else (1,)
            for e in entries
        }

    lanes = {e.athlete_id: match.lane_for(e.athlete_id) for e in entries}
    if len(entries) == 2 and all(lane is not None and lane.has_time for lane in lanes.values()):
        return {aid: (lane.ms,) for aid, lane in lanes.items()}

    return {e.athlete_id: e.time_key for e in entries}


def _rank_block(
    entries: list[_Entry], keys: Mapping[str, tuple], start_rank: int
) -> list[OverallRankingRow]:
    """Rank a block, sharing the rank between entries with equal keys."""
    ordered = sorted(
        entries, key=lambda e: (keys[e.athlete_id], e.name.casefold(), e.athlete_id)
    )

    rows: list[OverallRankingRow] = []
    for idx, entry in enumerate(ordered):
        if idx > 0 and keys[entry.athlete_id] == keys[ordered[idx - 1].athlete_id]:
            rank = rows[-1].rank
        else:
            rank = start_rank + idx
        rows.append(
            OverallRankingRow(
                athlete_id=entry.athlete_id,
                name=entry.name,
                team=entry.team,
                stage=entry.stage,
                best_ms=entry.times[0] if entry.times else None,
                second_ms=entry.times[1] if len(entry.times) > 1 else None,
                rank=rank,
            )
        )
    return rows


def build_overall_ranking(
    athletes: Iterable[SpeedAthlete],
    rounds: Mapping[str, list[BracketMatch]],
    qualifiers: Mapping[str, SpeedQualifierResult],
) -> list[OverallRankingRow]:
    """
    Rank every athlete by elimination stage, then by cumulative time.

    Order: champion, big-final loser, small-final winner and loser, remaining
    semifinal, quarterfinal and round-of-16 losers, then qualification-only
    athletes. Inside the elimination and qualification groups athletes are
    ordered by their ascending array of qualifier and bracket lane times and
    share a rank when the arrays are equal; athletes without a time share one
    rank at the end of their group.

    Args:
        athletes: Category roster
        rounds: Bracket matches keyed by round id ('R16', 'QF', 'SF', 'F')
        qualifiers: Qualifier results keyed by athlete id

    Returns:
        Overall ranking rows in rank order
    """
    small_final, big_final = final_matches(rounds.get("F", []))

    entries: list[_Entry] = []
    for athlete in _roster(athletes, rounds, qualifiers):
        times = _collect_times(athlete.id, rounds, qualifiers)
        stage = _stage_for(athlete.id, rounds, small_final, big_final)
        entries.append(_Entry(athlete, times, stage))

    by_stage: dict[BracketStage, list[_Entry]] = {stage: [] for stage in BracketStage}
    for entry in entries:
        by_stage[entry.stage].append(entry)

    # Blocks of (entries, order keys), best first
    blocks: list[tuple[list[_Entry], Mapping[str, tuple]]] = []

    finalists = by_stage[BracketStage.WIN] + by_stage[BracketStage.F]
    if finalists:
        # Undecided big finalists both sit in F and are ordered by their keys
        keys = _match_keys(big_final, finalists)
        blocks.append((by_stage[BracketStage.WIN], keys))
        blocks.append((by_stage[BracketStage.F], keys))

    semifinal = by_stage[BracketStage.SF]
    if small_final is not None:
        in_small = [e for e in semifinal if small_final.involves(e.athlete_id)]
        blocks.append((in_small, _match_keys(small_final, in_small)))
        semifinal = [e for e in semifinal if not small_final.involves(e.athlete_id)]
    blocks.append((semifinal, {e.athlete_id: e.time_key for e in semifinal}))

    for stage in (BracketStage.QF, BracketStage.R16, BracketStage.QUAL):
        group = by_stage[stage]
        blocks.append((group, {e.athlete_id: e.time_key for e in group}))

    ranking: list[OverallRankingRow] = []
    next_rank = 1
    for block, keys in blocks:
        if not block:
            continue
        ranking.extend(_rank_block(block, keys, next_rank))
        next_rank += len(block)

    logger.debug(
        f"Overall ranking: {len(ranking)} athletes, "
        f"{len(entries) - len(by_stage[BracketStage.QUAL])} from finals"
    )
    return ranking
