import logging
import re
from typing import Iterable, Mapping, Optional

from griprank.schemas.boulder import (
    SYMBOL_ORDER,
    Attempt,
    AthleteInfo,
    FinalsStartlistEntry,
    LeaderboardRow,
    ObjectiveMeta,
    ObjectiveResult,
    ObjectiveSummary,
)
from griprank.services.scoring import score_objective

logger = logging.getLogger(__name__)

AthleteSummaries = dict[str, dict[str, ObjectiveSummary]]


def summarize_attempts(attempts: Iterable[Attempt]) -> AthleteSummaries:
    """
    Fold attempts into per-athlete, per-objective summaries.

    Attempts are replayed in ``created_at`` order (stable for equal timestamps).
    The attempt number of a zone or top is the running attempt count at the
    first time that symbol was seen and is never overwritten afterwards.
    Attempts without an athlete or with an unrecognized symbol are skipped.

    Args:
        attempts: Attempts for one competition, in any order

    Returns:
        Mapping athlete_id -> objective key -> ObjectiveSummary
    """
    per_athlete: AthleteSummaries = {}
    skipped = 0

    for attempt in sorted(attempts, key=lambda a: a.created_at):
        symbol = attempt.symbol
        if not attempt.athlete_id or not SYMBOL_ORDER.get(symbol):
            skipped += 1
            continue

        details = per_athlete.setdefault(attempt.athlete_id, {})
        detail = details.setdefault(attempt.objective_key, ObjectiveSummary())

        detail.total_attempts += 1

        if symbol == "T":
            if detail.zone_attempt is None:
                detail.zone_attempt = detail.total_attempts
            if detail.top_attempt is None:
                detail.top_attempt = detail.total_attempts
        elif symbol == "Z" and detail.zone_attempt is None:
            detail.zone_attempt = detail.total_attempts

        if SYMBOL_ORDER[symbol] > SYMBOL_ORDER.get(detail.best_symbol, 0):
            detail.best_symbol = symbol

    if skipped:
        logger.debug(f"Skipped {skipped} attempts with no athlete or symbol")

    return per_athlete


def _natural_key(value: str) -> tuple:
    # "route:10" sorts after "route:9"
    parts = re.split(r"(\d+)", value.casefold())
    return tuple(int(part) if part.isdigit() else part for part in parts)


def _objective_sort_key(key: str, objectives: Mapping[str, ObjectiveMeta]) -> tuple:
    meta = objectives.get(key)
    if meta is not None and meta.order is not None:
        return (0, meta.order, _natural_key(key))
    return (1, 0, _natural_key(key))


def _objective_keys(
    athlete_keys: Iterable[str], objectives: Mapping[str, ObjectiveMeta]
) -> list[str]:
    """Objectives shown for one athlete, in display order."""
    route_keys = {key for key, meta in objectives.items() if meta.type == "route"}

    if route_keys:
        # A finals round is scored by route; qualification details drop out
        keys = route_keys
    else:
        keys = set(athlete_keys) | set(objectives)

    return sorted(keys, key=lambda k: _objective_sort_key(k, objectives))


def _objective_result(
    key: str, summary: Optional[ObjectiveSummary], meta: Optional[ObjectiveMeta]
) -> ObjectiveResult:
    prefix, raw_key = key.split(":", 1) if ":" in key else ("detail", key)
    meta = meta or ObjectiveMeta()

    detail_index = meta.detail_index
    if detail_index is None and prefix == "detail":
        detail_index = raw_key
    route_id = meta.route_id
    if route_id is None and prefix == "route":
        route_id = raw_key

    if meta.label:
        label = meta.label
    elif prefix == "route":
        label = f"Route {raw_key}"
    else:
        label = f"Detail {detail_index if detail_index is not None else raw_key}"

    result = ObjectiveResult(
        key=key,
        detail_index=detail_index,
        detail_label=label,
        route_id=route_id,
    )
    if summary is not None:
        result.point_value = score_objective(summary)
        result.zone_attempt = summary.zone_attempt
        result.top_attempt = summary.top_attempt
        result.best_symbol = summary.best_symbol
    return result


def _row_sort_key(row: LeaderboardRow) -> tuple:
    return (-row.points, -row.tops, -row.zones, row.name.casefold(), row.athlete_id)


def build_leaderboard(
    summaries: AthleteSummaries,
    athletes: Optional[Mapping[str, AthleteInfo]] = None,
    objectives: Optional[Mapping[str, ObjectiveMeta]] = None,
) -> list[LeaderboardRow]:
    """
    Build ranked leaderboard rows from aggregated summaries.

    Rows are ordered by points, tops and zones (all descending), then by name.
    Ties are not collapsed here; see :func:`competition_ranks`.
    """
    athletes = athletes or {}
    objectives = objectives or {}
    rows: list[LeaderboardRow] = []

    for athlete_id, details in summaries.items():
        if not details:
            continue

        athlete = athletes.get(athlete_id) or AthleteInfo()
        points = 0.0
        tops = 0
        zones = 0
        results = []

        for key in _objective_keys(details.keys(), objectives):
            summary = details.get(key)
            result = _objective_result(key, summary, objectives.get(key))
            if summary is not None:
                if summary.top_attempt is not None:
                    tops += 1
                    zones += 1
                elif summary.zone_attempt is not None:
                    zones += 1
                points += result.point_value
            results.append(result)

        rows.append(
            LeaderboardRow(
                athlete_id=athlete_id,
                bib=athlete.bib or "",
                name=athlete.name if athlete.name is not None else athlete_id,
                team=athlete.team or "",
                points=round(points, 1),
                tops=tops,
                zones=zones,
                objectives=results,
            )
        )

    rows.sort(key=_row_sort_key)
    return rows


def leaderboard_from_attempts(
    attempts: Iterable[Attempt],
    athletes: Optional[Mapping[str, AthleteInfo]] = None,
    objectives: Optional[Mapping[str, ObjectiveMeta]] = None,
) -> list[LeaderboardRow]:
    """Summarize attempts and build the leaderboard in one call."""
    return build_leaderboard(summarize_attempts(attempts), athletes, objectives)


def competition_ranks(rows: list[LeaderboardRow]) -> list[int]:
    """
    Rank already-sorted rows, sharing the rank within a tie group.

    Every member of a run of equal (points, tops, zones) gets the position
    of the first member of that run.
    """
    ranks: list[int] = []
    for idx, row in enumerate(rows):
        if idx > 0 and row.tie_key == rows[idx - 1].tie_key:
            ranks.append(ranks[-1])
        else:
            ranks.append(idx + 1)
    return ranks


def select_finalists(rows: list[LeaderboardRow], count: int) -> list[LeaderboardRow]:
    """
    Cut a sorted leaderboard at ``count`` athletes, including ties at the cut.

    Athletes tied with the cut athlete on (points, tops, zones) all advance,
    so the result can be longer than ``count``.
    """
    if count <= 0 or not rows:
        return []
    if len(rows) <= count:
        return list(rows)

    cut_athlete = rows[count - 1]
    finalists = rows[:count]

    for row in rows[count:]:
        if row.tie_key != cut_athlete.tie_key:
            break
        finalists.append(row)

    if len(finalists) > count:
        logger.info(
            f"Tie at finalist cut: {len(finalists)} athletes advance ({count} requested)"
        )

    return finalists


def build_finals_startlist(
    rows: list[LeaderboardRow], count: int
) -> list[FinalsStartlistEntry]:
    """Finalist cut as startlist entries carrying each athlete's qualifier rank."""
    finalists = select_finalists(rows, count)
    return [
        FinalsStartlistEntry(athlete_id=row.athlete_id, qualifier_rank=rank)
        for row, rank in zip(finalists, competition_ranks(finalists))
    ]
