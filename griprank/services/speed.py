"""
Speed Qualifier Scoring

Qualifier standings from two timed runs per athlete, plus the pure write-path
helpers the judging screens use: false-start cascade and lane winner decision.
"""

import logging
from typing import Iterable, Literal, Mapping, Optional

from griprank.schemas.speed import (
    FalseStartRule,
    Lane,
    SpeedAthlete,
    SpeedQualifierResult,
    SpeedRun,
    SpeedRunStatus,
    SpeedStanding,
    TimingPrecision,
)

logger = logging.getLogger(__name__)

FAULT_STATUSES = (SpeedRunStatus.FS, SpeedRunStatus.DNS, SpeedRunStatus.DNF)
NO_RESULT = "—"

RunKey = Literal["runA", "runB"]


def format_ms(ms: Optional[int], precision: TimingPrecision = "ms3") -> str:
    """Format milliseconds as seconds with 2 or 3 decimals."""
    if ms is None:
        return ""
    decimals = 2 if precision == "ms2" else 3
    return f"{ms / 1000:.{decimals}f}"


def _fault_summary(result: Optional[SpeedQualifierResult]) -> str:
    """Fault codes seen on either run, e.g. 'FS/DNS'."""
    if result is None:
        return NO_RESULT
    observed = [
        status.value
        for status in FAULT_STATUSES
        if any(run.status == status for run in result.runs)
    ]
    return "/".join(observed) or NO_RESULT


def _second_label(
    result: Optional[SpeedQualifierResult], precision: TimingPrecision
) -> str:
    if result is None:
        return NO_RESULT

    times = result.times()
    if len(times) > 1:
        return format_ms(times[1], precision)

    faults = [run.status.value for run in result.runs if run.status in FAULT_STATUSES]
    if len(faults) >= 2:
        return faults[1]
    if faults:
        return faults[0]
    return NO_RESULT


def _roster(
    athletes: Iterable[SpeedAthlete], results: Mapping[str, SpeedQualifierResult]
) -> list[SpeedAthlete]:
    """Roster order, followed by any result holder missing from the roster."""
    roster = list(athletes)
    known = {athlete.id for athlete in roster}
    for athlete_id in sorted(set(results) - known):
        logger.debug(f"Qualifier result for unknown athlete {athlete_id}")
        roster.append(SpeedAthlete(id=athlete_id))
    return roster


def build_qualifier_standings(
    athletes: Iterable[SpeedAthlete],
    results: Mapping[str, SpeedQualifierResult],
    precision: TimingPrecision = "ms3",
) -> list[SpeedStanding]:
    """
    Rank qualifier results by best time, then second time, then name.

    Athletes without a single valid time go last and share one rank
    (number of timed athletes + 1). Ranking compares integer milliseconds;
    ``precision`` only affects the labels.

    Args:
        athletes: Category roster
        results: Qualifier results keyed by athlete id
        precision: Display precision for time labels

    Returns:
        Standings in rank order
    """
    rows = []
    for athlete in _roster(athletes, results):
        result = results.get(athlete.id)
        times = result.times() if result else []
        best_ms = times[0] if times else None
        second_ms = times[1] if len(times) > 1 else None

        rows.append(
            {
                "athlete_id": athlete.id,
                "name": athlete.name or athlete.id,
                "team": athlete.team or "",
                "best_ms": best_ms,
                "second_ms": second_ms,
                "best_label": (
                    format_ms(best_ms, precision)
                    if best_ms is not None
                    else _fault_summary(result)
                ),
                "second_label": _second_label(result, precision),
            }
        )

    timed = sorted(
        (r for r in rows if r["best_ms"] is not None),
        key=lambda r: (
            r["best_ms"],
            r["second_ms"] is None,
            r["second_ms"] or 0,
            r["name"].casefold(),
        ),
    )
    untimed = sorted(
        (r for r in rows if r["best_ms"] is None), key=lambda r: r["name"].casefold()
    )

    standings = [
        SpeedStanding(**row, rank=idx) for idx, row in enumerate(timed, start=1)
    ]
    # Everyone without a time shares the place after the last timed athlete
    no_time_rank = len(timed) + 1
    standings.extend(SpeedStanding(**row, rank=no_time_rank) for row in untimed)
    return standings


def cascade_run_b(
    existing_run_b: Optional[SpeedRun],
    run_a_status: Optional[SpeedRunStatus],
    rule: FalseStartRule = "IFSC",
) -> Optional[SpeedRun]:
    """
    Run B after run A has been recorded.

    Under the IFSC rule a false start on run A ends the athlete's qualifier,
    so run B defaults to DNS unless a result for it already exists.
    The tolerant rule judges run B on its own.
    """
    if rule == "IFSC" and run_a_status == SpeedRunStatus.FS:
        if existing_run_b is not None and existing_run_b.status is not None:
            return existing_run_b
        return SpeedRun(status=SpeedRunStatus.DNS, ms=None)
    return existing_run_b


def record_qualifier_run(
    existing: Optional[SpeedQualifierResult],
    run_key: RunKey,
    run: SpeedRun,
    rule: FalseStartRule = "IFSC",
) -> SpeedQualifierResult:
    """Merge a newly judged run into an athlete's qualifier result."""
    current = existing or SpeedQualifierResult()
    if run_key == "runA":
        run_b = cascade_run_b(current.run_b, run.status, rule)
        return SpeedQualifierResult(run_a=run, run_b=run_b)
    if run_key == "runB":
        return SpeedQualifierResult(run_a=current.run_a, run_b=run)
    raise ValueError(f"Unknown run key: {run_key}")


def decide_winner(
    lane_a: Optional[SpeedRun],
    lane_b: Optional[SpeedRun],
    rule: FalseStartRule = "IFSC",
) -> Optional[Lane]:
    """
    Decide a bracket race.

    A lone false start loses under the IFSC rule. Otherwise a lone valid time
    wins, and with two times the faster lane wins (lane A on equal times).
    """
    status_a = lane_a.status if lane_a else None
    status_b = lane_b.status if lane_b else None

    if rule == "IFSC":
        if status_a == SpeedRunStatus.FS and status_b != SpeedRunStatus.FS:
            return "B"
        if status_b == SpeedRunStatus.FS and status_a != SpeedRunStatus.FS:
            return "A"

    time_a = lane_a is not None and lane_a.has_time
    time_b = lane_b is not None and lane_b.has_time

    if time_a and not time_b:
        return "A"
    if time_b and not time_a:
        return "B"
    if time_a and time_b:
        return "A" if lane_a.ms <= lane_b.ms else "B"
    return None
