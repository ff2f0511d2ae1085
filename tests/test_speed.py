import pytest

from griprank.schemas.speed import (
    SpeedAthlete,
    SpeedQualifierResult,
    SpeedRun,
    SpeedRunStatus,
)
from griprank.services.speed import (
    build_qualifier_standings,
    cascade_run_b,
    decide_winner,
    format_ms,
    record_qualifier_run,
)

TIME = SpeedRunStatus.TIME
FS = SpeedRunStatus.FS
DNS = SpeedRunStatus.DNS
DNF = SpeedRunStatus.DNF


def _run(status, ms=None):
    return SpeedRun(status=status, ms=ms)


def _result(run_a=None, run_b=None):
    return SpeedQualifierResult(run_a=run_a, run_b=run_b)


def _athletes(*names):
    return [SpeedAthlete(id=name.lower(), name=name) for name in names]


def test_format_ms():
    assert format_ms(6123) == "6.123"
    assert format_ms(6123, "ms2") == "6.12"
    assert format_ms(12000, "ms2") == "12.00"
    assert format_ms(None) == ""


class TestQualifierStandings:
    def test_best_and_second(self):
        standings = build_qualifier_standings(
            _athletes("X"), {"x": _result(_run(TIME, 12345), _run(TIME, 12100))}
        )
        row = standings[0]
        assert row.best_ms == 12100
        assert row.second_ms == 12345
        assert row.rank == 1
        assert row.best_label == "12.100"
        assert row.second_label == "12.345"

    def test_sorted_by_best_then_second_then_name(self):
        results = {
            "a": _result(_run(TIME, 7000), _run(TIME, 7500)),
            "b": _result(_run(TIME, 7000), _run(TIME, 7200)),
            "c": _result(_run(TIME, 7000), _run(FS)),
            "d": _result(_run(TIME, 6900), _run(DNF)),
            "e": _result(_run(TIME, 7000), _run(DNF)),
        }
        standings = build_qualifier_standings(_athletes("A", "B", "C", "D", "E"), results)
        assert [s.athlete_id for s in standings] == ["d", "b", "a", "c", "e"]
        assert [s.rank for s in standings] == [1, 2, 3, 4, 5]

    def test_athletes_without_time_share_rank(self):
        results = {
            "a": _result(_run(TIME, 7000)),
            "b": _result(_run(FS), _run(DNS)),
            "c": _result(_run(DNF), _run(DNF)),
        }
        standings = build_qualifier_standings(_athletes("C", "B", "A", "D"), results)
        assert [s.athlete_id for s in standings] == ["a", "b", "c", "d"]
        assert [s.rank for s in standings] == [1, 2, 2, 2]

    def test_all_without_time(self):
        standings = build_qualifier_standings(_athletes("A", "B"), {})
        assert [s.rank for s in standings] == [1, 1]
        assert all(s.best_ms is None and s.second_ms is None for s in standings)

    def test_time_without_ms_is_not_valid(self):
        standings = build_qualifier_standings(
            _athletes("A"), {"a": _result(_run(TIME), _run(TIME, 8000))}
        )
        assert standings[0].best_ms == 8000
        assert standings[0].second_ms is None

    def test_fault_labels(self):
        results = {
            "a": _result(_run(FS), _run(DNS)),
            "b": _result(_run(TIME, 7000), _run(DNF)),
            "c": _result(),
        }
        by_id = {
            s.athlete_id: s
            for s in build_qualifier_standings(_athletes("A", "B", "C"), results)
        }
        assert by_id["a"].best_label == "FS/DNS"
        assert by_id["a"].second_label == "DNS"
        assert by_id["b"].best_label == "7.000"
        assert by_id["b"].second_label == "DNF"
        assert by_id["c"].best_label == "—"
        assert by_id["c"].second_label == "—"

    def test_precision_only_affects_labels(self):
        results = {
            "a": _result(_run(TIME, 6004)),
            "b": _result(_run(TIME, 6001)),
        }
        standings = build_qualifier_standings(_athletes("A", "B"), results, "ms2")
        assert [s.athlete_id for s in standings] == ["b", "a"]
        assert [s.best_label for s in standings] == ["6.00", "6.00"]
        assert [s.rank for s in standings] == [1, 2]

    def test_unknown_result_holder_included(self):
        standings = build_qualifier_standings(
            _athletes("A"), {"ghost": _result(_run(TIME, 9000))}
        )
        ghost = next(s for s in standings if s.athlete_id == "ghost")
        assert ghost.name == "ghost"
        assert ghost.team == ""
        assert ghost.rank == 1

    def test_empty(self):
        assert build_qualifier_standings([], {}) == []


class TestFalseStartCascade:
    def test_fs_on_run_a_sets_dns(self):
        run_b = cascade_run_b(None, FS, "IFSC")
        assert run_b.status == DNS
        assert run_b.ms is None

    def test_existing_run_b_kept(self):
        existing = _run(TIME, 7000)
        assert cascade_run_b(existing, FS, "IFSC") is existing

    def test_empty_run_b_replaced(self):
        assert cascade_run_b(SpeedRun(), FS, "IFSC").status == DNS

    def test_tolerant_rule_does_not_cascade(self):
        assert cascade_run_b(None, FS, "TOLERANT") is None

    @pytest.mark.parametrize("status", [TIME, DNS, DNF])
    def test_only_false_start_cascades(self, status):
        assert cascade_run_b(None, status, "IFSC") is None

    def test_record_run_a_false_start(self):
        result = record_qualifier_run(None, "runA", _run(FS), "IFSC")
        assert result.run_a.status == FS
        assert result.run_b == SpeedRun(status=DNS, ms=None)

    def test_record_run_b_overrides_cascaded_dns(self):
        result = record_qualifier_run(None, "runA", _run(FS), "IFSC")
        result = record_qualifier_run(result, "runB", _run(TIME, 7100), "IFSC")
        assert result.run_a.status == FS
        assert result.run_b.ms == 7100

    def test_record_keeps_other_run(self):
        existing = _result(_run(TIME, 7000), _run(TIME, 6800))
        result = record_qualifier_run(existing, "runA", _run(DNF), "IFSC")
        assert result.run_a.status == DNF
        assert result.run_b.ms == 6800

    def test_record_unknown_key(self):
        with pytest.raises(ValueError):
            record_qualifier_run(None, "runC", _run(TIME, 1000))


class TestDecideWinner:
    def test_faster_time_wins(self):
        assert decide_winner(_run(TIME, 6000), _run(TIME, 6100)) == "A"
        assert decide_winner(_run(TIME, 6200), _run(TIME, 6100)) == "B"

    def test_equal_times_go_to_lane_a(self):
        assert decide_winner(_run(TIME, 6000), _run(TIME, 6000)) == "A"

    def test_false_start_loses_under_ifsc(self):
        assert decide_winner(_run(FS), _run(DNF), "IFSC") == "B"
        assert decide_winner(_run(DNF), _run(FS), "IFSC") == "A"

    def test_both_false_start(self):
        assert decide_winner(_run(FS), _run(FS), "IFSC") is None

    def test_tolerant_needs_a_time(self):
        assert decide_winner(_run(FS), _run(DNF), "TOLERANT") is None
        assert decide_winner(_run(FS), _run(TIME, 7000), "TOLERANT") == "B"

    def test_single_time_wins(self):
        assert decide_winner(_run(TIME, 9000), _run(DNF)) == "A"
        assert decide_winner(None, _run(TIME, 9000)) == "B"

    def test_undecided(self):
        assert decide_winner(None, None) is None
        assert decide_winner(_run(DNS), _run(DNF)) is None
