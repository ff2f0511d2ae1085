import pytest

from griprank.core.errors import InvalidBracketSizeError, NotEnoughQualifiersError
from griprank.schemas.speed import BracketMatch, SpeedRun, SpeedRunStatus, SpeedStanding
from griprank.services.bracket import (
    WINNER_SUFFIX,
    advance_round,
    bracket_order,
    decide_bracket_size,
    decide_pending_winners,
    final_matches,
    first_round_pairings,
    lane_result_label,
    seed_bracket,
)


def _standing(athlete_id, best_ms, rank):
    return SpeedStanding(athlete_id=athlete_id, name=athlete_id, best_ms=best_ms, rank=rank)


def _standings(timed, untimed=0):
    rows = [_standing(f"s{i}", 5000 + i * 10, i) for i in range(1, timed + 1)]
    rows += [_standing(f"n{i}", None, timed + 1) for i in range(untimed)]
    return rows


def _match(index, a, b, winner=None, round_id=None):
    return BracketMatch(
        round_id=round_id, match_index=index, athlete_a=a, athlete_b=b, winner=winner
    )


class TestBracketOrder:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (2, ["F"]),
            (4, ["SF", "F"]),
            (8, ["QF", "SF", "F"]),
            (16, ["R16", "QF", "SF", "F"]),
        ],
    )
    def test_rounds_by_size(self, size, expected):
        assert bracket_order(size) == expected

    def test_missing_size_is_bare_final(self):
        assert bracket_order(None) == ["F"]

    def test_unsupported_size(self):
        with pytest.raises(InvalidBracketSizeError):
            bracket_order(6)

    def test_returns_copy(self):
        bracket_order(8).append("X")
        assert bracket_order(8) == ["QF", "SF", "F"]


@pytest.mark.parametrize(
    "valid_count,size",
    [(2, 2), (3, 2), (4, 4), (7, 4), (8, 8), (15, 8), (16, 16), (40, 16)],
)
def test_decide_bracket_size(valid_count, size):
    assert decide_bracket_size(valid_count) == size


def test_first_round_pairings_cover_all_seeds():
    for size in (2, 4, 8, 16):
        pairs = first_round_pairings(size)
        seeds = sorted(seed for pair in pairs for seed in pair)
        assert seeds == list(range(1, size + 1))
        assert all(a + b == size + 1 for a, b in pairs)
    assert first_round_pairings(8) == [(1, 8), (4, 5), (2, 7), (3, 6)]
    with pytest.raises(InvalidBracketSizeError):
        first_round_pairings(12)


class TestSeedBracket:
    def test_seeds_eight_from_ten_timed(self):
        meta, matches = seed_bracket(_standings(10, untimed=3))
        assert meta.size == 8
        assert [s.athlete_id for s in meta.seeds] == [f"s{i}" for i in range(1, 9)]
        assert meta.seed_rule == "best-time-of-two"
        assert [m.round_id for m in matches] == ["QF"] * 4
        assert [(m.athlete_a, m.athlete_b) for m in matches] == [
            ("s1", "s8"),
            ("s4", "s5"),
            ("s2", "s7"),
            ("s3", "s6"),
        ]
        assert [m.match_index for m in matches] == [1, 2, 3, 4]
        assert all(m.winner is None for m in matches)

    def test_untimed_athletes_never_seeded(self):
        meta, _ = seed_bracket(_standings(3, untimed=5))
        assert meta.size == 2
        assert [s.athlete_id for s in meta.seeds] == ["s1", "s2"]

    def test_two_athlete_final(self):
        meta, matches = seed_bracket(_standings(2))
        assert matches[0].round_id == "F"
        assert (matches[0].athlete_a, matches[0].athlete_b) == ("s1", "s2")

    def test_not_enough_qualifiers(self):
        with pytest.raises(NotEnoughQualifiersError):
            seed_bracket(_standings(1, untimed=4))
        with pytest.raises(NotEnoughQualifiersError):
            seed_bracket([])


class TestFinalMatches:
    def test_small_and_big_final(self):
        small, big = final_matches([_match(2, "w1", "w2"), _match(1, "l1", "l2")])
        assert small.athlete_a == "l1"
        assert big.athlete_a == "w1"

    def test_single_match_is_big_final(self):
        small, big = final_matches([_match(1, "a", "b")])
        assert small is None
        assert big.athlete_a == "a"

    def test_empty(self):
        assert final_matches([]) == (None, None)


class TestAdvanceRound:
    def test_quarterfinal_winners_pair_up(self):
        matches = [
            _match(1, "s1", "s8", "A"),
            _match(2, "s4", "s5", "B"),
            _match(3, "s2", "s7", "A"),
            _match(4, "s3", "s6", "B"),
        ]
        semis = advance_round("QF", matches)
        assert [(m.round_id, m.match_index) for m in semis] == [("SF", 1), ("SF", 2)]
        assert [(m.athlete_a, m.athlete_b) for m in semis] == [("s1", "s5"), ("s2", "s6")]

    def test_semifinal_feeds_small_and_big_final(self):
        finals = advance_round(
            "SF", [_match(1, "s1", "s5", "B"), _match(2, "s2", "s6", "A")]
        )
        small, big = final_matches(finals)
        assert (small.match_index, small.athlete_a, small.athlete_b) == (1, "s1", "s6")
        assert (big.match_index, big.athlete_a, big.athlete_b) == (2, "s5", "s2")
        assert all(m.round_id == "F" for m in finals)

    def test_waits_for_all_winners(self):
        assert advance_round("SF", [_match(1, "a", "b", "A"), _match(2, "c", "d")]) is None

    def test_match_order_by_index(self):
        semis = advance_round(
            "QF",
            [
                _match(4, "g", "h", "A"),
                _match(1, "a", "b", "A"),
                _match(3, "e", "f", "A"),
                _match(2, "c", "d", "A"),
            ],
        )
        assert [(m.athlete_a, m.athlete_b) for m in semis] == [("a", "c"), ("e", "g")]

    def test_final_has_no_next_round(self):
        assert advance_round("F", [_match(1, "a", "b", "A")]) is None

    def test_empty_round(self):
        assert advance_round("QF", []) is None


class TestLaneResultLabel:
    def test_time(self):
        lane = SpeedRun(status=SpeedRunStatus.TIME, ms=5432)
        assert lane_result_label(lane) == "5.432 s"
        assert lane_result_label(lane, precision="ms2") == "5.43 s"

    def test_status_codes(self):
        for status in ("FS", "DNS", "DNF"):
            assert lane_result_label(SpeedRun(status=status)) == status

    def test_missing_lane(self):
        assert lane_result_label(None) == "—"
        assert lane_result_label(SpeedRun()) == "—"

    def test_winner_suffix(self):
        lane = SpeedRun(status=SpeedRunStatus.TIME, ms=5432)
        assert lane_result_label(lane, is_winner=True) == "5.432 s" + WINNER_SUFFIX

    def test_winner_suffix_without_lane(self):
        assert lane_result_label(None, is_winner=True) == "—" + WINNER_SUFFIX
        assert lane_result_label(SpeedRun(), is_winner=True) == "—" + WINNER_SUFFIX

    def test_big_final_winner_without_race(self):
        lane = SpeedRun(status=SpeedRunStatus.TIME, ms=5400)
        opponent = SpeedRun(status=SpeedRunStatus.FS)
        label = lane_result_label(lane, opponent, is_winner=True, is_big_final=True)
        assert label == "–" + WINNER_SUFFIX

    def test_winner_run_allowed_shows_time(self):
        lane = SpeedRun(status=SpeedRunStatus.TIME, ms=5400)
        opponent = SpeedRun(status=SpeedRunStatus.DNS)
        label = lane_result_label(
            lane, opponent, is_winner=True, is_big_final=True, allow_winner_run=True
        )
        assert label == "5.400 s" + WINNER_SUFFIX

    def test_small_final_winner_shows_time(self):
        lane = SpeedRun(status=SpeedRunStatus.TIME, ms=5400)
        opponent = SpeedRun(status=SpeedRunStatus.FS)
        assert lane_result_label(lane, opponent, is_winner=True) == "5.400 s" + WINNER_SUFFIX


class TestDecidePendingWinners:
    def _lane_match(self, lane_a, lane_b, winner=None):
        return BracketMatch(
            match_index=1,
            athlete_a="a",
            athlete_b="b",
            lane_a=lane_a,
            lane_b=lane_b,
            winner=winner,
        )

    def test_fills_winner_from_lanes(self):
        match = self._lane_match(
            SpeedRun(status=SpeedRunStatus.TIME, ms=5600),
            SpeedRun(status=SpeedRunStatus.TIME, ms=5500),
        )
        rounds = decide_pending_winners({"F": [match]})
        assert rounds["F"][0].winner == "B"
        assert rounds["F"][0].winner_id == "b"
        assert match.winner is None

    def test_rule_decides_lone_false_start(self):
        match = self._lane_match(
            SpeedRun(status=SpeedRunStatus.FS), SpeedRun(status=SpeedRunStatus.DNF)
        )
        assert decide_pending_winners({"F": [match]}, "IFSC")["F"][0].winner == "B"
        assert decide_pending_winners({"F": [match]}, "TOLERANT")["F"][0].winner is None

    def test_recorded_winner_kept(self):
        match = self._lane_match(
            SpeedRun(status=SpeedRunStatus.TIME, ms=5600),
            SpeedRun(status=SpeedRunStatus.TIME, ms=5500),
            winner="A",
        )
        assert decide_pending_winners({"SF": [match]})["SF"][0].winner == "A"

    def test_match_without_lanes_untouched(self):
        match = _match(1, "a", "b")
        assert decide_pending_winners({"QF": [match]}) == {"QF": [match]}
