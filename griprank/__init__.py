"""GripRank - Scoring and ranking engine for bouldering and speed climbing competitions."""

from .core.errors import InvalidBracketSizeError, NotEnoughQualifiersError, ScoringError
from .services.bracket import (
    advance_round,
    bracket_order,
    decide_bracket_size,
    decide_pending_winners,
    final_matches,
    first_round_pairings,
    lane_result_label,
    seed_bracket,
)
from .services.leaderboard import (
    build_finals_startlist,
    build_leaderboard,
    competition_ranks,
    leaderboard_from_attempts,
    select_finalists,
    summarize_attempts,
)
from .services.overall import build_overall_ranking
from .services.scoring import score_objective
from .services.speed import (
    build_qualifier_standings,
    cascade_run_b,
    decide_winner,
    format_ms,
    record_qualifier_run,
)

__all__ = [
    "InvalidBracketSizeError",
    "NotEnoughQualifiersError",
    "ScoringError",
    "advance_round",
    "bracket_order",
    "decide_bracket_size",
    "decide_pending_winners",
    "final_matches",
    "first_round_pairings",
    "lane_result_label",
    "seed_bracket",
    "build_finals_startlist",
    "build_leaderboard",
    "competition_ranks",
    "leaderboard_from_attempts",
    "select_finalists",
    "summarize_attempts",
    "build_overall_ranking",
    "score_objective",
    "build_qualifier_standings",
    "cascade_run_b",
    "decide_winner",
    "format_ms",
    "record_qualifier_run",
]
