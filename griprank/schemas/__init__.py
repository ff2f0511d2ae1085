# Schemas package
from griprank.schemas.boulder import (
    SYMBOL_ORDER,
    Attempt,
    AthleteInfo,
    BoulderSnapshot,
    FinalsStartlistEntry,
    LeaderboardRow,
    ObjectiveMeta,
    ObjectiveResult,
    ObjectiveSummary,
)
from griprank.schemas.speed import (
    BracketMatch,
    BracketStage,
    FalseStartRule,
    FinalsMeta,
    FinalsSeed,
    OverallRankingRow,
    SpeedAthlete,
    SpeedQualifierResult,
    SpeedRun,
    SpeedRunStatus,
    SpeedSnapshot,
    SpeedStanding,
    TimingPrecision,
)

__all__ = [
    "SYMBOL_ORDER",
    "Attempt",
    "AthleteInfo",
    "BoulderSnapshot",
    "FinalsStartlistEntry",
    "LeaderboardRow",
    "ObjectiveMeta",
    "ObjectiveResult",
    "ObjectiveSummary",
    "BracketMatch",
    "BracketStage",
    "FalseStartRule",
    "FinalsMeta",
    "FinalsSeed",
    "OverallRankingRow",
    "SpeedAthlete",
    "SpeedQualifierResult",
    "SpeedRun",
    "SpeedRunStatus",
    "SpeedSnapshot",
    "SpeedStanding",
    "TimingPrecision",
]
