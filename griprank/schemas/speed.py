"""
Speed Scoring Models

Pydantic models for speed qualifier runs, bracket matches and rankings.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

TimingPrecision = Literal["ms2", "ms3"]
FalseStartRule = Literal["IFSC", "TOLERANT"]
Lane = Literal["A", "B"]


class SpeedRunStatus(str, Enum):
    TIME = "TIME"
    FS = "FS"  # False start
    DNS = "DNS"  # Did not start
    DNF = "DNF"  # Did not finish


class BracketStage(str, Enum):
    """Stage at which an athlete's final result was decided, best first."""

    WIN = "WIN"
    F = "F"
    SF = "SF"
    QF = "QF"
    R16 = "R16"
    QUAL = "QUAL"


class SpeedRun(BaseModel):
    """One timed run (qualifier run or bracket lane)."""

    status: Optional[SpeedRunStatus] = None
    ms: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _drop_ms_without_time(self) -> "SpeedRun":
        if self.status != SpeedRunStatus.TIME:
            self.ms = None
        return self

    @property
    def has_time(self) -> bool:
        """A TIME run only counts once the clock value has been entered."""
        return self.status == SpeedRunStatus.TIME and self.ms is not None


class SpeedQualifierResult(BaseModel):
    run_a: Optional[SpeedRun] = Field(None, alias="runA")
    run_b: Optional[SpeedRun] = Field(None, alias="runB")

    model_config = {"populate_by_name": True}

    @property
    def runs(self) -> list[SpeedRun]:
        return [run for run in (self.run_a, self.run_b) if run is not None]

    def times(self) -> list[int]:
        """Valid run times in ascending order."""
        return sorted(run.ms for run in self.runs if run.has_time)


class SpeedAthlete(BaseModel):
    id: str
    name: Optional[str] = None
    team: Optional[str] = None
    order: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)


class SpeedStanding(BaseModel):
    """Ranked qualifier row."""

    athlete_id: str = Field(..., alias="athleteId")
    name: str
    team: str = ""
    best_ms: Optional[int] = Field(None, alias="bestMs")
    second_ms: Optional[int] = Field(None, alias="secondMs")
    best_label: str = Field("", alias="bestLabel")
    second_label: str = Field("", alias="secondLabel")
    rank: int

    model_config = {"populate_by_name": True}


class BracketMatch(BaseModel):
    """One head-to-head race in the finals bracket."""

    id: Optional[str] = None
    round_id: Optional[str] = Field(None, alias="roundId")
    match_index: int = Field(1, ge=1, alias="matchIndex")
    athlete_a: Optional[str] = Field(None, alias="athleteA")
    athlete_b: Optional[str] = Field(None, alias="athleteB")
    lane_a: Optional[SpeedRun] = Field(None, alias="laneA")
    lane_b: Optional[SpeedRun] = Field(None, alias="laneB")
    winner: Optional[Lane] = None
    allow_winner_run: bool = Field(False, alias="allowWinnerRun")

    model_config = {"populate_by_name": True}

    @field_validator("allow_winner_run", mode="before")
    @classmethod
    def _coerce_allow(cls, value) -> bool:
        return bool(value)

    @property
    def winner_id(self) -> Optional[str]:
        if self.winner == "A":
            return self.athlete_a
        if self.winner == "B":
            return self.athlete_b
        return None

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner == "A":
            return self.athlete_b
        if self.winner == "B":
            return self.athlete_a
        return None

    def involves(self, athlete_id: str) -> bool:
        return athlete_id in (self.athlete_a, self.athlete_b)

    def lane_for(self, athlete_id: str) -> Optional[SpeedRun]:
        if athlete_id == self.athlete_a:
            return self.lane_a
        if athlete_id == self.athlete_b:
            return self.lane_b
        return None


class FinalsSeed(BaseModel):
    seed: int = Field(..., ge=1)
    athlete_id: str = Field(..., alias="aid")

    model_config = {"populate_by_name": True}


class FinalsMeta(BaseModel):
    """Bracket header written when finals are seeded."""

    size: int
    seeds: list[FinalsSeed] = []
    seed_rule: str = Field("best-time-of-two", alias="seedRule")
    seed_version: int = Field(2, alias="seedVersion")

    model_config = {"populate_by_name": True}


class OverallRankingRow(BaseModel):
    athlete_id: str = Field(..., alias="athleteId")
    name: str
    team: str = ""
    stage: BracketStage
    best_ms: Optional[int] = Field(None, alias="bestMs")
    second_ms: Optional[int] = Field(None, alias="secondMs")
    rank: int

    model_config = {"populate_by_name": True}


class SpeedSnapshot(BaseModel):
    """Input snapshot for one speed category as handed over by the caller."""

    athletes: list[SpeedAthlete] = []
    qualifiers: dict[str, SpeedQualifierResult] = Field(
        default={}, alias="qualifierResults"
    )
    rounds: dict[str, list[BracketMatch]] = {}
    size: Optional[int] = None
    precision: Optional[TimingPrecision] = Field(None, alias="timingPrecision")
    false_start_rule: Optional[FalseStartRule] = Field(None, alias="falseStartRule")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _tag_round_ids(self) -> "SpeedSnapshot":
        for round_id, matches in self.rounds.items():
            for match in matches:
                if match.round_id is None:
                    match.round_id = round_id
        return self
