"""
Boulder Scoring Models

Pydantic models for boulder attempts, per-objective summaries and leaderboard rows.
Documents from the persistence layer use camelCase keys; both spellings are accepted.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Attempt symbols ranked from worst to best
SYMBOL_ORDER = {"": 0, "1": 1, "Z": 2, "T": 3}


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class Attempt(BaseModel):
    """A single judged attempt on a route or detail."""

    athlete_id: Optional[str] = Field(None, alias="athleteId")
    route_id: Optional[str] = Field(None, alias="routeId")
    detail_index: Optional[str] = Field(None, alias="detailIndex")
    symbol: str = ""
    round: Optional[str] = None
    created_at: float = Field(0, alias="createdAt")

    model_config = {"populate_by_name": True}

    @field_validator("athlete_id", "route_id", "detail_index", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Optional[str]:
        # Detail indices are stored as numbers in some documents
        return _optional_str(value)

    @field_validator("symbol", mode="before")
    @classmethod
    def _coerce_symbol(cls, value: Any) -> str:
        return str(value) if value is not None else ""

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> float:
        return value if value is not None else 0

    @property
    def objective_key(self) -> str:
        """Route id wins over detail index; anything else lands in the unknown bucket."""
        if self.route_id:
            return f"route:{self.route_id}"
        if self.detail_index is not None:
            return f"detail:{self.detail_index}"
        return "detail:unknown"


class ObjectiveSummary(BaseModel):
    """Best result of one athlete on one objective."""

    total_attempts: int = Field(0, ge=0, alias="totalAttempts")
    zone_attempt: Optional[int] = Field(None, ge=1, alias="zoneAttempt")
    top_attempt: Optional[int] = Field(None, ge=1, alias="topAttempt")
    best_symbol: str = Field("", alias="bestSymbol")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _top_implies_zone(self) -> "ObjectiveSummary":
        if self.top_attempt is not None:
            if self.zone_attempt is None:
                raise ValueError("topAttempt recorded without a zoneAttempt")
            if self.zone_attempt > self.top_attempt:
                raise ValueError("zoneAttempt cannot come after topAttempt")
        return self


class AthleteInfo(BaseModel):
    """Display identity of a boulder athlete."""

    bib: Optional[str] = None
    name: Optional[str] = None
    team: Optional[str] = None

    @field_validator("bib", mode="before")
    @classmethod
    def _coerce_bib(cls, value: Any) -> Optional[str]:
        return _optional_str(value)


class ObjectiveMeta(BaseModel):
    """Metadata for a route (finals) or detail group (qualification)."""

    type: Literal["detail", "route"] = "detail"
    detail_index: Optional[str] = Field(None, alias="detailIndex")
    route_id: Optional[str] = Field(None, alias="routeId")
    label: Optional[str] = None
    order: Optional[float] = None

    model_config = {"populate_by_name": True}

    @field_validator("detail_index", "route_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Optional[str]:
        return _optional_str(value)


class ObjectiveResult(BaseModel):
    """Scored objective within a leaderboard row."""

    key: str
    point_value: float = Field(0.0, alias="pointValue")
    zone_attempt: Optional[int] = Field(None, alias="zoneAttempt")
    top_attempt: Optional[int] = Field(None, alias="topAttempt")
    best_symbol: str = Field("", alias="bestSymbol")
    detail_index: Optional[str] = Field(None, alias="detailIndex")
    detail_label: str = Field("", alias="detailLabel")
    route_id: Optional[str] = Field(None, alias="routeId")

    model_config = {"populate_by_name": True}


class LeaderboardRow(BaseModel):
    athlete_id: str = Field(..., alias="athleteId")
    bib: str = ""
    name: str
    team: str = ""
    points: float = 0.0
    tops: int = 0
    zones: int = 0
    objectives: list[ObjectiveResult] = []

    model_config = {"populate_by_name": True}

    @property
    def tie_key(self) -> tuple[float, int, int]:
        """The (points, tops, zones) triple that defines a tie."""
        return (self.points, self.tops, self.zones)


class FinalsStartlistEntry(BaseModel):
    athlete_id: str = Field(..., alias="athleteId")
    qualifier_rank: int = Field(..., ge=1, alias="qualifierRank")

    model_config = {"populate_by_name": True}


class BoulderSnapshot(BaseModel):
    """Input snapshot for one boulder category/round as handed over by the caller."""

    attempts: list[Attempt] = []
    athletes: dict[str, AthleteInfo] = {}
    objectives: dict[str, ObjectiveMeta] = Field(default={}, alias="detailsMeta")
    finalist_count: Optional[int] = Field(None, alias="finalistCount")

    model_config = {"populate_by_name": True}
