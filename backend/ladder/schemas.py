from typing import Any, List, Literal, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from .time_utils import coerce_utc


def _strip_ids(value: Any) -> Any:
    if isinstance(value, list):
        return [v.strip() if isinstance(v, str) else v for v in value]
    return value


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    gender: Optional[Literal["M", "F"]] = None
    initialRating: Optional[int] = Field(default=None, ge=0)
    joiningDate: Optional[date] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("name must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("name must not be empty")
        return trimmed


class PlayerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    gender: Optional[Literal["M", "F"]] = None
    initialRating: Optional[int] = Field(default=None, ge=0)
    currentRating: Optional[int] = Field(default=None, ge=0)
    joiningDate: Optional[date] = None

    model_config = ConfigDict(extra="forbid")


class PlayerOut(BaseModel):
    id: str
    name: str
    gender: Optional[str] = None
    initialRating: int
    currentRating: int
    joiningDate: Optional[date] = None
    lastRatingUpdatedOn: Optional[datetime] = None

    @field_validator("lastRatingUpdatedOn")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return coerce_utc(value)


class AttendanceEntryIn(BaseModel):
    playerId: str = Field(..., min_length=1)
    present: bool


class AttendanceUpdate(BaseModel):
    date: date
    attendance: List[AttendanceEntryIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_players(self) -> "AttendanceUpdate":
        ids = [entry.playerId for entry in self.attendance]
        if len(ids) != len(set(ids)):
            raise ValueError("attendance must list each player once")
        return self


class AttendanceOut(BaseModel):
    playerId: str
    playerName: str
    present: bool


class AttendanceSavedOut(BaseModel):
    success: bool = True
    matchDayId: str
    present: int
    absent: int


class ScheduleRequest(BaseModel):
    date: date


class MatchDayOut(BaseModel):
    id: str
    date: date
    finalized: bool
    finalizedAt: Optional[datetime] = None


class MatchOut(BaseModel):
    """A scheduled or manually created match."""

    id: str
    matchDayId: str
    court: int
    matchCode: str
    matchType: Literal["singles", "doubles"]
    date: date
    team1: List[str]
    team2: List[str]
    score: Optional[str] = None
    winnerIds: Optional[List[str]] = None
    loserIds: Optional[List[str]] = None


class CourtOut(BaseModel):
    court: int
    matches: List[MatchOut] = Field(default_factory=list)


class AwardOut(BaseModel):
    playerId: str
    delta: int


class MatchDetailOut(MatchOut):
    """Match with its provisional awards and the winning side, if decided."""

    winner: Optional[Literal["team1", "team2"]] = None
    awards: List[AwardOut] = Field(default_factory=list)


class MatchCreate(BaseModel):
    date: date
    court: int = Field(..., ge=1)
    matchCode: str = Field(..., min_length=1, max_length=20)
    team1: List[str] = Field(..., min_length=1, max_length=2)
    team2: List[str] = Field(..., min_length=1, max_length=2)
    score: Optional[str] = None

    @field_validator("team1", "team2", mode="before")
    @classmethod
    def _strip_team(cls, value: Any) -> Any:
        return _strip_ids(value)


class MatchUpdate(BaseModel):
    team1Players: Optional[List[str]] = None
    team2Players: Optional[List[str]] = None
    winnerTeam: Optional[Literal["team1", "team2"]] = None
    score: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("team1Players", "team2Players", mode="before")
    @classmethod
    def _strip_team(cls, value: Any) -> Any:
        return _strip_ids(value)


class ResultIn(BaseModel):
    matchId: str
    winnerIds: List[str] = Field(..., min_length=1, max_length=2)
    score: Optional[str] = None


class FinalizeIn(BaseModel):
    matchDayId: str


class FinalizeOut(BaseModel):
    message: str
    updatedPlayers: int


class MatchPointsOut(BaseModel):
    matchId: str
    date: date
    matchCode: str
    court: int
    score: Optional[str] = None
    points: int


class PlayerPerformanceOut(BaseModel):
    id: str
    name: str
    initialRating: int
    currentRating: int
    totalPoints: int
    matchesPlayed: int
    lastRatingUpdatedOn: Optional[datetime] = None
    matches: List[MatchPointsOut] = Field(default_factory=list)


class RatingPointOut(BaseModel):
    matchDayId: str
    date: date
    rating: int
