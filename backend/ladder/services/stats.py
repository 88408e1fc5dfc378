from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Match, MatchDay, Player, RatingAward, RatingSnapshot
from .roster import get_player


@dataclass
class MatchPoints:
    match_id: str
    date: date
    match_code: str
    court: int
    score: Optional[str]
    points: int


@dataclass
class PlayerPerformance:
    player_id: str
    name: str
    initial_rating: int
    current_rating: int
    last_rating_updated_on: Optional[datetime]
    total_points: int = 0
    matches: List[MatchPoints] = field(default_factory=list)

    @property
    def matches_played(self) -> int:
        return len(self.matches)


@dataclass
class RatingPoint:
    match_day_id: str
    date: date
    rating: int


async def player_performance(session: AsyncSession) -> list[PlayerPerformance]:
    """Every player's award total and per-match points, strongest first.

    Totals include awards of match days that have not been finalized yet, so
    they can run ahead of ``current_rating``.
    """

    players = (
        await session.execute(
            select(Player).order_by(Player.current_rating.desc(), Player.name)
        )
    ).scalars().all()
    rows = (
        await session.execute(
            select(RatingAward, Match)
            .join(Match, Match.id == RatingAward.match_id)
            .order_by(Match.date.desc(), Match.court, Match.sequence)
        )
    ).all()

    by_player: Dict[str, List[MatchPoints]] = defaultdict(list)
    for award, match in rows:
        by_player[award.player_id].append(
            MatchPoints(
                match_id=match.id,
                date=match.date,
                match_code=match.match_code,
                court=match.court,
                score=match.score,
                points=award.delta or 0,
            )
        )

    return [
        PlayerPerformance(
            player_id=p.id,
            name=p.name,
            initial_rating=p.initial_rating,
            current_rating=p.current_rating,
            last_rating_updated_on=p.last_rating_updated_on,
            total_points=sum(m.points for m in by_player[p.id]),
            matches=by_player[p.id],
        )
        for p in players
    ]


async def rating_history(session: AsyncSession, player_id: str) -> list[RatingPoint]:
    """Snapshot trail for a player, oldest match day first."""

    await get_player(session, player_id)
    rows = (
        await session.execute(
            select(RatingSnapshot, MatchDay.date)
            .join(MatchDay, MatchDay.id == RatingSnapshot.match_day_id)
            .where(RatingSnapshot.player_id == player_id)
            .order_by(MatchDay.date)
        )
    ).all()
    return [
        RatingPoint(match_day_id=snapshot.match_day_id, date=day, rating=snapshot.rating)
        for snapshot, day in rows
    ]
