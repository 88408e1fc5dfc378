"""Manual match creation and edits to existing matches."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import atomic
from ..exceptions import ValidationError
from ..models import Match, RatingAward
from .awards import awards_for_match, create_zero_awards, replace_participants
from .match_days import ensure_editable, get_match_day, get_or_create_match_day
from .rating import apply_result, get_match
from .roster import players_by_ids
from .validation import (
    match_type_for,
    normalize_court,
    normalize_match_code,
    resolve_winner_side,
    same_members,
    validate_teams,
)

logger = logging.getLogger(__name__)

WinnerTeam = Literal["team1", "team2"]


@dataclass
class MatchPatch:
    team1_players: Optional[Sequence[str]] = None
    team2_players: Optional[Sequence[str]] = None
    winner_team: Optional[WinnerTeam] = None
    score: Optional[str] = None
    # ``score`` is only written when explicitly provided, even as ``None``.
    score_set: bool = False


@dataclass
class MatchDetail:
    match: Match
    awards: list[RatingAward] = field(default_factory=list)
    winner: Optional[WinnerTeam] = None


async def create_match(
    session: AsyncSession,
    match_date: date,
    court: int,
    match_code: str,
    team1: Sequence[str],
    team2: Sequence[str],
    *,
    score: str | None = None,
) -> Match:
    """Add a match outside the generated template (zero-delta awards included)."""

    if match_date is None:
        raise ValidationError("date is required.")
    court = normalize_court(court)
    code = normalize_match_code(match_code)
    first, second = validate_teams(team1, team2)

    async with atomic(session):
        await players_by_ids(session, first + second)
        match_day = await get_or_create_match_day(session, match_date)
        ensure_editable(match_day)

        match = Match(
            id=uuid.uuid4().hex,
            match_day_id=match_day.id,
            court=court,
            match_code=code,
            match_type=match_type_for(first, second),
            sequence=0,
            date=match_date,
            team1=first,
            team2=second,
            score=score,
        )
        session.add(match)
        await session.flush()
        await create_zero_awards(session, match.id, first + second)

    logger.info("Created manual match %s (%s) on court %d for %s", match.id, code, court, match_date)
    return match


async def update_match(
    session: AsyncSession, match_id: str, patch: MatchPatch
) -> Match:
    """Edit teams, winner and score of a match.

    Validation happens before anything is written: no player on both teams,
    and team sizes must stay what they were (a singles match cannot become a
    doubles match through an edit). When the line-up changes the award rows
    are rebuilt for the new players and any previous winner is dropped unless
    this same patch names one.
    """

    async with atomic(session):
        match = await get_match(session, match_id)
        ensure_editable(await get_match_day(session, match.match_day_id))

        stored1 = list(match.team1 or [])
        stored2 = list(match.team2 or [])
        new1 = list(patch.team1_players) if patch.team1_players is not None else stored1
        new2 = list(patch.team2_players) if patch.team2_players is not None else stored2
        new1, new2 = validate_teams(new1, new2, expected_size=len(stored1))

        teams_changed = not (same_members(new1, stored1) and same_members(new2, stored2))
        if teams_changed:
            await players_by_ids(session, new1 + new2)
            await replace_participants(session, match.id, new1 + new2)
            match.team1 = new1
            match.team2 = new2
            match.match_type = match_type_for(new1, new2)
            match.winner_ids = None
            match.loser_ids = None
            logger.info("Match %s line-up changed; awards reset", match.id)

        if patch.score_set:
            match.score = patch.score

        if patch.winner_team is not None:
            if patch.winner_team not in ("team1", "team2"):
                raise ValidationError("winnerTeam must be 'team1' or 'team2'.")
            winner_ids = list(match.team1 if patch.winner_team == "team1" else match.team2)
        else:
            winner_ids = list(match.winner_ids or [])

        if winner_ids:
            await apply_result(session, match, winner_ids, match.score)
        else:
            await session.flush()

    return match


async def list_matches(session: AsyncSession) -> list[Match]:
    """All matches, newest date first, then by court and slot order."""

    stmt = select(Match).order_by(
        Match.date.desc(), Match.court, Match.sequence, Match.match_code
    )
    return list((await session.execute(stmt)).scalars().all())


async def get_match_detail(session: AsyncSession, match_id: str) -> MatchDetail:
    match = await get_match(session, match_id)
    awards = await awards_for_match(session, match.id)
    side = resolve_winner_side(match.winner_ids or [], match.team1 or [], match.team2 or [])
    return MatchDetail(match=match, awards=awards, winner=side)
