"""Court grouping and the fixed 12-match template.

Present players are split, in attendance order, into consecutive groups of
eight. Each full group gets its own court and plays the template below, which
puts every player in exactly five matches: two doubles in M1-M4, one singles
in M5-M8 and two doubles in M9-M12. A remainder of fewer than eight players
is not scheduled.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import atomic
from ..exceptions import AlreadyGeneratedError
from ..models import Match
from .attendance import present_players
from .awards import create_zero_awards
from .match_days import ensure_editable, get_match_day, get_or_create_match_day
from .validation import match_type_for

logger = logging.getLogger(__name__)

GROUP_SIZE = 8


@dataclass(frozen=True)
class TemplateSlot:
    code: str
    team1: tuple[int, ...]
    team2: tuple[int, ...]

    @property
    def match_type(self) -> str:
        return match_type_for(self.team1, self.team2)


MATCH_TEMPLATE: tuple[TemplateSlot, ...] = (
    TemplateSlot("M1", (0, 3), (1, 2)),
    TemplateSlot("M2", (4, 7), (5, 6)),
    TemplateSlot("M3", (2, 5), (3, 4)),
    TemplateSlot("M4", (0, 7), (1, 6)),
    TemplateSlot("M5", (0,), (1,)),
    TemplateSlot("M6", (2,), (3,)),
    TemplateSlot("M7", (4,), (5,)),
    TemplateSlot("M8", (6,), (7,)),
    TemplateSlot("M9", (0, 2), (1, 3)),
    TemplateSlot("M10", (4, 6), (5, 7)),
    TemplateSlot("M11", (0, 1), (2, 3)),
    TemplateSlot("M12", (4, 5), (6, 7)),
)


@dataclass(frozen=True)
class PlannedMatch:
    court: int
    sequence: int
    code: str
    match_type: str
    team1: tuple[str, ...]
    team2: tuple[str, ...]

    @property
    def player_ids(self) -> tuple[str, ...]:
        return self.team1 + self.team2


@dataclass
class CourtGroup:
    court: int
    matches: list = field(default_factory=list)


def partition_groups(
    player_ids: Sequence[str], size: int = GROUP_SIZE
) -> tuple[list[list[str]], list[str]]:
    """Split ``player_ids`` into full groups and the unscheduled remainder."""

    groups: list[list[str]] = []
    for index in range(0, len(player_ids), size):
        group = list(player_ids[index : index + size])
        if len(group) < size:
            return groups, group
        groups.append(group)
    return groups, []


def expand_group(
    group: Sequence[str],
    court: int,
    template: Sequence[TemplateSlot] = MATCH_TEMPLATE,
) -> list[PlannedMatch]:
    """Turn one court's players into the template's pairings."""

    if len(group) != GROUP_SIZE:
        raise ValueError(f"a court group needs exactly {GROUP_SIZE} players")
    if len(set(group)) != len(group):
        raise ValueError("duplicate player ids in court group")

    return [
        PlannedMatch(
            court=court,
            sequence=sequence,
            code=slot.code,
            match_type=slot.match_type,
            team1=tuple(group[i] for i in slot.team1),
            team2=tuple(group[i] for i in slot.team2),
        )
        for sequence, slot in enumerate(template, start=1)
    ]


def plan_schedule(player_ids: Sequence[str]) -> list[list[PlannedMatch]]:
    """Plan every court for an ordered list of present players."""

    groups, leftover = partition_groups(player_ids)
    if leftover:
        logger.info(
            "Leaving %d player(s) unscheduled; courts need %d players",
            len(leftover),
            GROUP_SIZE,
        )
    return [expand_group(group, court) for court, group in enumerate(groups, start=1)]


async def _has_matches(session: AsyncSession, match_day_id: str) -> bool:
    return (
        await session.execute(
            select(Match.id).where(Match.match_day_id == match_day_id).limit(1)
        )
    ).scalars().first() is not None


async def generate_schedule(
    session: AsyncSession, match_date: date
) -> list[CourtGroup]:
    """Create the day's matches and zero-delta awards from attendance.

    Raises ``AlreadyGeneratedError`` when the date already has matches. The
    match day row, the matches and the awards are committed together or not
    at all.
    """

    async with atomic(session):
        match_day = await get_or_create_match_day(session, match_date)
        ensure_editable(match_day)
        if await _has_matches(session, match_day.id):
            raise AlreadyGeneratedError(match_date)

        present = await present_players(session, match_day.id)
        courts: list[CourtGroup] = []
        for planned_court in plan_schedule([p.id for p in present]):
            group = CourtGroup(court=planned_court[0].court)
            for planned in planned_court:
                match = Match(
                    id=uuid.uuid4().hex,
                    match_day_id=match_day.id,
                    court=planned.court,
                    match_code=planned.code,
                    match_type=planned.match_type,
                    sequence=planned.sequence,
                    date=match_date,
                    team1=list(planned.team1),
                    team2=list(planned.team2),
                )
                session.add(match)
                group.matches.append(match)
            await session.flush()
            for match in group.matches:
                await create_zero_awards(session, match.id, match.team1 + match.team2)
            courts.append(group)

    logger.info(
        "Generated %d court(s) and %d match(es) for %s from %d present player(s)",
        len(courts),
        sum(len(c.matches) for c in courts),
        match_date,
        len(present),
    )
    return courts


async def get_schedule(session: AsyncSession, match_day_id: str) -> list[CourtGroup]:
    """Return a match day's stored matches grouped by court."""

    await get_match_day(session, match_day_id)
    matches = (
        await session.execute(
            select(Match)
            .where(Match.match_day_id == match_day_id)
            .order_by(Match.court, Match.sequence, Match.created_at, Match.id)
        )
    ).scalars().all()

    courts: dict[int, CourtGroup] = {}
    for match in matches:
        courts.setdefault(match.court, CourtGroup(court=match.court)).matches.append(match)
    return [courts[court] for court in sorted(courts)]
