from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import MatchDayFinalizedError, NotFoundError
from ..models import MatchDay


async def get_match_day(session: AsyncSession, match_day_id: str) -> MatchDay:
    match_day = await session.get(MatchDay, match_day_id)
    if match_day is None:
        raise NotFoundError("match_day", match_day_id)
    return match_day


async def find_match_day(session: AsyncSession, match_date: date) -> MatchDay | None:
    return (
        await session.execute(select(MatchDay).where(MatchDay.date == match_date))
    ).scalars().first()


async def get_or_create_match_day(
    session: AsyncSession, match_date: date
) -> MatchDay:
    """Return the match day for ``match_date``, creating it on first use."""

    match_day = await find_match_day(session, match_date)
    if match_day is None:
        match_day = MatchDay(id=uuid.uuid4().hex, date=match_date, finalized=False)
        session.add(match_day)
        await session.flush()
    return match_day


def ensure_editable(match_day: MatchDay) -> None:
    if match_day.finalized:
        raise MatchDayFinalizedError(match_day.id)


async def list_match_days(session: AsyncSession) -> list[MatchDay]:
    return list(
        (
            await session.execute(select(MatchDay).order_by(MatchDay.date.desc()))
        ).scalars().all()
    )
