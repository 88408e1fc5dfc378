"""Award ledger: provisional per-match, per-player rating deltas.

Rows are created with a zero delta when a match is created, overwritten when a
result is recorded and replaced wholesale when a match's teams change. Nothing
here touches ``Player.current_rating``; the ledger is only summed at finalize.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ConsistencyError
from ..models import Match, RatingAward

logger = logging.getLogger(__name__)


async def create_zero_awards(
    session: AsyncSession, match_id: str, player_ids: Iterable[str]
) -> list[RatingAward]:
    awards = [
        RatingAward(id=uuid.uuid4().hex, match_id=match_id, player_id=pid, delta=0)
        for pid in dict.fromkeys(player_ids)
    ]
    session.add_all(awards)
    await session.flush()
    return awards


async def awards_for_match(session: AsyncSession, match_id: str) -> list[RatingAward]:
    return list(
        (
            await session.execute(
                select(RatingAward)
                .where(RatingAward.match_id == match_id)
                .order_by(RatingAward.player_id)
            )
        ).scalars().all()
    )


async def replace_participants(
    session: AsyncSession, match_id: str, player_ids: Iterable[str]
) -> list[RatingAward]:
    """Drop every award for ``match_id`` and start the new roster at zero.

    Runs inside the caller's transaction so the delete and the inserts land
    together; stale rows for removed players never survive.
    """

    await session.execute(delete(RatingAward).where(RatingAward.match_id == match_id))
    return await create_zero_awards(session, match_id, player_ids)


async def set_deltas(
    session: AsyncSession, match_id: str, deltas: Mapping[str, int]
) -> list[RatingAward]:
    """Overwrite the delta of every participant of ``match_id``.

    The ledger must hold exactly one row per player in ``deltas``. Anything
    else means the match and its awards have drifted apart.
    """

    awards = await awards_for_match(session, match_id)
    ledger_ids = {a.player_id for a in awards}
    expected_ids = set(deltas)
    if ledger_ids != expected_ids:
        detail = (
            f"awards for match '{match_id}' cover {sorted(ledger_ids)} "
            f"but the match has {sorted(expected_ids)}"
        )
        logger.error("Award ledger inconsistent: %s", detail)
        raise ConsistencyError(detail)

    for award in awards:
        award.delta = int(deltas[award.player_id])
    await session.flush()
    return awards


async def totals_for_match_day(
    session: AsyncSession, match_day_id: str
) -> dict[str, int]:
    """Sum award deltas per player over every match of a match day."""

    rows = (
        await session.execute(
            select(RatingAward.player_id, func.coalesce(func.sum(RatingAward.delta), 0))
            .join(Match, Match.id == RatingAward.match_id)
            .where(Match.match_day_id == match_day_id)
            .group_by(RatingAward.player_id)
        )
    ).all()
    return {player_id: int(total) for player_id, total in rows}
