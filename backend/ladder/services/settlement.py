"""Commit a match day's provisional awards into player ratings."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .. import config
from ..db import atomic
from ..exceptions import MatchDayFinalizedError, NotFoundError
from ..locks import match_day_lock
from ..models import Match, MatchDay, Player, RatingSnapshot
from ..time_utils import utcnow
from .attendance import absent_player_ids
from .awards import totals_for_match_day
from .match_days import get_match_day
from .roster import apply_deltas

logger = logging.getLogger(__name__)

ABSENCE_PENALTY = -10


@dataclass(frozen=True)
class FinalizeResult:
    match_day_id: str
    updated_players: int
    deltas: dict[str, int]
    message: str = "Match ratings finalized"


def settlement_deltas(
    award_totals: Mapping[str, int], absent_ids: Iterable[str]
) -> dict[str, int]:
    """Combine summed awards with the flat penalty for recorded absences."""

    totals: dict[str, int] = defaultdict(int)
    for pid, total in award_totals.items():
        totals[pid] += int(total)
    for pid in absent_ids:
        totals[pid] += ABSENCE_PENALTY
    return dict(totals)


async def _claim_match_day(
    session: AsyncSession, match_day_id: str, now: datetime
) -> None:
    """Flip ``finalized`` from false to true or fail if someone already did."""

    result = await session.execute(
        update(MatchDay)
        .where(MatchDay.id == match_day_id, MatchDay.finalized.is_(False))
        .values(finalized=True, finalized_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise MatchDayFinalizedError(match_day_id)


def _snapshots(
    players: Iterable[Player], match_day_id: str
) -> list[RatingSnapshot]:
    return [
        RatingSnapshot(
            id=uuid.uuid4().hex,
            player_id=player.id,
            match_day_id=match_day_id,
            rating=player.current_rating,
        )
        for player in players
    ]


async def finalize_matches(
    session: AsyncSession,
    match_day_id: str,
    *,
    now: datetime | None = None,
) -> FinalizeResult:
    """Apply a match day's award totals and absence penalties to the roster.

    A match day can be finalized once. The claim on the ``finalized`` flag,
    the rating updates and the snapshots share one transaction, and calls for
    the same match day are serialized in-process.
    """

    now = now or utcnow()
    async with match_day_lock(match_day_id):
        async with atomic(session):
            match_day = await get_match_day(session, match_day_id)
            has_matches = (
                await session.execute(
                    select(Match.id).where(Match.match_day_id == match_day_id).limit(1)
                )
            ).scalars().first()
            if has_matches is None:
                raise NotFoundError("matches_for_match_day", match_day_id)
            if match_day.finalized:
                raise MatchDayFinalizedError(match_day_id)

            await _claim_match_day(session, match_day_id, now)

            deltas = settlement_deltas(
                await totals_for_match_day(session, match_day_id),
                await absent_player_ids(session, match_day_id),
            )
            updated = await apply_deltas(session, deltas, now=now)
            if config.RATING_SNAPSHOTS_ENABLED:
                session.add_all(_snapshots(updated, match_day_id))

            match_day.finalized = True
            match_day.finalized_at = now
            await session.flush()

    logger.info(
        "Finalized match day %s: %d player rating(s) updated, net %+d",
        match_day_id,
        len(updated),
        sum(deltas.values()),
    )
    return FinalizeResult(
        match_day_id=match_day_id,
        updated_players=len(updated),
        deltas=deltas,
    )
