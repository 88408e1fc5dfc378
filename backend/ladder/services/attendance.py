"""Attendance ledger: who turned up on a match day."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ValidationError
from ..models import Attendance, MatchDay, Player
from .match_days import ensure_editable, find_match_day, get_or_create_match_day
from .roster import players_by_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceEntry:
    player_id: str
    present: bool


def _unique_entries(entries: Iterable[AttendanceEntry]) -> list[AttendanceEntry]:
    seen: dict[str, AttendanceEntry] = {}
    for entry in entries:
        pid = (entry.player_id or "").strip()
        if not pid:
            raise ValidationError("attendance entries require a player id.")
        if pid in seen:
            raise ValidationError(f"player '{pid}' is listed more than once.")
        seen[pid] = AttendanceEntry(player_id=pid, present=bool(entry.present))
    return list(seen.values())


async def save_attendance(
    session: AsyncSession,
    match_date: date,
    entries: Sequence[AttendanceEntry],
) -> tuple[MatchDay, list[Attendance]]:
    """Replace every attendance record for ``match_date``.

    The match day is created if it does not exist yet. The submission order is
    kept and later decides how present players are grouped onto courts.
    """

    unique = _unique_entries(entries)
    if not unique:
        raise ValidationError("Attendance array required.")
    await players_by_ids(session, (e.player_id for e in unique))

    match_day = await get_or_create_match_day(session, match_date)
    ensure_editable(match_day)

    await session.execute(
        delete(Attendance).where(Attendance.match_day_id == match_day.id)
    )
    records = [
        Attendance(
            id=uuid.uuid4().hex,
            match_day_id=match_day.id,
            player_id=entry.player_id,
            present=entry.present,
            position=index,
        )
        for index, entry in enumerate(unique)
    ]
    session.add_all(records)
    await session.flush()

    logger.info(
        "Saved attendance for %s: %d present, %d absent",
        match_date,
        sum(1 for r in records if r.present),
        sum(1 for r in records if not r.present),
    )
    return match_day, records


async def get_attendance(
    session: AsyncSession, match_date: date
) -> list[tuple[Attendance, Player]]:
    match_day = await find_match_day(session, match_date)
    if match_day is None:
        return []
    rows = (
        await session.execute(
            select(Attendance, Player)
            .join(Player, Player.id == Attendance.player_id)
            .where(Attendance.match_day_id == match_day.id)
            .order_by(Attendance.position, Attendance.id)
        )
    ).all()
    return [(attendance, player) for attendance, player in rows]


async def present_players(session: AsyncSession, match_day_id: str) -> list[Player]:
    """Players marked present, in attendance submission order."""

    return list(
        (
            await session.execute(
                select(Player)
                .join(Attendance, Attendance.player_id == Player.id)
                .where(
                    Attendance.match_day_id == match_day_id,
                    Attendance.present.is_(True),
                )
                .order_by(Attendance.position, Attendance.id)
            )
        ).scalars().all()
    )


async def absent_player_ids(session: AsyncSession, match_day_id: str) -> list[str]:
    return list(
        (
            await session.execute(
                select(Attendance.player_id)
                .where(
                    Attendance.match_day_id == match_day_id,
                    Attendance.present.is_(False),
                )
                .order_by(Attendance.position, Attendance.id)
            )
        ).scalars().all()
    )
