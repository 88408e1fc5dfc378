"""Player roster access and the single rating mutation path."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Iterable, Mapping, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import config
from ..exceptions import NotFoundError, PlayerAlreadyExists, ValidationError
from ..models import Player, RatingAward

logger = logging.getLogger(__name__)

VALID_GENDERS = {"M", "F"}
RATING_LOCKED_FIELDS = ("initial_rating", "current_rating", "joining_date")


def _normalize_name(name: str | None) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationError("Player name is required.")
    return trimmed


def _normalize_gender(gender: str | None) -> str | None:
    if gender is None:
        return None
    value = gender.strip().upper()
    if not value:
        return None
    if value not in VALID_GENDERS:
        raise ValidationError("gender must be 'M' or 'F'.")
    return value


async def _name_taken(
    session: AsyncSession, name: str, *, exclude_id: str | None = None
) -> bool:
    stmt = select(Player.id).where(func.lower(Player.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Player.id != exclude_id)
    return (await session.execute(stmt)).scalars().first() is not None


async def get_player(session: AsyncSession, player_id: str) -> Player:
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError("player", player_id)
    return player


async def players_by_ids(
    session: AsyncSession, player_ids: Iterable[str]
) -> dict[str, Player]:
    """Return players keyed by id; every requested id must exist."""

    ids = set(player_ids)
    if not ids:
        return {}
    rows = (
        await session.execute(select(Player).where(Player.id.in_(ids)))
    ).scalars().all()
    found = {p.id: p for p in rows}
    missing = sorted(ids - set(found))
    if missing:
        raise NotFoundError("player", ", ".join(missing))
    return found


async def list_players(session: AsyncSession) -> list[Player]:
    return list(
        (
            await session.execute(
                select(Player).order_by(Player.current_rating.desc(), Player.name)
            )
        ).scalars().all()
    )


async def has_match_history(session: AsyncSession, player_id: str) -> bool:
    return (
        await session.execute(
            select(RatingAward.id).where(RatingAward.player_id == player_id).limit(1)
        )
    ).scalars().first() is not None


async def create_player(
    session: AsyncSession,
    name: str,
    *,
    initial_rating: int | None = None,
    gender: str | None = None,
    joining_date: date | None = None,
) -> Player:
    """Add a player whose current rating starts at the initial rating."""

    name = _normalize_name(name)
    gender = _normalize_gender(gender)
    rating = config.DEFAULT_INITIAL_RATING if initial_rating is None else int(initial_rating)

    if await _name_taken(session, name):
        raise PlayerAlreadyExists(name)

    player = Player(
        id=uuid.uuid4().hex,
        name=name,
        gender=gender,
        initial_rating=rating,
        current_rating=rating,
        joining_date=joining_date or date.today(),
    )
    session.add(player)
    await session.flush()
    return player


async def update_player(
    session: AsyncSession,
    player_id: str,
    *,
    name: str | None = None,
    gender: str | None = None,
    initial_rating: int | None = None,
    current_rating: int | None = None,
    joining_date: date | None = None,
) -> Player:
    """Apply administrative edits to a player.

    Once a player has any award row, rating fields and the joining date are
    locked; changes to them are ignored rather than rejected.
    """

    player = await get_player(session, player_id)

    if name is not None:
        new_name = _normalize_name(name)
        if await _name_taken(session, new_name, exclude_id=player_id):
            raise PlayerAlreadyExists(new_name)
        player.name = new_name

    if gender is not None:
        player.gender = _normalize_gender(gender)

    requested = {
        "initial_rating": initial_rating,
        "current_rating": current_rating,
        "joining_date": joining_date,
    }
    requested = {k: v for k, v in requested.items() if v is not None}
    if requested:
        if await has_match_history(session, player_id):
            logger.info(
                "Ignoring locked fields %s for player %s with match history",
                sorted(requested),
                player_id,
            )
        else:
            for field, value in requested.items():
                setattr(player, field, value)

    await session.flush()
    return player


async def delete_player(session: AsyncSession, player_id: str) -> None:
    player = await get_player(session, player_id)
    if await has_match_history(session, player_id):
        raise ValidationError(
            "Cannot delete player with match history.",
            code="player_has_history",
            status_code=409,
        )
    await session.delete(player)
    await session.flush()


def team_rating_sum(players: Mapping[str, Player], team: Sequence[str]) -> int:
    return sum(players[pid].current_rating or 0 for pid in team)


async def apply_deltas(
    session: AsyncSession,
    deltas: Mapping[str, int],
    *,
    now: datetime,
) -> list[Player]:
    """Add ``deltas`` to current ratings and stamp the update time.

    This is the only code path that changes ``Player.current_rating``. All
    players are loaded before any of them is modified, so an unknown id fails
    the whole batch.
    """

    if not deltas:
        return []

    players = await players_by_ids(session, deltas.keys())
    updated: list[Player] = []
    for pid in sorted(deltas):
        player = players[pid]
        player.current_rating = (player.current_rating or 0) + int(deltas[pid])
        player.last_rating_updated_on = now
        updated.append(player)
        logger.debug(
            "Player %s rating %+d -> %d", pid, deltas[pid], player.current_rating
        )

    await session.flush()
    return updated
