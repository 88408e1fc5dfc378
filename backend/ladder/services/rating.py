import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..db import atomic
from ..exceptions import NotFoundError, ValidationError
from ..models import Match
from .awards import set_deltas
from .match_days import ensure_editable, get_match_day
from .roster import players_by_ids, team_rating_sum
from .validation import resolve_winner_side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deltas:
    winner: int
    loser: int


# A rule receives the current-rating sums of the winning and losing teams.
DeltaRule = Callable[[int, int], Deltas]


def fixed(points: int) -> DeltaRule:
    def rule(winner_sum: int, loser_sum: int) -> Deltas:
        return Deltas(points, -points)

    return rule


def upset_bonus(upset_points: int, regular_points: int) -> DeltaRule:
    """Larger swing when the weaker team (by rating sum) wins. Ties are not upsets."""

    def rule(winner_sum: int, loser_sum: int) -> Deltas:
        points = upset_points if winner_sum < loser_sum else regular_points
        return Deltas(points, -points)

    return rule


def lopsided(winner_sum: int, loser_sum: int) -> Deltas:
    """Matches outside the template: the weaker side's result counts for 15."""

    if winner_sum < loser_sum:
        return Deltas(15, -5)
    return Deltas(5, -15)


MANUAL_TIER = "manual"

DELTA_RULES: dict[str, DeltaRule] = {
    "standard": fixed(5),
    "singles": fixed(10),
    "crossover": upset_bonus(10, 5),
    "final": upset_bonus(15, 5),
    MANUAL_TIER: lopsided,
}

TIER_BY_CODE: dict[str, str] = {
    **{code: "standard" for code in ("M1", "M2", "M3", "M4")},
    **{code: "singles" for code in ("M5", "M6", "M7", "M8")},
    **{code: "crossover" for code in ("M9", "M10")},
    **{code: "final" for code in ("M11", "M12")},
}


def delta_tier(match_code: str | None) -> str:
    return TIER_BY_CODE.get((match_code or "").strip().upper(), MANUAL_TIER)


def compute_deltas(match_code: str | None, winner_sum: int, loser_sum: int) -> Deltas:
    """Return the winner and loser deltas for a decided match.

    >>> compute_deltas("M9", 1990, 2050)
    Deltas(winner=10, loser=-10)
    """

    return DELTA_RULES[delta_tier(match_code)](winner_sum, loser_sum)


async def get_match(session: AsyncSession, match_id: str) -> Match:
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError("match", match_id)
    return match


async def apply_result(
    session: AsyncSession,
    match: Match,
    winner_ids: Sequence[str],
    score: str | None,
) -> Match:
    """Store the outcome of ``match`` and overwrite its award deltas.

    Runs inside the caller's transaction. Deltas replace whatever the ledger
    held for this match, so recording a different winner flips them instead
    of adding to them.
    """

    team1 = list(match.team1 or [])
    team2 = list(match.team2 or [])
    winners = [str(pid) for pid in dict.fromkeys(winner_ids or [])]
    side = resolve_winner_side(winners, team1, team2)
    if side is None:
        raise ValidationError("winnerIds must be exactly the players of one team.")

    losers = team2 if side == "team1" else team1
    players = await players_by_ids(session, team1 + team2)
    winner_sum = team_rating_sum(players, winners)
    loser_sum = team_rating_sum(players, losers)
    deltas = compute_deltas(match.match_code, winner_sum, loser_sum)

    logger.debug(
        "Match %s (%s, tier %s): winners %s sum=%d, losers %s sum=%d -> %+d/%+d",
        match.id,
        match.match_code,
        delta_tier(match.match_code),
        winners,
        winner_sum,
        losers,
        loser_sum,
        deltas.winner,
        deltas.loser,
    )

    per_player = {pid: deltas.winner for pid in winners}
    per_player.update({pid: deltas.loser for pid in losers})
    await set_deltas(session, match.id, per_player)

    match.score = score
    match.winner_ids = winners
    match.loser_ids = list(losers)
    await session.flush()
    return match


async def record_result(
    session: AsyncSession,
    match_id: str,
    winner_ids: Sequence[str],
    score: str | None = None,
) -> Match:
    """Record a result provisionally; ratings change only at finalize."""

    async with atomic(session):
        match = await get_match(session, match_id)
        ensure_editable(await get_match_day(session, match.match_day_id))
        await apply_result(session, match, winner_ids, score)
    return match
