from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..models import Match
from ..schemas import (
    AwardOut,
    FinalizeIn,
    FinalizeOut,
    MatchCreate,
    MatchDetailOut,
    MatchOut,
    MatchUpdate,
    ResultIn,
)
from ..services.matches import (
    MatchPatch,
    create_match,
    get_match_detail,
    list_matches,
    update_match,
)
from ..services.rating import record_result
from ..services.settlement import finalize_matches

router = APIRouter(
    tags=["matches"],
    responses={
        400: {"model": ProblemDetail},
        404: {"model": ProblemDetail},
        409: {"model": ProblemDetail},
    },
)


def match_to_out(match: Match) -> MatchOut:
    return MatchOut(
        id=match.id,
        matchDayId=match.match_day_id,
        court=match.court,
        matchCode=match.match_code,
        matchType=match.match_type,
        date=match.date,
        team1=list(match.team1 or []),
        team2=list(match.team2 or []),
        score=match.score,
        winnerIds=match.winner_ids,
        loserIds=match.loser_ids,
    )


async def _detail_out(session: AsyncSession, match_id: str) -> MatchDetailOut:
    detail = await get_match_detail(session, match_id)
    return MatchDetailOut(
        **match_to_out(detail.match).model_dump(),
        winner=detail.winner,
        awards=[AwardOut(playerId=a.player_id, delta=a.delta) for a in detail.awards],
    )


@router.get("/matches", response_model=list[MatchOut])
async def get_matches(session: AsyncSession = Depends(get_session)):
    return [match_to_out(m) for m in await list_matches(session)]


@router.post("/matches", response_model=MatchDetailOut, status_code=201)
async def post_match(body: MatchCreate, session: AsyncSession = Depends(get_session)):
    match = await create_match(
        session,
        body.date,
        body.court,
        body.matchCode,
        body.team1,
        body.team2,
        score=body.score,
    )
    return await _detail_out(session, match.id)


@router.get("/matches/{match_id}", response_model=MatchDetailOut)
async def get_match(match_id: str, session: AsyncSession = Depends(get_session)):
    return await _detail_out(session, match_id)


@router.patch("/matches/{match_id}", response_model=MatchDetailOut)
async def patch_match(
    match_id: str,
    body: MatchUpdate,
    session: AsyncSession = Depends(get_session),
):
    payload = body.model_dump(exclude_unset=True)
    patch = MatchPatch(
        team1_players=payload.get("team1Players"),
        team2_players=payload.get("team2Players"),
        winner_team=payload.get("winnerTeam"),
        score=payload.get("score"),
        score_set="score" in payload,
    )
    await update_match(session, match_id, patch)
    return await _detail_out(session, match_id)


@router.post("/results", response_model=MatchDetailOut)
async def post_result(body: ResultIn, session: AsyncSession = Depends(get_session)):
    await record_result(session, body.matchId, body.winnerIds, body.score)
    return await _detail_out(session, body.matchId)


@router.post("/results/finalize", response_model=FinalizeOut)
async def post_finalize(body: FinalizeIn, session: AsyncSession = Depends(get_session)):
    result = await finalize_matches(session, body.matchDayId)
    return FinalizeOut(message=result.message, updatedPlayers=result.updated_players)
