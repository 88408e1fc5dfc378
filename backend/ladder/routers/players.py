from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..models import Player
from ..schemas import (
    MatchPointsOut,
    PlayerCreate,
    PlayerOut,
    PlayerPerformanceOut,
    PlayerUpdate,
    RatingPointOut,
)
from ..services import roster
from ..services.stats import player_performance, rating_history

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def player_to_out(player: Player) -> PlayerOut:
    return PlayerOut(
        id=player.id,
        name=player.name,
        gender=player.gender,
        initialRating=player.initial_rating,
        currentRating=player.current_rating,
        joiningDate=player.joining_date,
        lastRatingUpdatedOn=player.last_rating_updated_on,
    )


@router.get("", response_model=list[PlayerOut])
async def list_players(session: AsyncSession = Depends(get_session)):
    return [player_to_out(p) for p in await roster.list_players(session)]


@router.post("", response_model=PlayerOut, status_code=201)
async def create_player(
    body: PlayerCreate, session: AsyncSession = Depends(get_session)
):
    player = await roster.create_player(
        session,
        body.name,
        initial_rating=body.initialRating,
        gender=body.gender,
        joining_date=body.joiningDate,
    )
    await session.commit()
    return player_to_out(player)


@router.get("/performance", response_model=list[PlayerPerformanceOut])
async def get_performance(session: AsyncSession = Depends(get_session)):
    rows = await player_performance(session)
    return [
        PlayerPerformanceOut(
            id=row.player_id,
            name=row.name,
            initialRating=row.initial_rating,
            currentRating=row.current_rating,
            totalPoints=row.total_points,
            matchesPlayed=row.matches_played,
            lastRatingUpdatedOn=row.last_rating_updated_on,
            matches=[
                MatchPointsOut(
                    matchId=m.match_id,
                    date=m.date,
                    matchCode=m.match_code,
                    court=m.court,
                    score=m.score,
                    points=m.points,
                )
                for m in row.matches
            ],
        )
        for row in rows
    ]


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(player_id: str, session: AsyncSession = Depends(get_session)):
    return player_to_out(await roster.get_player(session, player_id))


@router.get("/{player_id}/history", response_model=list[RatingPointOut])
async def get_rating_history(
    player_id: str, session: AsyncSession = Depends(get_session)
):
    return [
        RatingPointOut(matchDayId=p.match_day_id, date=p.date, rating=p.rating)
        for p in await rating_history(session, player_id)
    ]


@router.patch("/{player_id}", response_model=PlayerOut)
async def update_player(
    player_id: str,
    body: PlayerUpdate,
    session: AsyncSession = Depends(get_session),
):
    player = await roster.update_player(
        session,
        player_id,
        name=body.name,
        gender=body.gender,
        initial_rating=body.initialRating,
        current_rating=body.currentRating,
        joining_date=body.joiningDate,
    )
    await session.commit()
    return player_to_out(player)


@router.delete("/{player_id}", status_code=204)
async def delete_player(player_id: str, session: AsyncSession = Depends(get_session)):
    await roster.delete_player(session, player_id)
    await session.commit()
    return Response(status_code=204)
