from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import CourtOut, MatchDayOut, ScheduleRequest
from ..services.match_days import list_match_days
from ..services.pairing import CourtGroup, generate_schedule, get_schedule
from ..time_utils import coerce_utc
from .matches import match_to_out

router = APIRouter(
    prefix="/schedule",
    tags=["schedule"],
    responses={404: {"model": ProblemDetail}, 409: {"model": ProblemDetail}},
)


def _courts_out(courts: list[CourtGroup]) -> list[CourtOut]:
    return [
        CourtOut(court=c.court, matches=[match_to_out(m) for m in c.matches])
        for c in courts
    ]


@router.post("", response_model=list[CourtOut], status_code=201)
async def post_schedule(
    body: ScheduleRequest, session: AsyncSession = Depends(get_session)
):
    return _courts_out(await generate_schedule(session, body.date))


@router.get("/matchdays", response_model=list[MatchDayOut])
async def get_match_days(session: AsyncSession = Depends(get_session)):
    return [
        MatchDayOut(
            id=md.id,
            date=md.date,
            finalized=md.finalized,
            finalizedAt=coerce_utc(md.finalized_at),
        )
        for md in await list_match_days(session)
    ]


@router.get("/{match_day_id}", response_model=list[CourtOut])
async def get_match_day_schedule(
    match_day_id: str, session: AsyncSession = Depends(get_session)
):
    return _courts_out(await get_schedule(session, match_day_id))
