from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ProblemDetail
from ..schemas import AttendanceOut, AttendanceSavedOut, AttendanceUpdate
from ..services.attendance import AttendanceEntry, get_attendance, save_attendance

router = APIRouter(
    prefix="/attendance",
    tags=["attendance"],
    responses={400: {"model": ProblemDetail}, 409: {"model": ProblemDetail}},
)


@router.put("", response_model=AttendanceSavedOut)
async def put_attendance(
    body: AttendanceUpdate, session: AsyncSession = Depends(get_session)
):
    match_day, records = await save_attendance(
        session,
        body.date,
        [AttendanceEntry(player_id=e.playerId, present=e.present) for e in body.attendance],
    )
    await session.commit()
    return AttendanceSavedOut(
        matchDayId=match_day.id,
        present=sum(1 for r in records if r.present),
        absent=sum(1 for r in records if not r.present),
    )


@router.get("/{match_date}", response_model=list[AttendanceOut])
async def list_attendance(
    match_date: date, session: AsyncSession = Depends(get_session)
):
    return [
        AttendanceOut(playerId=player.id, playerName=player.name, present=record.present)
        for record, player in await get_attendance(session, match_date)
    ]
