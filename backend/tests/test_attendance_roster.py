import asyncio
from datetime import date

import pytest
from sqlalchemy import select

from ladder import config
from ladder.exceptions import (
    MatchDayFinalizedError,
    NotFoundError,
    PlayerAlreadyExists,
    ValidationError,
)
from ladder.models import Attendance, MatchDay, Player
from ladder.services import roster
from ladder.services.attendance import (
    AttendanceEntry,
    absent_player_ids,
    get_attendance,
    present_players,
    save_attendance,
)
from ladder.services.matches import create_match

DAY = date(2024, 6, 1)


def test_create_player_defaults_and_unique_names(memory_db, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_INITIAL_RATING", 1200)

    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                player = await roster.create_player(session, "  Ana Lima ", gender="f")
                await session.commit()
                with pytest.raises(PlayerAlreadyExists):
                    await roster.create_player(session, "ana lima")
                return player

    player = asyncio.run(run_test())
    assert player.name == "Ana Lima"
    assert player.gender == "F"
    assert player.initial_rating == player.current_rating == 1200
    assert player.joining_date == date.today()


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_player_requires_name(memory_db, name):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                await roster.create_player(session, name)

    with pytest.raises(ValidationError):
        asyncio.run(run_test())


def test_rating_fields_lock_after_first_match(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                a = await roster.create_player(session, "A", initial_rating=1000)
                b = await roster.create_player(session, "B", initial_rating=1000)
                await session.commit()

                edited = await roster.update_player(
                    session, a.id, initial_rating=1100, current_rating=1100
                )
                await session.commit()
                before = (edited.initial_rating, edited.current_rating)

                await create_match(session, DAY, 1, "X1", [a.id], [b.id])
                locked = await roster.update_player(
                    session, a.id, name="A2", current_rating=5000
                )
                await session.commit()
                return before, locked

    before, locked = asyncio.run(run_test())
    assert before == (1100, 1100)
    assert locked.name == "A2"
    assert locked.current_rating == 1100


def test_delete_player_with_history_is_rejected(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                a = await roster.create_player(session, "A")
                b = await roster.create_player(session, "B")
                c = await roster.create_player(session, "C")
                await session.commit()
                await create_match(session, DAY, 1, "X1", [a.id], [b.id])

                await roster.delete_player(session, c.id)
                await session.commit()
                with pytest.raises(ValidationError) as exc:
                    await roster.delete_player(session, a.id)
                remaining = (await session.execute(select(Player.name))).scalars().all()
                return exc.value, sorted(remaining)

    error, remaining = asyncio.run(run_test())
    assert error.code == "player_has_history"
    assert error.status_code == 409
    assert remaining == ["A", "B"]


async def _seed_players(session, count=4):
    session.add_all(
        Player(id=f"p{i}", name=f"P{i}", initial_rating=1000, current_rating=1000)
        for i in range(1, count + 1)
    )
    await session.commit()


def test_save_attendance_replaces_previous_submission(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                await _seed_players(session)
                day, _ = await save_attendance(
                    session,
                    DAY,
                    [AttendanceEntry("p1", True), AttendanceEntry("p2", False)],
                )
                await session.commit()
                again, records = await save_attendance(
                    session,
                    DAY,
                    [
                        AttendanceEntry("p4", True),
                        AttendanceEntry("p3", False),
                        AttendanceEntry("p1", True),
                    ],
                )
                await session.commit()

                present = [p.id for p in await present_players(session, day.id)]
                absent = await absent_player_ids(session, day.id)
                listed = [
                    (a.player_id, p.name, a.present)
                    for a, p in await get_attendance(session, DAY)
                ]
                total = len((await session.execute(select(Attendance))).scalars().all())
                days = len((await session.execute(select(MatchDay))).scalars().all())
                return day.id == again.id, present, absent, listed, total, days

    same_day, present, absent, listed, total, days = asyncio.run(run_test())
    assert same_day
    assert present == ["p4", "p1"]
    assert absent == ["p3"]
    assert listed == [("p4", "P4", True), ("p3", "P3", False), ("p1", "P1", True)]
    assert total == 3
    assert days == 1


@pytest.mark.parametrize(
    "entries, error",
    [
        ([], ValidationError),
        ([AttendanceEntry("p1", True), AttendanceEntry("p1", False)], ValidationError),
        ([AttendanceEntry(" ", True)], ValidationError),
        ([AttendanceEntry("ghost", True)], NotFoundError),
    ],
    ids=["empty", "duplicate", "blank-id", "unknown-player"],
)
def test_save_attendance_rejects_bad_input(memory_db, entries, error):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                await _seed_players(session)
                with pytest.raises(error):
                    await save_attendance(session, DAY, entries)
                await session.rollback()
                return (await session.execute(select(MatchDay))).scalars().all()

    assert asyncio.run(run_test()) == []


def test_save_attendance_on_finalized_day(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                await _seed_players(session)
                session.add(MatchDay(id="md", date=DAY, finalized=True))
                await session.commit()
                await save_attendance(session, DAY, [AttendanceEntry("p1", True)])

    with pytest.raises(MatchDayFinalizedError):
        asyncio.run(run_test())


def test_get_attendance_for_unknown_date(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                return await get_attendance(session, DAY)

    assert asyncio.run(run_test()) == []
