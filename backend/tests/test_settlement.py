import asyncio
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select

from ladder import config
from ladder.exceptions import MatchDayFinalizedError, NotFoundError
from ladder.models import MatchDay, Player, RatingAward, RatingSnapshot
from ladder.services.attendance import AttendanceEntry, save_attendance
from ladder.services.matches import create_match
from ladder.services.pairing import generate_schedule
from ladder.services.rating import record_result
from ladder.services.settlement import (
    ABSENCE_PENALTY,
    finalize_matches,
    settlement_deltas,
)
from ladder.services.stats import player_performance, rating_history

DAY = date(2024, 5, 4)
NOW = datetime(2024, 5, 4, 20, 0, tzinfo=timezone.utc)


def test_settlement_deltas_combines_awards_and_absences() -> None:
    assert settlement_deltas({"a": 15, "b": -15}, ["c"]) == {
        "a": 15,
        "b": -15,
        "c": ABSENCE_PENALTY,
    }
    assert settlement_deltas({"a": 5}, ["a"]) == {"a": -5}
    assert settlement_deltas({}, []) == {}


async def _seed_day(session):
    """A beats B twice (+10 and +5), C is recorded absent, D is not involved."""

    session.add_all(
        Player(id=pid, name=pid.upper(), initial_rating=1000, current_rating=1000)
        for pid in ("a", "b", "c", "d")
    )
    await session.flush()
    match_day, _ = await save_attendance(
        session,
        DAY,
        [
            AttendanceEntry("a", True),
            AttendanceEntry("b", True),
            AttendanceEntry("c", False),
        ],
    )
    await session.commit()
    singles = await create_match(session, DAY, 1, "M5", ["a"], ["b"])
    standard = await create_match(session, DAY, 1, "M1", ["a"], ["b"])
    await record_result(session, singles.id, ["a"])
    await record_result(session, standard.id, ["a"])
    return match_day.id


async def _players(session):
    return {
        p.id: p for p in (await session.execute(select(Player))).scalars().all()
    }


def test_finalize_applies_awards_and_absence_penalty(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)
                result = await finalize_matches(session, day_id, now=NOW)

            async with Session() as session:
                day = await session.get(MatchDay, day_id)
                snapshots = (
                    await session.execute(select(RatingSnapshot))
                ).scalars().all()
                return result, await _players(session), day, snapshots

    result, players, day, snapshots = asyncio.run(run_test())

    assert result.updated_players == 3
    assert result.message == "Match ratings finalized"
    assert result.deltas == {"a": 15, "b": -15, "c": -10}
    assert {pid: p.current_rating for pid, p in players.items()} == {
        "a": 1015,
        "b": 985,
        "c": 990,
        "d": 1000,
    }
    assert {p.initial_rating for p in players.values()} == {1000}
    for pid in ("a", "b", "c"):
        assert players[pid].last_rating_updated_on is not None
    assert players["d"].last_rating_updated_on is None
    assert day.finalized is True
    assert day.finalized_at is not None
    assert {(s.player_id, s.rating) for s in snapshots} == {
        ("a", 1015),
        ("b", 985),
        ("c", 990),
    }


def test_finalize_twice_is_rejected(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)
                await finalize_matches(session, day_id, now=NOW)
                with pytest.raises(MatchDayFinalizedError):
                    await finalize_matches(session, day_id, now=NOW)

            async with Session() as session:
                return await _players(session)

    players = asyncio.run(run_test())
    assert players["a"].current_rating == 1015
    assert players["c"].current_rating == 990


def test_concurrent_finalize_applies_once(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)

            async def attempt():
                async with Session() as session:
                    return await finalize_matches(session, day_id, now=NOW)

            outcomes = await asyncio.gather(attempt(), attempt(), return_exceptions=True)
            async with Session() as session:
                return outcomes, await _players(session)

    outcomes, players = asyncio.run(run_test())
    errors = [o for o in outcomes if isinstance(o, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], MatchDayFinalizedError)
    assert players["a"].current_rating == 1015
    assert players["b"].current_rating == 985


def test_finalized_day_blocks_results(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)
                await finalize_matches(session, day_id, now=NOW)
                await create_match(session, DAY, 2, "X1", ["a"], ["b"])

    with pytest.raises(MatchDayFinalizedError):
        asyncio.run(run_test())


def test_finalize_requires_matches(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                session.add(MatchDay(id="empty", date=DAY, finalized=False))
                await session.commit()
                with pytest.raises(NotFoundError):
                    await finalize_matches(session, "empty")
                with pytest.raises(NotFoundError) as exc:
                    await finalize_matches(session, "missing")
                day = await session.get(MatchDay, "empty")
                return exc.value, day

    error, day = asyncio.run(run_test())
    assert error.code == "match_day_not_found"
    assert day.finalized is False


def test_finalize_without_snapshots(memory_db, monkeypatch):
    monkeypatch.setattr(config, "RATING_SNAPSHOTS_ENABLED", False)

    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)
                await finalize_matches(session, day_id, now=NOW)
                return (await session.execute(select(RatingSnapshot))).scalars().all()

    assert asyncio.run(run_test()) == []


def test_rating_history_and_performance(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                day_id = await _seed_day(session)
                await finalize_matches(session, day_id, now=NOW)

            async with Session() as session:
                history = await rating_history(session, "a")
                performance = await player_performance(session)
                return day_id, history, performance

    day_id, history, performance = asyncio.run(run_test())
    assert [(p.match_day_id, p.date, p.rating) for p in history] == [(day_id, DAY, 1015)]

    by_id = {row.player_id: row for row in performance}
    assert performance[0].player_id == "a"
    assert by_id["a"].total_points == 15
    assert by_id["a"].matches_played == 2
    assert by_id["b"].total_points == -15
    assert by_id["d"].matches == []


def test_round_trip_rating_change_equals_award_sum(memory_db):
    async def run_test():
        async with memory_db() as Session:
            async with Session() as session:
                session.add_all(
                    Player(
                        id=f"p{i}",
                        name=f"P{i}",
                        initial_rating=900 + 25 * i,
                        current_rating=900 + 25 * i,
                    )
                    for i in range(1, 9)
                )
                await session.flush()
                day, _ = await save_attendance(
                    session, DAY, [AttendanceEntry(f"p{i}", True) for i in range(1, 9)]
                )
                await session.commit()
                courts = await generate_schedule(session, DAY)
                for index, match in enumerate(courts[0].matches):
                    winners = match.team1 if index % 2 == 0 else match.team2
                    await record_result(session, match.id, winners)

                awards = (await session.execute(select(RatingAward))).scalars().all()
                expected = {}
                for award in awards:
                    expected[award.player_id] = expected.get(award.player_id, 0) + award.delta
                before = {pid: p.current_rating for pid, p in (await _players(session)).items()}
                result = await finalize_matches(session, day.id, now=NOW)

            async with Session() as session:
                after = {pid: p.current_rating for pid, p in (await _players(session)).items()}
                return expected, before, after, result

    expected, before, after, result = asyncio.run(run_test())
    assert result.updated_players == 8
    assert {pid: after[pid] - before[pid] for pid in after} == expected
    assert result.deltas == expected
