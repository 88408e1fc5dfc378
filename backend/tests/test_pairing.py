import logging
from collections import Counter

import pytest

from ladder.services.pairing import (
    GROUP_SIZE,
    MATCH_TEMPLATE,
    expand_group,
    partition_groups,
    plan_schedule,
)

PLAYERS = [f"p{i}" for i in range(1, 9)]


def _appearances(matches):
    return Counter(pid for m in matches for pid in m.player_ids)


def test_eight_players_fill_one_court_with_twelve_matches() -> None:
    courts = plan_schedule(PLAYERS)

    assert len(courts) == 1
    matches = courts[0]
    assert [m.code for m in matches] == [f"M{i}" for i in range(1, 13)]
    assert {m.court for m in matches} == {1}
    assert [m.sequence for m in matches] == list(range(1, 13))
    assert set(_appearances(matches)) == set(PLAYERS)


def test_every_player_plays_the_same_number_of_matches() -> None:
    matches = plan_schedule(PLAYERS)[0]
    counts = _appearances(matches)

    assert set(counts.values()) == {5}
    singles = Counter(
        pid for m in matches if m.match_type == "singles" for pid in m.player_ids
    )
    assert set(singles.values()) == {1}


@pytest.mark.parametrize(
    "code, team1, team2",
    [
        ("M1", ("p1", "p4"), ("p2", "p3")),
        ("M4", ("p1", "p8"), ("p2", "p7")),
        ("M5", ("p1",), ("p2",)),
        ("M9", ("p1", "p3"), ("p2", "p4")),
        ("M10", ("p5", "p7"), ("p6", "p8")),
        ("M12", ("p5", "p6"), ("p7", "p8")),
    ],
)
def test_template_pairings(code, team1, team2) -> None:
    match = next(m for m in plan_schedule(PLAYERS)[0] if m.code == code)
    assert match.team1 == team1
    assert match.team2 == team2


def test_match_types_follow_team_sizes() -> None:
    types = {slot.code: slot.match_type for slot in MATCH_TEMPLATE}
    assert [c for c, t in types.items() if t == "singles"] == ["M5", "M6", "M7", "M8"]
    assert sum(1 for t in types.values() if t == "doubles") == 8


def test_remainder_players_are_not_scheduled(caplog) -> None:
    players = [f"p{i}" for i in range(1, 12)]

    with caplog.at_level(logging.INFO, logger="ladder.services.pairing"):
        courts = plan_schedule(players)

    assert len(courts) == 1
    scheduled = set(_appearances(courts[0]))
    assert scheduled == set(players[:8])
    assert not scheduled & {"p9", "p10", "p11"}
    assert "Leaving 3 player(s) unscheduled" in caplog.text


def test_sixteen_players_use_two_courts_in_attendance_order() -> None:
    players = [f"p{i}" for i in range(1, 17)]
    courts = plan_schedule(players)

    assert [c[0].court for c in courts] == [1, 2]
    assert set(_appearances(courts[0])) == set(players[:8])
    assert set(_appearances(courts[1])) == set(players[8:])


def test_fewer_than_a_court_yields_no_matches() -> None:
    assert plan_schedule(PLAYERS[:7]) == []
    assert partition_groups(PLAYERS[:7]) == ([], PLAYERS[:7])


def test_plan_is_deterministic() -> None:
    assert plan_schedule(PLAYERS) == plan_schedule(list(PLAYERS))


def test_expand_group_rejects_bad_groups() -> None:
    with pytest.raises(ValueError):
        expand_group(PLAYERS[:GROUP_SIZE - 1], court=1)
    with pytest.raises(ValueError):
        expand_group(PLAYERS[:7] + ["p1"], court=1)
