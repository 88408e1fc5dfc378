from typing import Any, List, Optional, Sequence

from ..exceptions import ValidationError

SINGLES = "singles"
DOUBLES = "doubles"
ALLOWED_TEAM_SIZES = {1, 2}


def normalize_team(players: Any, *, label: str) -> List[str]:
    """Return ``players`` as a list of unique, non-empty string ids.

    Rules:
    - The team must be a list (or tuple) of player ids
    - Ids are stripped; empty ids are rejected
    - A player may only be listed once per team
    - A team has one (singles) or two (doubles) members
    """

    if not isinstance(players, (list, tuple)):
        raise ValidationError(f"{label} must be a list of player ids.")

    team: List[str] = []
    for raw in players:
        if raw is None or isinstance(raw, bool):
            raise ValidationError(f"{label} contains an invalid player id.")
        pid = str(raw).strip()
        if not pid:
            raise ValidationError(f"{label} contains an empty player id.")
        if pid in team:
            raise ValidationError(f"{label} lists player '{pid}' more than once.")
        team.append(pid)

    if len(team) not in ALLOWED_TEAM_SIZES:
        raise ValidationError(f"{label} must have 1 or 2 players.")
    return team


def validate_teams(
    team1: Any,
    team2: Any,
    *,
    expected_size: Optional[int] = None,
) -> tuple[List[str], List[str]]:
    """Validate a pair of teams and return them normalized.

    Checks run in a fixed order so the first reported problem is stable:
    players on both teams, then team sizes against ``expected_size`` (the
    stored size when editing an existing match), then equal arity.
    """

    if not isinstance(team1, (list, tuple)) or not isinstance(team2, (list, tuple)):
        raise ValidationError("team1 and team2 must both be lists of player ids.")

    overlap = sorted(
        {str(p).strip() for p in team1 if p is not None}
        & {str(p).strip() for p in team2 if p is not None}
    )
    if overlap:
        raise ValidationError(
            f"Players cannot be on both teams: {', '.join(overlap)}."
        )

    if expected_size is not None and (
        len(team1) != expected_size or len(team2) != expected_size
    ):
        raise ValidationError(
            f"Both teams must have exactly {expected_size} player(s)."
        )

    first = normalize_team(team1, label="team1")
    second = normalize_team(team2, label="team2")
    if len(first) != len(second):
        raise ValidationError("Both teams must have the same number of players.")
    return first, second


def match_type_for(team1: Sequence[str], team2: Sequence[str]) -> str:
    if len(team1) == 1 and len(team2) == 1:
        return SINGLES
    return DOUBLES


def same_members(a: Sequence[str], b: Sequence[str]) -> bool:
    """Order-insensitive team comparison."""

    return sorted(a) == sorted(b)


def resolve_winner_side(
    winner_ids: Sequence[str], team1: Sequence[str], team2: Sequence[str]
) -> Optional[str]:
    """Return ``"team1"``/``"team2"`` for an exact winner set, else ``None``."""

    if not winner_ids:
        return None
    if same_members(winner_ids, team1):
        return "team1"
    if same_members(winner_ids, team2):
        return "team2"
    return None


def normalize_match_code(code: Any) -> str:
    if not isinstance(code, str) or not code.strip():
        raise ValidationError("match code is required.")
    return code.strip().upper()


def normalize_court(court: Any) -> int:
    if isinstance(court, bool):
        raise ValidationError("court must be a positive integer.")
    try:
        value = int(court)
    except (TypeError, ValueError):
        raise ValidationError("court must be a positive integer.")
    if value < 1:
        raise ValidationError("court must be a positive integer.")
    return value
