"""Schedule generation, result capture and rating settlement."""

from .pairing import (
    MATCH_TEMPLATE,
    CourtGroup,
    generate_schedule,
    get_schedule,
    plan_schedule,
)
from .rating import compute_deltas, delta_tier, record_result
from .matches import (
    MatchPatch,
    create_match,
    get_match_detail,
    list_matches,
    update_match,
)
from .settlement import ABSENCE_PENALTY, FinalizeResult, finalize_matches
from .attendance import AttendanceEntry, save_attendance
from .stats import player_performance, rating_history

__all__ = [
    "MATCH_TEMPLATE",
    "CourtGroup",
    "generate_schedule",
    "get_schedule",
    "plan_schedule",
    "compute_deltas",
    "delta_tier",
    "record_result",
    "MatchPatch",
    "create_match",
    "get_match_detail",
    "list_matches",
    "update_match",
    "ABSENCE_PENALTY",
    "FinalizeResult",
    "finalize_matches",
    "AttendanceEntry",
    "save_attendance",
    "player_performance",
    "rating_history",
]
