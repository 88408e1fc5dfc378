import logging
import os

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_int(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default


def _parse_flag(env_var: str, default: bool) -> bool:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Split ``ALLOWED_ORIGINS`` into a list, rejecting wildcard origins."""

    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    return origins


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

DEFAULT_INITIAL_RATING = _parse_int("DEFAULT_INITIAL_RATING", 1000)

# Snapshots are an audit trail only; settlement is correct without them.
RATING_SNAPSHOTS_ENABLED = _parse_flag("RATING_SNAPSHOTS_ENABLED", True)
