from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class NotFoundError(DomainException):
    """A referenced match, match day or player does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(
            status_code=404,
            title=f"{entity.replace('_', ' ').capitalize()} not found",
            detail=f"{entity.replace('_', ' ')} '{entity_id}' not found",
            code=f"{entity}_not_found",
        )
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(DomainException):
    """Rejected input; raised before anything has been written."""

    def __init__(
        self,
        detail: str,
        *,
        code: str = "validation_error",
        status_code: int = 400,
    ) -> None:
        super().__init__(
            status_code=status_code,
            title="Invalid request",
            detail=detail,
            code=code,
        )


class PlayerAlreadyExists(ValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"player name '{name}' already exists",
            code="player_exists",
            status_code=409,
        )


class AlreadyGeneratedError(DomainException):
    def __init__(self, match_date: object) -> None:
        super().__init__(
            status_code=409,
            title="Schedule already generated",
            detail=f"a schedule already exists for {match_date}",
            code="schedule_already_generated",
        )
        self.match_date = match_date


class MatchDayFinalizedError(DomainException):
    def __init__(self, match_day_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Match day finalized",
            detail=f"match day '{match_day_id}' has already been finalized",
            code="match_day_finalized",
        )
        self.match_day_id = match_day_id


class ConsistencyError(DomainException):
    """Award ledger and match rows disagree.

    Indicates a defect in the award recompute path rather than bad input.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            code="award_ledger_inconsistent",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
