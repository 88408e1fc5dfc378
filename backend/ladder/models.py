from datetime import date

from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Boolean,
    Index,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from .db import Base


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    gender = Column(String(1), nullable=True)  # "M" | "F"
    initial_rating = Column(Integer, nullable=False)
    current_rating = Column(Integer, nullable=False)
    joining_date = Column(Date, nullable=False, default=date.today)
    last_rating_updated_on = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("uq_player_name_lower", func.lower(name), unique=True),
    )


class MatchDay(Base):
    __tablename__ = "match_day"
    id = Column(String, primary_key=True)
    date = Column(Date, nullable=False, unique=True)
    finalized = Column(Boolean, nullable=False, default=False)
    finalized_at = Column(DateTime(timezone=True), nullable=True)


class Attendance(Base):
    __tablename__ = "attendance"
    id = Column(String, primary_key=True)
    match_day_id = Column(String, ForeignKey("match_day.id"), nullable=False)
    player_id = Column(String, ForeignKey("player.id"), nullable=False)
    present = Column(Boolean, nullable=False)
    # Submission order; the pairing generator groups players in this order.
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "match_day_id",
            "player_id",
            name="uq_attendance_match_day_id_player_id",
        ),
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    match_day_id = Column(String, ForeignKey("match_day.id"), nullable=False)
    court = Column(Integer, nullable=False)
    match_code = Column(String, nullable=False)
    match_type = Column(String, nullable=False)  # "singles" | "doubles"
    # Position within the court's template; keeps M1..M12 in table order.
    sequence = Column(Integer, nullable=False, default=0)
    date = Column(Date, nullable=False)
    team1 = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    team2 = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    score = Column(String, nullable=True)
    winner_ids = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    loser_ids = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_match_match_day_id_court", "match_day_id", "court"),
    )


class RatingAward(Base):
    """Provisional rating delta for one player in one match."""

    __tablename__ = "rating_award"
    id = Column(String, primary_key=True)
    match_id = Column(
        String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False
    )
    player_id = Column(String, ForeignKey("player.id"), nullable=False)
    delta = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "match_id",
            "player_id",
            name="uq_rating_award_match_id_player_id",
        ),
    )


class RatingSnapshot(Base):
    """Rating of a player as of a finalized match day. Append-only."""

    __tablename__ = "rating_snapshot"
    id = Column(String, primary_key=True)
    player_id = Column(
        String, ForeignKey("player.id", ondelete="CASCADE"), nullable=False
    )
    match_day_id = Column(
        String, ForeignKey("match_day.id", ondelete="CASCADE"), nullable=False
    )
    rating = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "player_id",
            "match_day_id",
            name="uq_rating_snapshot_player_id_match_day_id",
        ),
    )
