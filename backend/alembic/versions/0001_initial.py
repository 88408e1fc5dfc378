from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("gender", sa.String(length=1), nullable=True),
        sa.Column("initial_rating", sa.Integer(), nullable=False),
        sa.Column("current_rating", sa.Integer(), nullable=False),
        sa.Column("joining_date", sa.Date(), nullable=False),
        sa.Column("last_rating_updated_on", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_player_name_lower", "player", [sa.text("lower(name)")], unique=True
    )
    op.create_table(
        "match_day",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False, unique=True),
        sa.Column(
            "finalized", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "attendance",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "match_day_id", sa.String(), sa.ForeignKey("match_day.id"), nullable=False
        ),
        sa.Column("player_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("present", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint(
            "match_day_id", "player_id", name="uq_attendance_match_day_id_player_id"
        ),
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "match_day_id", sa.String(), sa.ForeignKey("match_day.id"), nullable=False
        ),
        sa.Column("court", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("match_type", sa.String(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("team1", JSONType, nullable=False),
        sa.Column("team2", JSONType, nullable=False),
        sa.Column("score", sa.String(), nullable=True),
        sa.Column("winner_ids", JSONType, nullable=True),
        sa.Column("loser_ids", JSONType, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_match_match_day_id_court", "match", ["match_day_id", "court"])
    op.create_table(
        "rating_award",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "match_id",
            sa.String(),
            sa.ForeignKey("match.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("player_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint(
            "match_id", "player_id", name="uq_rating_award_match_id_player_id"
        ),
    )
    op.create_table(
        "rating_snapshot",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "player_id",
            sa.String(),
            sa.ForeignKey("player.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "match_day_id",
            sa.String(),
            sa.ForeignKey("match_day.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint(
            "player_id",
            "match_day_id",
            name="uq_rating_snapshot_player_id_match_day_id",
        ),
    )


def downgrade():
    op.drop_index("ix_match_match_day_id_court", table_name="match")
    op.drop_index("uq_player_name_lower", table_name="player")
    for t in [
        "rating_snapshot", "rating_award", "match", "attendance", "match_day", "player"
    ]:
        op.drop_table(t)
