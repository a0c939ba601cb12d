"""Initial schema: trips, oracle submissions, configuration, token mints.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── configuration ─────────────────────────────────────────────────
    op.create_table(
        "configuration",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("admin", sa.String(128), nullable=False),
        sa.Column("trusted_oracle", sa.String(128), nullable=False),
        sa.Column("token_contract", sa.String(256), nullable=False),
        sa.Column("base_reward_rate", sa.BigInteger, nullable=False),
        sa.Column("congestion_multiplier", sa.BigInteger, nullable=False),
        sa.Column("max_trips", sa.BigInteger, nullable=False),
        sa.Column("next_trip_id", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("driver", sa.String(128), nullable=False),
        sa.Column("passengers", sa.JSON, nullable=False),
        sa.Column("route", sa.Text, nullable=False),
        sa.Column("start_time", sa.BigInteger, nullable=False),
        sa.Column("end_time", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("distance", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("congestion_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("gps_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "status",
            sa.Enum("pending", "verified", "disputed", name="tripstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("reward", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("timestamp", sa.BigInteger, nullable=False),
        sa.Column("confirmations", sa.Integer, nullable=False, server_default="0"),
        sa.Column("confirmed_by", sa.JSON, nullable=False),
        sa.Column("disputed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("dispute_reason", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_driver", "trips", ["driver"])

    # ── oracle_submissions ────────────────────────────────────────────
    op.create_table(
        "oracle_submissions",
        sa.Column(
            "trip_id", sa.BigInteger, sa.ForeignKey("trips.id"), primary_key=True
        ),
        sa.Column("oracle", sa.String(128), nullable=False),
        sa.Column("gps_valid", sa.Boolean, nullable=False),
        sa.Column("distance", sa.BigInteger, nullable=False),
        sa.Column("congestion", sa.Integer, nullable=False),
        sa.Column("submit_time", sa.BigInteger, nullable=False),
    )

    # ── token_mints ───────────────────────────────────────────────────
    op.create_table(
        "token_mints",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.BigInteger,
            sa.ForeignKey("trips.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("token_contract", sa.String(256), nullable=False),
        sa.Column("amount", sa.BigInteger, nullable=False),
        sa.Column("driver", sa.String(128), nullable=False),
        sa.Column("passengers", sa.JSON, nullable=False),
        sa.Column(
            "minted_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_token_mints_driver", "token_mints", ["driver"])


def downgrade() -> None:
    op.drop_table("token_mints")
    op.drop_table("oracle_submissions")
    op.drop_table("trips")
    op.drop_table("configuration")
    op.execute("DROP TYPE IF EXISTS tripstatus")
