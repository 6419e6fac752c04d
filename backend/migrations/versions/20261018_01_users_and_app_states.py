"""Users and per-user application state documents."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None

BIGINT = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    is_postgres = op.get_bind().dialect.name == "postgresql"
    json_type = sa.JSON().with_variant(
        postgresql.JSONB(astext_type=sa.Text()),
        "postgresql",
    )
    empty_object = sa.text("'{}'::jsonb") if is_postgres else sa.text("'{}'")
    empty_array = sa.text("'[]'::jsonb") if is_postgres else sa.text("'[]'")

    op.create_table(
        "users",
        sa.Column("id", BIGINT, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("picture", sa.Text(), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "app_states",
        sa.Column("id", BIGINT, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            BIGINT,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("trip_lists", json_type, nullable=False, server_default=empty_array),
        sa.Column("selected_trip_id", sa.Text(), nullable=True),
        sa.Column("map_state", json_type, nullable=False, server_default=empty_object),
        *_timestamp_columns(),
        sa.UniqueConstraint("user_id", name="uq_app_states_user_id"),
    )


def downgrade() -> None:
    op.drop_table("app_states")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
