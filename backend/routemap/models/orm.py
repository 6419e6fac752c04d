from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from routemap.models import Base
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

JSONType = sa.JSON().with_variant(
    postgresql.JSONB(astext_type=sa.Text()),
    "postgresql",
)
BIGINT_TYPE = sa.BigInteger().with_variant(sa.Integer, "sqlite")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        BIGINT_TYPE,
        primary_key=True,
        autoincrement=True,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    picture: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    app_state: Mapped["AppStateRecord | None"] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )


class AppStateRecord(TimestampMixin, Base):
    """One persisted application state document per user.

    Trip and place order lives inside ``trip_lists``; no index column is stored.
    """

    __tablename__ = "app_states"

    id: Mapped[int] = mapped_column(
        BIGINT_TYPE,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[int] = mapped_column(
        BIGINT_TYPE,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    trip_lists: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    selected_trip_id: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    map_state: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    user: Mapped["User"] = relationship(back_populates="app_state")


__all__ = [
    "User",
    "AppStateRecord",
]
