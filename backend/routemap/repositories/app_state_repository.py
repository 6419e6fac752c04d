from __future__ import annotations

from typing import Any

from routemap.models.orm import AppStateRecord
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite

from .base import BaseRepository

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AppStateRepository(BaseRepository):
    """Loads and stores the single state document owned by a user."""

    def get_for_user(
        self, user_id: int, *, for_update: bool = False
    ) -> AppStateRecord | None:
        stmt = select(AppStateRecord).where(AppStateRecord.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, record: AppStateRecord) -> AppStateRecord:
        self.session.add(record)
        self.session.flush()
        return record

    def get_or_create(
        self,
        user_id: int,
        defaults: dict[str, Any],
        *,
        for_update: bool = False,
    ) -> AppStateRecord:
        """Return the user's row, inserting ``defaults`` if there is none yet.

        Concurrent first requests for the same user race on the unique
        ``user_id``; the insert skips on conflict and both re-read the winner.
        """

        record = self.get_for_user(user_id, for_update=for_update)
        if record is not None:
            return record
        insert = _UPSERT_INSERTS.get(self.session.get_bind().dialect.name)
        if insert is None:
            return self.add(AppStateRecord(user_id=user_id, **defaults))
        self.session.execute(
            insert(AppStateRecord)
            .values(user_id=user_id, **defaults)
            .on_conflict_do_nothing(index_elements=[AppStateRecord.user_id])
        )
        return self.get_for_user(user_id, for_update=for_update)

    def delete_for_user(self, user_id: int) -> int:
        result = self.session.execute(
            delete(AppStateRecord).where(AppStateRecord.user_id == user_id)
        )
        return result.rowcount or 0
