from __future__ import annotations

from sqlalchemy.orm import Session


class BaseRepository:
    """Thin wrapper holding the session shared by a unit of work."""

    def __init__(self, session: Session) -> None:
        self.session = session
