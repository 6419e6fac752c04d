from __future__ import annotations

from routemap.models.orm import User
from sqlalchemy import select

from .base import BaseRepository


class UserRepository(BaseRepository):
    """Data access helpers for user profiles."""

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user
