from __future__ import annotations

import re

from routemap.core.db import session_scope
from routemap.core.logging import get_logger
from routemap.models.orm import User
from routemap.models.schemas import UserCreate, UserSchema
from routemap.repositories import UserRepository
from routemap.services.app_state_service import (
    AppStateServiceError,
    ResourceNotFoundError,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserServiceError(AppStateServiceError):
    pass


class UserService:
    """Registers the profiles that own application state documents."""

    def __init__(self) -> None:
        self.logger = get_logger(self.__class__.__name__)

    def register(self, payload: UserCreate) -> UserSchema:
        email = payload.email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise UserServiceError("Invalid email format", code=14021)
        name = (payload.name or "").strip() or email.split("@")[0]

        with session_scope() as session:
            repo = UserRepository(session)
            if repo.get_by_email(email) is not None:
                raise UserServiceError(
                    "User with this email already exists", code=14020
                )
            user = repo.add(User(email=email, name=name, picture=payload.picture))
            session.refresh(user)
            schema = UserSchema.model_validate(user)
        self.logger.info("user.registered", extra={"user_id": schema.id})
        return schema

    def get_user(self, user_id: int) -> UserSchema:
        with session_scope() as session:
            user = UserRepository(session).get(user_id)
            if user is None:
                raise ResourceNotFoundError("User does not exist", code=14003)
            return UserSchema.model_validate(user)


__all__ = ["UserService", "UserServiceError", "EMAIL_PATTERN"]
