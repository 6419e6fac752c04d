from .app_state_repository import AppStateRepository
from .user_repository import UserRepository

__all__ = [
    "AppStateRepository",
    "UserRepository",
]
