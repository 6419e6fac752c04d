from __future__ import annotations

# ruff: noqa: E402
import sys
import uuid
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = PROJECT_ROOT / "backend"
for path in (PROJECT_ROOT, BACKEND_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from routemap.core.app import create_app
from routemap.core.cache import cache_backend
from routemap.core.db import dispose_engine, session_scope
from routemap.core.settings import settings
from routemap.models.orm import User
from routemap.utils.metrics import reset_metrics_registry


def alembic_config() -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    cfg.attributes["configure_logger"] = False
    return cfg


@pytest.fixture(scope="session", autouse=True)
def configure_test_database(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Point settings.database_url to a throwaway SQLite file for the test run."""

    original_url = settings.database_url
    original_log_dir = settings.log_directory
    workdir = tmp_path_factory.mktemp("routemap")
    settings.database_url = f"sqlite+pysqlite:///{workdir / 'routemap_test.db'}"
    settings.log_directory = str(workdir / "logs")
    dispose_engine()
    yield settings.database_url
    dispose_engine()
    settings.database_url = original_url
    settings.log_directory = original_log_dir


@pytest.fixture(scope="session", autouse=True)
def apply_migrations(configure_test_database: str) -> None:
    """Run Alembic migrations once for the test database."""

    cfg = alembic_config()
    dispose_engine()
    command.upgrade(cfg, "head")
    yield
    dispose_engine()


@pytest.fixture(autouse=True)
def clear_state_cache() -> None:
    cache_backend.clear()
    yield
    cache_backend.clear()


@pytest.fixture()
def client(apply_migrations: None) -> TestClient:
    reset_metrics_registry()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def create_user(prefix: str = "traveller") -> int:
    with session_scope() as session:
        user = User(
            email=f"{prefix}_{uuid.uuid4().hex}@example.com", name="Test Traveller"
        )
        session.add(user)
        session.flush()
        return user.id


@pytest.fixture()
def user_id(apply_migrations: None) -> int:
    return create_user()


@pytest.fixture()
def make_user(apply_migrations: None):
    return create_user
