from fastapi import FastAPI
from routemap.api import app_state, health, trips, users
from routemap.core.logging import setup_logging
from routemap.core.settings import settings
from routemap.utils.metrics import APIMetricsMiddleware


def create_app() -> FastAPI:
    """Application factory registering routers, middleware, and config."""

    setup_logging()
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    application.add_middleware(APIMetricsMiddleware)
    application.include_router(health.router)
    application.include_router(users.router)
    application.include_router(app_state.router)
    application.include_router(trips.router)
    return application
