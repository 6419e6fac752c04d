from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from routemap.models.schemas import UserCreate
from routemap.services.app_state_service import AppStateServiceError
from routemap.services.user_service import UserService
from routemap.utils.responses import error_response, success_response

router = APIRouter(prefix="/api/users", tags=["users"])


def _handle_service_error(exc: AppStateServiceError) -> JSONResponse:
    payload = error_response(exc.message, code=exc.code)
    return JSONResponse(status_code=400, content=payload)


@router.post("", summary="Register a user profile")
def register_user(payload: UserCreate) -> dict:
    try:
        user = UserService().register(payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(user.model_dump(mode="json"))


@router.get("/{user_id}", summary="User profile")
def get_user(user_id: int) -> dict:
    try:
        user = UserService().get_user(user_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(user.model_dump(mode="json"))
