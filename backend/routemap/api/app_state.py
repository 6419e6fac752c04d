from __future__ import annotations

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse
from routemap.models.schemas import AppStateDocument, MapState, TripList
from routemap.services.app_state_service import AppStateService, AppStateServiceError
from routemap.utils.responses import dump_document, error_response, success_response

router = APIRouter(prefix="/api/app-state", tags=["app-state"])


def _service() -> AppStateService:
    return AppStateService()


def _handle_service_error(exc: AppStateServiceError) -> JSONResponse:
    payload = error_response(exc.message, code=exc.code)
    return JSONResponse(status_code=400, content=payload)


@router.get(
    "",
    summary="Load application state",
    description="Return the user's trips, selected trip and map view; "
    "a default document is created on first access.",
)
def get_app_state(user_id: int = Query(..., ge=1)) -> dict:
    try:
        document = _service().get_state(user_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(document))


@router.post(
    "",
    summary="Save application state",
    description="Replace the stored document. A bare list of trips is accepted "
    "and the first trip becomes the selected one.",
)
def save_app_state(
    user_id: int = Query(..., ge=1),
    payload: AppStateDocument | list[TripList] = Body(...),
) -> dict:
    try:
        document = _service().save_state(user_id, payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(document))


@router.delete("", summary="Delete application state")
def delete_app_state(user_id: int = Query(..., ge=1)) -> dict:
    try:
        _service().delete_state(user_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"deleted": True})


@router.put("/map", summary="Update map center and zoom")
def update_map_state(payload: MapState, user_id: int = Query(..., ge=1)) -> dict:
    try:
        map_state = _service().update_map_state(user_id, payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(map_state))
