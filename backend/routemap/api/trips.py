from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from routemap.models.schemas import (
    MovePayload,
    PlaceDraft,
    PlaceUpdate,
    ReorderPayload,
    TripCreate,
    TripUpdate,
)
from routemap.services.app_state_service import AppStateService, AppStateServiceError
from routemap.utils.responses import dump_document, error_response, success_response

router = APIRouter(prefix="/api/trips", tags=["trips"])

UserId = Annotated[int, Query(ge=1, description="Owner of the state document")]


def _service() -> AppStateService:
    return AppStateService()


def _handle_service_error(exc: AppStateServiceError) -> JSONResponse:
    payload = error_response(exc.message, code=exc.code)
    return JSONResponse(status_code=400, content=payload)


@router.post(
    "",
    summary="Create trip",
    description="Append an empty trip with the next palette color and select it.",
)
def create_trip(payload: TripCreate, user_id: UserId) -> dict:
    try:
        trip = _service().create_trip(user_id, payload.name)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(trip))


@router.put(
    "/{trip_id}",
    summary="Update trip",
    description="Rename, recolor or change the background image of a trip.",
)
def update_trip(trip_id: str, payload: TripUpdate, user_id: UserId) -> dict:
    try:
        trip = _service().update_trip(user_id, trip_id, payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(trip))


@router.delete(
    "/{trip_id}",
    summary="Delete trip",
    description="Delete a trip together with all of its places.",
)
def delete_trip(trip_id: str, user_id: UserId) -> dict:
    try:
        _service().delete_trip(user_id, trip_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"deleted": True})


@router.post("/{trip_id}/select", summary="Select trip")
def select_trip(trip_id: str, user_id: UserId) -> dict:
    try:
        document = _service().select_trip(user_id, trip_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"selectedTripId": document.selected_trip_id})


@router.post(
    "/{trip_id}/reorder",
    summary="Reorder trip",
    description="Move a trip to the drop line ``targetIndex`` among its siblings.",
)
def reorder_trip(trip_id: str, payload: ReorderPayload, user_id: UserId) -> dict:
    try:
        trips = _service().reorder_trip(user_id, trip_id, payload.target_index)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"tripIds": [trip.id for trip in trips]})


@router.post(
    "/{trip_id}/places",
    summary="Add place",
    description="Append a place; a repeated name or location becomes a revisit.",
)
def add_place(trip_id: str, payload: PlaceDraft, user_id: UserId) -> dict:
    try:
        place = _service().add_place(user_id, trip_id, payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(place))


@router.put(
    "/{trip_id}/places/{place_id}",
    summary="Update place",
    description="Edit name, description, image, transport, distance or time.",
)
def update_place(
    trip_id: str, place_id: str, payload: PlaceUpdate, user_id: UserId
) -> dict:
    try:
        place = _service().update_place(user_id, trip_id, place_id, payload)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response(dump_document(place))


@router.delete("/{trip_id}/places/{place_id}", summary="Delete place")
def delete_place(trip_id: str, place_id: str, user_id: UserId) -> dict:
    try:
        places = _service().delete_place(user_id, trip_id, place_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"places": dump_document(places)})


@router.post(
    "/{trip_id}/places/{place_id}/reorder",
    summary="Reorder place",
    description="Drag a place to the drop line ``targetIndex`` and renumber the trip.",
)
def reorder_place(
    trip_id: str, place_id: str, payload: ReorderPayload, user_id: UserId
) -> dict:
    try:
        places = _service().reorder_place(
            user_id, trip_id, place_id, payload.target_index
        )
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"places": dump_document(places)})


@router.post("/{trip_id}/places/{place_id}/move", summary="Move place one step")
def move_place(
    trip_id: str, place_id: str, payload: MovePayload, user_id: UserId
) -> dict:
    try:
        places = _service().move_place(user_id, trip_id, place_id, payload.direction)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"places": dump_document(places)})


@router.post(
    "/{trip_id}/places/{place_id}/toggle-numbering",
    summary="Toggle place numbering",
    description="Switch a place between numbered and intermediate, then renumber.",
)
def toggle_place_numbering(trip_id: str, place_id: str, user_id: UserId) -> dict:
    try:
        places = _service().toggle_place_numbering(user_id, trip_id, place_id)
    except AppStateServiceError as exc:
        return _handle_service_error(exc)
    return success_response({"places": dump_document(places)})
