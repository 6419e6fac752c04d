"""Pure operations on a user's application state document."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable

from routemap.models.schemas import AppStateDocument, MapState, Place, TripList, utcnow
from routemap.services.place_sequence import move_item

TRIP_COLORS = (
    "#00BFA5",
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
)

PlaceTransform = Callable[[list[Place]], list[Place]]


def find_trip(document: AppStateDocument, trip_id: str) -> TripList | None:
    return next((trip for trip in document.trip_lists if trip.id == trip_id), None)


def next_trip_color(document: AppStateDocument) -> str:
    return TRIP_COLORS[len(document.trip_lists) % len(TRIP_COLORS)]


def _replace_trip(
    document: AppStateDocument,
    trip_id: str,
    transform: Callable[[TripList], TripList],
) -> AppStateDocument:
    if find_trip(document, trip_id) is None:
        return document
    trips = [
        transform(trip) if trip.id == trip_id else trip for trip in document.trip_lists
    ]
    return document.model_copy(update={"trip_lists": trips})


def create_trip(
    document: AppStateDocument,
    name: str,
    *,
    trip_id: str | None = None,
    created_at: datetime | None = None,
) -> tuple[AppStateDocument, TripList]:
    """Append a new empty trip and select it."""

    trip = TripList(
        id=trip_id or f"trip-{uuid.uuid4().hex}",
        name=name.strip(),
        color=next_trip_color(document),
        created_at=created_at or utcnow(),
    )
    updated = document.model_copy(
        update={
            "trip_lists": [*document.trip_lists, trip],
            "selected_trip_id": trip.id,
        }
    )
    return updated, trip


def rename_trip(
    document: AppStateDocument, trip_id: str, name: str
) -> AppStateDocument:
    cleaned = name.strip()
    if not cleaned:
        return document
    return _replace_trip(
        document, trip_id, lambda trip: trip.model_copy(update={"name": cleaned})
    )


def recolor_trip(
    document: AppStateDocument, trip_id: str, color: str
) -> AppStateDocument:
    return _replace_trip(
        document, trip_id, lambda trip: trip.model_copy(update={"color": color})
    )


def set_trip_background(
    document: AppStateDocument, trip_id: str, image: str | None
) -> AppStateDocument:
    return _replace_trip(
        document,
        trip_id,
        lambda trip: trip.model_copy(update={"background_image": image}),
    )


def select_trip(document: AppStateDocument, trip_id: str | None) -> AppStateDocument:
    if trip_id is not None and find_trip(document, trip_id) is None:
        return document
    return document.model_copy(update={"selected_trip_id": trip_id})


def delete_trip(document: AppStateDocument, trip_id: str) -> AppStateDocument:
    """Drop a trip with all of its places, clearing the selection if needed."""

    if find_trip(document, trip_id) is None:
        return document
    selected = document.selected_trip_id
    return document.model_copy(
        update={
            "trip_lists": [
                trip for trip in document.trip_lists if trip.id != trip_id
            ],
            "selected_trip_id": None if selected == trip_id else selected,
        }
    )


def reorder_trip(
    document: AppStateDocument, trip_id: str, target_index: int
) -> AppStateDocument:
    current_index = next(
        (idx for idx, trip in enumerate(document.trip_lists) if trip.id == trip_id),
        -1,
    )
    if current_index == -1:
        return document
    trips = move_item(document.trip_lists, current_index, target_index)
    return document.model_copy(update={"trip_lists": trips})


def with_trip_places(
    document: AppStateDocument, trip_id: str, transform: PlaceTransform
) -> AppStateDocument:
    """Apply a place-sequence operation to one trip of the document."""

    return _replace_trip(
        document,
        trip_id,
        lambda trip: trip.model_copy(update={"places": transform(list(trip.places))}),
    )


def update_map_state(
    document: AppStateDocument, map_state: MapState
) -> AppStateDocument:
    return document.model_copy(update={"map_state": map_state})


__all__ = [
    "TRIP_COLORS",
    "create_trip",
    "delete_trip",
    "find_trip",
    "next_trip_color",
    "recolor_trip",
    "rename_trip",
    "reorder_trip",
    "select_trip",
    "set_trip_background",
    "update_map_state",
    "with_trip_places",
]
