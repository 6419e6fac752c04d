from __future__ import annotations

from functools import partial
from typing import Any, Callable, TypeVar

from routemap.core.cache import cache_backend
from routemap.core.db import session_scope
from routemap.core.logging import get_logger
from routemap.core.settings import settings
from routemap.models.orm import AppStateRecord
from routemap.models.schemas import (
    AppStateDocument,
    MapState,
    Place,
    PlaceDraft,
    PlaceUpdate,
    TripList,
    TripUpdate,
)
from routemap.repositories import AppStateRepository, UserRepository
from routemap.services import place_sequence, trip_lists
from sqlalchemy.orm import Session

APP_STATE_CACHE_NS = "app_state:detail"

R = TypeVar("R")
Mutation = Callable[[AppStateDocument], tuple[AppStateDocument, R]]


class AppStateServiceError(Exception):
    """Base class for business friendly errors surfaced to API consumers."""

    def __init__(self, message: str, code: int = 14000) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ResourceNotFoundError(AppStateServiceError):
    pass


class AppStateValidationError(AppStateServiceError):
    pass


def default_document() -> AppStateDocument:
    return AppStateDocument(
        map_state=MapState(
            center=(settings.map_default_lat, settings.map_default_lng),
            zoom=settings.map_default_zoom,
        )
    )


def coerce_document(
    payload: AppStateDocument | list[TripList] | list[dict[str, Any]] | dict[str, Any],
) -> AppStateDocument:
    """Accept the current document shape or the legacy bare list of trips."""

    if isinstance(payload, AppStateDocument):
        return payload
    if isinstance(payload, list):
        trips = [TripList.model_validate(item) for item in payload]
        return default_document().model_copy(
            update={
                "trip_lists": trips,
                "selected_trip_id": trips[0].id if trips else None,
            }
        )
    return AppStateDocument.model_validate(payload)


def _record_columns(document: AppStateDocument) -> dict[str, Any]:
    dumped = document.model_dump(mode="json", by_alias=True)
    return {
        "trip_lists": dumped["tripLists"],
        "selected_trip_id": dumped["selectedTripId"],
        "map_state": dumped["mapState"],
    }


def _invalidate_app_state_cache(user_id: int) -> None:
    cache_backend.invalidate(APP_STATE_CACHE_NS, str(user_id))


def _require_trip(document: AppStateDocument, trip_id: str) -> TripList:
    trip = trip_lists.find_trip(document, trip_id)
    if trip is None:
        raise ResourceNotFoundError("Trip not found", code=14004)
    return trip


def _require_place(trip: TripList, place_id: str) -> Place:
    index = place_sequence.index_of(trip.places, place_id)
    if index == -1:
        raise ResourceNotFoundError("Place not found", code=14006)
    return trip.places[index]


class AppStateServiceBase:
    """Shared load/store helpers; every mutation runs in one transaction."""

    def __init__(self) -> None:
        self.logger = get_logger(self.__class__.__name__)

    def _ensure_user(self, session: Session, user_id: int) -> None:
        if UserRepository(session).get(user_id) is None:
            raise AppStateValidationError("User does not exist", code=14003)

    def _load_record(
        self, session: Session, user_id: int, *, for_update: bool = False
    ) -> AppStateRecord:
        return AppStateRepository(session).get_or_create(
            user_id, _record_columns(default_document()), for_update=for_update
        )

    def _read(self, record: AppStateRecord) -> AppStateDocument:
        return AppStateDocument.model_validate(
            {
                "trip_lists": record.trip_lists or [],
                "selected_trip_id": record.selected_trip_id,
                "map_state": record.map_state or default_document().map_state,
            }
        )

    def _write(self, record: AppStateRecord, document: AppStateDocument) -> None:
        for column, value in _record_columns(document).items():
            setattr(record, column, value)

    def _mutate(self, user_id: int, mutation: Mutation[R]) -> R:
        with session_scope() as session:
            self._ensure_user(session, user_id)
            record = self._load_record(session, user_id, for_update=True)
            document, result = mutation(self._read(record))
            self._write(record, document)
            session.flush()
        _invalidate_app_state_cache(user_id)
        return result


class AppStateQueryService(AppStateServiceBase):
    def get_state(self, user_id: int) -> AppStateDocument:
        def _loader() -> dict[str, Any]:
            with session_scope() as session:
                self._ensure_user(session, user_id)
                document = self._read(self._load_record(session, user_id))
            return document.model_dump(mode="json", by_alias=True)

        cached = cache_backend.remember(
            APP_STATE_CACHE_NS,
            str(user_id),
            settings.app_state_cache_ttl_seconds,
            _loader,
        )
        return AppStateDocument.model_validate(cached)


class AppStateCommandService(AppStateServiceBase):
    def save_state(
        self,
        user_id: int,
        payload: AppStateDocument | list[TripList],
    ) -> AppStateDocument:
        incoming = coerce_document(payload)
        saved = self._mutate(user_id, lambda _current: (incoming, incoming))
        self.logger.info(
            "app_state.saved",
            extra={"user_id": user_id, "trip_count": len(saved.trip_lists)},
        )
        return saved

    def delete_state(self, user_id: int) -> None:
        with session_scope() as session:
            self._ensure_user(session, user_id)
            AppStateRepository(session).delete_for_user(user_id)
        _invalidate_app_state_cache(user_id)
        self.logger.info("app_state.deleted", extra={"user_id": user_id})

    def update_map_state(self, user_id: int, map_state: MapState) -> MapState:
        def _apply(document: AppStateDocument) -> tuple[AppStateDocument, MapState]:
            return trip_lists.update_map_state(document, map_state), map_state

        return self._mutate(user_id, _apply)


class TripListService(AppStateServiceBase):
    def create_trip(self, user_id: int, name: str) -> TripList:
        if not name.strip():
            raise AppStateValidationError("Trip name must not be blank", code=14010)
        trip = self._mutate(user_id, partial(trip_lists.create_trip, name=name))
        self.logger.info("trip.created", extra={"user_id": user_id, "trip_id": trip.id})
        return trip

    def update_trip(self, user_id: int, trip_id: str, payload: TripUpdate) -> TripList:
        if payload.name is not None and not payload.name.strip():
            raise AppStateValidationError("Trip name must not be blank", code=14010)

        def _apply(document: AppStateDocument) -> tuple[AppStateDocument, TripList]:
            _require_trip(document, trip_id)
            if payload.name is not None:
                document = trip_lists.rename_trip(document, trip_id, payload.name)
            if payload.color is not None:
                document = trip_lists.recolor_trip(document, trip_id, payload.color)
            if "background_image" in payload.model_fields_set:
                document = trip_lists.set_trip_background(
                    document, trip_id, payload.background_image
                )
            return document, _require_trip(document, trip_id)

        trip = self._mutate(user_id, _apply)
        self.logger.info("trip.updated", extra={"user_id": user_id, "trip_id": trip_id})
        return trip

    def delete_trip(self, user_id: int, trip_id: str) -> None:
        def _apply(document: AppStateDocument) -> tuple[AppStateDocument, None]:
            _require_trip(document, trip_id)
            return trip_lists.delete_trip(document, trip_id), None

        self._mutate(user_id, _apply)
        self.logger.info("trip.deleted", extra={"user_id": user_id, "trip_id": trip_id})

    def select_trip(self, user_id: int, trip_id: str) -> AppStateDocument:
        def _apply(document: AppStateDocument):
            _require_trip(document, trip_id)
            updated = trip_lists.select_trip(document, trip_id)
            return updated, updated

        return self._mutate(user_id, _apply)

    def reorder_trip(
        self, user_id: int, trip_id: str, target_index: int
    ) -> list[TripList]:
        def _apply(document: AppStateDocument):
            _require_trip(document, trip_id)
            updated = trip_lists.reorder_trip(document, trip_id, target_index)
            return updated, updated.trip_lists

        trips = self._mutate(user_id, _apply)
        self.logger.info(
            "trip.reordered",
            extra={
                "user_id": user_id,
                "trip_id": trip_id,
                "target_index": target_index,
            },
        )
        return trips


class PlaceService(AppStateServiceBase):
    def _apply_to_places(
        self,
        user_id: int,
        trip_id: str,
        place_id: str | None,
        transform: Callable[[list[Place]], list[Place]],
    ) -> list[Place]:
        def _apply(document: AppStateDocument):
            trip = _require_trip(document, trip_id)
            if place_id is not None:
                _require_place(trip, place_id)
            updated = trip_lists.with_trip_places(document, trip_id, transform)
            return updated, _require_trip(updated, trip_id).places

        return self._mutate(user_id, _apply)

    def add_place(self, user_id: int, trip_id: str, draft: PlaceDraft) -> Place:
        created: list[Place] = []

        def _append(places: list[Place]) -> list[Place]:
            sequence, place = place_sequence.append_place(places, draft)
            created.append(place)
            return sequence

        self._apply_to_places(user_id, trip_id, None, _append)
        place = created[0]
        self.logger.info(
            "place.created",
            extra={
                "user_id": user_id,
                "trip_id": trip_id,
                "place_id": place.id,
                "is_revisit": place.is_revisit,
            },
        )
        return place

    def update_place(
        self, user_id: int, trip_id: str, place_id: str, payload: PlaceUpdate
    ) -> Place:
        changes = payload.model_dump(exclude_unset=True)
        if "name" in changes and not (changes["name"] or "").strip():
            raise AppStateValidationError("Place name must not be blank", code=14010)
        places = self._apply_to_places(
            user_id,
            trip_id,
            place_id,
            partial(place_sequence.update_place, place_id=place_id, **changes),
        )
        self.logger.info(
            "place.updated",
            extra={"user_id": user_id, "trip_id": trip_id, "place_id": place_id},
        )
        return places[place_sequence.index_of(places, place_id)]

    def delete_place(self, user_id: int, trip_id: str, place_id: str) -> list[Place]:
        places = self._apply_to_places(
            user_id,
            trip_id,
            place_id,
            partial(place_sequence.remove_place, place_id=place_id),
        )
        self.logger.info(
            "place.deleted",
            extra={"user_id": user_id, "trip_id": trip_id, "place_id": place_id},
        )
        return places

    def reorder_place(
        self, user_id: int, trip_id: str, place_id: str, target_index: int
    ) -> list[Place]:
        places = self._apply_to_places(
            user_id,
            trip_id,
            place_id,
            partial(
                place_sequence.reorder, place_id=place_id, target_index=target_index
            ),
        )
        self.logger.info(
            "place.reordered",
            extra={
                "user_id": user_id,
                "trip_id": trip_id,
                "place_id": place_id,
                "target_index": target_index,
            },
        )
        return places

    def move_place(
        self, user_id: int, trip_id: str, place_id: str, direction: str
    ) -> list[Place]:
        return self._apply_to_places(
            user_id,
            trip_id,
            place_id,
            partial(place_sequence.move_adjacent, place_id=place_id, direction=direction),
        )

    def toggle_place_numbering(
        self, user_id: int, trip_id: str, place_id: str
    ) -> list[Place]:
        places = self._apply_to_places(
            user_id,
            trip_id,
            place_id,
            partial(place_sequence.toggle_numbering, place_id=place_id),
        )
        self.logger.info(
            "place.numbering_toggled",
            extra={"user_id": user_id, "trip_id": trip_id, "place_id": place_id},
        )
        return places


class AppStateService:
    """Facade used by the API layer; the single entry point to user state."""

    def __init__(self) -> None:
        self.query_service = AppStateQueryService()
        self.command_service = AppStateCommandService()
        self.trip_service = TripListService()
        self.place_service = PlaceService()

    def get_state(self, user_id: int) -> AppStateDocument:
        return self.query_service.get_state(user_id)

    def save_state(
        self, user_id: int, payload: AppStateDocument | list[TripList]
    ) -> AppStateDocument:
        return self.command_service.save_state(user_id, payload)

    def delete_state(self, user_id: int) -> None:
        self.command_service.delete_state(user_id)

    def update_map_state(self, user_id: int, map_state: MapState) -> MapState:
        return self.command_service.update_map_state(user_id, map_state)

    def create_trip(self, user_id: int, name: str) -> TripList:
        return self.trip_service.create_trip(user_id, name)

    def update_trip(self, user_id: int, trip_id: str, payload: TripUpdate) -> TripList:
        return self.trip_service.update_trip(user_id, trip_id, payload)

    def delete_trip(self, user_id: int, trip_id: str) -> None:
        self.trip_service.delete_trip(user_id, trip_id)

    def select_trip(self, user_id: int, trip_id: str) -> AppStateDocument:
        return self.trip_service.select_trip(user_id, trip_id)

    def reorder_trip(
        self, user_id: int, trip_id: str, target_index: int
    ) -> list[TripList]:
        return self.trip_service.reorder_trip(user_id, trip_id, target_index)

    def add_place(self, user_id: int, trip_id: str, draft: PlaceDraft) -> Place:
        return self.place_service.add_place(user_id, trip_id, draft)

    def update_place(
        self, user_id: int, trip_id: str, place_id: str, payload: PlaceUpdate
    ) -> Place:
        return self.place_service.update_place(user_id, trip_id, place_id, payload)

    def delete_place(self, user_id: int, trip_id: str, place_id: str) -> list[Place]:
        return self.place_service.delete_place(user_id, trip_id, place_id)

    def reorder_place(
        self, user_id: int, trip_id: str, place_id: str, target_index: int
    ) -> list[Place]:
        return self.place_service.reorder_place(
            user_id, trip_id, place_id, target_index
        )

    def move_place(
        self, user_id: int, trip_id: str, place_id: str, direction: str
    ) -> list[Place]:
        return self.place_service.move_place(user_id, trip_id, place_id, direction)

    def toggle_place_numbering(
        self, user_id: int, trip_id: str, place_id: str
    ) -> list[Place]:
        return self.place_service.toggle_place_numbering(user_id, trip_id, place_id)


__all__ = [
    "AppStateService",
    "AppStateServiceError",
    "AppStateValidationError",
    "ResourceNotFoundError",
    "coerce_document",
    "default_document",
]
