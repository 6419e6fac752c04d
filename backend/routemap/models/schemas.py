from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MAP_CENTER: tuple[float, float] = (20.5937, 78.9629)
DEFAULT_MAP_ZOOM = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_coords(value: tuple[float, float]) -> tuple[float, float]:
    lat, lng = value
    if not -90 <= lat <= 90:
        raise ValueError("latitude must be within -90..90")
    if not -180 <= lng <= 180:
        raise ValueError("longitude must be within -180..180")
    return value


class TransportMode(StrEnum):
    BUS = "Bus"
    TRAIN = "Train"
    CAR = "Car"
    FLIGHT = "Flight"
    BIKE = "Bike"
    WALK = "Walk"
    BOAT = "Boat"
    OTHER = "Other"


class ORMBaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DocumentSchema(BaseModel):
    """Base for the state document; camelCase on the wire, snake_case accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Place(DocumentSchema):
    id: str
    name: str
    coords: tuple[float, float]
    transport: TransportMode | None = None
    distance: str | None = None
    time: str | None = None
    description: str | None = None
    image: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    is_intermediate: bool = False
    is_revisit: bool = False
    original_place_id: str | None = None
    assigned_number: int | None = None

    @field_validator("is_intermediate", "is_revisit", mode="before")
    @classmethod
    def coerce_missing_flag(cls, value: Any) -> Any:
        return False if value is None else value


class PlaceDraft(DocumentSchema):
    """A new place as submitted by the add-place form."""

    name: str = Field(min_length=1)
    coords: tuple[float, float]
    description: str | None = None
    image: str | None = None
    transport: TransportMode | None = None
    distance: str | None = None
    time: str | None = None
    is_intermediate: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("coords")
    @classmethod
    def validate_coords(cls, value: tuple[float, float]) -> tuple[float, float]:
        return _check_coords(value)


class PlaceUpdate(DocumentSchema):
    name: str | None = None
    description: str | None = None
    image: str | None = None
    transport: TransportMode | None = None
    distance: str | None = None
    time: str | None = None


class TripList(DocumentSchema):
    id: str
    name: str
    color: str
    places: list[Place] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    background_image: str | None = None


class MapState(DocumentSchema):
    center: tuple[float, float] = DEFAULT_MAP_CENTER
    zoom: int = Field(default=DEFAULT_MAP_ZOOM, ge=0, le=22)

    @field_validator("center")
    @classmethod
    def validate_center(cls, value: tuple[float, float]) -> tuple[float, float]:
        return _check_coords(value)


class AppStateDocument(DocumentSchema):
    trip_lists: list[TripList] = Field(default_factory=list)
    selected_trip_id: str | None = None
    map_state: MapState = Field(default_factory=MapState)


class TripCreate(DocumentSchema):
    name: str = Field(min_length=1, max_length=255)


class TripUpdate(DocumentSchema):
    name: str | None = None
    color: str | None = None
    background_image: str | None = None


class ReorderPayload(DocumentSchema):
    target_index: int = Field(
        description="Insertion line; equal to the list length means the end"
    )


class MovePayload(DocumentSchema):
    direction: Literal["up", "down"]


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    picture: str | None = None


class UserSchema(ORMBaseSchema):
    id: int
    email: str
    name: str | None = None
    picture: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = [
    "AppStateDocument",
    "MapState",
    "MovePayload",
    "Place",
    "PlaceDraft",
    "PlaceUpdate",
    "ReorderPayload",
    "TransportMode",
    "TripCreate",
    "TripList",
    "TripUpdate",
    "UserCreate",
    "UserSchema",
    "utcnow",
]
