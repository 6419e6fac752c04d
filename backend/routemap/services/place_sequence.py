"""Ordering and numbering rules for the places of a single trip.

Every function here is pure: it takes a sequence of ``Place`` records and
returns a new list, never mutating its input. Unknown ids and out of range
indices are absorbed by clamping or by returning the sequence unchanged.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal, Sequence, TypeVar

from routemap.models.schemas import Place, PlaceDraft, utcnow

T = TypeVar("T")

REVISIT_COORD_TOLERANCE = 0.01
EDITABLE_PLACE_FIELDS = frozenset(
    {"name", "description", "image", "transport", "distance", "time"}
)


def remap_index(current_index: int, target_index: int, length: int) -> int:
    """Translate a drop line into the index the item lands on.

    ``target_index`` is a line between rows (``length`` means after the last
    row). The item is removed before it is reinserted, so forward moves land
    one slot earlier than the line, except that dragging the first row onto
    line 1 swaps it with its neighbour. Returns ``current_index`` when the
    move is a no-op.
    """

    if length <= 0:
        return current_index
    target = max(0, min(target_index, length))
    if target == current_index:
        return current_index
    if current_index < target:
        final_index = 1 if (current_index == 0 and target == 1) else target - 1
    else:
        final_index = target
    return max(0, min(final_index, length - 1))


def move_item(items: Sequence[T], current_index: int, target_index: int) -> list[T]:
    """Remove the item at ``current_index`` and reinsert it per ``remap_index``."""

    result = list(items)
    if not 0 <= current_index < len(result):
        return result
    final_index = remap_index(current_index, target_index, len(result))
    if final_index == current_index:
        return result
    moved = result.pop(current_index)
    result.insert(final_index, moved)
    return result


def index_of(places: Sequence[Place], place_id: str) -> int:
    for idx, place in enumerate(places):
        if place.id == place_id:
            return idx
    return -1


def _root_original_id(place: Place, by_id: dict[str, Place]) -> str | None:
    """Follow ``original_place_id`` to the first non-revisit place, if any."""

    seen = {place.id}
    current = place
    while current.is_revisit and current.original_place_id:
        if current.original_place_id in seen:
            return None
        target = by_id.get(current.original_place_id)
        if target is None:
            return None
        seen.add(target.id)
        current = target
    return current.id if current is not place else None


def renumber(places: Sequence[Place]) -> list[Place]:
    """Assign gap-free display numbers in sequence order.

    Non-intermediate places take 1..k. Intermediate places are cleared.
    Revisits never consume a number: they mirror the number of the place they
    revisit. A revisit whose original is gone is numbered like any other place.
    """

    by_id = {place.id: place for place in places}
    roots = {place.id: _root_original_id(place, by_id) for place in places}

    numbers: dict[str, int | None] = {}
    counter = 1
    for place in places:
        if roots[place.id] is not None:
            continue
        if place.is_intermediate:
            numbers[place.id] = None
        else:
            numbers[place.id] = counter
            counter += 1

    result: list[Place] = []
    for place in places:
        root = roots[place.id]
        number = numbers.get(root) if root is not None else numbers[place.id]
        if number == place.assigned_number:
            result.append(place)
        else:
            result.append(place.model_copy(update={"assigned_number": number}))
    return result


def reorder(places: Sequence[Place], place_id: str, target_index: int) -> list[Place]:
    current_index = index_of(places, place_id)
    if current_index == -1:
        return list(places)
    if remap_index(current_index, target_index, len(places)) == current_index:
        return list(places)
    return renumber(move_item(places, current_index, target_index))


def move_adjacent(
    places: Sequence[Place],
    place_id: str,
    direction: Literal["up", "down"],
) -> list[Place]:
    """Swap a place with its upper or lower neighbour; ignored at the edges."""

    current_index = index_of(places, place_id)
    if current_index == -1:
        return list(places)
    new_index = current_index - 1 if direction == "up" else current_index + 1
    if not 0 <= new_index < len(places):
        return list(places)
    result = list(places)
    result[current_index], result[new_index] = result[new_index], result[current_index]
    return renumber(result)


def toggle_numbering(places: Sequence[Place], place_id: str) -> list[Place]:
    current_index = index_of(places, place_id)
    if current_index == -1:
        return list(places)
    result = list(places)
    place = result[current_index]
    result[current_index] = place.model_copy(
        update={"is_intermediate": not place.is_intermediate}
    )
    return renumber(result)


def _names_match(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


def _coords_match(left: tuple[float, float], right: tuple[float, float]) -> bool:
    return (
        abs(left[0] - right[0]) < REVISIT_COORD_TOLERANCE
        and abs(left[1] - right[1]) < REVISIT_COORD_TOLERANCE
    )


def find_revisit_match(places: Sequence[Place], draft: PlaceDraft) -> Place | None:
    """First place, in route order, sharing the draft's name or location."""

    for place in places:
        if _names_match(place.name, draft.name) or _coords_match(
            place.coords, draft.coords
        ):
            return place
    return None


def resolve_insertion(
    places: Sequence[Place],
    draft: PlaceDraft,
    *,
    place_id: str | None = None,
    created_at: datetime | None = None,
) -> Place:
    """Build the full place record for ``draft`` without inserting it."""

    fields: dict[str, Any] = draft.model_dump(exclude={"is_intermediate"})
    fields["id"] = place_id or f"place-{uuid.uuid4().hex}"
    fields["created_at"] = created_at or utcnow()

    if draft.is_intermediate:
        return Place(**fields, is_intermediate=True)

    match = find_revisit_match(places, draft)
    if match is None:
        numbered = sum(1 for place in places if not place.is_intermediate)
        return Place(**fields, assigned_number=numbered + 1)

    original_id = (
        match.original_place_id
        if match.is_revisit and match.original_place_id
        else match.id
    )
    return Place(
        **fields,
        is_intermediate=True,
        is_revisit=True,
        original_place_id=original_id,
        assigned_number=match.assigned_number,
    )


def append_place(
    places: Sequence[Place],
    draft: PlaceDraft,
    **kwargs: Any,
) -> tuple[list[Place], Place]:
    """Resolve ``draft``, append it and renumber. Returns the new sequence and place."""

    resolved = resolve_insertion(places, draft, **kwargs)
    sequence = renumber([*places, resolved])
    return sequence, sequence[-1]


def remove_place(places: Sequence[Place], place_id: str) -> list[Place]:
    """Delete a place; its revisits become ordinary stops."""

    if index_of(places, place_id) == -1:
        return list(places)
    result: list[Place] = []
    for place in places:
        if place.id == place_id:
            continue
        if place.is_revisit and place.original_place_id == place_id:
            place = place.model_copy(
                update={"is_revisit": False, "original_place_id": None}
            )
        result.append(place)
    return renumber(result)


def update_place(
    places: Sequence[Place], place_id: str, **changes: Any
) -> list[Place]:
    """Edit descriptive fields of one place; ordering and numbers are untouched."""

    updates = {
        key: value for key, value in changes.items() if key in EDITABLE_PLACE_FIELDS
    }
    if not updates:
        return list(places)
    return [
        place.model_copy(update=updates) if place.id == place_id else place
        for place in places
    ]


__all__ = [
    "REVISIT_COORD_TOLERANCE",
    "append_place",
    "find_revisit_match",
    "index_of",
    "move_adjacent",
    "move_item",
    "remap_index",
    "remove_place",
    "renumber",
    "reorder",
    "resolve_insertion",
    "toggle_numbering",
    "update_place",
]
