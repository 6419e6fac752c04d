from __future__ import annotations

import pytest
from routemap.models.schemas import Place, PlaceDraft
from routemap.services import place_sequence
from routemap.services.place_sequence import (
    append_place,
    move_adjacent,
    remap_index,
    remove_place,
    renumber,
    reorder,
    resolve_insertion,
    toggle_numbering,
    update_place,
)


def _place(
    place_id: str, name: str | None = None, coords=(10.0, 76.0), **extra
) -> Place:
    return Place(id=place_id, name=name or place_id, coords=coords, **extra)


def _route(*names: str) -> list[Place]:
    """Numbered places spaced far enough apart to never match each other."""

    return renumber(
        [
            _place(name, coords=(8.0 + idx, 72.0 + idx))
            for idx, name in enumerate(names)
        ]
    )


def _ids(places: list[Place]) -> list[str]:
    return [place.id for place in places]


def _numbers(places: list[Place]) -> list[int | None]:
    return [place.assigned_number for place in places]


@pytest.mark.parametrize(
    ("current", "target", "length", "expected"),
    [
        (0, 1, 4, 1),  # first row dropped below its neighbour swaps
        (0, 2, 4, 1),
        (0, 4, 4, 3),
        (3, 0, 4, 0),
        (3, 1, 4, 1),
        (1, 3, 4, 2),
        (2, 2, 4, 2),  # own line
        (1, 2, 4, 1),  # line directly below collapses back onto itself
        (0, 1, 1, 0),
        (0, 0, 1, 0),
        (0, 5, 0, 0),
        (1, 99, 4, 3),
        (2, -5, 4, 0),
    ],
)
def test_remap_index_cases(current, target, length, expected):
    assert remap_index(current, target, length) == expected


def test_remap_index_stays_in_bounds():
    for length in range(1, 7):
        for current in range(length):
            for target in range(-2, length + 3):
                final_index = remap_index(current, target, length)
                assert 0 <= final_index <= length - 1


def test_reorder_first_to_line_one_swaps_neighbours():
    places = _route("A", "B", "C", "D")
    result = reorder(places, "A", 1)
    assert _ids(result) == ["B", "A", "C", "D"]
    assert _numbers(result) == [1, 2, 3, 4]


def test_reorder_last_backwards():
    places = _route("A", "B", "C", "D")
    result = reorder(places, "D", 1)
    assert _ids(result) == ["A", "D", "B", "C"]
    assert [p.assigned_number for p in result if p.id == "D"] == [2]


def test_reorder_last_to_front():
    result = reorder(_route("A", "B", "C", "D"), "D", 0)
    assert _ids(result) == ["D", "A", "B", "C"]
    assert _numbers(result) == [1, 2, 3, 4]


def test_reorder_noop_and_unknown_return_sequence_unchanged():
    places = _route("A", "B", "C")
    assert reorder(places, "B", 1) == places
    assert reorder(places, "B", 2) == places
    assert reorder(places, "missing", 0) == places
    assert reorder([], "A", 0) == []
    single = _route("A")
    assert reorder(single, "A", 1) == single


def test_reorder_does_not_mutate_input():
    places = _route("A", "B", "C")
    reorder(places, "C", 0)
    assert _ids(places) == ["A", "B", "C"]
    assert _numbers(places) == [1, 2, 3]


def test_renumber_skips_intermediate_places():
    places = [
        _place("A", assigned_number=7),
        _place("B", is_intermediate=True, assigned_number=3),
        _place("C"),
    ]
    result = renumber(places)
    assert _numbers(result) == [1, None, 2]


def test_renumber_is_idempotent():
    places = [
        _place("A"),
        _place("B", is_intermediate=True),
        _place("C"),
        _place("D", is_intermediate=True),
    ]
    once = renumber(places)
    assert renumber(once) == once


def test_renumber_numbers_are_contiguous_in_sequence_order():
    places = renumber(
        [
            _place("A"),
            _place("B", is_intermediate=True),
            _place("C"),
            _place("R", is_intermediate=True, is_revisit=True, original_place_id="A"),
            _place("D"),
        ]
    )
    numbered = [
        p.assigned_number
        for p in places
        if not p.is_intermediate and not p.is_revisit
    ]
    assert numbered == [1, 2, 3]


def test_revisit_mirrors_number_of_its_original_after_reorder():
    places = renumber(
        [
            _place("A"),
            _place("B"),
            _place("R", is_intermediate=True, is_revisit=True, original_place_id="B"),
        ]
    )
    assert places[2].assigned_number == 2

    moved = reorder(places, "B", 0)
    assert _ids(moved) == ["B", "A", "R"]
    assert moved[2].assigned_number == moved[0].assigned_number == 1


def test_revisit_with_missing_original_is_numbered_like_any_place():
    places = renumber(
        [
            _place("A"),
            _place("R", is_revisit=True, original_place_id="gone"),
        ]
    )
    assert _numbers(places) == [1, 2]


def test_revisit_cycle_does_not_loop():
    places = renumber(
        [
            _place("X", is_revisit=True, original_place_id="Y"),
            _place("Y", is_revisit=True, original_place_id="X"),
        ]
    )
    assert _numbers(places) == [1, 2]


def test_toggle_numbering_twice_restores_numbers():
    places = renumber(
        [_place("A"), _place("X", is_intermediate=True), _place("B"), _place("C")]
    )
    once = toggle_numbering(places, "X")
    twice = toggle_numbering(once, "X")
    assert _numbers(twice) == _numbers(places)
    assert [p.is_intermediate for p in twice] == [p.is_intermediate for p in places]


def test_toggle_intermediate_place_shifts_following_numbers():
    places = renumber(
        [_place("A"), _place("X", is_intermediate=True), _place("B"), _place("C")]
    )
    assert _numbers(places) == [1, None, 2, 3]

    result = toggle_numbering(places, "X")
    assert result[1].is_intermediate is False
    assert _numbers(result) == [1, 2, 3, 4]


def test_toggle_unknown_place_is_noop():
    places = _route("A", "B")
    assert toggle_numbering(places, "missing") == places


def test_resolve_insertion_detects_name_revisit():
    places = renumber(
        [
            _place("p1", "Hyderabad", coords=(17.385, 78.4867)),
            _place("p2", "Kochi", coords=(9.9312, 76.2673)),
        ]
    )
    draft = PlaceDraft(name=" kochi ", coords=(9.9352, 76.2633))
    resolved = resolve_insertion(places, draft, place_id="p3")

    assert resolved.id == "p3"
    assert resolved.is_revisit is True
    assert resolved.is_intermediate is True
    assert resolved.original_place_id == "p2"
    assert resolved.assigned_number == 2
    assert resolved.name == " kochi "


def test_resolve_insertion_detects_coordinate_revisit():
    places = renumber([_place("p1", "Ernakulam", coords=(9.9816, 76.2999))])
    draft = PlaceDraft(name="Ernakulam Junction", coords=(9.9856, 76.2950))
    resolved = resolve_insertion(places, draft)

    assert resolved.is_revisit is True
    assert resolved.original_place_id == "p1"
    assert resolved.assigned_number == 1


def test_resolve_insertion_coordinates_must_match_on_both_axes():
    places = renumber([_place("p1", "Madurai", coords=(9.9252, 78.1198))])
    draft = PlaceDraft(name="Elsewhere", coords=(9.9252, 78.2198))
    resolved = resolve_insertion(places, draft)
    assert resolved.is_revisit is False
    assert resolved.assigned_number == 2


def test_resolve_insertion_points_chains_at_true_original():
    places = renumber(
        [
            _place("p1", "Kochi", coords=(9.93, 76.26)),
            _place(
                "p2",
                "Kochi",
                coords=(9.93, 76.26),
                is_intermediate=True,
                is_revisit=True,
                original_place_id="p1",
            ),
        ]
    )
    # only the revisit is in range, so the match itself is a revisit
    draft = PlaceDraft(name="kochi", coords=(9.93, 76.26))
    resolved = resolve_insertion(places[1:], draft)
    assert resolved.original_place_id == "p1"


def test_resolve_insertion_explicit_intermediate_skips_detection():
    places = _route("Kochi")
    draft = PlaceDraft(name="Kochi", coords=(8.0, 72.0), is_intermediate=True)
    resolved = resolve_insertion(places, draft)
    assert resolved.is_intermediate is True
    assert resolved.is_revisit is False
    assert resolved.original_place_id is None
    assert resolved.assigned_number is None


def test_resolve_insertion_fresh_place_gets_next_number():
    places = renumber(
        [
            _place("A", coords=(1.0, 1.0)),
            _place("B", coords=(2.0, 2.0), is_intermediate=True),
        ]
    )
    draft = PlaceDraft(name="C", coords=(3.0, 3.0), description="Temple town")
    resolved = resolve_insertion(places, draft)
    assert resolved.assigned_number == 2
    assert resolved.is_revisit is False
    assert resolved.description == "Temple town"
    assert resolved.id.startswith("place-")


def test_resolve_insertion_does_not_modify_sequence():
    places = _route("A", "B")
    resolve_insertion(places, PlaceDraft(name="A", coords=(50.0, 50.0)))
    assert _ids(places) == ["A", "B"]


def test_append_place_renumbers_with_new_entry():
    places = _route("A", "B")
    sequence, created = append_place(places, PlaceDraft(name="C", coords=(30.0, 30.0)))
    assert _ids(sequence)[-1] == created.id
    assert created.assigned_number == 3


def test_remove_place_detaches_revisits_and_renumbers():
    places = renumber(
        [
            _place("A"),
            _place("B"),
            _place("R", is_intermediate=True, is_revisit=True, original_place_id="A"),
            _place("C"),
        ]
    )
    result = remove_place(places, "A")
    assert _ids(result) == ["B", "R", "C"]
    revisit = result[1]
    assert revisit.is_revisit is False
    assert revisit.original_place_id is None
    assert revisit.is_intermediate is True
    assert _numbers(result) == [1, None, 2]


def test_remove_unknown_place_is_noop():
    places = _route("A")
    assert remove_place(places, "missing") == places


def test_move_adjacent_swaps_and_ignores_edges():
    places = _route("A", "B", "C")
    assert _ids(move_adjacent(places, "B", "up")) == ["B", "A", "C"]
    assert _ids(move_adjacent(places, "B", "down")) == ["A", "C", "B"]
    assert move_adjacent(places, "A", "up") == places
    assert move_adjacent(places, "C", "down") == places
    assert _numbers(move_adjacent(places, "C", "up")) == [1, 2, 3]


def test_update_place_only_touches_editable_fields():
    places = _route("A", "B")
    result = update_place(
        places, "A", description="Lakes", assigned_number=9, is_revisit=True
    )
    assert result[0].description == "Lakes"
    assert result[0].assigned_number == 1
    assert result[0].is_revisit is False
    assert result[1] is places[1]


def test_module_exports_tolerance():
    assert place_sequence.REVISIT_COORD_TOLERANCE == 0.01
