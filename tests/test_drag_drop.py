"""
Drag-and-drop geometry and reorder commits.
"""

import pytest

from letterflow.modules.builder.drag_drop import (
    DragState, corrected_insertion_index, insertion_point, reorder_elements,
)


def _doc(*ids):
    return [{'id': i, 'type': 'text', 'content': i} for i in ids]


def _ids(elements):
    return [e['id'] for e in elements]


# ---------------------------------------------------------------------------
# Insertion point
# ---------------------------------------------------------------------------

def test_above_midpoint_inserts_before():
    assert insertion_point(pointer_y=110, target_top=100, target_height=40, target_index=2) == 2


def test_below_midpoint_inserts_after():
    assert insertion_point(pointer_y=130, target_top=100, target_height=40, target_index=2) == 3


def test_exact_midpoint_inserts_after():
    assert insertion_point(pointer_y=120, target_top=100, target_height=40, target_index=0) == 1


@pytest.mark.parametrize('source, intended, expected', [
    (0, 2, 1),
    (0, 3, 2),
    (2, 0, 0),
    (1, 1, 1),
    (1, 2, 1),
])
def test_corrected_insertion_index(source, intended, expected):
    assert corrected_insertion_index(source, intended) == expected


# ---------------------------------------------------------------------------
# Reorder
# ---------------------------------------------------------------------------

def test_drag_first_below_second():
    doc = _doc('A', 'B', 'C')
    # Pointer below B's midpoint -> intended insertion point is C's index
    intended = insertion_point(pointer_y=75, target_top=50, target_height=40, target_index=1)
    assert intended == 2

    new, landed = reorder_elements(doc, 0, intended)
    assert _ids(new) == ['B', 'A', 'C']
    assert landed == 1
    assert _ids(doc) == ['A', 'B', 'C']


def test_drag_last_to_top():
    new, landed = reorder_elements(_doc('A', 'B', 'C'), 2, 0)
    assert _ids(new) == ['C', 'A', 'B']
    assert landed == 0


def test_drag_to_end():
    new, landed = reorder_elements(_doc('A', 'B', 'C'), 0, 3)
    assert _ids(new) == ['B', 'C', 'A']
    assert landed == 2


@pytest.mark.parametrize('source, intended', [(1, 1), (1, 2), (0, 0), (2, 3)])
def test_drop_on_own_position_is_noop(source, intended):
    assert reorder_elements(_doc('A', 'B', 'C'), source, intended) is None


def test_invalid_source_is_noop():
    assert reorder_elements(_doc('A', 'B'), 5, 0) is None
    assert reorder_elements(_doc('A', 'B'), -1, 0) is None


def test_intended_index_is_clamped():
    new, landed = reorder_elements(_doc('A', 'B', 'C'), 0, 10)
    assert _ids(new) == ['B', 'C', 'A']
    assert landed == 2


# ---------------------------------------------------------------------------
# Drag state
# ---------------------------------------------------------------------------

def test_drag_state_lifecycle():
    state = DragState()
    assert not state.active

    state.start_element('A')
    assert state.active
    assert state.hover(10, 0, 100, 0) == 0
    assert state.to_dict() == {'dragging_id': 'A', 'palette_type': None, 'insertion_index': 0}

    state.start_palette('image')
    assert state.dragging_id is None
    assert state.palette_type == 'image'
    assert state.insertion_index is None

    state.reset()
    assert not state.active
