"""
Drag and Drop
=============

Geometry and commit logic for reordering top-level elements and dropping
palette items onto the canvas. Rendering and pointer events live in the
front end; this module only sees numbers.
"""


def insertion_point(pointer_y, target_top, target_height, target_index):
    """Insertion index for a pointer hovering over a target element.

    Above the target's vertical midpoint inserts before it, otherwise after.
    """
    midpoint = target_top + target_height / 2
    if pointer_y < midpoint:
        return target_index
    return target_index + 1


def corrected_insertion_index(source_index, intended_index):
    """Account for the shift caused by lifting the source out of the list"""
    if source_index < intended_index:
        return intended_index - 1
    return intended_index


def reorder_elements(elements, source_index, intended_index):
    """Move elements[source_index] to the spot marked by intended_index.

    Returns (new elements, landing index), or None when the element would
    land where it started or source_index is out of range.
    """
    if not 0 <= source_index < len(elements):
        return None

    intended_index = max(0, min(intended_index, len(elements)))
    target_index = corrected_insertion_index(source_index, intended_index)
    if target_index == source_index:
        return None

    new_elements = list(elements)
    moved = new_elements.pop(source_index)
    new_elements.insert(target_index, moved)
    return new_elements, target_index


class DragState:
    """Transient drag bookkeeping for one editor session; never persisted"""

    def __init__(self):
        self.reset()

    def reset(self):
        self.dragging_id = None
        self.palette_type = None
        self.insertion_index = None

    @property
    def active(self):
        return self.dragging_id is not None or self.palette_type is not None

    def start_element(self, element_id):
        self.reset()
        self.dragging_id = element_id

    def start_palette(self, element_type):
        self.reset()
        self.palette_type = element_type

    def hover(self, pointer_y, target_top, target_height, target_index):
        self.insertion_index = insertion_point(pointer_y, target_top, target_height, target_index)
        return self.insertion_index

    def to_dict(self):
        return {
            'dragging_id': self.dragging_id,
            'palette_type': self.palette_type,
            'insertion_index': self.insertion_index,
        }
