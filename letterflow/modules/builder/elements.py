"""
Newsletter Elements
===================

Pure operations over a newsletter document: an ordered list of element dicts,
where a 'columns' element holds a list of column slots, each itself a list of
elements. Elements are JSON-shaped so the persisted form is the working form.

Every operation returns a new list and leaves its input untouched. Only the
containers along the path to the changed element are rebuilt; everything else
is shared with the input. Unknown ids are no-ops that return the input list.
"""

import copy
from collections import namedtuple

from letterflow.core.errors import PersonalizationError, UnknownElementType, ValidationError
from .catalog import get_personalization_option
from .ids import make_element_id


ELEMENT_TYPES = (
    'heading', 'text', 'passage', 'image', 'button',
    'divider', 'spacer', 'social', 'code', 'columns',
)

# Only these accept merge tags
PERSONALIZABLE_TYPES = ('text', 'heading', 'passage')

PLACEHOLDER_IMAGE = 'https://placehold.co/600x400/e6e6e6/999999?text=Image'

ElementLocation = namedtuple('ElementLocation', ['element', 'container', 'index'])


# ===================
# LOOKUP
# ===================

def find_element(element_id, elements):
    """Locate an element anywhere in the document.

    Searches depth-first: the given list in order, descending into each
    columns element's slots in column order. Returns an ElementLocation
    (element, containing list, index) for the first match, or None.
    """
    for index, element in enumerate(elements):
        if element.get('id') == element_id:
            return ElementLocation(element, elements, index)
        if element.get('type') == 'columns':
            for column in element.get('columns') or []:
                found = find_element(element_id, column)
                if found is not None:
                    return found
    return None


def iter_elements(elements):
    """Yield every element, nested ones included, in lookup order"""
    for element in elements:
        yield element
        if element.get('type') == 'columns':
            for column in element.get('columns') or []:
                yield from iter_elements(column)


def collect_ids(elements):
    return [element.get('id') for element in iter_elements(elements)]


def check_document(elements):
    """Raise ValidationError unless elements is a well-formed document"""
    if not isinstance(elements, list):
        raise ValidationError('Newsletter elements must be a list (can be empty).')

    seen = set()
    for element in iter_elements(elements):
        if not isinstance(element, dict):
            raise ValidationError('Every newsletter element must be an object.')
        element_id = element.get('id')
        if not element_id:
            raise ValidationError('Every newsletter element needs an id.')
        if element.get('type') not in ELEMENT_TYPES:
            raise ValidationError(
                f"Unknown element type '{element.get('type')}'",
                {'element_id': element_id}
            )
        if element_id in seen:
            raise ValidationError(f"Duplicate element id '{element_id}'", {'element_id': element_id})
        seen.add(element_id)
        if element.get('type') == 'columns':
            columns = element.get('columns')
            if not isinstance(columns, list) or not all(isinstance(c, list) for c in columns):
                raise ValidationError(
                    'A columns element must hold a list of column slots.',
                    {'element_id': element_id}
                )
    return elements


def _splice(elements, element_id, replace):
    """Substitute replace(element) (a list) for the element with element_id.

    Rebuilds only the lists and columns elements on the path to the match.
    Returns the very same list object when element_id is absent.
    """
    for index, element in enumerate(elements):
        if element.get('id') == element_id:
            return elements[:index] + list(replace(element)) + elements[index + 1:]
        if element.get('type') == 'columns' and element.get('columns'):
            columns = element['columns']
            for col_index, column in enumerate(columns):
                new_column = _splice(column, element_id, replace)
                if new_column is not column:
                    new_columns = columns[:col_index] + [new_column] + columns[col_index + 1:]
                    new_element = dict(element, columns=new_columns)
                    return elements[:index] + [new_element] + elements[index + 1:]
    return elements


# ===================
# UPDATE / REMOVE
# ===================

def update_element(elements, element_id, changes):
    """Merge changes into the element with element_id.

    'style' is merged key by key over the existing style; every other field
    is replaced wholesale. The id itself cannot be changed.
    """
    def _merge(element):
        updated = dict(element)
        for key, value in changes.items():
            if key == 'id':
                continue
            if key == 'style' and isinstance(value, dict):
                updated['style'] = {**(element.get('style') or {}), **value}
            else:
                updated[key] = value
        return [updated]

    return _splice(elements, element_id, _merge)


def remove_element(elements, element_id):
    """Excise an element; a removed columns element takes its slots with it"""
    return _splice(elements, element_id, lambda element: [])


# ===================
# CREATE / COPY
# ===================

def _fresh_id(element_type, id_factory, taken):
    new_id = id_factory(element_type)
    while new_id in taken:
        new_id = id_factory(element_type)
    taken.add(new_id)
    return new_id


def new_element(element_type, id_factory=make_element_id, taken=None):
    """Build an element of element_type carrying its default payload"""
    if element_type not in ELEMENT_TYPES:
        raise UnknownElementType(f"Unknown element type '{element_type}'", {'type': element_type})

    taken = set() if taken is None else taken
    element = {'id': _fresh_id(element_type, id_factory, taken), 'type': element_type}

    if element_type == 'heading':
        element['content'] = 'Heading'
        element['style'] = {'fontSize': '24px', 'fontWeight': 'bold', 'padding': '10px 0'}

    elif element_type == 'text':
        element['content'] = 'Add your text here'
        element['style'] = {'fontSize': '16px', 'lineHeight': '1.6', 'padding': '10px 0'}

    elif element_type == 'passage':
        element['content'] = (
            'Write a longer passage here.\n'
            'Line breaks are kept when the newsletter is rendered.'
        )
        element['style'] = {'lineHeight': '1.6', 'padding': '10px 0'}

    elif element_type == 'image':
        element['src'] = PLACEHOLDER_IMAGE
        element['alt'] = 'Image'
        element['style'] = {'width': '100%'}

    elif element_type == 'button':
        element['content'] = 'Click Here'
        element['url'] = '#'
        element['style'] = {
            'backgroundColor': '#3b82f6',
            'color': '#ffffff',
            'padding': '10px 20px',
            'borderRadius': '4px',
            'textAlign': 'center',
        }

    elif element_type == 'divider':
        element['style'] = {'borderTop': '1px solid #e5e7eb', 'margin': '20px 0'}

    elif element_type == 'spacer':
        element['height'] = '40px'

    elif element_type == 'social':
        element['socialLinks'] = [
            {'platform': 'twitter', 'url': '#'},
            {'platform': 'facebook', 'url': '#'},
            {'platform': 'instagram', 'url': '#'},
            {'platform': 'linkedin', 'url': '#'},
        ]
        element['style'] = {'textAlign': 'center', 'margin': '20px 0'}

    elif element_type == 'code':
        element['content'] = (
            "<div style='padding: 20px; background-color: #f3f4f6;'>Custom HTML here</div>"
        )

    elif element_type == 'columns':
        element['columns'] = [
            [{'id': _fresh_id('text', id_factory, taken), 'type': 'text', 'content': 'Column 1 content'}],
            [{'id': _fresh_id('text', id_factory, taken), 'type': 'text', 'content': 'Column 2 content'}],
        ]
        element['style'] = {'display': 'flex', 'gap': '20px'}

    return element


def add_element(elements, element_type, index=None, id_factory=make_element_id):
    """Insert a new default element at top level.

    Appends when index is None or outside 0..len(elements).
    Returns (new elements, new element id).
    """
    element = new_element(element_type, id_factory, set(collect_ids(elements)))
    new_elements = list(elements)
    if index is not None and 0 <= index <= len(new_elements):
        new_elements.insert(index, element)
    else:
        new_elements.append(element)
    return new_elements, element['id']


def _reassign_ids(element, id_factory, taken):
    element['id'] = _fresh_id(element.get('type', 'element'), id_factory, taken)
    if element.get('type') == 'columns':
        for column in element.get('columns') or []:
            for child in column:
                _reassign_ids(child, id_factory, taken)


def duplicate_element(elements, element_id, id_factory=make_element_id):
    """Deep-copy an element (and its column contents) right after itself.

    Every copy, nested ones included, gets its own fresh id.
    Returns (new elements, copy id), or (elements, None) for an unknown id.
    """
    location = find_element(element_id, elements)
    if location is None:
        return elements, None

    clone = copy.deepcopy(location.element)
    _reassign_ids(clone, id_factory, set(collect_ids(elements)))
    return _splice(elements, element_id, lambda element: [element, clone]), clone['id']


# ===================
# PERSONALIZATION
# ===================

def add_personalization_to_element(elements, element_id, field_id, options=None):
    """Append a merge tag's default text to an element and record the tag.

    Raises PersonalizationError if the tag is unknown, the element is missing,
    or the element type does not take merge tags.
    Returns (new elements, the catalog option used).
    """
    option = get_personalization_option(field_id, options)
    if option is None:
        raise PersonalizationError(f"Unknown personalization field '{field_id}'", {'field': field_id})

    location = find_element(element_id, elements)
    if location is None:
        raise PersonalizationError('Element not found', {'element_id': element_id})

    element = location.element
    if element.get('type') not in PERSONALIZABLE_TYPES:
        raise PersonalizationError(
            f"Personalization can only be added to text, heading or passage elements, "
            f"not {element.get('type')}",
            {'element_id': element_id, 'type': element.get('type')}
        )

    existing = element.get('content') or ''
    separator = ' ' if existing and not existing[-1].isspace() else ''
    fields = list(element.get('personalizedFields') or [])
    fields.append({'fieldName': option['id'], 'defaultValue': option['defaultValue']})

    new_elements = update_element(elements, element_id, {
        'content': f"{existing}{separator}{option['defaultValue']}",
        'personalizedFields': fields,
    })
    return new_elements, option


# ===================
# ORDERING
# ===================

def _top_level_index(elements, element_id):
    for index, element in enumerate(elements):
        if element.get('id') == element_id:
            return index
    return -1


def move_element_up(elements, element_id):
    """Swap a top-level element with the one above it"""
    index = _top_level_index(elements, element_id)
    if index <= 0:
        return elements
    new_elements = list(elements)
    new_elements[index - 1], new_elements[index] = new_elements[index], new_elements[index - 1]
    return new_elements


def move_element_down(elements, element_id):
    """Swap a top-level element with the one below it"""
    index = _top_level_index(elements, element_id)
    if index == -1 or index >= len(elements) - 1:
        return elements
    new_elements = list(elements)
    new_elements[index + 1], new_elements[index] = new_elements[index], new_elements[index + 1]
    return new_elements
