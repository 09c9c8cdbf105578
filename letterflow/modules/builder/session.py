"""
Editor Session
==============

One EditorSession per open newsletter editor. It owns the live document, its
undo/redo history, the current selection, the drag state and the newsletter
metadata, and it is the only writer of any of them.

Every mutating method runs a pure operation from elements.py, commits the
result through History and queues a user-facing notice. Routes drain notices
with pop_notices() and hand them to the front end.
"""

import logging
import threading
import time
import uuid
from datetime import datetime

from letterflow.core.errors import PersonalizationError, ValidationError
from .catalog import get_template
from .drag_drop import DragState, reorder_elements
from .elements import (
    add_element, add_personalization_to_element, check_document, duplicate_element,
    find_element, move_element_down, move_element_up, remove_element, update_element,
)
from .history import History
from .ids import make_element_id

logger = logging.getLogger(__name__)

STATUSES = ('draft', 'published')


class EditorSession:

    def __init__(self, elements=None, name='', subject='', preview_text='', status='draft',
                 newsletter_id=None, template=None, id_factory=make_element_id, session_id=None):
        elements = [] if elements is None else check_document(elements)
        if status not in STATUSES:
            raise ValidationError(f"Invalid status '{status}'. Allowed statuses are: {', '.join(STATUSES)}.")

        self.session_id = session_id or uuid.uuid4().hex
        self.elements = elements
        self.history = History(elements)
        self.selected_id = None
        self.drag = DragState()
        self.id_factory = id_factory

        self.name = name
        self.subject = subject or ''
        self.preview_text = preview_text or ''
        self.status = status
        self.newsletter_id = newsletter_id
        self.template = template
        self.created_at = datetime.now()
        self.updated_at = None
        # True once the document or metadata changed after the last save
        self.dirty = False

        self._notices = []

    @classmethod
    def from_template(cls, template_key='blank', **kwargs):
        """Start a new newsletter from a catalog template (blank if unknown)"""
        found = get_template(template_key)
        fallback = found is None
        if fallback:
            found = get_template('blank')

        template_name, elements = found
        session = cls(
            elements,
            name=f"New {template_name}",
            template='blank' if fallback else template_key,
            **kwargs
        )
        if fallback:
            session._notify('error', f'Template "{template_key}" not found. Using blank template.')
        logger.info(f"Editor session {session.session_id} started from template '{session.template}'")
        return session

    @classmethod
    def from_newsletter(cls, record, **kwargs):
        """Open a persisted newsletter record (as returned by newsletters.models)"""
        session = cls(
            list(record.get('elements') or []),
            name=record.get('name', ''),
            subject=record.get('subject', ''),
            preview_text=record.get('preview_text', ''),
            status=record.get('status', 'draft'),
            newsletter_id=record.get('id'),
            **kwargs
        )
        logger.info(f"Editor session {session.session_id} opened newsletter {session.newsletter_id}")
        return session

    # ===================
    # NOTICES
    # ===================

    def _notify(self, level, message):
        self._notices.append({'level': level, 'message': message})

    def pop_notices(self):
        notices, self._notices = self._notices, []
        return notices

    # ===================
    # HELPERS
    # ===================

    def _commit(self, elements):
        """Make elements live; True if history recorded a new snapshot"""
        self.elements = elements
        changed = self.history.commit(elements)
        if changed:
            self._touch()
        return changed

    def _touch(self):
        self.updated_at = datetime.now()
        self.dirty = True

    def _top_level_index(self, element_id):
        for index, element in enumerate(self.elements):
            if element.get('id') == element_id:
                return index
        return -1

    @property
    def selected_element(self):
        if self.selected_id is None:
            return None
        location = find_element(self.selected_id, self.elements)
        return location.element if location else None

    def select(self, element_id):
        """Select an element; unknown ids (or None) clear the selection"""
        if element_id is not None and find_element(element_id, self.elements) is not None:
            self.selected_id = element_id
            return True
        self.selected_id = None
        return False

    # ===================
    # ELEMENT OPERATIONS
    # ===================

    def add_element(self, element_type, index=None):
        """Add a default element of element_type at top level and select it"""
        elements, new_id = add_element(self.elements, element_type, index, self.id_factory)
        self._commit(elements)
        self.selected_id = new_id
        self._notify('success', f'Added {element_type} element')
        return new_id

    def update_element(self, element_id, changes):
        """Apply field changes; raises ValidationError if the result is not a valid document"""
        return self._commit(check_document(update_element(self.elements, element_id, changes)))

    def update_style(self, element_id, prop, value):
        return self.update_element(element_id, {'style': {prop: value}})

    def remove_element(self, element_id):
        if find_element(element_id, self.elements) is None:
            return False

        self._commit(remove_element(self.elements, element_id))
        # Selection may have lived inside a removed columns element
        if self.selected_id is not None and find_element(self.selected_id, self.elements) is None:
            self.selected_id = None
        self._notify('success', 'Element removed')
        return True

    def duplicate_element(self, element_id):
        elements, new_id = duplicate_element(self.elements, element_id, self.id_factory)
        if new_id is None:
            return None

        self._commit(elements)
        self.selected_id = new_id
        self._notify('success', 'Element duplicated')
        return new_id

    def add_personalization(self, element_id, field_id):
        if find_element(element_id, self.elements) is None:
            return False
        try:
            elements, option = add_personalization_to_element(self.elements, element_id, field_id)
        except PersonalizationError as e:
            self._notify('error', e.message)
            return False

        self._commit(elements)
        self._notify('success', f"Added {option['label']} personalization")
        return True

    def move_element(self, element_id, direction):
        if direction == 'up':
            elements = move_element_up(self.elements, element_id)
        elif direction == 'down':
            elements = move_element_down(self.elements, element_id)
        else:
            raise ValidationError(f"Invalid direction '{direction}'. Use 'up' or 'down'.")
        return self._commit(elements)

    # ===================
    # HISTORY
    # ===================

    def undo(self):
        elements = self.history.undo()
        if elements is None:
            self._notify('info', 'Nothing to undo')
            return False
        self.elements = elements
        self.selected_id = None
        self._touch()
        self._notify('info', 'Undo successful')
        return True

    def redo(self):
        elements = self.history.redo()
        if elements is None:
            self._notify('info', 'Nothing to redo')
            return False
        self.elements = elements
        self.selected_id = None
        self._touch()
        self._notify('info', 'Redo successful')
        return True

    # ===================
    # DRAG AND DROP
    # ===================

    def start_drag(self, element_id):
        """Begin dragging an existing top-level element"""
        if self._top_level_index(element_id) == -1:
            self.drag.reset()
            return False
        self.drag.start_element(element_id)
        return True

    def start_palette_drag(self, element_type):
        """Begin dragging a palette item (an element type, not an element)"""
        self.drag.start_palette(element_type)

    def drag_over(self, pointer_y, target_top, target_height, target_index):
        if not self.drag.active:
            return None
        return self.drag.hover(pointer_y, target_top, target_height, target_index)

    def drop(self):
        """Commit the drag in progress.

        Palette drops insert a new element at the marked insertion point
        (appending when nothing was hovered) and return its id. Element drops
        reorder the top level and return the moved id, or None when the
        element would land where it started.
        """
        palette_type = self.drag.palette_type
        dragging_id = self.drag.dragging_id
        intended_index = self.drag.insertion_index
        self.drag.reset()

        if palette_type is not None:
            return self.add_element(palette_type, intended_index)

        if dragging_id is None or intended_index is None:
            return None

        source_index = self._top_level_index(dragging_id)
        if source_index == -1:
            return None

        result = reorder_elements(self.elements, source_index, intended_index)
        if result is None:
            return None

        elements, _ = result
        self._commit(elements)
        self.selected_id = dragging_id
        self._notify('success', 'Element reordered')
        return dragging_id

    def end_drag(self):
        self.drag.reset()

    # ===================
    # METADATA / PERSISTENCE
    # ===================

    def update_metadata(self, name=None, subject=None, preview_text=None, status=None):
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Invalid status '{status}'. Allowed statuses are: {', '.join(STATUSES)}.")
        before = (self.name, self.subject, self.preview_text, self.status)
        if name is not None:
            self.name = name
        if subject is not None:
            self.subject = subject
        if preview_text is not None:
            self.preview_text = preview_text
        if status is not None:
            self.status = status
        if (self.name, self.subject, self.preview_text, self.status) != before:
            self._touch()

    @property
    def has_saved(self):
        return self.newsletter_id is not None

    def to_record(self):
        """The payload handed to the persistence layer"""
        return {
            'id': self.newsletter_id,
            'name': self.name,
            'subject': self.subject,
            'preview_text': self.preview_text,
            'status': self.status,
            'elements': self.elements,
        }

    def mark_saved(self, newsletter_id):
        self.newsletter_id = newsletter_id
        self.dirty = False
        self._notify('success', 'Newsletter saved successfully')

    def to_dict(self):
        return {
            'session_id': self.session_id,
            'newsletter_id': self.newsletter_id,
            'template': self.template,
            'name': self.name,
            'subject': self.subject,
            'preview_text': self.preview_text,
            'status': self.status,
            'elements': self.elements,
            'selected_id': self.selected_id,
            'history': self.history.to_dict(),
            'drag': self.drag.to_dict(),
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'unsaved_changes': self.dirty,
        }


class EditorSessionStore:
    """In-memory registry of open editor sessions.

    Sessions idle for longer than ttl seconds are evicted whenever a session
    is added or fetched. A ttl of None or 0 keeps sessions until discarded.
    """

    def __init__(self, ttl=3600, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._sessions = {}
        self._last_used = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    def _evict_expired(self, now):
        if not self.ttl:
            return
        expired = [sid for sid, used in self._last_used.items() if now - used > self.ttl]
        for sid in expired:
            self._sessions.pop(sid, None)
            self._last_used.pop(sid, None)
        if expired:
            logger.info(f"Evicted {len(expired)} idle editor session(s)")

    def add(self, session):
        with self._lock:
            now = self.clock()
            self._evict_expired(now)
            self._sessions[session.session_id] = session
            self._last_used[session.session_id] = now
        return session

    def get(self, session_id):
        """Fetch a live session and mark it used; None if unknown or expired"""
        with self._lock:
            now = self.clock()
            self._evict_expired(now)
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_used[session_id] = now
            return session

    def discard(self, session_id):
        """Drop a session and its history; True if it existed"""
        with self._lock:
            self._last_used.pop(session_id, None)
            return self._sessions.pop(session_id, None) is not None

    def clear(self):
        with self._lock:
            self._sessions.clear()
            self._last_used.clear()


# Shared store used by the builder routes; ttl set from BUILDER_SESSION_TTL
session_store = EditorSessionStore()
