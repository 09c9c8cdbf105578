"""
Builder Routes
==============

JSON API over in-memory editor sessions. Every route requires the admin
session. Mutating routes answer {"session": <snapshot>, "notices": [...]}.
"""

import logging
from functools import wraps
from flask import request, jsonify, session

from flask_cors import cross_origin

from letterflow.core.config import Config, get_setting
from letterflow.core.errors import (
    BuilderError, DeliveryError, NewsletterNotFound, ValidationError,
)
from . import builder_bp
from .catalog import PERSONALIZATION_OPTIONS, list_templates
from .session import EditorSession, session_store

logger = logging.getLogger(__name__)

# Front-end origins allowed to call the builder API (BUILDER_ALLOWED_ORIGINS)
ALLOWED_ORIGINS = Config.BUILDER_ALLOWED_ORIGINS


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    from letterflow.core import db_log
    db_log(level, 'builder', message, details)


# ===================
# DECORATORS
# ===================

def admin_required(f):
    """Decorator to require admin login (JSON 401 instead of a redirect)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def json_errors(f):
    """Map builder exceptions onto JSON error responses"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except NewsletterNotFound as e:
            return jsonify(e.to_dict()), 404
        except DeliveryError as e:
            logger.error(f"Delivery error in {f.__name__}: {e.message}")
            return jsonify(e.to_dict()), 502
        except BuilderError as e:
            return jsonify(e.to_dict()), 400
        except Exception as e:
            logger.error(f"Unexpected error in {f.__name__}: {e}")
            _db_log('error', f'Unexpected error in {f.__name__}', {'error': str(e)})
            return jsonify({'error': 'Internal server error'}), 500
    return decorated_function


def editor_route(rule, methods):
    """Register a view that operates on one editor session.

    The view receives the EditorSession in place of the session id; unknown
    ids answer 404.
    """
    def decorator(f):
        @builder_bp.route(f'/sessions/<session_id>{rule}', methods=methods, endpoint=f.__name__)
        @cross_origin(origins=ALLOWED_ORIGINS, supports_credentials=True)
        @admin_required
        @json_errors
        @wraps(f)
        def decorated_function(session_id, *args, **kwargs):
            editor = session_store.get(session_id)
            if editor is None:
                return jsonify({'error': 'Editor session not found'}), 404
            return f(editor, *args, **kwargs)
        return decorated_function
    return decorator


def _respond(editor, status=200, **extra):
    payload = {'session': editor.to_dict(), 'notices': editor.pop_notices()}
    payload.update(extra)
    return jsonify(payload), status


def _body():
    return request.get_json(silent=True) or {}


# ===================
# CATALOG ROUTES
# ===================

@builder_bp.route('/templates', methods=['GET'])
@cross_origin(origins=ALLOWED_ORIGINS, supports_credentials=True)
@admin_required
def templates():
    """Available newsletter templates"""
    return jsonify({'templates': list_templates()}), 200


@builder_bp.route('/personalization', methods=['GET'])
@cross_origin(origins=ALLOWED_ORIGINS, supports_credentials=True)
@admin_required
def personalization_options():
    """Merge tags that can be inserted into text elements"""
    return jsonify({'options': PERSONALIZATION_OPTIONS}), 200


# ===================
# SESSION ROUTES
# ===================

@builder_bp.route('/sessions', methods=['POST'])
@cross_origin(origins=ALLOWED_ORIGINS, supports_credentials=True)
@admin_required
@json_errors
def open_session():
    """Open an editor on a stored newsletter or on a fresh template"""
    data = _body()
    newsletter_id = data.get('newsletter_id')

    if newsletter_id:
        from letterflow.modules.newsletters.models import get_newsletter
        record = get_newsletter(newsletter_id)
        if not record:
            raise NewsletterNotFound('Newsletter not found', {'id': newsletter_id})
        editor = EditorSession.from_newsletter(record)
    else:
        template_key = data.get('template') or get_setting('BUILDER_DEFAULT_TEMPLATE', 'blank')
        editor = EditorSession.from_template(template_key)

    session_store.add(editor)
    return _respond(editor, 201)


@editor_route('', methods=['GET'])
def get_session(editor):
    return _respond(editor)


@editor_route('', methods=['DELETE'])
def close_session(editor):
    """Close the editor; its undo history is dropped with it"""
    session_store.discard(editor.session_id)
    return jsonify({'message': 'Editor session closed'}), 200


@editor_route('/metadata', methods=['PATCH'])
def update_metadata(editor):
    data = _body()
    editor.update_metadata(
        name=data.get('name'),
        subject=data.get('subject'),
        preview_text=data.get('preview_text'),
        status=data.get('status'),
    )
    return _respond(editor)


# ===================
# ELEMENT ROUTES
# ===================

@editor_route('/elements', methods=['POST'])
def add_element(editor):
    data = _body()
    element_type = data.get('type')
    if not element_type:
        raise ValidationError('Element type is required')
    index = data.get('index')
    if index is not None and not isinstance(index, int):
        raise ValidationError('Element index must be an integer')
    new_id = editor.add_element(element_type, index)
    return _respond(editor, 201, element_id=new_id)


@editor_route('/elements/<element_id>', methods=['PATCH'])
def update_element(editor, element_id):
    changes = _body()
    if not isinstance(changes, dict) or not changes:
        raise ValidationError('No changes provided')
    editor.update_element(element_id, changes)
    return _respond(editor)


@editor_route('/elements/<element_id>', methods=['DELETE'])
def remove_element(editor, element_id):
    editor.remove_element(element_id)
    return _respond(editor)


@editor_route('/elements/<element_id>/duplicate', methods=['POST'])
def duplicate_element(editor, element_id):
    new_id = editor.duplicate_element(element_id)
    return _respond(editor, element_id=new_id)


@editor_route('/elements/<element_id>/personalize', methods=['POST'])
def personalize_element(editor, element_id):
    field_id = _body().get('field')
    if not field_id:
        raise ValidationError('Personalization field is required')
    editor.add_personalization(element_id, field_id)
    return _respond(editor)


@editor_route('/elements/<element_id>/move', methods=['POST'])
def move_element(editor, element_id):
    editor.move_element(element_id, _body().get('direction'))
    return _respond(editor)


@editor_route('/elements/<element_id>/select', methods=['POST'])
def select_element(editor, element_id):
    editor.select(element_id)
    return _respond(editor)


# ===================
# HISTORY ROUTES
# ===================

@editor_route('/undo', methods=['POST'])
def undo(editor):
    editor.undo()
    return _respond(editor)


@editor_route('/redo', methods=['POST'])
def redo(editor):
    editor.redo()
    return _respond(editor)


# ===================
# DRAG AND DROP ROUTES
# ===================

@editor_route('/drag/start', methods=['POST'])
def drag_start(editor):
    """Start dragging an element ({"element_id"}) or a palette item ({"type"})"""
    data = _body()
    if data.get('element_id'):
        editor.start_drag(data['element_id'])
    elif data.get('type'):
        editor.start_palette_drag(data['type'])
    else:
        raise ValidationError('Provide element_id or type to start a drag')
    return _respond(editor)


@editor_route('/drag/over', methods=['POST'])
def drag_over(editor):
    data = _body()
    try:
        insertion_index = editor.drag_over(
            float(data['pointer_y']),
            float(data['target_top']),
            float(data['target_height']),
            int(data['target_index']),
        )
    except (KeyError, TypeError, ValueError):
        raise ValidationError('pointer_y, target_top, target_height and target_index are required')
    return _respond(editor, insertion_index=insertion_index)


@editor_route('/drag/drop', methods=['POST'])
def drag_drop(editor):
    element_id = editor.drop()
    return _respond(editor, element_id=element_id)


@editor_route('/drag/end', methods=['POST'])
def drag_end(editor):
    editor.end_drag()
    return _respond(editor)


# ===================
# PERSISTENCE / DELIVERY ROUTES
# ===================

@editor_route('/preview', methods=['GET'])
def preview(editor):
    """Render the live document to HTML with default merge-tag text"""
    from letterflow.modules.newsletters.renderer import render_newsletter
    html = render_newsletter(editor.elements, preview_text=editor.preview_text)
    return jsonify({'html': html}), 200


@editor_route('/save', methods=['POST'])
def save(editor):
    """Validate and store the newsletter; the document and history are untouched"""
    from letterflow.modules.newsletters.models import save_newsletter

    newsletter_id = save_newsletter(editor.to_record())
    if not newsletter_id:
        return jsonify({'error': 'Failed to save newsletter'}), 500

    editor.mark_saved(newsletter_id)
    logger.info(f"Newsletter saved: {newsletter_id}")
    _db_log('info', f'Newsletter saved: {editor.name}', {'id': newsletter_id})
    return _respond(editor)


@editor_route('/send-test', methods=['POST'])
def send_test(editor):
    from letterflow.modules.newsletters.delivery import send_test as deliver_test

    to_email = deliver_test(editor.to_record(), _body().get('email'))
    return _respond(editor, message=f'Test email sent to {to_email}')


@editor_route('/publish', methods=['POST'])
def publish(editor):
    """Send the saved newsletter to all active subscribers"""
    from letterflow.modules.newsletters.delivery import publish as deliver

    if not editor.has_saved:
        raise ValidationError('Save the newsletter before publishing it.')
    if editor.dirty:
        raise ValidationError('Save your latest changes before publishing; unsaved edits would not be sent.')

    result = deliver(editor.newsletter_id)
    # The stored row is already published, so this is not an unsaved change
    editor.status = 'published'
    return _respond(
        editor,
        message=f"Newsletter published and sent to {result['sent']} subscribers ({result['failed']} failed)",
        **result
    )
