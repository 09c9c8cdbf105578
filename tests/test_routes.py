"""
Builder JSON API, exercised through the Flask test client.
"""

import sqlite3
import time
from unittest.mock import patch, MagicMock

import pytest

from letterflow.modules.builder.session import session_store
from letterflow.modules.newsletters import delivery


def _open(client, **body):
    response = client.post('/api/builder/sessions', json=body)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _sid(payload):
    return payload['session']['session_id']


def _element_ids(payload):
    return [e['id'] for e in payload['session']['elements']]


# ---------------------------------------------------------------------------
# Auth and catalogs
# ---------------------------------------------------------------------------

def test_requires_admin(client):
    response = client.post('/api/builder/sessions', json={})
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required'}


def test_catalogs(admin_client):
    templates = admin_client.get('/api/builder/templates').get_json()['templates']
    assert {t['key'] for t in templates} == {'blank', 'basic', 'announcement', 'digest'}

    options = admin_client.get('/api/builder/personalization').get_json()['options']
    assert 'firstName' in [o['id'] for o in options]


def test_cors_preflight_for_allowed_origin(client):
    response = client.options(
        '/api/builder/templates',
        headers={
            'Origin': 'http://localhost:3000',
            'Access-Control-Request-Method': 'GET',
        },
    )
    assert response.headers.get('Access-Control-Allow-Origin') == 'http://localhost:3000'


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def test_open_default_and_unknown_template(admin_client):
    payload = _open(admin_client)
    assert payload['session']['template'] == 'blank'
    assert payload['session']['elements'] == []

    payload = _open(admin_client, template='nope')
    assert payload['notices'][0]['level'] == 'error'


def test_unknown_session_is_404(admin_client):
    assert admin_client.get('/api/builder/sessions/missing').status_code == 404


def test_close_session(admin_client):
    sid = _sid(_open(admin_client))
    assert admin_client.delete(f'/api/builder/sessions/{sid}').status_code == 200
    assert admin_client.get(f'/api/builder/sessions/{sid}').status_code == 404


def test_idle_session_expires(admin_client):
    sid = _sid(_open(admin_client))
    assert admin_client.get(f'/api/builder/sessions/{sid}').status_code == 200

    later = time.monotonic() + session_store.ttl + 60
    with patch.object(session_store, 'clock', return_value=later):
        assert admin_client.get(f'/api/builder/sessions/{sid}').status_code == 404
    assert sid not in session_store


def test_open_stored_newsletter_missing(admin_client):
    response = admin_client.post('/api/builder/sessions', json={'newsletter_id': 4242})
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

def test_add_update_undo_redo(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'

    response = admin_client.post(f'{base}/elements', json={'type': 'heading'})
    assert response.status_code == 201
    payload = response.get_json()
    heading_id = payload['element_id']
    assert payload['session']['selected_id'] == heading_id
    assert payload['notices'] == [{'level': 'success', 'message': 'Added heading element'}]

    payload = admin_client.patch(f'{base}/elements/{heading_id}',
                                 json={'content': 'Hello', 'style': {'color': 'red'}}).get_json()
    heading = payload['session']['elements'][0]
    assert heading['content'] == 'Hello'
    assert heading['style']['color'] == 'red'
    assert heading['style']['fontSize'] == '24px'
    assert payload['session']['history']['length'] == 3

    payload = admin_client.post(f'{base}/undo').get_json()
    assert payload['session']['elements'][0]['content'] == 'Heading'
    assert payload['session']['selected_id'] is None
    assert payload['session']['history']['can_redo'] is True

    payload = admin_client.post(f'{base}/redo').get_json()
    assert payload['session']['elements'][0]['content'] == 'Hello'

    payload = admin_client.post(f'{base}/redo').get_json()
    assert payload['notices'] == [{'level': 'info', 'message': 'Nothing to redo'}]


def test_update_with_malformed_columns_is_400(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'
    payload = admin_client.post(f'{base}/elements', json={'type': 'columns'}).get_json()
    columns_id = payload['element_id']
    history_length = payload['session']['history']['length']

    response = admin_client.patch(f'{base}/elements/{columns_id}', json={'columns': 'ab'})
    assert response.status_code == 400
    assert 'column' in response.get_json()['error'].lower()

    response = admin_client.post(f'{base}/elements/nope/select')
    assert response.status_code == 200
    assert response.get_json()['session']['history']['length'] == history_length


def test_add_rejects_bad_input(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'
    assert admin_client.post(f'{base}/elements', json={}).status_code == 400
    assert admin_client.post(f'{base}/elements', json={'type': 'video'}).status_code == 400
    assert admin_client.post(f'{base}/elements', json={'type': 'text', 'index': 'x'}).status_code == 400


def test_duplicate_personalize_move_remove(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'
    text_id = admin_client.post(f'{base}/elements', json={'type': 'text'}).get_json()['element_id']
    image_id = admin_client.post(f'{base}/elements', json={'type': 'image'}).get_json()['element_id']

    payload = admin_client.post(f'{base}/elements/{text_id}/duplicate').get_json()
    copy_id = payload['element_id']
    assert _element_ids(payload) == [text_id, copy_id, image_id]

    payload = admin_client.post(f'{base}/elements/{text_id}/personalize',
                                json={'field': 'firstName'}).get_json()
    assert payload['session']['elements'][0]['content'].endswith('[First Name]')

    response = admin_client.post(f'{base}/elements/{image_id}/personalize', json={'field': 'firstName'})
    assert response.status_code == 200
    assert response.get_json()['notices'][0]['level'] == 'error'

    payload = admin_client.post(f'{base}/elements/{image_id}/move', json={'direction': 'up'}).get_json()
    assert _element_ids(payload) == [text_id, image_id, copy_id]
    assert admin_client.post(f'{base}/elements/{image_id}/move', json={}).status_code == 400

    payload = admin_client.post(f'{base}/elements/{copy_id}/select').get_json()
    assert payload['session']['selected_id'] == copy_id

    payload = admin_client.delete(f'{base}/elements/{copy_id}').get_json()
    assert _element_ids(payload) == [text_id, image_id]
    assert payload['session']['selected_id'] is None


def test_drag_reorder(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'
    ids = [admin_client.post(f'{base}/elements', json={'type': 'text'}).get_json()['element_id']
           for _ in range(3)]

    admin_client.post(f'{base}/drag/start', json={'element_id': ids[0]})
    payload = admin_client.post(f'{base}/drag/over', json={
        'pointer_y': 75, 'target_top': 50, 'target_height': 40, 'target_index': 1,
    }).get_json()
    assert payload['insertion_index'] == 2

    payload = admin_client.post(f'{base}/drag/drop').get_json()
    assert _element_ids(payload) == [ids[1], ids[0], ids[2]]
    assert payload['element_id'] == ids[0]
    assert payload['session']['drag']['dragging_id'] is None


def test_palette_drop_and_bad_drag(admin_client):
    sid = _sid(_open(admin_client, template='basic'))
    base = f'/api/builder/sessions/{sid}'
    admin_client.post(f'{base}/drag/start', json={'type': 'divider'})
    admin_client.post(f'{base}/drag/over', json={
        'pointer_y': 0, 'target_top': 0, 'target_height': 40, 'target_index': 0,
    })
    payload = admin_client.post(f'{base}/drag/drop').get_json()
    assert payload['session']['elements'][0]['type'] == 'divider'

    assert admin_client.post(f'{base}/drag/start', json={}).status_code == 400
    admin_client.post(f'{base}/drag/start', json={'type': 'text'})
    assert admin_client.post(f'{base}/drag/over', json={'pointer_y': 1}).status_code == 400
    payload = admin_client.post(f'{base}/drag/end').get_json()
    assert payload['session']['drag']['palette_type'] is None


def test_preview(admin_client):
    sid = _sid(_open(admin_client, template='basic'))
    html = admin_client.get(f'/api/builder/sessions/{sid}/preview').get_json()['html']
    assert 'Your Newsletter Title' in html


# ---------------------------------------------------------------------------
# Save / send-test / publish
# ---------------------------------------------------------------------------

def test_save_requires_name(admin_client):
    sid = _sid(_open(admin_client))
    base = f'/api/builder/sessions/{sid}'
    admin_client.patch(f'{base}/metadata', json={'name': ''})
    response = admin_client.post(f'{base}/save')
    assert response.status_code == 400
    assert 'name' in response.get_json()['error'].lower()


def test_bad_status_is_400(admin_client):
    sid = _sid(_open(admin_client))
    response = admin_client.patch(f'/api/builder/sessions/{sid}/metadata', json={'status': 'sent'})
    assert response.status_code == 400


def test_save_then_reopen(admin_client):
    sid = _sid(_open(admin_client, template='basic'))
    base = f'/api/builder/sessions/{sid}'
    admin_client.patch(f'{base}/metadata', json={'name': 'April', 'subject': 'Spring'})

    payload = admin_client.post(f'{base}/save').get_json()
    newsletter_id = payload['session']['newsletter_id']
    assert newsletter_id
    assert payload['notices'] == [{'level': 'success', 'message': 'Newsletter saved successfully'}]
    history_length = payload['session']['history']['length']

    payload = admin_client.post(f'{base}/save').get_json()
    assert payload['session']['newsletter_id'] == newsletter_id
    assert payload['session']['history']['length'] == history_length

    reopened = _open(admin_client, newsletter_id=newsletter_id)
    assert reopened['session']['name'] == 'April'
    assert reopened['session']['elements'] == payload['session']['elements']


def test_publish_requires_saved_newsletter(admin_client):
    sid = _sid(_open(admin_client))
    response = admin_client.post(f'/api/builder/sessions/{sid}/publish')
    assert response.status_code == 400


def test_send_test_and_publish(app, admin_client):
    svc = MagicMock()
    svc.is_configured = True
    svc.send_email.return_value = True

    with sqlite3.connect(app.config['USER_DB']) as conn:
        conn.execute("INSERT INTO subscribers (email, first_name) VALUES ('a@example.com', 'Ada')")
        conn.commit()

    sid = _sid(_open(admin_client, template='basic'))
    base = f'/api/builder/sessions/{sid}'
    admin_client.patch(f'{base}/metadata', json={'name': 'April', 'subject': 'Spring'})
    admin_client.post(f'{base}/save')

    with patch.object(delivery, '_get_email_service', return_value=svc):
        response = admin_client.post(f'{base}/send-test', json={'email': 'me@example.com'})
        assert response.status_code == 200
        assert svc.send_email.call_args.args[1] == '[TEST] Spring'

        assert admin_client.post(f'{base}/send-test', json={'email': 'nope'}).status_code == 400

        response = admin_client.post(f'{base}/publish')
        assert response.status_code == 200
        payload = response.get_json()

    assert payload['sent'] == 1
    assert payload['failed'] == 0
    assert payload['total'] == 1
    assert payload['session']['status'] == 'published'


def test_delivery_failure_is_502(admin_client):
    sid = _sid(_open(admin_client, template='basic'))
    base = f'/api/builder/sessions/{sid}'
    admin_client.patch(f'{base}/metadata', json={'subject': 'Spring'})

    with patch.object(delivery, '_get_email_service', return_value=None):
        response = admin_client.post(f'{base}/send-test', json={'email': 'me@example.com'})
    assert response.status_code == 502
    assert response.get_json()['error'] == 'Email service not configured'


def test_publish_refuses_unsaved_edits(admin_client):
    sid = _sid(_open(admin_client, template='basic'))
    base = f'/api/builder/sessions/{sid}'
    admin_client.patch(f'{base}/metadata', json={'name': 'April', 'subject': 'Spring'})
    payload = admin_client.post(f'{base}/save').get_json()
    assert payload['session']['unsaved_changes'] is False

    payload = admin_client.patch(f'{base}/metadata', json={'subject': 'Summer'}).get_json()
    assert payload['session']['unsaved_changes'] is True

    with patch.object(delivery, 'publish') as deliver:
        response = admin_client.post(f'{base}/publish')
    assert response.status_code == 400
    assert 'unsaved' in response.get_json()['error']
    deliver.assert_not_called()
