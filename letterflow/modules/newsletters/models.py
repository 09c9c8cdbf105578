"""
Newsletters Models
==================

Database schema and persistence for newsletters built in the editor.
Tables live in USER_DB alongside subscribers.
"""

import json
import os
import logging
from flask import current_app

from letterflow.core.config import Config
from letterflow.core.database import Database
from letterflow.core.errors import ValidationError

logger = logging.getLogger(__name__)

STATUSES = ('draft', 'published')


def _db_log(level, message, details=None):
    """Log to the persistent DB logger"""
    from letterflow.core import db_log
    db_log(level, 'newsletters', message, details)


def get_db_config():
    """Get the database path from config or environment (3-tier pattern)"""
    try:
        val = current_app.config.get('USER_DB')
        if val:
            return val
    except RuntimeError:
        pass
    return Config.USER_DB or os.getenv('USER_DB', 'users.db')


def init_newsletters_db():
    """Create newsletters, newsletter_sends and subscribers tables in USER_DB"""
    try:
        db_path = get_db_config()

        with Database.connect(db_path) as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS newsletters (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    subject TEXT NOT NULL DEFAULT '',
                    preview_text TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'draft',
                    elements TEXT NOT NULL DEFAULT '[]',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS newsletter_sends (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    newsletter_id INTEGER NOT NULL,
                    recipient_email TEXT NOT NULL,
                    sent_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    status TEXT DEFAULT 'sent',
                    error_message TEXT,
                    FOREIGN KEY (newsletter_id) REFERENCES newsletters(id)
                )
            ''')

            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_newsletter_sends_newsletter
                ON newsletter_sends(newsletter_id)
            ''')

            # Shared with the subscriber management app; only read here
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS subscribers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    first_name TEXT,
                    last_name TEXT,
                    company TEXT,
                    subscribed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    is_active BOOLEAN DEFAULT TRUE
                )
            ''')

            # Migrate: older subscriber tables lack the merge-tag columns
            columns = Database.table_columns(conn, "subscribers")
            for column in ('first_name', 'last_name', 'company'):
                if column not in columns:
                    cursor.execute(f"ALTER TABLE subscribers ADD COLUMN {column} TEXT")
                    logger.info(f"Migrated subscribers table: added {column} column")

            conn.commit()
            logger.info("Newsletters database tables created/verified successfully")

    except Exception as e:
        logger.error(f"Error initializing newsletters database: {e}")
        _db_log('error', 'Failed to init newsletters DB', {'error': str(e)})
        raise


def validate_newsletter(data):
    """Raise ValidationError unless data can be stored.

    Name is always required; a subject is required once the newsletter is
    published. Returns the normalised (name, subject, preview_text, status, elements).
    """
    from letterflow.modules.builder.elements import check_document

    name = (data.get('name') or '').strip()
    if not name:
        raise ValidationError('Newsletter name is required and cannot be empty.')

    status = (data.get('status') or 'draft').lower()
    if status not in STATUSES:
        raise ValidationError(
            f"Invalid status: '{data.get('status')}'. Allowed statuses are: {', '.join(STATUSES)}."
        )

    subject = (data.get('subject') or '').strip()
    if status == 'published' and not subject:
        raise ValidationError('Email subject is required to publish a newsletter.')

    elements = data.get('elements')
    if elements is None:
        elements = []
    check_document(elements)

    preview_text = (data.get('preview_text') or '').strip()
    return name, subject, preview_text, status, elements


def get_newsletter(newsletter_id):
    """Get a single newsletter by ID"""
    try:
        db_path = get_db_config()
        with Database.connect(db_path, rows=True) as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM newsletters WHERE id = ?', (newsletter_id,))
            row = cursor.fetchone()
            if row:
                return _row_to_dict(row)
            return None
    except Exception as e:
        logger.error(f"Error getting newsletter {newsletter_id}: {e}")
        _db_log('error', f'Error getting newsletter {newsletter_id}', {'error': str(e)})
        return None


def save_newsletter(data):
    """Create or update a newsletter. Returns the newsletter ID.

    Raises ValidationError for missing metadata. Returns None if storage
    fails or the id to update does not exist.
    """
    name, subject, preview_text, status, elements = validate_newsletter(data)

    try:
        db_path = get_db_config()
        init_newsletters_db()

        with Database.connect(db_path) as conn:
            cursor = conn.cursor()
            newsletter_id = data.get('id')
            elements_json = json.dumps(elements)

            if newsletter_id:
                cursor.execute('''
                    UPDATE newsletters
                    SET name = ?, subject = ?, preview_text = ?, status = ?, elements = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                ''', (name, subject, preview_text, status, elements_json, newsletter_id))
                if cursor.rowcount == 0:
                    logger.warning(f"Newsletter {newsletter_id} not found for update")
                    return None
            else:
                cursor.execute('''
                    INSERT INTO newsletters (name, subject, preview_text, status, elements)
                    VALUES (?, ?, ?, ?, ?)
                ''', (name, subject, preview_text, status, elements_json))
                newsletter_id = cursor.lastrowid

            conn.commit()
            logger.info(f"Saved newsletter {newsletter_id}: {name}")
            return newsletter_id

    except Exception as e:
        logger.error(f"Error saving newsletter: {e}")
        _db_log('error', 'Error saving newsletter', {'error': str(e)})
        return None


def set_newsletter_status(newsletter_id, status):
    """Update only the status column"""
    if status not in STATUSES:
        raise ValidationError(f"Invalid status: '{status}'.")
    try:
        db_path = get_db_config()
        with Database.connect(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE newsletters SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?
            ''', (status, newsletter_id))
            conn.commit()
            return cursor.rowcount > 0
    except Exception as e:
        logger.error(f"Error updating status for newsletter {newsletter_id}: {e}")
        _db_log('error', 'Error updating newsletter status', {'error': str(e)})
        return False


def record_send(newsletter_id, recipient_email, status='sent', error_message=None):
    """Record a send attempt for a newsletter"""
    try:
        db_path = get_db_config()
        with Database.connect(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO newsletter_sends (newsletter_id, recipient_email, status, error_message)
                VALUES (?, ?, ?, ?)
            ''', (newsletter_id, recipient_email, status, error_message))
            conn.commit()
    except Exception as e:
        logger.error(f"Error recording send for newsletter {newsletter_id}: {e}")
        _db_log('error', 'Error recording send', {'error': str(e)})


def get_sends(newsletter_id):
    """All send records for a newsletter, oldest first"""
    try:
        db_path = get_db_config()
        with Database.connect(db_path, rows=True) as conn:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT * FROM newsletter_sends WHERE newsletter_id = ? ORDER BY id',
                (newsletter_id,)
            )
            return [dict(row) for row in cursor.fetchall()]
    except Exception as e:
        logger.error(f"Error getting sends for newsletter {newsletter_id}: {e}")
        return []


def get_active_subscribers():
    """Active subscribers with the fields merge tags can draw on"""
    try:
        db_path = get_db_config()
        with Database.connect(db_path, rows=True) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT email, first_name, last_name, company, subscribed_at
                FROM subscribers WHERE is_active = TRUE ORDER BY subscribed_at DESC, id DESC
            ''')
            return [dict(row) for row in cursor.fetchall()]
    except Exception as e:
        logger.error(f"Error getting active subscribers: {e}")
        return []


def _row_to_dict(row):
    """Convert a sqlite3.Row to a dict with parsed elements JSON"""
    d = dict(row)
    if 'elements' in d and isinstance(d['elements'], str):
        try:
            d['elements'] = json.loads(d['elements'])
        except (json.JSONDecodeError, TypeError):
            d['elements'] = []
    return d
