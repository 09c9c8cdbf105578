"""
Centralized logging service for Letterflow.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
from datetime import datetime, timedelta
from flask import request, has_request_context, session, current_app
from .database import Database
from .config import Config

console = logging.getLogger(__name__)


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_db_path():
        try:
            val = current_app.config.get('ANALYTICS_DB')
            if val:
                return val
        except RuntimeError:
            pass
        return Config.ANALYTICS_DB

    @staticmethod
    def _ensure_logs_table(conn):
        """Ensure the app_logs table exists"""
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                level TEXT NOT NULL,
                source TEXT NOT NULL,
                message TEXT NOT NULL,
                details TEXT,
                ip_address TEXT,
                request_path TEXT,
                user_id TEXT
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_logs_timestamp
            ON app_logs(timestamp DESC)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_logs_source
            ON app_logs(source)
        """)

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        try:
            ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
            if ip_address and ',' in ip_address:
                ip_address = ip_address.split(',')[0].strip()
            user_id = session.get('admin_id')
            return ip_address, request.path, str(user_id) if user_id is not None else None
        except Exception:
            return None, None, None

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (builder, newsletters, email, ...)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        try:
            ip_address, request_path, session_user = LoggingService._get_request_context()

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            with Database.connect(LoggingService._get_db_path()) as conn:
                LoggingService._ensure_logs_table(conn)
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level.upper(), source, message, details,
                    ip_address, request_path, user_id or session_user
                ))
                conn.commit()

        except Exception as e:
            # Fallback to console logging if database fails
            console.warning(f"[{level.upper()}] [{source}] {message} (log storage failed: {e})")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        """Log warning message"""
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        """Log error message"""
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def get_recent_logs(source=None, limit=50):
        """Return the most recent log rows as dicts, newest first"""
        try:
            with Database.connect(LoggingService._get_db_path(), rows=True) as conn:
                LoggingService._ensure_logs_table(conn)
                cursor = conn.cursor()
                if source:
                    cursor.execute(
                        'SELECT * FROM app_logs WHERE source = ? ORDER BY id DESC LIMIT ?',
                        (source, limit)
                    )
                else:
                    cursor.execute('SELECT * FROM app_logs ORDER BY id DESC LIMIT ?', (limit,))
                return [dict(row) for row in cursor.fetchall()]
        except Exception as e:
            console.error(f"Failed to read logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        try:
            cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

            with Database.connect(LoggingService._get_db_path()) as conn:
                LoggingService._ensure_logs_table(conn)
                cursor = conn.cursor()
                cursor.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff_iso,))
                deleted_count = cursor.rowcount
                conn.commit()

            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Persist a log entry; never raises"""
    LoggingService.log(level, source, message, details)


# Convenience instance for easy importing
logger = LoggingService()
