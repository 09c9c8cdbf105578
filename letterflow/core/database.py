import os
import sqlite3


class Database:

    @staticmethod
    def connect(path, rows=False):
        """Open a sqlite connection, creating the parent directory if needed"""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(path)
        if rows:
            conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def ensure_dir(path):
        """Create a database directory (used for DB_DIR at startup)"""
        os.makedirs(path, exist_ok=True)
        return path

    @staticmethod
    def table_columns(conn, table):
        cursor = conn.cursor()
        cursor.execute(f"PRAGMA table_info({table})")
        return [col[1] for col in cursor.fetchall()]
