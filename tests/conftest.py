"""
Shared fixtures for the Letterflow test suite.

Run with: pytest tests/ -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask

from letterflow import Letterflow
from letterflow.modules.builder.session import session_store


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="letterflow-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised Flask app with every Letterflow module registered."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["USER_DB"] = os.path.join(tmp_db_dir, "users.db")
    app.config["ANALYTICS_DB"] = os.path.join(tmp_db_dir, "analytics.db")
    app.config["EMAIL_PROVIDER"] = "resend"
    app.config["EMAIL_ADDRESS"] = "newsletter@example.com"
    app.config["RESEND_API_KEY"] = None
    Letterflow(app)
    yield app
    session_store.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client whose Flask session carries an admin login."""
    with client.session_transaction() as sess:
        sess["admin_id"] = 1
    return client
