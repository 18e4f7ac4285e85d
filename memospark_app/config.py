# File: memospark_app/config.py
# Configuration for the MemoSpark web client.

import os

# Project root: memospark_app/ lives directly under it.
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

# SQLite file holding the per-client session store.
DATABASE_PATH = os.path.join(BASE_DIR, "database", "memospark.db")


class Config:
    """
    Flask configuration for the MemoSpark web client.
    """
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-replace-in-production'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # External MemoSpark backend
    MEMOSPARK_API_BASE_URL = os.environ.get('MEMOSPARK_API_BASE_URL', 'http://localhost:8000')
    MEMOSPARK_API_TIMEOUT = float(os.environ.get('MEMOSPARK_API_TIMEOUT', 10))

    # Document processing poller
    UPLOAD_POLL_INTERVAL = float(os.environ.get('UPLOAD_POLL_INTERVAL', 3))
    UPLOAD_POLL_TIMEOUT = float(os.environ.get('UPLOAD_POLL_TIMEOUT', 5 * 60))

    # Search-flashcards job poller
    SEARCH_POLL_INTERVAL = float(os.environ.get('SEARCH_POLL_INTERVAL', 2))
    SEARCH_POLL_TIMEOUT = float(os.environ.get('SEARCH_POLL_TIMEOUT', 5 * 60))

    # Start poller threads after an upload / generation request
    BACKGROUND_POLLING_ENABLED = os.environ.get('BACKGROUND_POLLING_ENABLED', '1') == '1'

    # Admin screens
    ADMIN_USERS_PER_PAGE = 15
    ADMIN_REFRESH_THROTTLE_SECONDS = 2

    # Upload form
    MAX_CONTENT_LENGTH = 20 * 1024 * 1024
    ALLOWED_UPLOAD_EXTENSIONS = {'pdf', 'txt', 'docx', 'doc', 'png', 'jpg', 'jpeg'}

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR')

    # Make sure the database directory exists when the app starts
    db_dir = os.path.dirname(DATABASE_PATH)
    if not os.path.exists(db_dir):
        os.makedirs(db_dir)
