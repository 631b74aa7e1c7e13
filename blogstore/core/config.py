"""
Configuration for the blog record store, read from environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Backing medium: memory|sqlite
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

# Database path configuration (sqlite backend only)
DB_PATH = os.getenv("DB_PATH", "./data/blog.db")

# Default page size for find
DEFAULT_COUNT = int(os.getenv("DEFAULT_COUNT", "5"))
DEFAULT_INDEX = 0

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# REST server configuration
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Version string
VERSION = "1.0.0"

SUPPORTED_BACKENDS = ("memory", "sqlite")


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_store_backend():
    """Get configured store backend name."""
    return os.getenv("STORE_BACKEND", STORE_BACKEND).lower()


def get_db_path():
    """Get configured database path."""
    return os.getenv("DB_PATH", DB_PATH)


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def get_record_store(schema):
    """Get configured record store implementation for a schema."""
    backend = get_store_backend()

    if backend == "sqlite":
        from .store import SQLiteRecordStore
        return SQLiteRecordStore(get_db_path(), schema)

    if backend != "memory":
        # Unknown backends degrade to the in-process store
        from util.logging import logger
        logger.warning(f"Unknown STORE_BACKEND '{backend}', using memory store")

    from .store import InMemoryRecordStore
    return InMemoryRecordStore(schema)


def validate_config():
    """Validate store configuration and return any issues."""
    issues = []

    if get_store_backend() not in SUPPORTED_BACKENDS:
        issues.append(f"Invalid STORE_BACKEND: {get_store_backend()}")

    if DEFAULT_COUNT < 1:
        issues.append("DEFAULT_COUNT must be >= 1")

    if get_store_backend() == "sqlite" and not get_db_path():
        issues.append("DB_PATH is required for the sqlite backend")

    if not 0 < API_PORT < 65536:
        issues.append(f"Invalid API_PORT: {API_PORT}")

    return issues
