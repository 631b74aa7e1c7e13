"""
SQLite foundation for the sqlite record store backend.
"""

import re
import sqlite3
from contextlib import contextmanager
from typing import Dict, Generator, Iterable

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@contextmanager
def get_db(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str, index_hints: Dict[str, Iterable[str]] = None):
    """Initialize the database with the records table and hinted indexes."""
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # One table for every category, fields kept as a JSON document
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS records (
                category TEXT NOT NULL,
                id TEXT NOT NULL,
                fields TEXT NOT NULL,
                creation_time TEXT NOT NULL,
                update_time TEXT NOT NULL,
                PRIMARY KEY (category, id)
            )
        ''')

        cursor.execute(
            'CREATE INDEX IF NOT EXISTS idx_records_category_ctime '
            'ON records(category, creation_time DESC)'
        )

        for category, fields in (index_hints or {}).items():
            for field in fields:
                cursor.execute(_index_statement(category, field))

        conn.commit()


def _index_statement(category: str, field: str) -> str:
    # Identifiers cannot be bound as parameters
    if not _FIELD_NAME.match(category) or not _FIELD_NAME.match(field):
        raise ValueError(f"cannot index {category}.{field}")
    return (
        f"CREATE INDEX IF NOT EXISTS idx_{category}_{field} "
        f"ON records(category, json_extract(fields, '$.{field}'))"
    )


def health_check(db_path: str):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            return 'records' in table_names
    except sqlite3.Error:
        return False
