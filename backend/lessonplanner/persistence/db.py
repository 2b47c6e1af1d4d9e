"""SQLite connection + schema initialisation for the data service."""
from __future__ import annotations
import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone

import bcrypt

from lessonplanner.core import config

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "migrations")


def get_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(config.DATABASE_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_db() -> None:
    """Run all migration SQL files against the database, then seed the admin account."""
    os.makedirs(os.path.dirname(os.path.abspath(config.DATABASE_PATH)), exist_ok=True)
    conn = get_connection()
    for name in sorted(os.listdir(_MIGRATIONS_DIR)):
        if not name.endswith(".sql"):
            continue
        with open(os.path.join(_MIGRATIONS_DIR, name), "r", encoding="utf-8") as f:
            conn.executescript(f.read())
    conn.commit()
    conn.close()
    _seed_default_user()


def _seed_default_user() -> None:
    """Insert the configured admin user when the users table is empty."""
    conn = get_connection()
    try:
        count = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
        if count == 0:
            hashed = bcrypt.hashpw(config.ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
            conn.execute(
                """
                INSERT INTO users (id, username, password_hash, role, display_name, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    config.ADMIN_USERNAME,
                    hashed,
                    "admin",
                    "Administrator",
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            logger.info("Seeded default admin user '%s'", config.ADMIN_USERNAME)
    finally:
        conn.close()
