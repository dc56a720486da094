"""
Create the eventboard schema.

Tables:
- users:          one row per account (email is unique).
- events:         owned by exactly one user via user_id.
- registrations:  user <-> event join rows. Deleting an event cascades.

Safe to run repeatedly (CREATE TABLE IF NOT EXISTS).

Usage:
    python -m eventboard.database.init_db
"""

import logging
import sys

from eventboard.database.db_connection import close_pool, get_db

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL,
        location TEXT NOT NULL,
        dateTime TIMESTAMPTZ NOT NULL,
        user_id INTEGER NOT NULL REFERENCES users(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS registrations (
        id SERIAL PRIMARY KEY,
        event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id)
    );
    """,
]


def init_db() -> None:
    """
    Execute every CREATE statement in a single transaction.
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA:
                cur.execute(statement)
    logging.info("[DB] Schema ready: users, events, registrations")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    try:
        init_db()
    except Exception as e:
        logging.error(f"Schema creation failed: {e}")
        sys.exit(1)
    finally:
        close_pool()
