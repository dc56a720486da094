"""
PostgreSQL-backed ResourceStore.

Every method runs in its own transaction on a pooled connection
(see db_connection.get_db). All SQL uses bound %s parameters.

Ownership-gated writes put the owner predicate in the WHERE clause of the
UPDATE / DELETE itself, so no other request can change the row between the
check and the write.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import psycopg2
import psycopg2.errors

from eventboard.database.db_connection import get_db
from eventboard.database.models import Event, Registration, User
from eventboard.database.store import (
    EVENT_MUTABLE_FIELDS,
    DuplicateRecord,
    RecordNotFound,
    ResourceStore,
    StoreError,
)

EVENT_COLUMNS = "id, name, description, location, dateTime AS date_time, user_id"


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """
    Re-raise psycopg2 failures as store errors so callers never import psycopg2.
    """
    try:
        yield
    except psycopg2.errors.UniqueViolation as e:
        raise DuplicateRecord(f"{action}: {e}") from e
    except psycopg2.errors.ForeignKeyViolation as e:
        raise RecordNotFound(f"{action}: {e}") from e
    except psycopg2.Error as e:
        logging.error(f"[DB] {action} failed: {e}")
        raise StoreError(f"{action}: {e}") from e


def _event_from_row(row: Any) -> Event:
    return Event(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        location=row["location"],
        date_time=row["date_time"],
        user_id=row["user_id"],
    )


def _registration_from_row(row: Any) -> Registration:
    return Registration(id=row["id"], event_id=row["event_id"], user_id=row["user_id"])


class PostgresStore(ResourceStore):
    """ResourceStore over the users / events / registrations tables."""

    # --- USERS ---
    def create_user(self, email: str, password_hash: str) -> User:
        sql = "INSERT INTO users (email, password) VALUES (%s, %s) RETURNING id;"
        with _translate_errors("create user"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (email, password_hash))
                    row = cur.fetchone()
        return User(id=row["id"], email=email, password_hash=password_hash)

    def get_user_by_email(self, email: str) -> Optional[User]:
        sql = "SELECT id, email, password FROM users WHERE email = %s;"
        with _translate_errors("get user"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (email,))
                    row = cur.fetchone()
        if not row:
            return None
        return User(id=row["id"], email=row["email"], password_hash=row["password"])

    # --- EVENTS ---
    def list_events(self) -> List[Event]:
        sql = f"SELECT {EVENT_COLUMNS} FROM events ORDER BY id;"
        with _translate_errors("list events"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
        return [_event_from_row(r) for r in rows]

    def get_event(self, event_id: int) -> Event:
        sql = f"SELECT {EVENT_COLUMNS} FROM events WHERE id = %s;"
        with _translate_errors("get event"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (event_id,))
                    row = cur.fetchone()
        if not row:
            raise RecordNotFound(f"event {event_id}")
        return _event_from_row(row)

    def create_event(
        self, name: str, description: str, location: str, date_time: datetime, user_id: int
    ) -> Event:
        sql = """
            INSERT INTO events (name, description, location, dateTime, user_id)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id;
        """
        with _translate_errors("create event"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (name, description, location, date_time, user_id))
                    row = cur.fetchone()
        return Event(
            id=row["id"],
            name=name,
            description=description,
            location=location,
            date_time=date_time,
            user_id=user_id,
        )

    def update_event(self, event_id: int, owner_id: int, fields: Dict[str, Any]) -> bool:
        sql = """
            UPDATE events
            SET name = %s, description = %s, location = %s, dateTime = %s
            WHERE id = %s AND user_id = %s;
        """
        values = tuple(fields[k] for k in EVENT_MUTABLE_FIELDS) + (event_id, owner_id)
        with _translate_errors("update event"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, values)
                    return cur.rowcount > 0

    def delete_event(self, event_id: int, owner_id: int) -> bool:
        with _translate_errors("delete event"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "DELETE FROM events WHERE id = %s AND user_id = %s RETURNING id;",
                        (event_id, owner_id),
                    )
                    if cur.fetchone() is None:
                        return False
                    # Schemas created without ON DELETE CASCADE still lose the rows here.
                    cur.execute("DELETE FROM registrations WHERE event_id = %s;", (event_id,))
                    return True

    # --- REGISTRATIONS ---
    def list_registrations(self) -> List[Registration]:
        sql = "SELECT id, event_id, user_id FROM registrations ORDER BY id;"
        with _translate_errors("list registrations"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
        return [_registration_from_row(r) for r in rows]

    def get_registration(self, registration_id: int) -> Registration:
        sql = "SELECT id, event_id, user_id FROM registrations WHERE id = %s;"
        with _translate_errors("get registration"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (registration_id,))
                    row = cur.fetchone()
        if not row:
            raise RecordNotFound(f"registration {registration_id}")
        return _registration_from_row(row)

    def create_registration(self, event_id: int, user_id: int) -> Registration:
        sql = "INSERT INTO registrations (event_id, user_id) VALUES (%s, %s) RETURNING id;"
        with _translate_errors("create registration"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (event_id, user_id))
                    row = cur.fetchone()
        return Registration(id=row["id"], event_id=event_id, user_id=user_id)

    def cancel_registration(self, event_id: int, user_id: int) -> int:
        sql = "DELETE FROM registrations WHERE event_id = %s AND user_id = %s;"
        with _translate_errors("cancel registration"):
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (event_id, user_id))
                    return cur.rowcount
