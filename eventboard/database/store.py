"""
Resource store abstraction.

Route handlers never touch SQL or shared globals directly; they talk to a
ResourceStore installed on the Flask app (see gateway.server.create_app).

Two implementations exist:
- InMemoryStore (this module): lock-guarded dictionaries, used by tests and
  quick local runs.
- PostgresStore (postgres_store.py): psycopg2 against the real schema.

Ownership-gated writes (update_event / delete_event) take the owner id and
only touch the row when it still belongs to that owner, so the check and the
write happen as one step.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app

from eventboard.database.models import Event, Registration, User


class StoreError(Exception):
    """Base class for persistence failures."""


class RecordNotFound(StoreError):
    """Lookup by id matched nothing."""


class DuplicateRecord(StoreError):
    """A unique constraint was violated."""


# Columns an owner may overwrite on an event. id and user_id are immutable.
EVENT_MUTABLE_FIELDS = ("name", "description", "location", "date_time")


class ResourceStore(ABC):
    """
    Persistence contract for users, events and registrations.

    All methods must be safe to call from concurrent request threads.
    """

    # --- USERS ---
    @abstractmethod
    def create_user(self, email: str, password_hash: str) -> User:
        """Insert a user. Raises DuplicateRecord if the email is taken."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Return the user with this email, or None."""

    # --- EVENTS ---
    @abstractmethod
    def list_events(self) -> List[Event]:
        """Every event, ordered by id. Empty list when there are none."""

    @abstractmethod
    def get_event(self, event_id: int) -> Event:
        """Raises RecordNotFound when no event has this id."""

    @abstractmethod
    def create_event(
        self, name: str, description: str, location: str, date_time: datetime, user_id: int
    ) -> Event:
        """Insert an event owned by `user_id` and return it with its new id."""

    @abstractmethod
    def update_event(self, event_id: int, owner_id: int, fields: Dict[str, Any]) -> bool:
        """
        Overwrite the mutable columns of an event owned by `owner_id`.

        Returns:
            bool: False when no event with that id and owner exists.
        """

    @abstractmethod
    def delete_event(self, event_id: int, owner_id: int) -> bool:
        """
        Delete an event owned by `owner_id` together with its registrations.

        Returns:
            bool: False when no event with that id and owner exists.
        """

    # --- REGISTRATIONS ---
    @abstractmethod
    def list_registrations(self) -> List[Registration]:
        """Every registration row, ordered by id."""

    @abstractmethod
    def get_registration(self, registration_id: int) -> Registration:
        """Raises RecordNotFound when no registration has this id."""

    @abstractmethod
    def create_registration(self, event_id: int, user_id: int) -> Registration:
        """Link a user to an event. Raises RecordNotFound if the event is gone."""

    @abstractmethod
    def cancel_registration(self, event_id: int, user_id: int) -> int:
        """Remove every registration of `user_id` for `event_id`; returns the count."""


class InMemoryStore(ResourceStore):
    """
    Thread-safe in-process store.

    A single lock serializes every operation, which also makes the
    ownership-gated writes atomic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._events: Dict[int, Event] = {}
        self._registrations: Dict[int, Registration] = {}
        self._user_ids = itertools.count(1)
        self._event_ids = itertools.count(1)
        self._registration_ids = itertools.count(1)

    def create_user(self, email: str, password_hash: str) -> User:
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise DuplicateRecord(f"email already registered: {email}")
            user = User(id=next(self._user_ids), email=email, password_hash=password_hash)
            self._users[user.id] = user
            return User(user.id, user.email, user.password_hash)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return User(user.id, user.email, user.password_hash)
            return None

    def list_events(self) -> List[Event]:
        with self._lock:
            return [self._copy_event(e) for _, e in sorted(self._events.items())]

    def get_event(self, event_id: int) -> Event:
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                raise RecordNotFound(f"event {event_id}")
            return self._copy_event(event)

    def create_event(
        self, name: str, description: str, location: str, date_time: datetime, user_id: int
    ) -> Event:
        with self._lock:
            event = Event(
                id=next(self._event_ids),
                name=name,
                description=description,
                location=location,
                date_time=date_time,
                user_id=user_id,
            )
            self._events[event.id] = event
            return self._copy_event(event)

    def update_event(self, event_id: int, owner_id: int, fields: Dict[str, Any]) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.user_id != owner_id:
                return False
            for key in EVENT_MUTABLE_FIELDS:
                if key in fields:
                    setattr(event, key, fields[key])
            return True

    def delete_event(self, event_id: int, owner_id: int) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.user_id != owner_id:
                return False
            del self._events[event_id]
            self._registrations = {
                rid: r for rid, r in self._registrations.items() if r.event_id != event_id
            }
            return True

    def list_registrations(self) -> List[Registration]:
        with self._lock:
            return [
                Registration(r.id, r.event_id, r.user_id)
                for _, r in sorted(self._registrations.items())
            ]

    def get_registration(self, registration_id: int) -> Registration:
        with self._lock:
            reg = self._registrations.get(registration_id)
            if reg is None:
                raise RecordNotFound(f"registration {registration_id}")
            return Registration(reg.id, reg.event_id, reg.user_id)

    def create_registration(self, event_id: int, user_id: int) -> Registration:
        with self._lock:
            if event_id not in self._events:
                raise RecordNotFound(f"event {event_id}")
            reg = Registration(id=next(self._registration_ids), event_id=event_id, user_id=user_id)
            self._registrations[reg.id] = reg
            return Registration(reg.id, reg.event_id, reg.user_id)

    def cancel_registration(self, event_id: int, user_id: int) -> int:
        with self._lock:
            doomed = [
                rid for rid, r in self._registrations.items()
                if r.event_id == event_id and r.user_id == user_id
            ]
            for rid in doomed:
                del self._registrations[rid]
            return len(doomed)

    @staticmethod
    def _copy_event(event: Event) -> Event:
        # Callers get detached copies so they cannot mutate stored rows.
        return Event(
            id=event.id,
            name=event.name,
            description=event.description,
            location=event.location,
            date_time=event.date_time,
            user_id=event.user_id,
        )


def get_store() -> ResourceStore:
    """
    The store installed on the running Flask app by create_app().
    """
    return current_app.extensions["resource_store"]
