"""
Row models shared by every store implementation.

Each class mirrors one table:
    users(id, email, password)
    events(id, name, description, location, dateTime, user_id)
    registrations(id, event_id, user_id)
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict


def format_dt(value: datetime) -> str:
    """
    Render a timestamp in UTC with a trailing Z, e.g. 2025-01-01T00:00:00Z.
    """
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class User:
    id: int
    email: str
    password_hash: str


@dataclass
class Event:
    id: int
    name: str
    description: str
    location: str
    date_time: datetime
    user_id: int

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-ready representation. `user_id` is the owner.
        """
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "dateTime": format_dt(self.date_time),
            "user_id": self.user_id,
        }


@dataclass
class Registration:
    id: int
    event_id: int
    user_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "event_id": self.event_id, "user_id": self.user_id}
