"""
Events service routes: create, read, update, delete events, and register
for them.

Reads are public. Writes require a token (see auth_service.utils.login_required);
update and delete are further restricted to the event's owner.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, jsonify, request

from eventboard.auth_service.utils import NOT_AUTHORIZED, Identity, login_required
from eventboard.database.store import RecordNotFound, StoreError, get_store

events_bp = Blueprint("events", __name__)

# --- CONSTANTS FOR VALIDATION ---
REQUIRED_TEXT_FIELDS = ("name", "description", "location")
ID_PATTERN = re.compile(r"-?[0-9]+\Z")
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


def parse_dt(val: Optional[str]) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 string with a UTC offset to a datetime object.

    Args:
        val (str): The date string to parse.

    Returns:
        datetime: The parsed, offset-aware datetime, or None if invalid or
        missing an offset.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DDTHH:MM:SSZ' and '...+00:00'
        if val.endswith('Z'):
            val = val[:-1] + '+00:00'
        parsed = datetime.fromisoformat(val)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def parse_id(raw: str) -> Optional[int]:
    """
    Convert a path segment to a signed 64-bit id, or None if it is not one.

    Only ASCII digits with an optional leading minus are accepted.
    """
    if not isinstance(raw, str) or not ID_PATTERN.match(raw):
        return None
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def parse_event_body() -> Optional[Dict[str, Any]]:
    """
    Validate the JSON body of a create/update request.

    Every field is required: name, description, location (non-empty strings)
    and dateTime (ISO-8601). Any owner field in the body is ignored.

    Returns:
        dict: Store-ready fields, or None if the body is invalid.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None

    fields: Dict[str, Any] = {}
    for key in REQUIRED_TEXT_FIELDS:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            return None
        fields[key] = value

    date_time = parse_dt(data.get("dateTime"))
    if date_time is None:
        return None
    fields["date_time"] = date_time

    return fields


def load_owned_event(raw_id: str, identity: Identity, action: str) -> Tuple[Optional[int], Optional[Response], Optional[int]]:
    """
    Shared prelude of update and delete: parse the id, resolve the event and
    check that the caller owns it.

    Returns:
        tuple: (event_id, error_response, status_code)
    """
    event_id = parse_id(raw_id)
    if event_id is None:
        return None, jsonify({"message": "Invalid event Id"}), 400

    try:
        event = get_store().get_event(event_id)
    except StoreError:
        logging.exception(f"[Events] Lookup of event {event_id} failed")
        return None, jsonify({"message": "Could not fetch event, try again later"}), 500

    if event.user_id != identity.user_id:
        logging.warning(
            f"[Events] User {identity.user_id} tried to {action} event {event_id} owned by {event.user_id}"
        )
        return None, jsonify({"message": NOT_AUTHORIZED}), 401

    return event_id, None, None


@events_bp.route("", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events.

    Returns:
        200: List of event objects (empty list when there are none).
        500: Database error.
    """
    try:
        events = get_store().list_events()
    except StoreError:
        logging.exception("[Events] Listing events failed")
        return jsonify({"message": "Could not fetch events, try again later"}), 500

    return jsonify([e.to_dict() for e in events]), 200


@events_bp.route("/<event_id>", methods=["GET"])
def get_event(event_id: str) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    A missing event is reported as 500, the same as any other lookup failure.

    Returns:
        200: Event object.
        400: ID is not an integer.
        500: Event not found or database error.
    """
    parsed_id = parse_id(event_id)
    if parsed_id is None:
        return jsonify({"message": "Invalid event Id"}), 400

    try:
        event = get_store().get_event(parsed_id)
    except RecordNotFound:
        logging.info(f"[Events] Event {parsed_id} not found")
        return jsonify({"message": "Could not fetch event, try again later"}), 500
    except StoreError:
        logging.exception(f"[Events] Lookup of event {parsed_id} failed")
        return jsonify({"message": "Could not fetch event, try again later"}), 500

    return jsonify(event.to_dict()), 200


@events_bp.route("", methods=["POST"])
@login_required
def create_event(identity: Identity) -> Tuple[Response, int]:
    """
    Create an event owned by the caller.

    Returns:
        201: { "message", "event" }
        400: Missing or malformed field.
        401: No valid token.
        500: Database error.
    """
    fields = parse_event_body()
    if fields is None:
        return jsonify({"message": "Could not parse request data."}), 400

    try:
        event = get_store().create_event(user_id=identity.user_id, **fields)
    except StoreError:
        logging.exception("[Events] Creating event failed")
        return jsonify({"message": "Could not save event, try again later"}), 500

    return jsonify({"message": "Event created!", "event": event.to_dict()}), 201


@events_bp.route("/<event_id>", methods=["PUT"])
@login_required
def update_event(event_id: str, identity: Identity) -> Tuple[Response, int]:
    """
    Replace name, description, location and dateTime of an event.

    Permission:
    - Only the owner of the event.

    Returns:
        200: Updated.
        400: Bad id or body.
        401: No valid token, or caller is not the owner.
        500: Event not found or database error.
    """
    parsed_id, err, code = load_owned_event(event_id, identity, "update")
    if err:
        return err, code

    fields = parse_event_body()
    if fields is None:
        return jsonify({"message": "Could not parse request"}), 400

    try:
        # The owner predicate is repeated inside the write itself
        updated = get_store().update_event(parsed_id, identity.user_id, fields)
    except StoreError:
        logging.exception(f"[Events] Updating event {parsed_id} failed")
        return jsonify({"message": "Could not update event, try again later"}), 500

    if not updated:
        return jsonify({"message": "Could not update event, try again later"}), 500

    return jsonify({"message": "Event updated successfully!"}), 200


@events_bp.route("/<event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: str, identity: Identity) -> Tuple[Response, int]:
    """
    Delete an event (and its registrations) if the caller owns it.

    Returns:
        200: Deleted.
        400: Bad id.
        401: No valid token, or caller is not the owner.
        500: Event not found or database error.
    """
    parsed_id, err, code = load_owned_event(event_id, identity, "delete")
    if err:
        return err, code

    try:
        deleted = get_store().delete_event(parsed_id, identity.user_id)
    except StoreError:
        logging.exception(f"[Events] Deleting event {parsed_id} failed")
        return jsonify({"message": "Could not delete the event"}), 500

    if not deleted:
        return jsonify({"message": "Could not delete the event"}), 500

    return jsonify({"message": "event deleted successfully"}), 200


@events_bp.route("/<event_id>/register", methods=["POST"])
@login_required
def register_for_event(event_id: str, identity: Identity) -> Tuple[Response, int]:
    """
    Register the caller for an event. Any authenticated user may register,
    including the owner, and registering twice is allowed.

    Returns:
        201: Registered.
        400: Bad id.
        401: No valid token.
        500: Event not found or database error.
    """
    parsed_id = parse_id(event_id)
    if parsed_id is None:
        return jsonify({"message": "Invalid event Id"}), 400

    store = get_store()
    try:
        store.get_event(parsed_id)
    except StoreError:
        logging.info(f"[Events] Cannot register for event {parsed_id}: lookup failed")
        return jsonify({"message": "Could not fetch event"}), 500

    try:
        store.create_registration(parsed_id, identity.user_id)
    except StoreError:
        logging.exception(f"[Events] Registering user {identity.user_id} for event {parsed_id} failed")
        return jsonify({"message": "Could not register user for event"}), 500

    return jsonify({"message": "User registered for event successfully"}), 201


@events_bp.route("/<event_id>/register", methods=["DELETE"])
@login_required
def cancel_registration(event_id: str, identity: Identity) -> Tuple[Response, int]:
    """
    Cancel the caller's registration(s) for an event.

    Cancelling when nothing is registered still succeeds.

    Returns:
        200: Cancelled (or nothing to cancel).
        400: Bad id.
        401: No valid token.
        500: Database error.
    """
    parsed_id = parse_id(event_id)
    if parsed_id is None:
        return jsonify({"message": "Invalid event Id"}), 400

    try:
        removed = get_store().cancel_registration(parsed_id, identity.user_id)
    except StoreError:
        logging.exception(f"[Events] Cancelling registration for event {parsed_id} failed")
        return jsonify({"message": "Could not cancel registration"}), 500

    logging.info(f"[Events] User {identity.user_id} cancelled {removed} registration(s) for event {parsed_id}")
    return jsonify({"message": "Registration for event cancelled successfully"}), 200
