"""
Registrations service routes: read-only views over the registrations table.
Creating and cancelling registrations lives under /events/<id>/register.
"""

import logging
from typing import Tuple

from flask import Blueprint, Response, jsonify

from eventboard.database.store import StoreError, get_store
from eventboard.events_service.routes import parse_id

registrations_bp = Blueprint("registrations", __name__)


@registrations_bp.route("", methods=["GET"])
def list_registrations() -> Tuple[Response, int]:
    """
    Get every registration. Public access allowed.

    Returns:
        200: { "message", "registrations": [...] } (empty list when there are none).
        500: Database error.
    """
    try:
        registrations = get_store().list_registrations()
    except StoreError:
        logging.exception("[Registrations] Listing registrations failed")
        return jsonify({"message": "Could not fetch registrations"}), 500

    return jsonify({
        "message": "Registrations fetched successfully",
        "registrations": [r.to_dict() for r in registrations],
    }), 200


@registrations_bp.route("/<registration_id>", methods=["GET"])
def get_registration(registration_id: str) -> Tuple[Response, int]:
    """
    Get one registration by ID. A missing row is reported as 500.
    """
    parsed_id = parse_id(registration_id)
    if parsed_id is None:
        return jsonify({"message": "Invalid registration Id"}), 400

    try:
        registration = get_store().get_registration(parsed_id)
    except StoreError:
        logging.info(f"[Registrations] Lookup of registration {parsed_id} failed")
        return jsonify({"message": "Could not fetch registration"}), 500

    return jsonify(registration.to_dict()), 200
