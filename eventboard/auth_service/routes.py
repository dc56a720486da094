"""
Authentication service route handlers.

Provides routes for:
- User signup
- User login

Hashing lives in `auth_service.hasher`; all JWT logic is delegated to
`auth_service.utils`.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, jsonify, request

from eventboard.auth_service.hasher import HashingFailure, hash_password, verify_password
from eventboard.auth_service.utils import create_token
from eventboard.database.store import StoreError, get_store

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log every incoming request method and path to the authentication service.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


def read_credentials() -> Optional[Tuple[str, str]]:
    """
    Pull a non-empty email and password out of the JSON body.

    Returns:
        tuple: (email, password), or None if either is missing or not a string.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None

    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not isinstance(password, str):
        return None

    email = email.strip().lower()
    if not email or not password:
        return None
    return email, password


# --- SIGNUP ---
@auth_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - email (str): Unique email address.
    - password (str)

    Returns:
        201: Account created.
        400: Missing or malformed fields.
        500: Hashing failure or database error (including a taken email).
    """
    credentials = read_credentials()
    if credentials is None:
        return jsonify({"message": "Could not parse request"}), 400
    email, password = credentials

    try:
        pw_hash = hash_password(password)
        get_store().create_user(email, pw_hash)
    except (HashingFailure, StoreError) as e:
        logging.error(f"[Auth] Signup failed: {e}")
        return jsonify({"message": "Could not save user, try again later"}), 500

    return jsonify({"message": "User created successfully"}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        201: JSON with message and token.
        400: Missing credentials.
        401: Invalid credentials (unknown email or wrong password).
        500: Database error.
    """
    credentials = read_credentials()
    if credentials is None:
        return jsonify({"message": "Could not parse request"}), 400
    email, password = credentials

    try:
        user = get_store().get_user_by_email(email)
    except StoreError:
        logging.exception("[Auth] Login lookup failed")
        return jsonify({"message": "Could not authenticate user"}), 500

    # Unknown email and wrong password look identical to the client
    if user is None or not verify_password(password, user.password_hash):
        return jsonify({"message": "Invalid credentials"}), 401

    token = create_token(user.id, user.email)

    return jsonify({"message": "Login Successfully", "token": token}), 201
