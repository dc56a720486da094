"""
Shared authentication helpers.
Provides token creation, verification, and the request guard used by
protected routes.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, NamedTuple, Optional, Tuple

import jwt
from dotenv import load_dotenv
from flask import Response, g, jsonify, request

# Load .env only once here
load_dotenv()

JWT_ALGORITHM = "HS256"
JWT_SECRET_MIN_LENGTH = 32

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")
if len(JWT_SECRET) < JWT_SECRET_MIN_LENGTH:
    raise RuntimeError(f"JWT_SECRET must be at least {JWT_SECRET_MIN_LENGTH} characters")

TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 1440))  # Default 24 hours

NOT_AUTHORIZED = "Not Authorized"


class Identity(NamedTuple):
    """The caller resolved from a verified token."""
    user_id: int
    email: str


class TokenError(Exception):
    """Base class for every token verification failure."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class MissingClaim(TokenError):
    pass


# --- JWT CREATION ---
def create_token(user_id: int, email: str) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.
        email (str): The user's email address.

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)

    payload = {
        "user_id": user_id,
        "email": email,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# --- JWT VALIDATION ---
def verify_token(token: str) -> Identity:
    """
    Verify signature and expiry of a JWT and extract the caller.

    Args:
        token (str): JWT string.

    Returns:
        Identity: user_id and email carried by the token.

    Raises:
        TokenExpired: exp is in the past.
        InvalidSignature: signed with a different key.
        MissingClaim: user_id, email or exp absent or of the wrong type.
        MalformedToken: anything else (not a JWT, wrong algorithm, ...).
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "user_id", "email"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("token expired") from e
    except jwt.InvalidSignatureError as e:
        raise InvalidSignature("invalid signature") from e
    except jwt.MissingRequiredClaimError as e:
        raise MissingClaim(str(e)) from e
    except jwt.InvalidTokenError as e:
        raise MalformedToken(str(e)) from e

    user_id = payload["user_id"]
    email = payload["email"]
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise MissingClaim("user_id must be an integer")
    if not isinstance(email, str):
        raise MissingClaim("email must be a string")

    return Identity(user_id=user_id, email=email)


def verify_token_from_request() -> Tuple[Optional[Identity], Optional[Response], Optional[int]]:
    """
    Verify the JWT in the Authorization header.

    The header carries the raw token; a "Bearer " prefix is tolerated.
    Every failure yields the same 401 body.

    Returns:
        tuple: (identity, error_response, status_code)
               If successful, error_response and status_code are None.
               If failed, identity is None.
    """
    token = request.headers.get("Authorization", "").strip()
    if token.startswith("Bearer "):
        token = token[len("Bearer "):].strip()

    if not token:
        logging.warning(f"[Auth] Rejected {request.method} {request.path}: missing token")
        return None, jsonify({"message": NOT_AUTHORIZED}), 401

    try:
        identity = verify_token(token)
    except TokenError as e:
        logging.warning(f"[Auth] Rejected {request.method} {request.path}: {type(e).__name__}")
        return None, jsonify({"message": NOT_AUTHORIZED}), 401

    return identity, None, None


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """
    Route decorator: reject unauthenticated requests before the view runs.

    On success the resolved Identity is stored on flask.g and passed to the
    view as the `identity` keyword argument.
    """
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        identity, err, code = verify_token_from_request()
        if err:
            return err, code
        g.identity = identity
        return view(*args, identity=identity, **kwargs)

    return wrapper
