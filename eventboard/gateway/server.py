"""
API gateway: combines the auth, events, and registrations blueprints.
This is the local entrypoint for development.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from eventboard.database.store import InMemoryStore, ResourceStore

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def default_store() -> ResourceStore:
    """
    Pick the store named by STORE_BACKEND ("postgres" or "memory").
    """
    backend = os.getenv("STORE_BACKEND", "postgres").lower()
    if backend == "memory":
        logging.warning("Using the in-memory store; data is lost on restart.")
        return InMemoryStore()
    if backend != "postgres":
        raise RuntimeError(f"Unknown STORE_BACKEND: {backend}")

    from eventboard.database.postgres_store import PostgresStore
    return PostgresStore()


def create_app(store: Optional[ResourceStore] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        store (ResourceStore, optional): Persistence backend. Defaults to the
            one selected by STORE_BACKEND.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    app.extensions["resource_store"] = store if store is not None else default_store()

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    CORS(app, resources={
        r"/*": {
            "origins": origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    # --- REGISTER BLUEPRINTS ---
    from eventboard.auth_service.routes import auth_bp
    from eventboard.events_service.routes import events_bp
    from eventboard.registrations_service.routes import registrations_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(events_bp, url_prefix="/events")
    app.register_blueprint(registrations_bp, url_prefix="/registrations")

    logging.info("All blueprints registered successfully.")

    # --- JSON ERROR BODIES ---
    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        logging.exception("Unhandled error")
        return jsonify({"message": "Internal Server Error"}), 500

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, threaded=True)
