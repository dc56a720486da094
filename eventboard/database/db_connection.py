"""
PostgreSQL connection helper.
Provides get_db() for use by the relational store.
"""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg2.extensions import connection as PgConnection
from psycopg2.extras import DictCursor
from psycopg2.pool import ThreadedConnectionPool
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()

DB_POOL_MIN = int(os.getenv("DB_POOL_MIN", 1))
DB_POOL_MAX = int(os.getenv("DB_POOL_MAX", 10))

_pool: Optional[ThreadedConnectionPool] = None
# One slot per pooled connection; borrowers wait here instead of hitting PoolError
_slots: Optional[threading.BoundedSemaphore] = None
_pool_lock = threading.Lock()


def get_pool() -> ThreadedConnectionPool:
    """
    Return the process-wide connection pool, creating it on first use.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: If the initial connections cannot be opened.
    """
    global _pool, _slots
    with _pool_lock:
        if _pool is None:
            database_url = os.getenv("DATABASE_URL")
            if not database_url:
                raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")
            _pool = ThreadedConnectionPool(
                DB_POOL_MIN,
                DB_POOL_MAX,
                database_url,
                cursor_factory=DictCursor,
            )
            _slots = threading.BoundedSemaphore(DB_POOL_MAX)
            logging.info(f"[DB] Connection pool ready (min={DB_POOL_MIN}, max={DB_POOL_MAX})")
        return _pool


@contextmanager
def get_db() -> Iterator[PgConnection]:
    """
    Borrow a pooled connection for the duration of one transaction.

    The transaction is committed when the block exits cleanly and rolled
    back when it raises; either way the connection goes back to the pool.

    Usage:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """
    pool = get_pool()
    slots = _slots
    slots.acquire()
    try:
        conn = pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)
    finally:
        slots.release()


def close_pool() -> None:
    """Close every pooled connection (used on shutdown and in tests)."""
    global _pool, _slots
    with _pool_lock:
        if _pool is not None:
            _pool.closeall()
            _pool = None
            _slots = None
