"""Per-order mutual exclusion.

Every operation that reads an order, decides, and writes it back (payment
outcomes, cancellation, refunds, shipping updates) runs inside
``locks.hold(order_id)``. The lock spans the whole command, including the
unit of work commit, so two deliveries for the same order serialize while
different orders proceed in parallel.

``LocalOrderLocks`` serializes threads within one process.
``AdvisoryOrderLocks`` uses PostgreSQL session advisory locks and serializes
across worker processes sharing the database.
"""

import threading
from contextlib import contextmanager
from weakref import WeakValueDictionary

import structlog
from sqlalchemy import create_engine, text

logger = structlog.get_logger(__name__)


class LocalOrderLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: WeakValueDictionary[str, threading.Lock] = WeakValueDictionary()

    def _lock_for(self, order_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(order_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[order_id] = lock
            return lock

    @contextmanager
    def hold(self, order_id):
        lock = self._lock_for(str(order_id))
        with lock:
            yield


class AdvisoryOrderLocks:
    def __init__(self, database_uri: str) -> None:
        self._engine = create_engine(database_uri, pool_pre_ping=True)

    @contextmanager
    def hold(self, order_id):
        key = f"order:{order_id}"
        with self._engine.connect() as conn:
            conn.execute(text("SELECT pg_advisory_lock(hashtext(:key))"), {"key": key})
            try:
                yield
            finally:
                conn.execute(text("SELECT pg_advisory_unlock(hashtext(:key))"), {"key": key})


def order_locks_for(domain):
    """Pick the lock implementation matching the domain's default database."""
    with domain.domain_context():
        conn_info = next(
            (provider.conn_info for name, provider in domain.providers.items() if name == "default"),
            {},
        )
    if conn_info.get("provider") == "postgresql":
        logger.info("Using PostgreSQL advisory locks for order serialization")
        return AdvisoryOrderLocks(conn_info["database_uri"])
    return LocalOrderLocks()
