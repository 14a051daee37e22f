"""Per-key mutual exclusion around attendance read-modify-write."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from typing import ContextManager, Dict, Iterator, Protocol

import mysql.connector

from ..core.exceptions import TransientStoreError
from .connection import DatabaseConnection


class KeyLockProvider(Protocol):
    def hold(self, key: str) -> ContextManager[None]:
        raise NotImplementedError


def work_day_key(employee_id: int, work_date: date) -> str:
    return f"work:{int(employee_id)}:{work_date.isoformat()}"


def trainer_day_key(trainer_id: int, work_date: date) -> str:
    return f"class:{int(trainer_id)}:{work_date.isoformat()}"


class MySQLNamedLock:
    """``GET_LOCK``/``RELEASE_LOCK`` held on a dedicated connection.

    Named locks are visible to every connection of the server, so the other
    short-lived connections used inside the block are serialized per key.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, timeout_seconds: int, prefix: str = "attendance"):
        self._conn_factory = conn_factory
        self._timeout = int(timeout_seconds)
        self._prefix = prefix

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        name = f"{self._prefix}:{key}"[:64]
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                try:
                    cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._timeout))
                    row = cur.fetchone()
                except mysql.connector.Error as e:
                    raise TransientStoreError(f"Could not acquire lock {name}", cause=e) from e
                if not row or row[0] != 1:
                    raise TransientStoreError(f"Timed out waiting for lock {name}")
                try:
                    yield
                finally:
                    try:
                        cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                        cur.fetchone()
                    except mysql.connector.Error:
                        # Closing the connection releases the lock anyway.
                        pass
            finally:
                cur.close()
        finally:
            conn.close()


class InProcessKeyLock:
    """Per-key locks for a single process (development server, tests)."""

    def __init__(self, *, timeout_seconds: float = 5.0):
        self._timeout = float(timeout_seconds)
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self._timeout):
            raise TransientStoreError(f"Timed out waiting for lock {key}")
        try:
            yield
        finally:
            lock.release()
