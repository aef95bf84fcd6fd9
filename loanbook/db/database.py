"""Core database connection manager: bounded pool, explicit transactions, WAL checkpoints."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Optional

from loanbook.db.schema import PRAGMAS, SCHEMA_DDL
from loanbook.errors import StoreFailure, store_errors

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DEFAULT_MAX_OPEN_CONNS = 25
DEFAULT_MAX_IDLE_CONNS = 5
BUSY_TIMEOUT_SECONDS = 30.0


def utc_now() -> str:
    """Current UTC time in the sortable format used for created_at/updated_at."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


class Database:
    """
    SQLite connection manager shared by all repositories.

    Constructed explicitly and passed to repositories; ``initialize()`` must be
    called once before use. At most ``max_open_conns`` connections are open at
    any time; callers beyond that block until one is released. Up to
    ``max_idle_conns`` released connections are kept for reuse.
    """

    def __init__(
        self,
        path: Optional[Path | str] = None,
        *,
        max_open_conns: int = DEFAULT_MAX_OPEN_CONNS,
        max_idle_conns: int = DEFAULT_MAX_IDLE_CONNS,
        log_queries: bool = False,
    ):
        if path is None:
            from loanbook.config import get_db_path
            self.path: Path = get_db_path()
        else:
            self.path = Path(path)
        if max_open_conns < 1:
            raise ValueError("max_open_conns must be >= 1")
        if not 0 <= max_idle_conns <= max_open_conns:
            raise ValueError("max_idle_conns must be between 0 and max_open_conns")
        self.max_open_conns = max_open_conns
        self.max_idle_conns = max_idle_conns
        self.log_queries = log_queries

        self._init_lock = threading.Lock()
        self._pool_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max_open_conns)
        self._idle: list[sqlite3.Connection] = []
        self._initialized = False

    @classmethod
    def from_config(cls) -> "Database":
        from loanbook.config import get_database_config
        cfg = get_database_config()
        return cls(
            cfg.path,
            max_open_conns=cfg.max_open_conns,
            max_idle_conns=cfg.max_idle_conns,
            log_queries=cfg.log_queries,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    # -- lifecycle -------------------------------------------------------------

    def initialize(self) -> None:
        """Open, ping, apply pragmas and create tables. Idempotent."""
        with self._init_lock:
            if self._initialized:
                return
            conn: Optional[sqlite3.Connection] = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                conn = self._open()
                conn.execute("SELECT 1")
                conn.executescript(SCHEMA_DDL)
            except (sqlite3.Error, OSError) as exc:
                if conn is not None:
                    conn.close()
                raise StoreFailure("initialize", str(self.path), str(exc)) from exc

            self._idle.append(conn)
            self._initialized = True
        logger.info(f"Database initialized: {self.path}")

    def shutdown(self) -> None:
        """Close pooled connections. Safe to call more than once."""
        with self._init_lock:
            if not self._initialized:
                return
            self._initialized = False
            with self._pool_lock:
                idle, self._idle = self._idle, []
        for conn in idle:
            conn.close()
        logger.info(f"Database closed: {self.path}")

    def checkpoint(self) -> None:
        """Fold the write-ahead log into the main database file."""
        with store_errors("checkpoint"):
            with self.connection() as conn:
                row = conn.execute("PRAGMA wal_checkpoint(TRUNCATE)").fetchone()
        if row is not None and row[0]:
            logger.warning(
                f"WAL checkpoint busy on {self.path}: "
                f"{row[2]}/{row[1]} frames checkpointed"
            )

    # -- connection pool -------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            timeout=BUSY_TIMEOUT_SECONDS,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        if self.log_queries:
            conn.set_trace_callback(_log_statement)
        try:
            for pragma in PRAGMAS:
                conn.execute(pragma)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.rollback()
        with self._pool_lock:
            if self._initialized and len(self._idle) < self.max_idle_conns:
                self._idle.append(conn)
                return
        conn.close()

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Borrow a pooled connection, blocking while the pool is exhausted."""
        if not self._initialized:
            raise StoreFailure("connection", detail="database is not initialized")
        self._slots.acquire()
        try:
            with self._pool_lock:
                conn = self._idle.pop() if self._idle else None
            if conn is None:
                conn = self._open()
        except BaseException:
            self._slots.release()
            raise
        try:
            yield conn
        finally:
            try:
                self._release(conn)
            finally:
                self._slots.release()

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Write transaction: commits on success, rolls back on exception.

        ``BEGIN IMMEDIATE`` takes the write lock up front, so reads issued
        inside the block see the same snapshot the writes are applied to.
        """
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    # -- low-level query helpers -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> int:
        """Run a single autocommit statement and return the affected row count."""
        with self.connection() as conn:
            return conn.execute(sql, params).rowcount

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[dict[str, Any]]:
        with self.connection() as conn:
            row = conn.execute(sql, params).fetchone()
        return dict(row) if row else None

    def fetchall(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        with self.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [dict(r) for r in rows]


def _log_statement(statement: str) -> None:
    logger.info(f"QUERY: {statement}")
