from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

__all__ = [
    "DEFAULT_BUSY_TIMEOUT_MS",
    "connect",
    "configure_connection",
    "is_busy_error",
    "transaction",
]

DEFAULT_BUSY_TIMEOUT_MS = 5000

_BUSY_MARKERS = ("database is locked", "database table is locked", "database is busy", "busy")


def connect(
    db_path: str | Path,
    *,
    read_only: bool = False,
    timeout: float = 5.0,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    isolation_level: Optional[str] = None,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    """Return a configured SQLite connection in autocommit mode.

    Multi-row work is expected to be bracketed with :func:`transaction`.
    """

    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    if read_only:
        uri = f"file:{path.resolve().as_posix()}?mode=ro"
        conn = sqlite3.connect(
            uri,
            uri=True,
            timeout=timeout,
            isolation_level=isolation_level,
            check_same_thread=check_same_thread,
        )
    else:
        conn = sqlite3.connect(
            str(path),
            timeout=timeout,
            isolation_level=isolation_level,
            check_same_thread=check_same_thread,
        )
    configure_connection(conn, enable_wal=not read_only, busy_timeout_ms=busy_timeout_ms)
    return conn


def configure_connection(
    conn: sqlite3.Connection,
    *,
    enable_wal: bool = True,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> None:
    conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    if enable_wal:
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.DatabaseError:
            pass
    conn.execute("PRAGMA foreign_keys=ON")


def is_busy_error(exc: BaseException) -> bool:
    """Return True when *exc* reports lock contention rather than a real fault."""

    if not isinstance(exc, sqlite3.OperationalError):
        return False
    code = getattr(exc, "sqlite_errorcode", None)
    if code is not None and code & 0xFF in (sqlite3.SQLITE_BUSY, sqlite3.SQLITE_LOCKED):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _BUSY_MARKERS)


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    try:
        conn.execute("BEGIN")
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.rollback()
        raise
    else:
        try:
            conn.commit()
        except sqlite3.Error:
            if conn.in_transaction:
                conn.rollback()
            raise
