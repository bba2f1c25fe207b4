from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

import pytest

from core.db import connect, is_busy_error, transaction
from core.logging_utils import JsonLogFormatter


def test_transaction_rolls_back_on_error(tmp_path: Path) -> None:
    conn = connect(tmp_path / "sub" / "t.db")
    conn.execute("CREATE TABLE t (v INTEGER)")
    with pytest.raises(RuntimeError):
        with transaction(conn):
            conn.execute("INSERT INTO t VALUES (1)")
            raise RuntimeError("abort")
    with transaction(conn):
        conn.execute("INSERT INTO t VALUES (2)")
    assert conn.execute("SELECT v FROM t").fetchall() == [(2,)]
    assert conn.execute("PRAGMA foreign_keys").fetchone() == (1,)
    conn.close()


def test_is_busy_error_classification() -> None:
    assert is_busy_error(sqlite3.OperationalError("database is locked"))
    assert not is_busy_error(sqlite3.OperationalError("no such table: modd"))
    assert not is_busy_error(sqlite3.IntegrityError("database is locked"))


def test_json_formatter_keeps_extras() -> None:
    record = logging.LogRecord("moddcatalog.test", logging.INFO, __file__, 1, "moved %s", ("clip",), None)
    record.target = Path("/archive/2010")
    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["message"] == "moved clip"
    assert payload["level"] == "INFO"
    assert payload["target"] == str(Path("/archive/2010"))
