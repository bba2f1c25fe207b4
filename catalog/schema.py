from __future__ import annotations

import sqlite3

from core.db import transaction

MODD_TABLE = """
CREATE TABLE IF NOT EXISTS modd (
    checkCode INTEGER UNIQUE,
    name TEXT,
    dateTime INTEGER,
    videoDuration REAL,
    videoFileSize INTEGER,
    moddFileLocation TEXT UNIQUE,
    PRIMARY KEY(checkCode)
)
"""

VIDEO_TABLE = """
CREATE TABLE IF NOT EXISTS video (
    hash BLOB PRIMARY KEY UNIQUE,
    name TEXT,
    moddCheckCode INTEGER UNIQUE,
    dateTime INTEGER,
    duration REAL,
    fileLocation TEXT,
    fileSize INTEGER,
    FOREIGN KEY(moddCheckCode) REFERENCES modd(checkCode)
)
"""

MODD_COLUMNS = ("checkCode", "name", "dateTime", "videoDuration", "videoFileSize", "moddFileLocation")
VIDEO_COLUMNS = ("hash", "name", "moddCheckCode", "dateTime", "duration", "fileLocation", "fileSize")

MODD_INSERT = 'INSERT INTO "modd" ({}) VALUES ({})'.format(
    ", ".join(MODD_COLUMNS), ", ".join("?" for _ in MODD_COLUMNS)
)
VIDEO_INSERT = 'INSERT INTO "video" ({}) VALUES ({})'.format(
    ", ".join(VIDEO_COLUMNS), ", ".join("?" for _ in VIDEO_COLUMNS)
)


def ensure_schema(conn: sqlite3.Connection) -> None:
    with transaction(conn):
        conn.execute(MODD_TABLE)
        conn.execute(VIDEO_TABLE)


__all__ = [
    "MODD_COLUMNS",
    "MODD_INSERT",
    "VIDEO_COLUMNS",
    "VIDEO_INSERT",
    "ensure_schema",
]
