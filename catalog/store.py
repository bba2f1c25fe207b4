"""Reconcile sidecar and video records with the SQLite catalog."""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple, Union

from core.db import DEFAULT_BUSY_TIMEOUT_MS, connect, configure_connection, is_busy_error, transaction
from modd.types import ModdRecord
from videos.types import VideoRecord

from .schema import MODD_INSERT, VIDEO_INSERT, ensure_schema

LOGGER = logging.getLogger("moddcatalog.catalog.store")

Record = Union[ModdRecord, VideoRecord]
RecordKey = Tuple[str, Union[int, bytes]]


class CatalogError(RuntimeError):
    """A catalog statement failed; the surrounding batch was rolled back."""

    def __init__(self, message: str, *, statement: Optional[str] = None, key: Optional[RecordKey] = None) -> None:
        super().__init__(message)
        self.statement = statement
        self.key = key

    def __str__(self) -> str:
        text = super().__str__()
        if self.key is not None:
            table, value = self.key
            shown = value.hex() if isinstance(value, bytes) else value
            text = f"{text} [{table} {shown}]"
        if self.statement:
            text = f"{text} while executing: {' '.join(self.statement.split())}"
        return text


class CatalogBusyError(CatalogError):
    """The catalog was locked by another connection; the batch may be retried."""


@dataclass(slots=True)
class BatchResult:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def written(self) -> int:
        return self.inserted + self.updated


def record_key(record: Record) -> RecordKey:
    if isinstance(record, ModdRecord):
        return ("modd", record.check_code)
    if isinstance(record, VideoRecord):
        return ("video", record.hash)
    raise TypeError(f"unsupported catalog record {type(record).__name__}")


def _modd_params(modd: ModdRecord) -> Tuple[Any, ...]:
    return (
        modd.check_code,
        modd.name,
        modd.date_time_actual,
        modd.duration,
        modd.file_size,
        str(modd.location),
    )


def _video_params(video: VideoRecord) -> Tuple[Any, ...]:
    return (
        video.hash,
        video.name,
        video.modd_check_code,
        video.creation_time.unix_seconds,
        video.duration,
        str(video.location),
        video.file_size,
    )


def diff_video(current: VideoRecord, persisted: VideoRecord) -> Dict[str, Any]:
    """Columns of ``video`` whose persisted value differs from *current*."""

    changes: Dict[str, Any] = {}
    if current.name != persisted.name:
        changes["name"] = current.name
    if current.creation_time.unix_seconds != persisted.creation_time.unix_seconds:
        changes["dateTime"] = current.creation_time.unix_seconds
    if current.duration != persisted.duration:
        changes["duration"] = current.duration
    if str(current.location) != str(persisted.location):
        changes["fileLocation"] = str(current.location)
    return changes


def diff_modd(current: ModdRecord, row: Dict[str, Any]) -> Dict[str, Any]:
    """Columns of ``modd`` whose persisted value differs from *current*."""

    changes: Dict[str, Any] = {}
    if current.name != row.get("name"):
        changes["name"] = current.name
    if current.date_time_actual != row.get("dateTime"):
        changes["dateTime"] = current.date_time_actual
    if current.duration != row.get("videoDuration"):
        changes["videoDuration"] = current.duration
    if current.file_size != row.get("videoFileSize"):
        changes["videoFileSize"] = current.file_size
    if str(current.location) != row.get("moddFileLocation"):
        changes["moddFileLocation"] = str(current.location)
    return changes


def _update_statement(table: str, key_column: str, changes: Dict[str, Any]) -> str:
    assignments = ", ".join(f"{column} = ?" for column in changes)
    return f"UPDATE {table} SET {assignments} WHERE {key_column} = ?"


class CatalogStore:
    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = 5.0,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ) -> None:
        if connection is None and db_path is None:
            raise ValueError("CatalogStore needs a database path or an open connection")
        self._path = Path(db_path) if db_path is not None else None
        self._owns_connection = connection is None
        if connection is None:
            connection = connect(self._path, timeout=timeout, busy_timeout_ms=busy_timeout_ms)
        else:
            configure_connection(connection, enable_wal=False, busy_timeout_ms=busy_timeout_ms)
        self._conn = connection
        try:
            ensure_schema(self._conn)
        except sqlite3.Error as exc:
            self.close()
            if is_busy_error(exc):
                raise CatalogBusyError("Failed to acquire catalog lock while creating tables") from exc
            raise CatalogError(str(exc)) from exc

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        if self._owns_connection:
            self._conn.close()

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- reads -----------------------------------------------------------

    def query(self, sql: str, params: Sequence[Any] = ()) -> Iterator[Dict[str, Any]]:
        """Yield each result row as a column->value dict.

        The cursor is released once the rows are exhausted or the generator
        is closed, so abandoning a half-read query does not leak it.
        """

        cur = self._conn.execute(sql, tuple(params))
        try:
            columns = [column[0] for column in cur.description or ()]
            for row in cur:
                yield dict(zip(columns, row))
        finally:
            cur.close()

    def _fetch_one(self, sql: str, params: Sequence[Any]) -> Optional[Dict[str, Any]]:
        rows = self.query(sql, params)
        try:
            return next(rows, None)
        finally:
            rows.close()

    def contains(self, record: Record) -> bool:
        table, value = record_key(record)
        if table == "modd":
            return self.contains_modd(int(value))
        return self.contains_video(bytes(value))

    def contains_modd(self, check_code: int) -> bool:
        return self._fetch_one("SELECT 1 AS present FROM modd WHERE checkCode = ?", (check_code,)) is not None

    def contains_video(self, digest: bytes) -> bool:
        return self._fetch_one("SELECT 1 AS present FROM video WHERE hash = ?", (digest,)) is not None

    def get_video(self, digest: bytes) -> Optional[VideoRecord]:
        row = self._fetch_one("SELECT * FROM video WHERE hash = ?", (digest,))
        return None if row is None else VideoRecord.from_row(row)

    def get_modd_row(self, check_code: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM modd WHERE checkCode = ?", (check_code,))

    def iter_videos(self) -> Iterator[VideoRecord]:
        for row in self.query("SELECT * FROM video ORDER BY dateTime, name"):
            yield VideoRecord.from_row(row)

    def iter_modds(self) -> Iterator[Dict[str, Any]]:
        return self.query("SELECT * FROM modd ORDER BY dateTime, name")

    def count(self, table: str) -> int:
        if table not in {"modd", "video"}:
            raise ValueError(f"unknown catalog table {table!r}")
        row = self._fetch_one(f"SELECT COUNT(*) AS total FROM {table}", ())
        return int(row["total"]) if row else 0

    # -- writes ----------------------------------------------------------

    def _execute(self, sql: str, params: Sequence[Any], key: RecordKey) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            if is_busy_error(exc):
                raise CatalogBusyError("Failed to acquire catalog lock", statement=sql, key=key) from exc
            raise CatalogError(str(exc), statement=sql, key=key) from exc

    def _run_batch(self, work: Iterable[Record], handler: Callable[[Any, BatchResult], None]) -> BatchResult:
        result = BatchResult()
        try:
            with transaction(self._conn):
                for record in work:
                    handler(record, result)
        except CatalogError:
            LOGGER.error("Catalog batch rolled back")
            raise
        except sqlite3.Error as exc:
            if is_busy_error(exc):
                raise CatalogBusyError("Failed to acquire catalog lock") from exc
            raise CatalogError(str(exc)) from exc
        return result

    def _insert(self, record: Record, result: BatchResult) -> None:
        key = record_key(record)
        if isinstance(record, ModdRecord):
            sql, params = MODD_INSERT, _modd_params(record)
        else:
            sql, params = VIDEO_INSERT, _video_params(record)
        try:
            self._execute(sql, params, key)
        except (sqlite3.IntegrityError, OverflowError) as exc:
            LOGGER.warning("Skipping %s row %s: %s", key[0], _show_key(key), exc)
            result.skipped += 1
            return
        result.inserted += 1

    def add_entries(self, batch: Iterable[Record]) -> BatchResult:
        """Insert the records that are not yet catalogued, in one transaction.

        Sidecar rows are written before video rows so a video's parent row
        always exists by the time the video is inserted.
        """

        records = sorted(list(batch), key=lambda item: 0 if isinstance(item, ModdRecord) else 1)
        seen: set[RecordKey] = set()

        def handle(record: Record, result: BatchResult) -> None:
            if isinstance(record, VideoRecord) and not record.fingerprinted:
                LOGGER.warning("Not cataloguing %s: no fingerprint", record.location)
                result.failed += 1
                return
            key = record_key(record)
            if key in seen or self.contains(record):
                result.skipped += 1
                return
            seen.add(key)
            self._insert(record, result)

        result = self._run_batch(records, handle)
        LOGGER.info(
            "%d new catalog entries, %d already present", result.inserted, result.skipped
        )
        return result

    def update_entries(self, videos: Iterable[VideoRecord]) -> BatchResult:
        """Insert unknown videos and diff-update known ones in one transaction."""

        seen: set[RecordKey] = set()

        def handle(video: VideoRecord, result: BatchResult) -> None:
            if not video.fingerprinted:
                LOGGER.warning("Not cataloguing %s: no fingerprint", video.location)
                result.failed += 1
                return
            key = record_key(video)
            if key in seen:
                result.skipped += 1
                return
            seen.add(key)
            persisted = self.get_video(video.hash)
            if persisted is None:
                self._insert(video, result)
                return
            changes = diff_video(video, persisted)
            if not changes:
                result.unchanged += 1
                return
            sql = _update_statement("video", "hash", changes)
            self._execute(sql, [*changes.values(), video.hash], key)
            result.updated += 1

        result = self._run_batch(list(videos), handle)
        LOGGER.info("%d updated/added video entries.", result.written)
        return result

    def update_modd_entries(self, modds: Iterable[ModdRecord]) -> BatchResult:
        """Insert unknown sidecars and diff-update known ones in one transaction."""

        seen: set[RecordKey] = set()

        def handle(modd: ModdRecord, result: BatchResult) -> None:
            key = record_key(modd)
            if key in seen:
                result.skipped += 1
                return
            seen.add(key)
            row = self.get_modd_row(modd.check_code)
            if row is None:
                self._insert(modd, result)
                return
            changes = diff_modd(modd, row)
            if not changes:
                result.unchanged += 1
                return
            sql = _update_statement("modd", "checkCode", changes)
            try:
                self._execute(sql, [*changes.values(), modd.check_code], key)
            except (sqlite3.IntegrityError, OverflowError) as exc:
                LOGGER.warning("Skipping modd row %s: %s", _show_key(key), exc)
                result.skipped += 1
                return
            result.updated += 1

        result = self._run_batch(list(modds), handle)
        LOGGER.info("%d updated/added sidecar entries.", result.written)
        return result


def _show_key(key: RecordKey) -> str:
    value = key[1]
    return value.hex() if isinstance(value, bytes) else f"{value:08X}"


__all__ = [
    "BatchResult",
    "CatalogBusyError",
    "CatalogError",
    "CatalogStore",
    "diff_modd",
    "diff_video",
    "record_key",
]
