"""Catalog export utilities."""
from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from core.paths import get_exports_dir

from .schema import MODD_COLUMNS, VIDEO_COLUMNS
from .store import CatalogStore

EXPORT_FORMATS = ("jsonl", "csv")


def _timestamp_dir(base: Path) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    target = base / "catalog" / timestamp
    target.mkdir(parents=True, exist_ok=True)
    return target


def _modd_json(row: Dict[str, object]) -> Dict[str, object]:
    return {column: row.get(column) for column in MODD_COLUMNS}


def _video_json(row: Dict[str, object]) -> Dict[str, object]:
    payload = {column: row.get(column) for column in VIDEO_COLUMNS}
    digest = payload.get("hash")
    if isinstance(digest, (bytes, bytearray, memoryview)):
        payload["hash"] = bytes(digest).hex()
    return payload


def _write_jsonl(path: Path, rows: Iterable[Dict[str, object]]) -> int:
    count = 0
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, ensure_ascii=False) + "\n")
            count += 1
    return count


def _write_csv(path: Path, rows: Iterable[Dict[str, object]], headers: Sequence[str]) -> int:
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(headers))
        writer.writeheader()
        for row in rows:
            writer.writerow({key: row.get(key) for key in headers})
            count += 1
    return count


def export_catalog(
    store: CatalogStore,
    *,
    format: str = "jsonl",
    target_dir: Optional[Path] = None,
    working_dir: Optional[Path] = None,
) -> List[Path]:
    """Dump both catalog tables into *target_dir* and return the files written.

    Without an explicit *target_dir* a timestamped folder is created under the
    working directory's ``exports/catalog``.
    """

    format = format.lower()
    if format not in EXPORT_FORMATS:
        raise ValueError(f"unsupported export format {format!r}")
    if target_dir is None:
        if working_dir is None:
            raise ValueError("export_catalog needs a target_dir or a working_dir")
        target_dir = _timestamp_dir(get_exports_dir(working_dir))
    else:
        target_dir.mkdir(parents=True, exist_ok=True)

    modds = (_modd_json(row) for row in store.iter_modds())
    videos = (_video_json(row) for row in store.query("SELECT * FROM video ORDER BY dateTime, name"))
    written: List[Path] = []
    if format == "jsonl":
        for name, rows in (("modd.jsonl", modds), ("video.jsonl", videos)):
            path = target_dir / name
            _write_jsonl(path, rows)
            written.append(path)
        return written
    for name, rows, headers in (
        ("modd.csv", modds, MODD_COLUMNS),
        ("video.csv", videos, VIDEO_COLUMNS),
    ):
        path = target_dir / name
        _write_csv(path, rows, headers)
        written.append(path)
    return written


__all__ = ["EXPORT_FORMATS", "export_catalog"]
