from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterator

import pytest

import organize_modd
from fixtures import write_recording


@pytest.fixture
def working_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    home = tmp_path / "home"
    monkeypatch.setenv("MODDCATALOG_HOME", str(home))
    yield home
    logger = logging.getLogger("moddcatalog")
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()


def test_update_then_relocate_and_export(tmp_path: Path, working_dir: Path) -> None:
    camera = tmp_path / "camera"
    write_recording(camera, "20100116110730", payload=b"clip", check_code="10")
    archive = tmp_path / "archive"

    code = organize_modd.main(
        ["--update", str(camera), "--relocate", str(archive), "--export", "jsonl", "--batch-size", "5"]
    )

    assert code == 0
    db_path = working_dir / "data" / "library.db"
    with sqlite3.connect(db_path) as conn:
        (location,) = conn.execute("SELECT fileLocation FROM video").fetchone()
    assert Path(location) == archive.resolve() / "2010" / "January" / "20100116110730.MPG"
    assert list((working_dir / "exports" / "catalog").glob("*/video.jsonl"))
    assert (working_dir / "logs" / "moddcatalog.log.jsonl").exists()


def test_explicit_catalog_path(tmp_path: Path, working_dir: Path) -> None:
    camera = tmp_path / "camera"
    write_recording(camera, "clip", payload=b"clip")
    db_path = tmp_path / "elsewhere" / "catalog.db"

    assert organize_modd.main(["--update", str(camera), "--catalog-db", str(db_path)]) == 0
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM modd").fetchone() == (1,)


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--relocate", "somewhere"],
        ["--update", "does-not-exist"],
        ["--update", ".", "--batch-size", "0"],
        ["--export", "xml"],
        ["--update", ".", "--relocate"],
    ],
)
def test_usage_errors(argv: list[str], working_dir: Path) -> None:
    assert organize_modd.main(argv) == 2


def test_busy_catalog_exits_with_one(tmp_path: Path, working_dir: Path) -> None:
    camera = tmp_path / "camera"
    write_recording(camera, "clip", payload=b"clip")
    db_path = tmp_path / "catalog.db"
    assert organize_modd.main(["--update", str(camera), "--catalog-db", str(db_path)]) == 0
    (working_dir / "settings.json").write_text('{"catalog": {"busy_timeout_ms": 0}}', encoding="utf-8")
    write_recording(camera, "clip2", payload=b"clip two", check_code="FF")

    blocker = sqlite3.connect(db_path, timeout=0, isolation_level=None)
    try:
        blocker.execute("BEGIN IMMEDIATE")
        assert organize_modd.main(["--update", str(camera), "--catalog-db", str(db_path)]) == 1
    finally:
        blocker.rollback()
        blocker.close()
