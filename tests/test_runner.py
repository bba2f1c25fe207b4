"""End-to-end runs of the catalog pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from catalog.run import CatalogRunner, CatalogSettings, batched, relocate_all
from catalog.store import CatalogStore
from core.settings import merge_defaults
from fixtures import write_recording, write_sidecar
from modd.parse import TimeZone
from robust import CancellationToken, iter_sidecar_paths


def _camera_dump(folder: Path) -> List[Path]:
    write_recording(folder, "20100116110730", payload=b"first clip", check_code="A1")
    write_recording(folder / "DAY2", "20100117090000", payload=b"second clip", check_code="B2", video_ext=".mpg")
    write_sidecar(folder / "broken.modd", check_code="not-hex")
    return list(iter_sidecar_paths(folder))


def test_settings_from_merged_defaults() -> None:
    settings = CatalogSettings.from_mapping(
        merge_defaults({"catalog": {"batch_size": 5}, "sidecar": {"timezone": "pst", "extension": "MODD"}})
    )
    assert settings.batch_size == 5
    assert settings.read_bytes == 5120000
    assert settings.timezone is TimeZone.PST
    assert settings.sidecar_ext == ".MODD"


def test_run_catalogs_every_readable_sidecar(tmp_path: Path) -> None:
    paths = _camera_dump(tmp_path / "camera")
    events: List[Dict[str, object]] = []
    with CatalogStore(tmp_path / "catalog.db") as store:
        runner = CatalogRunner(store, settings=CatalogSettings(batch_size=1), progress_callback=events.append)
        summary = runner.run(paths)

        assert summary.parsed == 2
        assert summary.parse_errors == 1
        assert summary.modd_inserted == 2
        assert summary.videos_written == 2
        assert summary.videos_failed == 0
        assert not summary.cancelled
        assert store.count("modd") == 2
        assert store.count("video") == 2
        assert {event["phase"] for event in events} == {"modd", "video"}


def test_second_run_changes_nothing(tmp_path: Path) -> None:
    paths = _camera_dump(tmp_path / "camera")
    with CatalogStore(tmp_path / "catalog.db") as store:
        CatalogRunner(store).run(paths)
        summary = CatalogRunner(store).run(paths)

        assert summary.modd_inserted == 0
        assert summary.videos_written == 0
        assert summary.videos_unchanged == 2


def test_cancelled_run_writes_nothing(tmp_path: Path) -> None:
    paths = _camera_dump(tmp_path / "camera")
    token = CancellationToken()
    token.set()
    with CatalogStore(tmp_path / "catalog.db") as store:
        summary = CatalogRunner(store, cancellation=token).run(paths)

        assert summary.cancelled
        assert store.count("modd") == 0
        assert store.count("video") == 0


def test_relocation_updates_the_catalog(tmp_path: Path) -> None:
    paths = _camera_dump(tmp_path / "camera")
    root = tmp_path / "archive"
    with CatalogStore(tmp_path / "catalog.db") as store:
        runner = CatalogRunner(store)
        runner.run(paths)
        moved = runner.relocate(root)

        assert moved.moved == 2
        assert moved.failed == 0
        for video in store.iter_videos():
            assert video.location.parent == root / "2010" / "January"
            assert video.location.exists()
        for row in store.iter_modds():
            assert Path(row["moddFileLocation"]).parent == root / "2010" / "January"


def test_relocate_all_without_store_only_moves_files(tmp_path: Path) -> None:
    paths = _camera_dump(tmp_path / "camera")
    with CatalogStore(tmp_path / "catalog.db") as store:
        runner = CatalogRunner(store)
        runner.run(paths)
        summary = relocate_all(runner.videos, tmp_path / "archive")

        assert summary.moved == 2
        assert all(video.location.parent.name == "January" for video in runner.videos)
        assert all(row["moddFileLocation"].startswith(str(tmp_path / "camera")) for row in store.iter_modds())


def test_batched_splits_evenly() -> None:
    assert list(batched([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(batched([], 3)) == []


def test_sidecar_moved_without_its_video_is_persisted(tmp_path: Path) -> None:
    camera = tmp_path / "camera"
    orphan = write_sidecar(camera / "orphan.modd", check_code="C3")
    root = tmp_path / "archive"
    with CatalogStore(tmp_path / "catalog.db") as store:
        runner = CatalogRunner(store)
        runner.run([orphan])
        summary = runner.relocate(root)

        assert summary.moved == 0
        assert summary.failed == 1
        row = store.get_modd_row(0xC3)
        assert row is not None
        assert Path(row["moddFileLocation"]) == root / "2010" / "January" / "orphan.modd"
        assert Path(row["moddFileLocation"]).exists()
        assert not orphan.exists()


def test_video_moved_without_its_sidecar_is_persisted(tmp_path: Path) -> None:
    modd_path, video_path = write_recording(tmp_path / "camera", "MOV001", payload=b"frames", check_code="D4")
    target = tmp_path / "archive" / "2010" / "January"
    target.mkdir(parents=True)
    (target / modd_path.name).write_text("someone else's sidecar", encoding="utf-8")
    with CatalogStore(tmp_path / "catalog.db") as store:
        runner = CatalogRunner(store)
        runner.run([modd_path])
        summary = runner.relocate(tmp_path / "archive")

        assert summary.failed == 1
        (video,) = list(store.iter_videos())
        assert video.location == target / video_path.name
        assert video.location.exists()
        row = store.get_modd_row(0xD4)
        assert row is not None
        assert Path(row["moddFileLocation"]) == modd_path
        assert modd_path.exists()
