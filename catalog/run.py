"""Batch orchestration: sidecars -> videos -> catalog."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, TypeVar

from tqdm import tqdm

from modd.parse import SidecarAccessError, TimeZone, load_modd
from modd.types import ModdRecord, ModdSet
from modd.vt import SidecarParseError
from robust import CancellationToken
from videos.fingerprint import READ_SIZE, video_from_modd
from videos.relocate import relocate_video
from videos.types import VideoRecord

from .store import CatalogStore

LOGGER = logging.getLogger("moddcatalog.catalog.run")

ProgressCallback = Callable[[Dict[str, object]], None]

T = TypeVar("T")


@dataclass(slots=True)
class CatalogSettings:
    batch_size: int = 200
    read_bytes: int = READ_SIZE
    timezone: TimeZone = TimeZone.CST
    sidecar_ext: str = ".modd"

    @classmethod
    def from_mapping(cls, settings: Dict[str, object] | None) -> "CatalogSettings":
        data = dict(settings or {})
        catalog_cfg = data.get("catalog") if isinstance(data.get("catalog"), dict) else {}
        fp_cfg = data.get("fingerprint") if isinstance(data.get("fingerprint"), dict) else {}
        sidecar_cfg = data.get("sidecar") if isinstance(data.get("sidecar"), dict) else {}
        extension = str(sidecar_cfg.get("extension") or ".modd")
        if not extension.startswith("."):
            extension = f".{extension}"
        return cls(
            batch_size=max(1, int(catalog_cfg.get("batch_size", 200) or 200)),
            read_bytes=max(1, int(fp_cfg.get("read_bytes", READ_SIZE) or READ_SIZE)),
            timezone=TimeZone.from_name(sidecar_cfg.get("timezone")),
            sidecar_ext=extension,
        )


@dataclass(slots=True)
class RunSummary:
    parsed: int = 0
    parse_errors: int = 0
    modd_inserted: int = 0
    videos_written: int = 0
    videos_unchanged: int = 0
    videos_failed: int = 0
    cancelled: bool = False
    elapsed_s: float = 0.0


@dataclass(slots=True)
class RelocationSummary:
    moved: int = 0
    failed: int = 0


def batched(items: Sequence[T], size: int) -> Iterator[List[T]]:
    for start in range(0, len(items), max(1, size)):
        yield list(items[start : start + size])


class CatalogRunner:
    def __init__(
        self,
        store: CatalogStore,
        *,
        settings: Optional[CatalogSettings] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
        show_progress: bool = False,
    ) -> None:
        self.store = store
        self.settings = settings or CatalogSettings()
        self.progress_callback = progress_callback
        self.cancellation = cancellation
        self.show_progress = show_progress
        self.modds = ModdSet()
        self.videos: List[VideoRecord] = []
        self._errors = 0

    def _emit(self, payload: Dict[str, object]) -> None:
        if self.progress_callback is None:
            return
        try:
            self.progress_callback(payload)
        except Exception:  # pragma: no cover
            LOGGER.debug("Progress callback failed", exc_info=True)

    def _cancelled(self) -> bool:
        return self.cancellation is not None and self.cancellation.is_set()

    def _progress(self, items: Iterable[T], *, desc: str, total: Optional[int] = None) -> Iterable[T]:
        return tqdm(items, desc=desc, total=total, unit="file", disable=not self.show_progress)

    def load_sidecars(self, paths: Iterable[Path]) -> List[ModdRecord]:
        """Parse every path; unreadable or malformed sidecars are skipped."""

        loaded: List[ModdRecord] = []
        self._errors = 0
        for path in self._progress(paths, desc="Parsing sidecars"):
            try:
                record = load_modd(path, tz=self.settings.timezone)
            except SidecarAccessError as exc:
                LOGGER.warning("Skipping unreadable sidecar %s: %s", path, exc.strerror)
                self._errors += 1
                continue
            except SidecarParseError as exc:
                LOGGER.warning("Skipping malformed sidecar %s: %s", path, exc)
                self._errors += 1
                continue
            index = self.modds.add(record)
            if self.modds.get(index) is record:
                loaded.append(record)
            else:
                LOGGER.info("Duplicate check code %08X in %s", record.check_code, path)
        return loaded

    def run(self, paths: Iterable[Path]) -> RunSummary:
        start = time.monotonic()
        summary = RunSummary()
        modds = self.load_sidecars(paths)
        summary.parsed = len(modds)
        summary.parse_errors = self._errors
        batch_size = self.settings.batch_size

        for batch in batched(modds, batch_size):
            if self._cancelled():
                summary.cancelled = True
                break
            result = self.store.add_entries(batch)
            summary.modd_inserted += result.inserted
            self._emit({"phase": "modd", "inserted": summary.modd_inserted})

        if not summary.cancelled:
            for modd in self._progress(modds, desc="Fingerprinting videos"):
                self.videos.append(video_from_modd(modd, self.settings.read_bytes))

            for batch in batched(self.videos, batch_size):
                if self._cancelled():
                    summary.cancelled = True
                    break
                result = self.store.update_entries(batch)
                summary.videos_written += result.written
                summary.videos_unchanged += result.unchanged
                summary.videos_failed += result.failed
                self._emit({"phase": "video", "written": summary.videos_written})

        summary.elapsed_s = time.monotonic() - start
        LOGGER.info(
            "Catalogued %d sidecars (%d errors), %d video rows written, %d unchanged, %d failed",
            summary.parsed,
            summary.parse_errors,
            summary.videos_written,
            summary.videos_unchanged,
            summary.videos_failed,
        )
        return summary

    def relocate(self, root: Path) -> RelocationSummary:
        return relocate_all(self.videos, root, store=self.store, batch_size=self.settings.batch_size)


def relocate_all(
    videos: Sequence[VideoRecord],
    root: Path,
    *,
    store: Optional[CatalogStore] = None,
    batch_size: int = 200,
) -> RelocationSummary:
    """Relocate *videos* under *root* and persist the new locations.

    Every record whose file actually moved is written back, including the
    halves of a relocation that only partly succeeded.
    """

    summary = RelocationSummary()
    moved_videos: List[VideoRecord] = []
    moved_modds: List[ModdRecord] = []
    for video in videos:
        video_before = video.location
        modd_before = video.modd.location if video.modd is not None else None
        result = relocate_video(video, root)
        if result.ok:
            summary.moved += 1
        else:
            summary.failed += 1
            for error in result.errors:
                LOGGER.debug("%s: %s", video.name, error)
        if video.location != video_before:
            moved_videos.append(video)
        if video.modd is not None and video.modd.location != modd_before:
            moved_modds.append(video.modd)
    if store is not None:
        for modd_batch in batched(moved_modds, batch_size):
            store.update_modd_entries(modd_batch)
        for video_batch in batched(moved_videos, batch_size):
            store.update_entries(video_batch)
    LOGGER.info("Relocated %d videos, %d failed", summary.moved, summary.failed)
    return summary


__all__ = [
    "CatalogRunner",
    "CatalogSettings",
    "RelocationSummary",
    "RunSummary",
    "batched",
    "relocate_all",
]
