"""Sidecar discovery across camcorder dumps, archive trees and network shares."""

from __future__ import annotations

import logging
import os
import sys
import threading
import unicodedata
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

LOGGER = logging.getLogger("moddcatalog.robust")

_WINDOWS = sys.platform.startswith("win")


@dataclass(slots=True)
class ScanSettings:
    skip_hidden: bool = True
    ignore: Sequence[str] = field(default_factory=tuple)
    follow_symlinks: bool = False

    def as_log_line(self) -> str:
        ignore = ",".join(self.ignore) if self.ignore else "-"
        return "skip_hidden=%s, ignore=%s, follow_symlinks=%s" % (
            str(bool(self.skip_hidden)).lower(),
            ignore,
            str(bool(self.follow_symlinks)).lower(),
        )


def merge_settings(raw: dict | None, overrides: dict | None = None) -> ScanSettings:
    data = dict(raw or {})
    override = dict(overrides or {})
    cfg = ScanSettings()
    for key in ("skip_hidden", "ignore", "follow_symlinks"):
        if key in data:
            setattr(cfg, key, data[key])
    for key, value in override.items():
        if hasattr(cfg, key) and value is not None:
            setattr(cfg, key, value)
    if isinstance(cfg.ignore, str):
        cfg.ignore = (cfg.ignore,)
    cfg.ignore = tuple(str(p).strip() for p in cfg.ignore or () if str(p).strip())
    cfg.follow_symlinks = bool(cfg.follow_symlinks)
    cfg.skip_hidden = bool(cfg.skip_hidden)
    return cfg


def normalize_path(path: str) -> str:
    return unicodedata.normalize("NFC", path)


def is_hidden(entry: os.DirEntry[str]) -> bool:
    if entry.name.startswith("."):
        return True
    if not _WINDOWS:
        return False
    try:
        attrs = entry.stat(follow_symlinks=False).st_file_attributes  # type: ignore[attr-defined]
    except (OSError, AttributeError):
        return False
    FILE_ATTRIBUTE_HIDDEN = 0x2
    FILE_ATTRIBUTE_SYSTEM = 0x4
    return bool(attrs & (FILE_ATTRIBUTE_HIDDEN | FILE_ATTRIBUTE_SYSTEM))


def should_ignore(path: str, *, patterns: Sequence[str]) -> bool:
    if not patterns:
        return False
    for pattern in patterns:
        if fnmatch(os.path.basename(path), pattern) or fnmatch(path, pattern):
            return True
    return False


def has_extension(name: str, extension: str) -> bool:
    """Case-insensitive suffix match; camcorders write ``.MODD`` and ``.modd``."""

    return name.lower().endswith(extension.lower()) and len(name) > len(extension)


def iter_sidecar_paths(
    root: Path | str,
    extension: str = ".modd",
    settings: Optional[ScanSettings] = None,
) -> Iterator[Path]:
    """Yield sidecar files under *root* in a stable, sorted order.

    A single file is yielded as-is when it carries the extension. Directories
    that cannot be listed are logged and skipped.
    """

    cfg = settings or ScanSettings()
    start = Path(root)
    if start.is_file():
        if has_extension(start.name, extension):
            yield start
        return

    stack: List[str] = [normalize_path(str(start))]
    visited: set[str] = set()
    while stack:
        current = stack.pop()
        if cfg.follow_symlinks:
            real = os.path.realpath(current)
            if real in visited:
                continue
            visited.add(real)
        try:
            with os.scandir(current) as iterator:
                entries = sorted(iterator, key=lambda item: item.name)
        except OSError as exc:
            LOGGER.warning("Skipping unreadable directory %s: %s", current, exc.strerror or exc)
            continue

        subdirs: List[str] = []
        for entry in entries:
            if cfg.skip_hidden and is_hidden(entry):
                continue
            if should_ignore(entry.path, patterns=cfg.ignore):
                continue
            try:
                if entry.is_dir(follow_symlinks=cfg.follow_symlinks):
                    subdirs.append(entry.path)
                    continue
                is_file = entry.is_file(follow_symlinks=cfg.follow_symlinks)
            except OSError as exc:
                LOGGER.debug("Cannot stat %s: %s", entry.path, exc)
                continue
            if is_file and has_extension(entry.name, extension):
                yield Path(entry.path)
        # reversed so the stack pops subdirectories in name order
        stack.extend(reversed(subdirs))


class CancellationToken:
    def __init__(self) -> None:
        self._evt = threading.Event()

    def set(self) -> None:
        self._evt.set()

    def is_set(self) -> bool:
        return self._evt.is_set()

    def wait(self, timeout: float) -> bool:
        return self._evt.wait(timeout)


__all__ = [
    "CancellationToken",
    "ScanSettings",
    "has_extension",
    "is_hidden",
    "iter_sidecar_paths",
    "merge_settings",
    "normalize_path",
    "should_ignore",
]
