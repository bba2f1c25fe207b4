"""Move videos and their sidecars into a ``<root>/<year>/<Month>/`` archive."""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from modd.timeval import TimeValue
from modd.types import ModdRecord

from .types import VideoRecord

LOGGER = logging.getLogger("moddcatalog.videos.relocate")


@dataclass(slots=True)
class RelocationResult:
    ok: bool
    target: Optional[Path] = None
    errors: List[str] = field(default_factory=list)


def archive_dir_for(root: Path | str, time_value: TimeValue) -> Path:
    return Path(root) / str(time_value.year) / time_value.month_name


def _copy_exclusive(source: Path, destination: Path) -> None:
    with open(source, "rb") as src:
        with open(destination, "xb") as dst:
            try:
                shutil.copyfileobj(src, dst)
            except BaseException:
                dst.close()
                destination.unlink(missing_ok=True)
                raise
    shutil.copystat(source, destination)


def move_into_directory(
    source: Path, target_dir: Path, errors: List[str], *, label: str = "file"
) -> Optional[Path]:
    """Copy *source* into *target_dir* under its own name, then delete it.

    Failures are logged and appended to *errors*. A failed mkdir does not stop
    the copy attempt; the original is only removed after a successful copy.
    An existing file at the destination is never replaced.
    """

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.error("Unable to create %s: %s", target_dir, exc)
        errors.append(f"mkdir {target_dir}: {exc}")

    destination = target_dir / source.name
    try:
        _copy_exclusive(source, destination)
    except FileExistsError:
        LOGGER.error("Refusing to overwrite %s with %s %s", destination, label, source)
        errors.append(f"copy {source}: {destination} already exists")
        return None
    except OSError as exc:
        LOGGER.error("Unable to copy %s %s to %s: %s", label, source, destination, exc)
        errors.append(f"copy {source}: {exc}")
        return None

    try:
        source.unlink()
    except OSError as exc:
        LOGGER.error("Copied %s %s but could not remove the original: %s", label, source, exc)
        errors.append(f"remove {source}: {exc}")
        return None
    return destination


def relocate_modd(modd: ModdRecord, target_dir: Path) -> RelocationResult:
    errors: List[str] = []
    source = Path(modd.location)
    if source.parent == target_dir:
        return RelocationResult(ok=True, target=source)
    destination = move_into_directory(source, target_dir, errors, label="sidecar")
    if destination is not None:
        modd.relocate_to(destination)
    return RelocationResult(ok=not errors, target=destination, errors=errors)


def relocate_video(video: VideoRecord, root: Path | str) -> RelocationResult:
    """Move *video* and its linked sidecar under *root*.

    The sidecar is moved even when the video move fails; ``ok`` is only true
    when every step succeeded.
    """

    target_dir = archive_dir_for(root, video.creation_time)
    errors: List[str] = []
    source = Path(video.location)
    destination: Optional[Path] = None

    if not video.fingerprinted:
        errors.append(f"video {source} was never fingerprinted")
    elif not source.is_file():
        errors.append(f"video {source} does not exist")
    elif source.parent == target_dir:
        destination = source
    else:
        destination = move_into_directory(source, target_dir, errors, label="video")
        if destination is not None:
            video.relocate_to(destination)

    if video.modd is not None:
        linked = relocate_modd(video.modd, target_dir)
        errors.extend(linked.errors)

    if errors:
        LOGGER.warning("Relocation of %s finished with %d error(s)", video.name, len(errors))
    return RelocationResult(ok=not errors, target=destination, errors=errors)


__all__ = [
    "RelocationResult",
    "archive_dir_for",
    "move_into_directory",
    "relocate_modd",
    "relocate_video",
]
