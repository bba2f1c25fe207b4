from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Iterable, Iterator

from modd.types import ModdRecord

from .resolve import classify_container, guess_audio_codec, guess_video_codec, resolve_video_path
from .types import VideoRecord

LOGGER = logging.getLogger("moddcatalog.videos.fingerprint")

READ_SIZE = 5120000
_CHUNK_SIZE = 1024 * 1024


class FingerprintError(OSError):
    """Raised when a video file cannot be opened for hashing."""


def fingerprint_file(path: Path | str, read_size: int = READ_SIZE, *, chunk: int = _CHUNK_SIZE) -> bytes:
    """SHA-256 of at most the first *read_size* bytes of *path*.

    Only a prefix is hashed, so two files that share their first *read_size*
    bytes get the same fingerprint.
    """

    remaining = max(0, int(read_size))
    digest = hashlib.sha256()
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise FingerprintError(exc.errno, f"Failed to open video file: {exc.strerror}", str(path)) from exc
    with handle:
        while remaining > 0:
            block = handle.read(min(chunk, remaining))
            if not block:
                break
            digest.update(block)
            remaining -= len(block)
    return digest.digest()


def video_from_modd(modd: ModdRecord, read_size: int = READ_SIZE) -> VideoRecord:
    """Resolve and fingerprint the video paired with *modd*.

    A file that cannot be read is logged and yields a record with an empty
    hash; callers decide whether such a record is worth persisting.
    """

    location = resolve_video_path(modd.location)
    container = classify_container(location)
    video = VideoRecord(
        hash=b"",
        name=location.name,
        location=location,
        creation_time=modd.creation_time,
        duration=modd.duration,
        container=container,
        video_codec=guess_video_codec(container),
        audio_codec=guess_audio_codec(container),
        modd=modd,
    )
    try:
        video.hash = fingerprint_file(location, read_size)
    except FingerprintError as exc:
        LOGGER.warning("%s: %s", exc.strerror, location)
    return video


def videos_from_modds(modds: Iterable[ModdRecord], read_size: int = READ_SIZE) -> Iterator[VideoRecord]:
    for modd in modds:
        yield video_from_modd(modd, read_size)


__all__ = [
    "FingerprintError",
    "READ_SIZE",
    "fingerprint_file",
    "video_from_modd",
    "videos_from_modds",
]
