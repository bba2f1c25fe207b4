"""Locate the media file that belongs to a sidecar."""
from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping

from .types import AudioCodec, Container, VideoCodec

VIDEO_EXTS = (".mpg", ".mpeg", ".mp4", ".m4v", ".mkv", ".avi")

CONTAINER_BY_EXT: Mapping[str, Container] = MappingProxyType(
    {
        ".mpg": Container.MPEG,
        ".mpeg": Container.MPEG,
        ".mp4": Container.MP4,
        ".m4v": Container.MP4,
        ".mkv": Container.MKV,
        ".avi": Container.AVI,
    }
)


def candidate_paths(modd_path: Path | str) -> Iterator[Path]:
    base = Path(modd_path)
    for ext in VIDEO_EXTS:
        yield base.with_suffix(ext)
        yield base.with_suffix(ext.upper())


def resolve_video_path(modd_path: Path | str) -> Path:
    """Return the first existing sibling video, else the last candidate tried.

    Camcorders write the extension in either case, and the extension does not
    always match the container, so every known spelling is probed.
    """

    candidate = Path(modd_path)
    for candidate in candidate_paths(modd_path):
        if candidate.exists():
            return candidate
    return candidate


def classify_container(path: Path | str) -> Container:
    return CONTAINER_BY_EXT.get(Path(path).suffix.lower(), Container.UNKNOWN)


def guess_video_codec(container: Container) -> VideoCodec:
    if container is Container.MPEG:
        return VideoCodec.MPEG2
    return VideoCodec.UNKNOWN


def guess_audio_codec(container: Container) -> AudioCodec:
    return AudioCodec.UNKNOWN


__all__ = [
    "CONTAINER_BY_EXT",
    "VIDEO_EXTS",
    "candidate_paths",
    "classify_container",
    "guess_audio_codec",
    "guess_video_codec",
    "resolve_video_path",
]
