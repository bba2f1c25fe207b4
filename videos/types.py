"""Video records derived from sidecars or rebuilt from the catalog."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from modd.timeval import TimeValue
from modd.types import ModdRecord


class Container(Enum):
    MPEG = "mpeg"
    MP4 = "mp4"
    MKV = "Matroska"
    AVI = "avi"
    UNKNOWN = "unknown"


class VideoCodec(Enum):
    MPEG2 = "mpeg2"
    X264 = "x264"
    X265 = "x265"
    UNKNOWN = "unknown"


class AudioCodec(Enum):
    AC3 = "ac3/Dolby Digital"
    AAC = "aac/mp4"
    VORBIS = "ogg-vorbis"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class VideoRecord:
    hash: bytes
    name: str
    location: Path
    creation_time: TimeValue
    duration: float
    container: Container = Container.UNKNOWN
    video_codec: VideoCodec = VideoCodec.UNKNOWN
    audio_codec: AudioCodec = AudioCodec.UNKNOWN
    modd: Optional[ModdRecord] = None
    stored_check_code: Optional[int] = None
    stored_file_size: Optional[int] = None

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()

    @property
    def fingerprinted(self) -> bool:
        return bool(self.hash)

    @property
    def modd_check_code(self) -> Optional[int]:
        if self.modd is not None:
            return self.modd.check_code
        return self.stored_check_code

    @property
    def file_size(self) -> Optional[int]:
        if self.modd is not None:
            return self.modd.file_size
        return self.stored_file_size

    def relocate_to(self, new_location: Path) -> None:
        self.location = Path(new_location)

    def as_dict(self) -> Dict[str, object]:
        return {
            "hash": self.hash_hex,
            "name": self.name,
            "location": str(self.location),
            "creationTime": self.creation_time.unix_seconds,
            "duration": self.duration,
            "container": self.container.value,
            "videoCodec": self.video_codec.value,
            "audioCodec": self.audio_codec.value,
            "moddCheckCode": self.modd_check_code,
            "fileSize": self.file_size,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "VideoRecord":
        """Rebuild a record from a ``video`` row; it has no linked sidecar."""

        from .resolve import classify_container, guess_video_codec

        location = Path(row["fileLocation"] or "")
        container = classify_container(location)
        check_code = row.get("moddCheckCode")
        file_size = row.get("fileSize")
        return cls(
            hash=bytes(row["hash"]),
            name=row["name"] or "",
            location=location,
            creation_time=TimeValue(int(row["dateTime"] or 0)),
            duration=float(row["duration"] or 0.0),
            container=container,
            video_codec=guess_video_codec(container),
            audio_codec=AudioCodec.UNKNOWN,
            modd=None,
            stored_check_code=None if check_code is None else int(check_code),
            stored_file_size=None if file_size is None else int(file_size),
        )


__all__ = ["AudioCodec", "Container", "VideoCodec", "VideoRecord"]
