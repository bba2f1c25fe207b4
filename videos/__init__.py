"""Video files paired with camcorder sidecars."""

from .fingerprint import READ_SIZE, FingerprintError, fingerprint_file, video_from_modd, videos_from_modds
from .relocate import RelocationResult, archive_dir_for, relocate_modd, relocate_video
from .resolve import VIDEO_EXTS, resolve_video_path
from .types import AudioCodec, Container, VideoCodec, VideoRecord

__all__ = [
    "AudioCodec",
    "Container",
    "FingerprintError",
    "READ_SIZE",
    "RelocationResult",
    "VIDEO_EXTS",
    "VideoCodec",
    "VideoRecord",
    "archive_dir_for",
    "fingerprint_file",
    "relocate_modd",
    "relocate_video",
    "resolve_video_path",
    "video_from_modd",
    "videos_from_modds",
]
