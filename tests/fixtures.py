"""Deterministic sidecar and video fixtures for the catalog tests."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from modd.parse import DATA_FOOTER, DATA_HEADER, XML_HEADER

__all__ = ["JAN_16_2010", "SAMPLE_ORIGINAL", "sidecar_text", "write_recording", "write_sidecar"]

# 2010-01-16 12:00 expressed as days since 1899-12-30
SAMPLE_ORIGINAL = 40194.5
# the same instant after the CST shift
JAN_16_2010 = 1263664800


def sidecar_text(
    *,
    check_code: Optional[str] = "1A2B",
    date_time_original: Optional[float] = SAMPLE_ORIGINAL,
    duration: Optional[float] = 125.5,
    file_size: Optional[int] = None,
    vt_lines: Optional[Iterable[str]] = None,
    extra: str = "",
    envelope: bool = True,
) -> str:
    body = []
    if check_code is not None:
        body.append(f"<key>CheckCode</key><string>{check_code}</string>")
    if date_time_original is not None:
        body.append(f"<key>DateTimeOriginal</key><real>{date_time_original!r}</real>")
    if duration is not None:
        body.append(f"<key>Duration</key><real>{duration!r}</real>")
    if file_size is not None:
        body.append(f"<key>FileSize</key><integer>{file_size}</integer>")
    if vt_lines is not None:
        items = "".join(f"<string>{line}</string>" for line in vt_lines)
        body.append(f"<key>VTList</key><array>{items}</array>")
    body.append(extra)
    payload = "".join(body)
    if not envelope:
        return payload
    return f"{XML_HEADER}\r\n{DATA_HEADER}{payload}{DATA_FOOTER}\r\n"


def write_sidecar(path: Path, **kwargs: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(sidecar_text(**kwargs), encoding="utf-8")  # type: ignore[arg-type]
    return path


def write_recording(
    folder: Path,
    stem: str,
    *,
    payload: bytes,
    video_ext: str = ".MPG",
    **kwargs: object,
) -> tuple[Path, Path]:
    """Write ``<stem>.modd`` plus its video and return both paths."""

    modd_path = write_sidecar(folder / f"{stem}.modd", **kwargs)
    video_path = folder / f"{stem}{video_ext}"
    video_path.write_bytes(payload)
    return modd_path, video_path
