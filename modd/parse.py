"""Decoder for the plist-flavoured ``.modd`` sidecar files.

The files are not parsed as XML. The envelope is stripped and the remaining
tags are rewritten into ``key,value`` lines, which is enough for the flat
layout the camcorders write and tolerant of the odd stray tag.
"""
from __future__ import annotations

import logging
import math
from enum import IntEnum
from pathlib import Path
from typing import Optional

from .types import ModdRecord
from .vt import SidecarParseError, VTParseError, parse_vt

LOGGER = logging.getLogger("moddcatalog.modd.parse")

XML_HEADER = '<?xml version="1.0" encoding="utf-8"?>'
DATA_HEADER = '<plist version="1.0"><dict><key>MetaDataList</key><array><dict>'
DATA_FOOTER = "</dict></array><key>XMLFileType</key><string>ModdXML</string></dict></plist>"

EPOCH_OFFSET_SECONDS = 2209161600  # 1899-12-30 to 1970-01-01
SECONDS_PER_DAY = 86400

_TAG_REWRITES = (
    ("<key>", ""),
    ("</key>", ","),
    ("<string>", ""),
    ("</string>", "\n"),
    ("<real>", ""),
    ("</real>", "\n"),
    ("<integer>", ""),
    ("</integer>", "\n"),
    ("<array>", "[\n"),
    ("</array>", "]"),
)

_UINT32_MAX = 0xFFFFFFFF
_UINT64_MAX = 0xFFFFFFFFFFFFFFFF


class TimeZone(IntEnum):
    """North American zones, valued by their hours behind UTC."""

    EST = 5
    CST = 6
    MST = 7
    PST = 8

    @property
    def offset_seconds(self) -> int:
        return int(self) * 3600

    @classmethod
    def from_name(cls, value: Optional[str]) -> "TimeZone":
        if not value:
            return cls.CST
        try:
            return cls[str(value).strip().upper()]
        except KeyError as exc:
            raise ValueError(f"unsupported time zone {value!r}") from exc


DEFAULT_TIMEZONE = TimeZone.CST
TIMEZONE_OFFSET_SECONDS = DEFAULT_TIMEZONE.offset_seconds


class SidecarAccessError(OSError):
    """Raised when a sidecar file cannot be read."""


def clean_text(text: str) -> str:
    """Strip the envelope and flatten tags into one ``key,value`` per line."""

    for fixed in (XML_HEADER, DATA_HEADER, DATA_FOOTER):
        text = text.replace(fixed, "", 1)
    for tag, replacement in _TAG_REWRITES:
        text = text.replace(tag, replacement)
    return text.strip()


def actual_time(date_time_original: float, tz: TimeZone = DEFAULT_TIMEZONE) -> int:
    original_seconds = math.floor(date_time_original * SECONDS_PER_DAY)
    return original_seconds - EPOCH_OFFSET_SECONDS + tz.offset_seconds


def _parse_uint(value: str, *, base: int, limit: int, key: str) -> int:
    try:
        number = int(value, base)
    except ValueError as exc:
        raise SidecarParseError(f"{key}: invalid integer {value!r}") from exc
    if number < 0 or number > limit:
        raise SidecarParseError(f"{key}: value {value!r} out of range")
    return number


def _parse_float(value: str, *, key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise SidecarParseError(f"{key}: invalid real {value!r}") from exc


def parse_modd_text(text: str, path: Path | str, *, tz: TimeZone = DEFAULT_TIMEZONE) -> ModdRecord:
    location = Path(path)
    record = ModdRecord(name=location.name, location=location)
    in_array = False

    for line in clean_text(text).splitlines():
        if in_array:
            if "]" in line:
                in_array = False
                continue
            if not line.strip():
                continue
            try:
                record.vt_list.append(parse_vt(line))
            except VTParseError as exc:
                raise VTParseError(f"{location}: {exc}") from exc
            continue

        key, _, value = line.partition(",")
        key = key.strip()
        value = value.strip()
        if key == "CheckCode":
            record.check_code = _parse_uint(value, base=16, limit=_UINT32_MAX, key=key)
        elif key == "DateTimeOriginal":
            record.date_time_original = _parse_float(value, key=key)
            record.date_time_actual = actual_time(record.date_time_original, tz)
        elif key == "Duration":
            record.duration = _parse_float(value, key=key)
        elif key == "FileSize":
            record.file_size = _parse_uint(value, base=10, limit=_UINT64_MAX, key=key)
        elif key == "VTList":
            if value.startswith("["):
                in_array = True
        elif key:
            LOGGER.debug("Skipping unsupported sidecar key %r in %s", key, location)

    return record


def load_modd(path: Path | str, *, tz: TimeZone = DEFAULT_TIMEZONE) -> ModdRecord:
    """Read and parse one sidecar file.

    Raises :class:`SidecarAccessError` when the file cannot be read and
    :class:`SidecarParseError` when a recognised value is malformed.
    """

    location = Path(path)
    try:
        with open(location, "rb") as handle:
            payload = handle.read()
    except OSError as exc:
        raise SidecarAccessError(exc.errno, f"Failed to open sidecar: {exc.strerror}", str(location)) from exc
    return parse_modd_text(payload.decode("utf-8", errors="replace"), location, tz=tz)


__all__ = [
    "DATA_FOOTER",
    "DATA_HEADER",
    "DEFAULT_TIMEZONE",
    "EPOCH_OFFSET_SECONDS",
    "SidecarAccessError",
    "SidecarParseError",
    "TIMEZONE_OFFSET_SECONDS",
    "TimeZone",
    "XML_HEADER",
    "actual_time",
    "clean_text",
    "load_modd",
    "parse_modd_text",
]
