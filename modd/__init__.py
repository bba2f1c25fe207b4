"""Sidecar (``.modd``) decoding for camcorder recordings."""

from .parse import SidecarAccessError, TimeZone, load_modd, parse_modd_text
from .timeval import Month, TimeValue
from .types import ModdRecord, ModdSet
from .vt import SidecarParseError, VTEntry, VTParseError, parse_vt

__all__ = [
    "ModdRecord",
    "ModdSet",
    "Month",
    "SidecarAccessError",
    "SidecarParseError",
    "TimeValue",
    "TimeZone",
    "VTEntry",
    "VTParseError",
    "load_modd",
    "parse_modd_text",
    "parse_vt",
]
