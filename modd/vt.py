"""Parser for the colon-delimited VT records found in ``VTList`` arrays."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List

_FIELD_COUNT = 6
_UINT32_MAX = 0xFFFFFFFF


class SidecarParseError(ValueError):
    """Raised when a recognised sidecar value cannot be decoded."""


class VTParseError(SidecarParseError):
    """Raised for a VT line that does not hold six numeric fields."""


@dataclass(frozen=True, slots=True)
class VTEntry:
    field0: int
    field1: int
    field2: float
    field3: float
    field4: float
    field5: int

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def _split_fields(line: str) -> List[str]:
    fields: List[str] = []
    start = 0
    for _ in range(_FIELD_COUNT - 1):
        split_at = line.find(":", start)
        if split_at < 0:
            raise VTParseError(
                f"expected {_FIELD_COUNT} colon-delimited fields, found {len(fields) + 1}: {line!r}"
            )
        fields.append(line[start:split_at])
        start = split_at + 1
    end = line.find(":", start)
    fields.append(line[start:] if end < 0 else line[start:end])
    return fields


def _uint32(text: str, line: str) -> int:
    try:
        value = int(text.strip(), 10)
    except ValueError as exc:
        raise VTParseError(f"invalid integer {text!r} in {line!r}") from exc
    if value < 0 or value > _UINT32_MAX:
        raise VTParseError(f"integer {value} out of range in {line!r}")
    return value


def _double(text: str, line: str) -> float:
    try:
        return float(text.strip())
    except ValueError as exc:
        raise VTParseError(f"invalid real {text!r} in {line!r}") from exc


def parse_vt(line: str) -> VTEntry:
    """Decode ``u32:u32:f64:f64:f64:u32``; anything past a sixth colon is ignored."""

    raw = line.strip()
    fields = _split_fields(raw)
    return VTEntry(
        field0=_uint32(fields[0], raw),
        field1=_uint32(fields[1], raw),
        field2=_double(fields[2], raw),
        field3=_double(fields[3], raw),
        field4=_double(fields[4], raw),
        field5=_uint32(fields[5], raw),
    )


__all__ = ["SidecarParseError", "VTEntry", "VTParseError", "parse_vt"]
