"""Sidecar records and the arena that owns them."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .timeval import TimeValue
from .vt import VTEntry


@dataclass(slots=True)
class ModdRecord:
    """Structured contents of one ``.modd`` file."""

    name: str
    location: Path
    check_code: int = 0
    date_time_original: float = 0.0  # days since 1899-12-30
    date_time_actual: int = 0  # unix seconds
    duration: float = 0.0
    file_size: int = 0
    vt_list: List[VTEntry] = field(default_factory=list)

    @property
    def creation_time(self) -> TimeValue:
        return TimeValue(self.date_time_actual)

    def relocate_to(self, new_location: Path) -> None:
        """Record a completed move of the sidecar file."""

        self.location = Path(new_location)

    def as_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "location": str(self.location),
            "checkCode": self.check_code,
            "dateTimeOriginal": self.date_time_original,
            "dateTimeActual": self.date_time_actual,
            "duration": self.duration,
            "fileSize": self.file_size,
            "vtList": [entry.as_dict() for entry in self.vt_list],
        }


class ModdSet:
    """Owning collection of sidecar records with stable indices.

    Video records hold a reference to a record stored here, so the set is
    append-only: indices handed out by :meth:`add` never change.
    """

    def __init__(self) -> None:
        self._records: List[ModdRecord] = []
        self._by_check_code: Dict[int, int] = {}

    def add(self, record: ModdRecord) -> int:
        existing = self._by_check_code.get(record.check_code)
        if existing is not None:
            return existing
        index = len(self._records)
        self._records.append(record)
        self._by_check_code[record.check_code] = index
        return index

    def get(self, index: int) -> ModdRecord:
        if index < 0 or index >= len(self._records):
            raise IndexError(f"sidecar index {index} out of bounds")
        return self._records[index]

    def find(self, check_code: int) -> Optional[ModdRecord]:
        index = self._by_check_code.get(check_code)
        return None if index is None else self._records[index]

    def __contains__(self, record: object) -> bool:
        return isinstance(record, ModdRecord) and record.check_code in self._by_check_code

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ModdRecord]:
        return iter(self._records)


__all__ = ["ModdRecord", "ModdSet"]
