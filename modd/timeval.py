"""Coarse calendar arithmetic used for archive paths."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

YEAR_SECONDS = 31556926
MONTH_SECONDS = 2629743


class Month(IntEnum):
    JANUARY = 0
    FEBRUARY = 1
    MARCH = 2
    APRIL = 3
    MAY = 4
    JUNE = 5
    JULY = 6
    AUGUST = 7
    SEPTEMBER = 8
    OCTOBER = 9
    NOVEMBER = 10
    DECEMBER = 11

    @property
    def display_name(self) -> str:
        return MONTH_NAMES[self]


MONTH_NAMES: Mapping[Month, str] = MappingProxyType(
    {month: month.name.capitalize() for month in Month}
)


@dataclass(frozen=True, order=True, slots=True)
class TimeValue:
    """Unix seconds with average-length year/month derivation.

    The year and month are not calendar accurate; they only need to be
    deterministic and monotonic so the same clip always lands in the same
    archive directory.
    """

    unix_seconds: int = 0

    @property
    def year(self) -> int:
        return self.unix_seconds // YEAR_SECONDS + 1970

    @property
    def month(self) -> Month:
        index = (self.unix_seconds % YEAR_SECONDS) // MONTH_SECONDS
        # 12 * MONTH_SECONDS falls a few seconds short of YEAR_SECONDS.
        return Month(min(index, Month.DECEMBER))

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month]

    def __int__(self) -> int:
        return self.unix_seconds


__all__ = ["MONTH_NAMES", "MONTH_SECONDS", "Month", "TimeValue", "YEAR_SECONDS"]
