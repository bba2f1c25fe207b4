from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

Check = Callable[[Any], bool]


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _flag(value: Any) -> bool:
    return isinstance(value, bool)


def _extension(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip(".").strip())


def _timezone(value: Any) -> bool:
    return isinstance(value, str) and value.strip().upper() in {"EST", "CST", "MST", "PST"}


def _optional_path(value: Any) -> bool:
    return value is None or (isinstance(value, str) and bool(value.strip()))


def _patterns(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


SECTION_RULES: Dict[str, Dict[str, Check]] = {
    "catalog": {"batch_size": _positive_int, "busy_timeout_ms": _non_negative_int},
    "fingerprint": {"read_bytes": _positive_int},
    "sidecar": {"extension": _extension, "timezone": _timezone},
    "relocate": {"root": _optional_path},
    "scan": {"skip_hidden": _flag, "ignore": _patterns, "follow_symlinks": _flag},
}

TOP_LEVEL_KEYS = frozenset({"version", "working_dir", "catalog_db"})


@dataclass(slots=True)
class SettingsValidator:
    """Reports keys the catalog does not read and values it cannot use."""

    sections: Mapping[str, Mapping[str, Check]]
    top_level: frozenset

    def unknown_keys(self, payload: Mapping[str, Any]) -> List[str]:
        found: List[str] = []
        for key, value in payload.items():
            rules = self.sections.get(key)
            if rules is None:
                if key not in self.top_level:
                    found.append(key)
                continue
            if isinstance(value, Mapping):
                found.extend(f"{key}.{sub}" for sub in value if sub not in rules)
        return sorted(found)

    def invalid_values(self, payload: Mapping[str, Any]) -> List[Tuple[str, Any]]:
        return sorted(self._iter_invalid(payload), key=lambda item: item[0])

    def _iter_invalid(self, payload: Mapping[str, Any]) -> Iterator[Tuple[str, Any]]:
        for section, rules in self.sections.items():
            values: Optional[Any] = payload.get(section)
            if values is None:
                continue
            if not isinstance(values, Mapping):
                yield section, values
                continue
            for key, check in rules.items():
                if key in values and not check(values[key]):
                    yield f"{section}.{key}", values[key]


SETTINGS_VALIDATOR = SettingsValidator(SECTION_RULES, TOP_LEVEL_KEYS)

__all__ = ["SECTION_RULES", "SETTINGS_VALIDATOR", "SettingsValidator"]
