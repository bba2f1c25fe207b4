from __future__ import annotations

import copy
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from .paths import get_default_settings_paths, get_logs_dir
from .settings_schema import SETTINGS_VALIDATOR

__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_VERSION",
    "load_settings",
    "merge_defaults",
    "save_settings",
    "update_settings",
]

LOGGER = logging.getLogger("moddcatalog.settings")

SETTINGS_VERSION = 1

REPORT_FILENAME = "settings_unknown.json"


DEFAULT_SETTINGS: Dict[str, Any] = {
    "version": SETTINGS_VERSION,
    "catalog": {
        "batch_size": 200,
        "busy_timeout_ms": 5000,
    },
    "fingerprint": {
        # prefix length hashed per video
        "read_bytes": 5120000,
    },
    "sidecar": {
        "extension": ".modd",
        "timezone": "CST",
    },
    "relocate": {
        "root": None,
    },
    "scan": {
        "skip_hidden": True,
        "ignore": [],
        "follow_symlinks": False,
    },
}


def _overlay(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _overlay(current, value)
        elif isinstance(current, dict):
            # a scalar where a section belongs is dropped
            continue
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge_defaults(data: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return a fresh copy of :data:`DEFAULT_SETTINGS` overlaid with *data*."""

    return _overlay(copy.deepcopy(DEFAULT_SETTINGS), data or {})


def _apply_migrations(settings: Dict[str, Any]) -> Dict[str, Any]:
    try:
        version = int(settings.get("version") or 0)
    except (TypeError, ValueError):
        version = 0
    if version < SETTINGS_VERSION:
        settings["version"] = SETTINGS_VERSION
    return settings


def _restore_defaults(settings: Dict[str, Any], invalid: List[Tuple[str, Any]]) -> None:
    for dotted, value in invalid:
        section, _, key = dotted.partition(".")
        if not key:
            settings[section] = copy.deepcopy(DEFAULT_SETTINGS[section])
            fallback: Any = settings[section]
        else:
            fallback = copy.deepcopy(DEFAULT_SETTINGS[section][key])
            settings[section][key] = fallback
        LOGGER.warning("Invalid setting %s=%r; using default %r", dotted, value, fallback)


def _validate_settings(settings: Dict[str, Any], working_dir: Path) -> None:
    unknown = SETTINGS_VALIDATOR.unknown_keys(settings)
    invalid = SETTINGS_VALIDATOR.invalid_values(settings)
    _restore_defaults(settings, invalid)
    if not unknown and not invalid:
        return
    report = {
        "ts": time.time(),
        "unknown": unknown,
        "invalid": [key for key, _ in invalid],
    }
    logs_dir = get_logs_dir(working_dir)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        (logs_dir / REPORT_FILENAME).write_text(
            json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8"
        )
    except OSError as exc:
        LOGGER.debug("Unable to write settings report: %s", exc)


def _read_first(working_dir: Path) -> Dict[str, Any]:
    for candidate in get_default_settings_paths(working_dir):
        try:
            loaded = json.loads(candidate.read_text(encoding="utf-8"))
        except FileNotFoundError:
            continue
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Skipping unreadable settings file %s: %s", candidate, exc)
            continue
        if isinstance(loaded, dict):
            return loaded
    return {}


def load_settings(working_dir: Path) -> Dict[str, Any]:
    merged = _apply_migrations(merge_defaults(_read_first(working_dir)))
    merged.setdefault("working_dir", str(working_dir))
    _validate_settings(merged, working_dir)
    return merged


def save_settings(settings: Mapping[str, Any], working_dir: Path) -> None:
    merged = _apply_migrations(merge_defaults(settings))
    merged.setdefault("working_dir", str(working_dir))
    working_dir.mkdir(parents=True, exist_ok=True)
    (working_dir / "settings.json").write_text(
        json.dumps(merged, ensure_ascii=False, indent=2), encoding="utf-8"
    )


def update_settings(working_dir: Path, **values: Any) -> None:
    current = load_settings(working_dir)
    current.update(values)
    save_settings(current, working_dir)
