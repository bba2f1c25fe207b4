#!/usr/bin/env python3
"""Catalog camcorder recordings and file them into a year/month archive."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from catalog.exporter import EXPORT_FORMATS, export_catalog
from catalog.run import CatalogRunner, CatalogSettings
from catalog.store import CatalogBusyError, CatalogError, CatalogStore
from core.logging_utils import configure_json_logging
from core.paths import ensure_working_dir_structure, get_catalog_db_path, resolve_working_dir
from core.settings import load_settings
from robust import iter_sidecar_paths, merge_settings

LOGGER = logging.getLogger("moddcatalog.cli")

EXIT_OK = 0
EXIT_CATALOG = 1
EXIT_USAGE = 2


def _expand_user_path(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value))).resolve()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pair .modd sidecars with their videos and record them in the catalog."
    )
    parser.add_argument(
        "--update",
        metavar="DIR",
        help="Scan DIR for sidecars and update the catalog.",
    )
    parser.add_argument(
        "--relocate",
        metavar="ROOT",
        nargs="?",
        const="",
        help="Move the scanned videos and sidecars under ROOT/<year>/<Month>/ (defaults to relocate.root).",
    )
    parser.add_argument(
        "--catalog-db",
        dest="catalog_db",
        help="Optional path to the catalog database (defaults to working dir).",
    )
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=int,
        help="Records per catalog transaction.",
    )
    parser.add_argument(
        "--export",
        choices=EXPORT_FORMATS,
        help="Export both catalog tables after the run.",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show progress bars while parsing and fingerprinting.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = _parse_args(sys.argv[1:] if argv is None else argv)
    except SystemExit as exc:
        return EXIT_OK if exc.code in (0, None) else EXIT_USAGE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if not (args.update or args.relocate is not None or args.export):
        LOGGER.error("Nothing to do: pass --update, --relocate or --export.")
        return EXIT_USAGE
    if args.relocate is not None and not args.update:
        LOGGER.error("--relocate needs --update to know which recordings to move.")
        return EXIT_USAGE
    if args.batch_size is not None and args.batch_size < 1:
        LOGGER.error("--batch-size must be positive.")
        return EXIT_USAGE

    working_dir = resolve_working_dir()
    ensure_working_dir_structure(working_dir)
    configure_json_logging(working_dir=working_dir, level=logging.DEBUG if args.verbose else logging.INFO)
    settings_data = load_settings(working_dir)

    catalog_cfg = settings_data.get("catalog") or {}
    if args.batch_size is not None:
        catalog_cfg = dict(catalog_cfg, batch_size=args.batch_size)
        settings_data["catalog"] = catalog_cfg
    try:
        settings = CatalogSettings.from_mapping(settings_data)
    except ValueError as exc:
        LOGGER.error("Invalid settings: %s", exc)
        return EXIT_USAGE

    relocate_root: Optional[Path] = None
    if args.relocate is not None:
        configured = args.relocate or (settings_data.get("relocate") or {}).get("root")
        if not configured:
            LOGGER.error("No archive root: pass --relocate ROOT or set relocate.root.")
            return EXIT_USAGE
        relocate_root = _expand_user_path(str(configured))

    scan_dir: Optional[Path] = None
    if args.update:
        scan_dir = _expand_user_path(args.update)
        if not scan_dir.exists():
            LOGGER.error("Scan path does not exist: %s", scan_dir)
            return EXIT_USAGE

    catalog_db_path = (
        _expand_user_path(args.catalog_db)
        if args.catalog_db
        else Path(settings_data.get("catalog_db") or get_catalog_db_path(working_dir))
    )
    LOGGER.info("Working directory: %s | catalog: %s", working_dir, catalog_db_path)

    try:
        with CatalogStore(
            catalog_db_path,
            busy_timeout_ms=int(catalog_cfg.get("busy_timeout_ms", 5000)),
        ) as store:
            runner = CatalogRunner(store, settings=settings, show_progress=args.progress)
            if scan_dir is not None:
                scan_cfg = merge_settings(settings_data.get("scan"))
                LOGGER.debug("Scan settings: %s", scan_cfg.as_log_line())
                paths = list(iter_sidecar_paths(scan_dir, settings.sidecar_ext, scan_cfg))
                LOGGER.info("Found %d sidecar files under %s", len(paths), scan_dir)
                runner.run(paths)
            if relocate_root is not None:
                relocated = runner.relocate(relocate_root)
                if relocated.failed:
                    LOGGER.warning("%d recordings could not be relocated", relocated.failed)
            if args.export:
                written = export_catalog(store, format=args.export, working_dir=working_dir)
                for path in written:
                    LOGGER.info("Exported %s", path)
    except CatalogBusyError as exc:
        LOGGER.error("Catalog is busy: %s", exc)
        return EXIT_CATALOG
    except CatalogError as exc:
        LOGGER.error("Catalog error: %s", exc)
        return EXIT_CATALOG
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
