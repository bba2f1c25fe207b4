import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from core import paths as core_paths


class CorePathsTests(unittest.TestCase):
    def test_env_override_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            home = Path(tmp) / "catalog-home"
            with mock.patch.dict(os.environ, {"MODDCATALOG_HOME": str(home)}):
                resolved = core_paths.resolve_working_dir()
            self.assertEqual(resolved, home.resolve())
            self.assertTrue((resolved / "data").is_dir())

    def test_layout_helpers(self) -> None:
        base = Path("/srv/catalog")
        self.assertEqual(core_paths.get_catalog_db_path(base), base / "data" / "library.db")
        self.assertEqual(core_paths.get_logs_dir(base), base / "logs")
        self.assertEqual(core_paths.get_exports_dir(base), base / "exports")
        self.assertEqual(core_paths.get_default_settings_paths(base)[0], base / "settings.json")

    def test_ensure_structure_creates_every_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp) / "wd"
            core_paths.ensure_working_dir_structure(base)
            for name in ("data", "logs", "exports"):
                self.assertTrue((base / name).is_dir())


if __name__ == "__main__":
    unittest.main()
