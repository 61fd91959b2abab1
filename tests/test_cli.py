"""Tests for option merging across CLI, config file and environment."""

import argparse
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from subway_access.cli import (
    DEFAULT_EQUIPMENT_MONTHS,
    BuildOptions,
    build_options,
    parse_args,
)


def namespace(**values):
    return argparse.Namespace(**values)


@mock.patch.dict(os.environ, {"SKIP_DATASETS": ""})
class TestBuildOptions(unittest.TestCase):

    def test_defaults(self):
        options = build_options(namespace())
        self.assertEqual(options, BuildOptions())
        self.assertEqual(options.equipment_months, DEFAULT_EQUIPMENT_MONTHS)
        self.assertFalse(options.verbose)

    def test_cli_overrides_config(self):
        config = {"paths": {"out_dir": "from-config"}, "options": {"equipment-months": "3"}}
        options = build_options(namespace(out_dir="from-cli", equipment_months=None), config)
        self.assertEqual(options.out_dir, Path("from-cli"))
        self.assertEqual(options.equipment_months, 3)

    def test_non_numeric_rejected(self):
        with self.assertRaises(ValueError):
            build_options(namespace(), {"equipment_months": "six"})

    def test_window_must_be_positive(self):
        with self.assertRaises(ValueError):
            build_options(namespace(equipment_months=0))

    def test_skip_lists_combined(self):
        with mock.patch.dict(os.environ, {"SKIP_DATASETS": "nyc-neighborhoods, mta-ada-projects"}):
            options = build_options(
                namespace(skip_datasets=["mta-elevators-and-escalators"]),
                {"skip_datasets": "mta-ada-projects"},
            )
        self.assertEqual(
            options.skip_datasets,
            ["mta-ada-projects", "mta-elevators-and-escalators", "nyc-neighborhoods"],
        )
        self.assertTrue(options.skips("nyc-neighborhoods"))
        self.assertFalse(options.skips("subway-lines-geojson"))


@mock.patch.dict(os.environ, {"SKIP_DATASETS": ""})
class TestParseArgs(unittest.TestCase):

    def test_flags(self):
        options = parse_args(["--datasets-dir", "raw", "--skip-dataset", "nyc-neighborhoods", "-v"])
        self.assertEqual(options.datasets_dir, Path("raw"))
        self.assertEqual(options.skip_datasets, ["nyc-neighborhoods"])
        self.assertTrue(options.verbose)

    def test_toml_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = Path(tmp) / "build.toml"
            config.write_text('[options]\nequipment_anchor_month = "2024-06"\nneighborhood_fallback_m = 800\n')
            options = parse_args(["--config", str(config)])
        self.assertEqual(options.equipment_anchor_month, "2024-06")
        self.assertEqual(options.neighborhood_fallback_m, 800.0)

    def test_neighborhood_boundary_flag(self):
        self.assertIsNone(parse_args([]).neighborhood_boundary_m)
        options = parse_args(["--neighborhood-boundary-m", "250"])
        self.assertEqual(options.neighborhood_boundary_m, 250.0)

    def test_missing_config(self):
        with self.assertRaises(FileNotFoundError):
            parse_args(["--config", "/nonexistent/build.toml"])

    def test_invalid_value_exits(self):
        with self.assertRaises(SystemExit):
            parse_args(["--equipment-months", "0"])


if __name__ == "__main__":
    unittest.main()
