from __future__ import annotations

import argparse
import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATASETS_DIR = "datasets"
DEFAULT_OUT_DIR = "gis-data"
DEFAULT_EQUIPMENT_ANCHOR_MONTH = "2024-09"
DEFAULT_EQUIPMENT_MONTHS = 6
DEFAULT_RIDERSHIP_MONTH_LABEL = "September, 2024"
DEFAULT_PROJECT_DISTANCE_M = 200.0
DEFAULT_NEIGHBORHOOD_SAMPLE_SIZE = 5
DEFAULT_NEIGHBORHOOD_FALLBACK_M = 1600.0
ENV_FILES = (".env.local", ".env")


@dataclass
class BuildOptions:
    datasets_dir: Path = Path(DEFAULT_DATASETS_DIR)
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    skip_datasets: list[str] = field(default_factory=list)
    equipment_anchor_month: str = DEFAULT_EQUIPMENT_ANCHOR_MONTH
    equipment_months: int = DEFAULT_EQUIPMENT_MONTHS
    ridership_month_label: str = DEFAULT_RIDERSHIP_MONTH_LABEL
    project_distance_m: float = DEFAULT_PROJECT_DISTANCE_M
    neighborhood_sample_size: int = DEFAULT_NEIGHBORHOOD_SAMPLE_SIZE
    neighborhood_fallback_m: float = DEFAULT_NEIGHBORHOOD_FALLBACK_M
    neighborhood_boundary_m: float | None = None
    verbose: bool = False

    def skips(self, dataset_id: str) -> bool:
        return dataset_id in self.skip_datasets


_COERCE = {
    "equipment_months": int,
    "neighborhood_sample_size": int,
    "project_distance_m": float,
    "neighborhood_fallback_m": float,
    "neighborhood_boundary_m": float,
}


def _load_config(path: str) -> dict[str, object]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(config_path.read_text())
    if suffix == ".json":
        return json.loads(config_path.read_text())
    raise ValueError(f"Unsupported config format: {config_path.suffix}")


def _flatten_config(config: dict[str, object]) -> dict[str, object]:
    # Allow optional grouping inside the config (e.g. {"paths": {...}}).
    flat: dict[str, object] = {}
    if config:
        flat.update(config)
        for key in ("paths", "options"):
            section = config.get(key)
            if isinstance(section, dict):
                flat.update(section)
    return {str(k).replace("-", "_"): v for k, v in flat.items()}


def _env_skip_list() -> list[str]:
    raw = os.getenv("SKIP_DATASETS", "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def build_options(args: argparse.Namespace, config: dict[str, object] | None = None) -> BuildOptions:
    """Merge CLI arguments over config values over defaults."""
    flat = _flatten_config(config or {})
    values: dict[str, object] = {}
    for name in BuildOptions.__dataclass_fields__:
        if name == "skip_datasets":
            continue
        current = getattr(args, name, None)
        if current is None and name in flat:
            current = flat[name]
        if current is None:
            continue
        if name in _COERCE:
            try:
                current = _COERCE[name](current)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be numeric (got {current!r})") from exc
        values[name] = current

    values["verbose"] = bool(values.get("verbose", False))
    for name in ("datasets_dir", "out_dir"):
        if name in values:
            values[name] = Path(str(values[name]))

    skips: list[str] = []
    config_skips = flat.get("skip_datasets")
    if isinstance(config_skips, str):
        config_skips = [config_skips]
    for item in [*(config_skips or []), *(getattr(args, "skip_datasets", None) or []), *_env_skip_list()]:
        if item not in skips:
            skips.append(str(item))
    values["skip_datasets"] = skips

    options = BuildOptions(**values)
    if options.equipment_months < 1:
        raise ValueError(f"equipment_months must be at least 1 (got {options.equipment_months})")
    if options.neighborhood_sample_size < 1:
        raise ValueError(f"neighborhood_sample_size must be at least 1 (got {options.neighborhood_sample_size})")
    return options


def parse_args(argv: list[str] | None = None) -> BuildOptions:
    ap = argparse.ArgumentParser(description="Build the subway accessibility map data")
    ap.add_argument("--config", help="Optional TOML/JSON config file with option defaults")
    ap.add_argument("--datasets-dir", dest="datasets_dir", help=f"Directory holding raw datasets (default: {DEFAULT_DATASETS_DIR})")
    ap.add_argument("--out-dir", dest="out_dir", help=f"Directory for written artifacts (default: {DEFAULT_OUT_DIR})")
    ap.add_argument("--skip-dataset", dest="skip_datasets", action="append", help="Dataset id to skip (repeat for multiple)")
    ap.add_argument("--equipment-anchor-month", dest="equipment_anchor_month", help=f"Last month of the equipment window (default: {DEFAULT_EQUIPMENT_ANCHOR_MONTH})")
    ap.add_argument("--equipment-months", dest="equipment_months", type=int, help=f"Equipment window length in months (default: {DEFAULT_EQUIPMENT_MONTHS})")
    ap.add_argument("--ridership-month-label", dest="ridership_month_label", help=f"Label for the ridership month (default: {DEFAULT_RIDERSHIP_MONTH_LABEL!r})")
    ap.add_argument("--neighborhood-boundary-m", dest="neighborhood_boundary_m", type=float, help="Also top up neighborhood samples with stations this close to the neighborhood edge")
    ap.add_argument("-v", "--verbose", action="store_true", default=None, help="Verbose logging")

    args = ap.parse_args(argv)
    for env_file in ENV_FILES:
        load_dotenv(Path.cwd() / env_file, override=False)

    config = _load_config(args.config) if args.config else {}
    try:
        return build_options(args, config)
    except ValueError as exc:
        ap.error(str(exc))
