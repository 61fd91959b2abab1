"""Dataset registry, loading and artifact output.

Raw files are expected under the datasets directory as ``<id><ext>``; fetching
them is handled elsewhere. Every loader validates the fields the build relies
on and raises a :class:`DatasetError` subclass rather than returning partial
data.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from ..core import logger, read_any_csv, read_json, require_columns, write_json
from .equipment import SUM_FIELDS
from .geometry import GeometryError, point_features_from_geojson, polygon_features_from_geojson


class DatasetError(RuntimeError):
    """A dataset could not be loaded; everything derived from it is skipped."""


class DatasetNotFoundError(DatasetError):
    pass


class DatasetValidationError(DatasetError):
    pass


class DatasetSource(str, Enum):
    NY_OPEN_DATA = "NyOpenDataAPI"
    NYC_OPEN_DATA = "NycOpenDataAPI"
    GTFS = "GTFS"
    OTHER = "Other"


class DatasetType(str, Enum):
    JSON = "JSON"
    GEOJSON = "GeoJSON"
    CSV = "CSV"

    @property
    def extension(self) -> str:
        return ".csv" if self is DatasetType.CSV else ".json"


@dataclass(frozen=True)
class Dataset:
    id: str
    url: str
    source: DatasetSource
    type: DatasetType
    required: frozenset[str] = field(default_factory=frozenset)
    skip_download: bool = False

    @property
    def filename(self) -> str:
        return f"{self.id}{self.type.extension}"


DATASETS: dict[str, Dataset] = {
    d.id: d
    for d in (
        Dataset(
            "mta-elevators-and-escalators",
            "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fnyct_ene_equipments.json",
            DatasetSource.OTHER,
            DatasetType.JSON,
            frozenset({"equipmentno", "equipmenttype", "stationcomplexid"}),
        ),
        Dataset(
            "subway-entrances-exits",
            "https://data.ny.gov/resource/i9wp-a4ja.geojson",
            DatasetSource.NY_OPEN_DATA,
            DatasetType.GEOJSON,
        ),
        Dataset(
            "mta-subway-stations-geojson",
            "https://data.ny.gov/resource/39hk-dx4f.geojson",
            DatasetSource.NY_OPEN_DATA,
            DatasetType.GEOJSON,
            frozenset({"station_id", "complex_id", "stop_name", "ada_northbound", "ada_southbound"}),
        ),
        Dataset(
            "station-platform-availability",
            "https://data.ny.gov/resource/thh2-syn7.json",
            DatasetSource.NY_OPEN_DATA,
            DatasetType.JSON,
            frozenset({"month", "borough", "minutes_platforms_available", "minutes_platforms_in_service"}),
        ),
        Dataset(
            "elevator-and-escalator-availability",
            "https://data.ny.gov/resource/rc78-7x78.csv",
            DatasetSource.NY_OPEN_DATA,
            DatasetType.CSV,
            frozenset({"month", "equipment_code"}),
        ),
        Dataset(
            "mta-last-full-month-ridership",
            "https://data.ny.gov/resource/wujg-7c2s.csv",
            DatasetSource.NY_OPEN_DATA,
            DatasetType.CSV,
            frozenset({"station_complex_id", "ridership"}),
        ),
        Dataset(
            "nyc-neighborhoods",
            "https://services5.arcgis.com/GfwWNkhOj9bNBqoJ/arcgis/rest/services/"
            "NYC_Neighborhood_Tabulation_Areas_2020/FeatureServer/0/query?where=1=1&outFields=*&outSR=4326&f=pgeojson",
            DatasetSource.OTHER,
            DatasetType.GEOJSON,
            frozenset({"NTA2020"}),
        ),
        Dataset(
            "borough-boundaries-geojson",
            "https://data.cityofnewyork.us/api/geospatial/qefp-jxjk?method=export&format=GeoJSON",
            DatasetSource.NYC_OPEN_DATA,
            DatasetType.GEOJSON,
            frozenset({"boroname"}),
        ),
        Dataset(
            "subway-lines-geojson",
            "https://data.cityofnewyork.us/api/geospatial/3qz8-muuu?method=export&format=GeoJSON",
            DatasetSource.NYC_OPEN_DATA,
            DatasetType.GEOJSON,
        ),
        Dataset(
            "2020-census-data",
            "https://www.nyc.gov/site/planning/data-maps/open-data.page#census",
            DatasetSource.OTHER,
            DatasetType.CSV,
            frozenset({"GeoType", "GeoID", "Pop1"}),
            skip_download=True,
        ),
        Dataset(
            "mta-ada-projects",
            "https://www.google.com/maps/d/viewer?mid=1KyAOi9J92POQ7c_v-471XlbLvrOmIDQ",
            DatasetSource.OTHER,
            DatasetType.GEOJSON,
            frozenset({"name"}),
            skip_download=True,
        ),
        Dataset(
            "mta-ada-projects-supplement",
            "https://new.mta.info/project/station-accessibility-upgrades",
            DatasetSource.OTHER,
            DatasetType.JSON,
            frozenset({"name"}),
            skip_download=True,
        ),
        Dataset("sir-line-points", "N/A", DatasetSource.OTHER, DatasetType.JSON, skip_download=True),
    )
}

CENSUS_TEXT_COLUMNS = {"Year", "GeoType", "Borough", "GeoID", "BCT2020", "Name", "CDType", "NTAType"}


def get_dataset(dataset_id: str) -> Dataset:
    try:
        return DATASETS[dataset_id]
    except KeyError:
        raise DatasetNotFoundError(f"Dataset {dataset_id} does not exist") from None


def dataset_path(dataset_id: str, datasets_dir: str | Path) -> Path:
    return Path(datasets_dir) / get_dataset(dataset_id).filename


def _require_keys(records: list[dict[str, Any]], keys: frozenset[str], label: str) -> None:
    for idx, record in enumerate(records):
        missing = keys - set(record)
        if missing:
            raise DatasetValidationError(f"{label}: record {idx} missing fields {sorted(missing)}")


def _records(payload: Any, dataset: Dataset) -> list[dict[str, Any]]:
    if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
        raise DatasetValidationError(f"{dataset.id}: expected a list of records")
    _require_keys(payload, dataset.required, dataset.id)
    return payload


def _frame(payload: Any, dataset: Dataset) -> pd.DataFrame:
    df = payload if isinstance(payload, pd.DataFrame) else pd.DataFrame(_records(payload, dataset))
    require_columns(df, set(dataset.required), dataset.id)
    return df


def _numeric(df: pd.DataFrame, columns) -> pd.DataFrame:
    df = df.copy()
    for col in columns:
        df[col] = pd.to_numeric(df[col].astype(str).str.replace(",", "", regex=False).str.strip(), errors="coerce")
    return df


def _points(payload: Any, dataset: Dataset):
    features = point_features_from_geojson(payload, dataset.id)
    _require_keys([dict(f.properties) for f in features], dataset.required, dataset.id)
    return features


def _polygons(payload: Any, dataset: Dataset):
    features = polygon_features_from_geojson(payload, dataset.id)
    _require_keys([dict(f.properties) for f in features], dataset.required, dataset.id)
    return features


def _platforms(payload: Any, dataset: Dataset) -> pd.DataFrame:
    df = _frame(payload, dataset)
    numeric = [c for c in ("minutes_platforms_available", "minutes_platforms_in_service", "availability", "platform_count") if c in df.columns]
    months = pd.to_datetime(df["month"], errors="coerce", format="ISO8601")
    if len(df) and months.isna().all():
        raise DatasetValidationError(f"{dataset.id}: no row has a parseable month")
    return _numeric(df, numeric)


def _equipment_availability(payload: Any, dataset: Dataset) -> pd.DataFrame:
    df = _frame(payload, dataset)
    return _numeric(df, [c for c in SUM_FIELDS if c in df.columns])


def _ridership(payload: Any, dataset: Dataset) -> pd.DataFrame:
    return _numeric(_frame(payload, dataset), ["ridership"])


def _census(payload: Any, dataset: Dataset) -> pd.DataFrame:
    df = _frame(payload, dataset)
    df = df.replace({"": None})
    return _numeric(df, [c for c in df.columns if c not in CENSUS_TEXT_COLUMNS])


def _equipment_info(payload: Any, dataset: Dataset) -> list[dict[str, Any]]:
    records = _records(payload, dataset)
    for idx, record in enumerate(records):
        if record.get("equipmenttype") not in ("EL", "ES"):
            raise DatasetValidationError(f"{dataset.id}: record {idx} has unknown equipmenttype {record.get('equipmenttype')!r}")
    return records


def _feature_collection(payload: Any, dataset: Dataset) -> dict[str, Any]:
    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        raise DatasetValidationError(f"{dataset.id}: expected a GeoJSON FeatureCollection")
    return payload


def _sir_points(payload: Any, dataset: Dataset) -> dict[str, Any]:
    if not isinstance(payload, dict) or not isinstance(payload.get("points"), list):
        raise DatasetValidationError(f"{dataset.id}: expected an object with a points list")
    return payload


_LOADERS: dict[str, Callable[[Any, Dataset], Any]] = {
    "mta-elevators-and-escalators": _equipment_info,
    "subway-entrances-exits": _feature_collection,
    "mta-subway-stations-geojson": _points,
    "station-platform-availability": _platforms,
    "elevator-and-escalator-availability": _equipment_availability,
    "mta-last-full-month-ridership": _ridership,
    "nyc-neighborhoods": _polygons,
    "borough-boundaries-geojson": _polygons,
    "subway-lines-geojson": _feature_collection,
    "2020-census-data": _census,
    "mta-ada-projects": _points,
    "mta-ada-projects-supplement": _records,
    "sir-line-points": _sir_points,
}


def load_dataset(dataset_id: str, datasets_dir: str | Path) -> Any:
    """Load and validate one dataset by id."""
    dataset = get_dataset(dataset_id)
    path = dataset_path(dataset_id, datasets_dir)
    if not path.exists():
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found at {path}")
    try:
        raw = read_any_csv(path) if dataset.type is DatasetType.CSV else read_json(path)
        data = _LOADERS[dataset_id](raw, dataset)
    except DatasetError:
        raise
    except (GeometryError, RuntimeError, ValueError, KeyError, TypeError) as exc:
        raise DatasetValidationError(f"{dataset_id}: {exc}") from exc
    size = len(data["features"]) if isinstance(data, dict) and "features" in data else len(data)
    logger.info("Loaded dataset %s (%d records)", dataset_id, size)
    return data


def write_artifact(name: str, payload: Any, out_dir: str | Path) -> Path:
    """Write ``payload`` as ``<out_dir>/<name>.json``."""
    path = write_json(Path(out_dir) / f"{name}.json", payload)
    logger.info("Wrote %s", path)
    return path


def copy_dataset_to_output(dataset_id: str, datasets_dir: str | Path, out_dir: str | Path) -> Path:
    src = dataset_path(dataset_id, datasets_dir)
    if not src.exists():
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found at {src}")
    target = Path(out_dir) / src.name
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, target)
    logger.info("Copied %s to %s", src, target)
    return target
