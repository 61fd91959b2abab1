"""Station deduplication, accessibility labelling and ridership merge."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import pandas as pd

from ..core import logger, require_columns
from .models import AccessibilityClass, PointFeature

ADA_FLAG_TRUE = "1"


def _merge_properties(values: dict[str, list[Any]], duplicate: Mapping[str, Any]) -> None:
    for key, value in duplicate.items():
        seen = values.setdefault(key, [])
        if value not in seen:
            seen.append(value)


def _joined(values: dict[str, list[Any]]) -> dict[str, Any]:
    return {key: vals[0] if len(vals) == 1 else ",".join(str(v) for v in vals) for key, vals in values.items()}


def deduplicate_stations(stations: Sequence[PointFeature]) -> list[PointFeature]:
    """Collapse stations that share exactly the same coordinates.

    The first record at a location is kept. A property whose value differs
    between the records becomes the comma-joined list of its distinct values,
    in encounter order.
    """
    merged: dict[tuple[float, float], dict[str, list[Any]]] = {}
    first: dict[tuple[float, float], PointFeature] = {}
    collapsed = 0
    for station in stations:
        key = station.coordinates
        if key not in merged:
            merged[key] = {}
            first[key] = station
        else:
            collapsed += 1
            logger.debug("Duplicate station location found, merging: %s", first[key].get("stop_name"))
        _merge_properties(merged[key], station.properties)

    out = [PointFeature(first[key].coordinates, _joined(values), first[key].id) for key, values in merged.items()]
    logger.info("Deduplicated %d stations to %d (%d merged)", len(stations), len(out), collapsed)
    return out


def classify_accessibility(station: PointFeature) -> AccessibilityClass:
    return AccessibilityClass.from_flags(
        station.get("ada_southbound") == ADA_FLAG_TRUE,
        station.get("ada_northbound") == ADA_FLAG_TRUE,
    )


def label_accessibility(stations: Sequence[PointFeature]) -> list[PointFeature]:
    labelled = []
    for station in stations:
        ada = classify_accessibility(station)
        labelled.append(station.with_properties(ada=ada.value, ada_score=ada.score))
    counts = pd.Series([s.get("ada") for s in labelled], dtype=object).value_counts().to_dict()
    logger.info("Accessibility classes: %s", counts)
    return labelled


def is_accessible(station: PointFeature) -> bool:
    try:
        return AccessibilityClass(station.get("ada")).is_accessible
    except ValueError:
        return False


def merge_ridership(
    stations: Sequence[PointFeature],
    ridership: pd.DataFrame,
    month_label: str,
) -> list[PointFeature]:
    """Attach last-full-month ridership by station complex id."""
    require_columns(ridership, {"station_complex_id", "ridership"}, "Ridership")
    lookup = (
        ridership.assign(ridership=pd.to_numeric(ridership["ridership"], errors="coerce"))
        .drop_duplicates("station_complex_id")
        .set_index("station_complex_id")["ridership"]
        .to_dict()
    )
    out = []
    matched = 0
    for station in stations:
        complex_id = station.get("complex_id")
        if not complex_id:
            out.append(station)
            continue
        if complex_id not in lookup:
            logger.warning("No ridership data found for station: %s", station.get("stop_name"))
            out.append(station)
            continue
        matched += 1
        out.append(
            station.with_properties(
                ridership_month=month_label,
                ridership_last_full_month=lookup[complex_id],
            )
        )
    logger.info("Ridership merged for %d of %d stations", matched, len(out))
    return out
