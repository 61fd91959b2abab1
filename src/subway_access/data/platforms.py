"""Borough platform availability."""

from __future__ import annotations

from typing import Mapping, Sequence

import pandas as pd

from ..core import logger, require_columns
from .geometry import centroid
from .models import PointFeature, PolygonFeature

MISSING_AVAILABILITY = -1
PLATFORM_COLUMNS = {"month", "borough", "minutes_platforms_available", "minutes_platforms_in_service"}


def _months(records: pd.DataFrame) -> pd.Series:
    return pd.to_datetime(records["month"], errors="coerce", format="ISO8601").dt.to_period("M")


def latest_month(records: pd.DataFrame) -> pd.Period:
    require_columns(records, {"month"}, "Platform availability")
    months = _months(records).dropna()
    if months.empty:
        raise ValueError("Platform availability has no parseable months")
    return months.max()


def six_month_availability(records: pd.DataFrame, months: int = 6) -> dict[str, float]:
    """Share of platform minutes in service per borough over the trailing window.

    The window ends at (and includes) the latest month in ``records``.
    Boroughs without rows in the window are left out.
    """
    require_columns(records, PLATFORM_COLUMNS, "Platform availability")
    if records.empty:
        return {}
    df = records.copy()
    df["_period"] = _months(df)
    end = latest_month(df)
    start = end - (months - 1)
    window = df[(df["_period"] >= start) & (df["_period"] <= end)].copy()
    for col in ("minutes_platforms_available", "minutes_platforms_in_service"):
        window[col] = pd.to_numeric(window[col], errors="coerce").fillna(0)
    logger.info("Platform availability window %s..%s: %d rows", start, end, len(window))

    totals = window.groupby("borough", sort=False).agg(
        available=("minutes_platforms_available", "sum"),
        in_service=("minutes_platforms_in_service", "sum"),
    )
    return {
        str(borough): float(row.in_service / row.available) if row.available else 0.0
        for borough, row in totals.iterrows()
    }


def attach_platform_availability(
    boroughs: Sequence[PolygonFeature],
    availability: Mapping[str, float],
    name_field: str = "boroname",
) -> list[PolygonFeature]:
    """Give each borough an index-based id and its platform availability (or -1)."""
    out = []
    for idx, borough in enumerate(boroughs):
        name = borough.get(name_field)
        value = availability.get(name)
        if value is None:
            logger.warning("No platform availability data found for borough: %s", name)
            value = MISSING_AVAILABILITY
        out.append(PolygonFeature(borough.geometry, {**borough.properties, "platform_availability": value}, idx))
    return out


def borough_centers(boroughs: Sequence[PolygonFeature], name_field: str = "boroname") -> list[PointFeature]:
    centers = []
    for borough in boroughs:
        c = centroid(borough.geometry)
        centers.append(
            PointFeature(
                (c.x, c.y),
                {
                    "name": borough.get(name_field),
                    "platform_availability": borough.get("platform_availability", MISSING_AVAILABILITY),
                },
            )
        )
    return centers
