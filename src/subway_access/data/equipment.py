"""Elevator and escalator availability rollups."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from ..core import logger, require_columns
from .models import AggregateStats


SUM_FIELDS = [
    "total_outages",
    "scheduled_outages",
    "unscheduled_outages",
    "entrapments",
    "am_peak_hours_available",
    "am_peak_total_hours",
    "pm_peak_hours_available",
    "pm_peak_total_hours",
    "_24_hour_hours_available",
    "_24_hour_total_hours",
]

RATIOS = {
    "am_peak_availability": ("am_peak_hours_available", "am_peak_total_hours"),
    "pm_peak_availability": ("pm_peak_hours_available", "pm_peak_total_hours"),
    "_24_hour_availability": ("_24_hour_hours_available", "_24_hour_total_hours"),
}

INFO_FIELDS = [
    "station",
    "stationcomplexid",
    "equipmentno",
    "equipmenttype",
    "ADA",
    "isactive",
    "shortdescription",
    "trainno",
    "linesservedbyelevator",
    "serving",
]


def to_month(value: Any) -> pd.Period:
    """Parse ``YYYY-MM`` or a full ISO timestamp into a monthly period."""
    return pd.Timestamp(value).to_period("M")


def month_window(anchor_month: Any, months: int) -> tuple[pd.Period, pd.Period]:
    """First and last month of a ``months``-long window ending at the anchor month."""
    if months < 1:
        raise ValueError(f"months must be at least 1 (got {months})")
    end = to_month(anchor_month)
    return end - (months - 1), end


def _ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return float(numerator) / float(denominator)


def aggregate_equipment(records: pd.DataFrame, anchor_month: Any, months: int) -> dict[str, AggregateStats]:
    """Per-equipment outage and availability totals over a trailing month window.

    Rows with a missing numeric field still contribute (the field counts as 0)
    but flag the unit's stats with ``dataMissing``. Every equipment code in
    ``records`` gets an entry, even when none of its rows fall in the window.
    """
    require_columns(records, {"equipment_code", "month"}, "Equipment availability")
    df = records.copy()
    for col in SUM_FIELDS:
        if col not in df.columns:
            df[col] = float("nan")
        df[col] = pd.to_numeric(df[col], errors="coerce")

    start, end = month_window(anchor_month, months)
    periods = pd.to_datetime(df["month"], errors="coerce", format="ISO8601").dt.to_period("M")
    in_window = df[(periods >= start) & (periods <= end)].copy()
    logger.info(
        "Equipment window %s..%s holds %d of %d availability rows",
        start,
        end,
        len(in_window),
        len(df),
    )

    in_window["_missing"] = in_window[SUM_FIELDS].isna().any(axis=1)
    totals = in_window.groupby("equipment_code", sort=False).agg(
        **{col: (col, "sum") for col in SUM_FIELDS},
        _missing=("_missing", "any"),
    )

    stats: dict[str, AggregateStats] = {}
    for code in df["equipment_code"].dropna().unique():
        if code not in totals.index:
            stats[code] = AggregateStats()
            continue
        row = totals.loc[code]
        stats[code] = AggregateStats(
            total_outages=int(row["total_outages"]),
            scheduled_outages=int(row["scheduled_outages"]),
            unscheduled_outages=int(row["unscheduled_outages"]),
            entrapments=int(row["entrapments"]),
            dataMissing=bool(row["_missing"]),
            **{name: _ratio(row[num], row[den]) for name, (num, den) in RATIOS.items()},
        )
    missing = sum(1 for s in stats.values() if s.dataMissing)
    if missing:
        logger.warning("%d of %d equipment units have incomplete availability data", missing, len(stats))
    return stats


def attach_equipment_stats(
    info_records: Iterable[Mapping[str, Any]],
    stats: Mapping[str, AggregateStats],
) -> list[dict[str, Any]]:
    """Trim equipment info to its display fields and add each unit's ``stats``."""
    out = []
    unmatched = 0
    for record in info_records:
        item = {key: record.get(key) for key in INFO_FIELDS}
        unit_stats = stats.get(record.get("equipmentno"))
        if unit_stats is None:
            unmatched += 1
            logger.warning("No equipment stats found for %s", record.get("equipmentno"))
        else:
            item["stats"] = unit_stats.as_dict()
        out.append(item)
    logger.info("Attached stats to %d of %d equipment units", len(out) - unmatched, len(out))
    return out
