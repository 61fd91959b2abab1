"""Neighborhood census merge and station accessibility scoring.

Scoring runs in two passes. The first pass samples up to ``n`` stations per
neighborhood: the stations inside its polygon, topped up with the nearest
outside stations within a fallback radius when fewer than ``n`` are inside.
It records the accessible share of that sample and an accessible-stations
per 10,000 residents metric. The second pass rescales the per-capita metric
across every neighborhood to ``[0, 1]``.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

import pandas as pd

from ..core import ProgressReporter, logger, require_columns
from .geometry import normalize_winding, to_multipolygon
from .models import NeighborhoodScore, PointFeature, PolygonFeature
from .spatial import find_nearest_n, find_nearest_n_with_boundary, points_in_polygon
from .stations import is_accessible

NEIGHBORHOOD_KEY = "NTA2020"
CENSUS_GEO_TYPE = "NTA2020"
POPULATION_FIELD = "Pop1"
DEFAULT_SAMPLE_SIZE = 5
DEFAULT_FALLBACK_DISTANCE_M = 1600.0


def merge_census(neighborhoods: Sequence[PolygonFeature], census: pd.DataFrame) -> list[PolygonFeature]:
    """Copy the matching NTA census row into each neighborhood's properties."""
    require_columns(census, {"GeoType", "GeoID"}, "Census")
    rows = census[census["GeoType"] == CENSUS_GEO_TYPE].drop_duplicates("GeoID")
    lookup = {
        str(rec["GeoID"]): rec
        for rec in rows.astype(object).where(rows.notna(), None).to_dict(orient="records")
    }
    out = []
    for hood in neighborhoods:
        key = hood.get(NEIGHBORHOOD_KEY)
        record = lookup.get(str(key)) if key is not None else None
        if record is None:
            logger.info("No census data found for neighborhood: %s", key)
            out.append(hood)
            continue
        out.append(hood.with_properties(**record))
    return out


def _population(value: Any) -> float:
    try:
        population = float(value)
    except (TypeError, ValueError):
        return 0.0
    return population if math.isfinite(population) else 0.0


def sample_stations(
    geometry: Mapping[str, Any],
    stations: Sequence[PointFeature],
    n: int = DEFAULT_SAMPLE_SIZE,
    fallback_distance_m: float = DEFAULT_FALLBACK_DISTANCE_M,
    boundary_distance_m: float | None = None,
) -> list[PointFeature]:
    """Stations inside ``geometry``, topped up with nearby outside stations up to ``n``.

    With ``boundary_distance_m`` set, outside stations within that distance of
    the polygon edge also qualify for the top-up.
    """
    inside_idx = points_in_polygon(stations, geometry)
    inside = [stations[i] for i in inside_idx]
    if len(inside) >= n:
        return find_nearest_n(n, inside, geometry)
    inside_set = set(inside_idx)
    outside = [s for i, s in enumerate(stations) if i not in inside_set]
    if boundary_distance_m is None:
        return inside + find_nearest_n(n - len(inside), outside, geometry, fallback_distance_m)
    return inside + find_nearest_n_with_boundary(
        n - len(inside), outside, geometry, fallback_distance_m, boundary_distance_m
    )


def score_neighborhood(
    hood: PolygonFeature,
    stations: Sequence[PointFeature],
    n: int = DEFAULT_SAMPLE_SIZE,
    fallback_distance_m: float = DEFAULT_FALLBACK_DISTANCE_M,
    boundary_distance_m: float | None = None,
) -> NeighborhoodScore:
    sample = sample_stations(hood.geometry, stations, n, fallback_distance_m, boundary_distance_m)
    accessible = sum(1 for s in sample if is_accessible(s))
    population = _population(hood.get(POPULATION_FIELD))
    return NeighborhoodScore(
        neighborhood_id=hood.get(NEIGHBORHOOD_KEY),
        num_nearest_stations=len(sample),
        num_accessible_stations=accessible,
        accessible_station_score=accessible / len(sample) if sample else 0.0,
        accessible_per_10k=accessible / (population / 10000) if population > 0 else 0.0,
    )


def rescale_min_max(values: Mapping[Any, float]) -> dict[Any, float]:
    """Min-max rescale to ``[0, 1]``; a zero-width range maps everything to 0."""
    if not values:
        return {}
    lo = min(values.values())
    hi = max(values.values())
    span = hi - lo
    if span == 0:
        logger.warning("All neighborhoods share the same per-capita accessibility (%s); rescaling to 0", lo)
        return {key: 0.0 for key in values}
    return {key: (value - lo) / span for key, value in values.items()}


def score_neighborhoods(
    neighborhoods: Sequence[PolygonFeature],
    stations: Sequence[PointFeature],
    n: int = DEFAULT_SAMPLE_SIZE,
    fallback_distance_m: float = DEFAULT_FALLBACK_DISTANCE_M,
    boundary_distance_m: float | None = None,
) -> list[PolygonFeature]:
    """Score every neighborhood against the labelled, deduplicated stations."""
    normalized = [hood.with_geometry(normalize_winding(to_multipolygon(hood.geometry))) for hood in neighborhoods]

    scores: list[NeighborhoodScore] = []
    with ProgressReporter(len(normalized), label="Neighborhood scoring") as progress:
        for hood in normalized:
            score = score_neighborhood(hood, stations, n, fallback_distance_m, boundary_distance_m)
            scores.append(score)
            progress.step(str(score.neighborhood_id))

    by_pop = rescale_min_max({idx: s.accessible_per_10k for idx, s in enumerate(scores)})
    out = []
    for idx, (hood, score) in enumerate(zip(normalized, scores)):
        out.append(
            hood.with_properties(
                num_nearest_stations=score.num_nearest_stations,
                num_accessible_stations=score.num_accessible_stations,
                accessible_station_score=score.accessible_station_score,
                accessible_station_score_by_pop=by_pop[idx],
            )
        )
    logger.info("Scored %d neighborhoods against %d stations", len(out), len(stations))
    return out
