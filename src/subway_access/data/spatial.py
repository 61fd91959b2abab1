"""Spatial utilities used across the data pipeline."""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

import numpy as np
import shapely
from pyproj import CRS, Transformer
from shapely.geometry import LineString, MultiLineString, shape
from shapely.ops import transform
from shapely.strtree import STRtree

from .geometry import centroid, polygon_rings
from .models import PointFeature

EARTH_RADIUS_M = 6371008.8


def haversine_m(lon1, lat1, lon2, lat2):
    """Great-circle distance in metres; accepts scalars or numpy arrays."""
    lon1, lat1, lon2, lat2 = map(np.radians, (lon1, lat1, lon2, lat2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def _centroid_distances(points: Sequence[PointFeature], geometry: Mapping[str, Any]) -> np.ndarray:
    if not points:
        return np.empty(0)
    c = centroid(geometry)
    coords = np.asarray([p.coordinates for p in points], dtype=float)
    return haversine_m(c.x, c.y, coords[:, 0], coords[:, 1])


def find_nearest_n(
    n: int,
    points: Sequence[PointFeature],
    geometry: Mapping[str, Any],
    max_distance_m: float = math.inf,
) -> list[PointFeature]:
    """Up to ``n`` points closest to the centroid of ``geometry`` and within ``max_distance_m``.

    Ties keep their input order.
    """
    if n <= 0:
        return []
    distances = _centroid_distances(points, geometry)
    ranked = [(float(d), idx) for idx, d in enumerate(distances) if d <= max_distance_m]
    ranked.sort(key=lambda item: item[0])
    return [points[idx] for _, idx in ranked[:n]]


def _local_transformer(lon0: float, lat0: float) -> Transformer:
    """WGS84 to an azimuthal equidistant projection centred on (lon0, lat0), in metres."""
    crs = CRS.from_dict({"proj": "aeqd", "lat_0": lat0, "lon_0": lon0, "datum": "WGS84", "units": "m"})
    return Transformer.from_crs(4326, crs, always_xy=True)


def polygon_boundary(geometry: Mapping[str, Any]) -> MultiLineString:
    rings = polygon_rings(geometry)
    return MultiLineString([LineString(r) for r in rings if len(r) >= 2])


def boundary_distances_m(points: Sequence[PointFeature], geometry: Mapping[str, Any]) -> np.ndarray:
    """Distance in metres from each point to the nearest ring of ``geometry``.

    Points and rings are projected once around the geometry's centroid.
    Geometries without rings give infinite distances.
    """
    if not points:
        return np.empty(0)
    boundary = polygon_boundary(geometry)
    if boundary.is_empty:
        return np.full(len(points), math.inf)
    c = centroid(geometry)
    transformer = _local_transformer(c.x, c.y)
    projected = transform(transformer.transform, boundary)
    coords = np.asarray([p.coordinates for p in points], dtype=float)
    xs, ys = transformer.transform(coords[:, 0], coords[:, 1])
    return np.asarray(shapely.distance(shapely.points(xs, ys), projected), dtype=float)


def find_nearest_n_with_boundary(
    n: int,
    points: Sequence[PointFeature],
    geometry: Mapping[str, Any],
    max_distance_m: float = math.inf,
    max_boundary_distance_m: float = math.inf,
) -> list[PointFeature]:
    """Like :func:`find_nearest_n` but a point near the polygon edge also qualifies.

    A point passes when its centroid distance is within ``max_distance_m`` or
    its distance to any ring is within ``max_boundary_distance_m``; results are
    ranked by the smaller of the two distances.
    """
    if n <= 0:
        return []
    centroid_distances = _centroid_distances(points, geometry)
    boundary_distances = boundary_distances_m(points, geometry)
    ranked = []
    for idx, (d_centroid, d_boundary) in enumerate(zip(centroid_distances, boundary_distances)):
        if d_centroid <= max_distance_m or d_boundary <= max_boundary_distance_m:
            ranked.append((min(float(d_centroid), float(d_boundary)), idx))
    ranked.sort(key=lambda item: item[0])
    return [points[idx] for _, idx in ranked[:n]]


def points_in_polygon(points: Sequence[PointFeature], geometry: Mapping[str, Any]) -> list[int]:
    """Indexes of ``points`` covered by ``geometry``; points on the boundary count as inside."""
    if not points:
        return []
    polygon = shape(geometry)
    geoms = [p.point for p in points]
    tree = STRtree(geoms)
    candidates = tree.query(polygon)
    hits = [int(idx) for idx in np.asarray(candidates, dtype=int).tolist() if polygon.covers(geoms[int(idx)])]
    return sorted(hits)
