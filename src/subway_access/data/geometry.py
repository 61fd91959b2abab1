"""Geometry helpers for GeoJSON mappings and Shapely objects."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import numpy as np
from shapely.geometry import Point

from ..core import logger
from .models import PointFeature, PolygonFeature

POLYGON_TYPES = ("Polygon", "MultiPolygon")


class GeometryError(ValueError):
    """Raised when a geometry has a type or shape an operation does not support."""


def _copy_ring(ring: Sequence[Sequence[float]]) -> list[list[float]]:
    return [list(coord) for coord in ring]


def ring_is_clockwise(ring: Sequence[Sequence[float]]) -> bool:
    """Shoelace test on a closed ring in lon/lat order.

    Degenerate rings with zero signed area are reported as not clockwise.
    """
    total = 0.0
    for (x1, y1, *_), (x2, y2, *_) in zip(ring[:-1], ring[1:]):
        total += (x2 - x1) * (y2 + y1)
    return total > 0


def _normalize_polygon_rings(rings: Sequence[Sequence[Sequence[float]]]) -> list[list[list[float]]]:
    out = []
    for idx, ring in enumerate(rings):
        copied = _copy_ring(ring)
        if idx == 0:
            if ring_is_clockwise(copied):
                copied.reverse()
        elif not ring_is_clockwise(copied):
            copied.reverse()
        out.append(copied)
    return out


def normalize_winding(geometry: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy whose outer rings are not clockwise and whose holes are clockwise."""
    gtype = geometry.get("type")
    if gtype == "Polygon":
        return {"type": "Polygon", "coordinates": _normalize_polygon_rings(geometry["coordinates"])}
    if gtype == "MultiPolygon":
        return {
            "type": "MultiPolygon",
            "coordinates": [_normalize_polygon_rings(polygon) for polygon in geometry["coordinates"]],
        }
    raise GeometryError(f"Unsupported geometry type for winding normalization: {gtype!r}")


def to_multipolygon(geometry: Mapping[str, Any]) -> dict[str, Any]:
    gtype = geometry.get("type")
    if gtype == "Polygon":
        return {"type": "MultiPolygon", "coordinates": [[_copy_ring(r) for r in geometry["coordinates"]]]}
    if gtype == "MultiPolygon":
        return {
            "type": "MultiPolygon",
            "coordinates": [[_copy_ring(r) for r in polygon] for polygon in geometry["coordinates"]],
        }
    raise GeometryError(f"Cannot convert {gtype!r} to MultiPolygon")


def polygon_rings(geometry: Mapping[str, Any]) -> list[list[list[float]]]:
    """Every linear ring of a Polygon or MultiPolygon, outer and inner alike."""
    gtype = geometry.get("type")
    if gtype == "Polygon":
        return [_copy_ring(r) for r in geometry["coordinates"]]
    if gtype == "MultiPolygon":
        return [_copy_ring(r) for polygon in geometry["coordinates"] for r in polygon]
    return []


def centroid(geometry: Mapping[str, Any]) -> Point:
    """Mean of the distinct ring vertices; each ring's closing coordinate is left out.

    This is a vertex centroid, not an area centroid, so densely digitised
    stretches of a boundary pull it towards them. A Point is its own centroid.
    """
    gtype = geometry.get("type")
    if gtype == "Point":
        lon, lat = geometry["coordinates"][:2]
        return Point(float(lon), float(lat))
    vertices = []
    for ring in polygon_rings(geometry):
        if len(ring) > 1 and ring[0] == ring[-1]:
            ring = ring[:-1]
        vertices.extend(coord[:2] for coord in ring)
    if not vertices:
        raise GeometryError(f"Cannot compute a centroid for {gtype!r}")
    lon, lat = np.asarray(vertices, dtype=float).mean(axis=0)
    return Point(float(lon), float(lat))


def point_features_from_geojson(payload: Mapping[str, Any], label: str = "dataset") -> list[PointFeature]:
    features = _features(payload, label)
    out: list[PointFeature] = []
    for idx, feat in enumerate(features):
        geom = feat.get("geometry") or {}
        if geom.get("type") != "Point":
            raise GeometryError(f"{label}: feature {idx} is not a Point (got {geom.get('type')!r})")
        lon, lat = geom["coordinates"][:2]
        out.append(PointFeature((float(lon), float(lat)), dict(feat.get("properties") or {}), feat.get("id")))
    return out


def polygon_features_from_geojson(payload: Mapping[str, Any], label: str = "dataset") -> list[PolygonFeature]:
    features = _features(payload, label)
    out: list[PolygonFeature] = []
    for idx, feat in enumerate(features):
        geom = feat.get("geometry") or {}
        if geom.get("type") not in POLYGON_TYPES:
            raise GeometryError(f"{label}: feature {idx} is not a polygon (got {geom.get('type')!r})")
        out.append(PolygonFeature(dict(geom), dict(feat.get("properties") or {}), feat.get("id")))
    return out


def _features(payload: Mapping[str, Any], label: str) -> Iterable[Mapping[str, Any]]:
    if not isinstance(payload, Mapping) or payload.get("type") != "FeatureCollection":
        raise GeometryError(f"{label}: expected a GeoJSON FeatureCollection")
    features = payload.get("features")
    if not isinstance(features, list):
        raise GeometryError(f"{label}: FeatureCollection has no feature list")
    logger.debug("%s: %d features", label, len(features))
    return features
