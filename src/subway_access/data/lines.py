"""Subway line colouring and the hand-digitised Staten Island Railway route."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..core import logger

RED = "#EE352E"
GREEN = "#6CBE45"
BLUE = "#0039A6"
ORANGE = "#FF6319"
PURPLE = "#B933AD"
LIGHT_GREEN = "#00933C"
YELLOW = "#FCCC0A"
GRAY = "#A7A9AC"
BROWN = "#996633"
SIR_BLUE = "#007AC7"

ROUTE_COLORS: dict[str, str] = {
    **dict.fromkeys(("1", "2", "3"), RED),
    **dict.fromkeys(("4", "5", "6"), GREEN),
    "7": PURPLE,
    **dict.fromkeys(("A", "C", "E"), BLUE),
    **dict.fromkeys(("B", "D", "F", "M"), ORANGE),
    "G": LIGHT_GREEN,
    **dict.fromkeys(("J", "Z"), BROWN),
    "L": GRAY,
    **dict.fromkeys(("N", "Q", "R", "W"), YELLOW),
    "SIR": SIR_BLUE,
}

SIR_ROUTE_ID = "SIR"


def route_color(route_id: str) -> str:
    return ROUTE_COLORS.get(str(route_id).strip(), GRAY)


def colorize_lines(lines: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Copy line features, adding ``color`` wherever ``rt_symbol`` is set."""
    out = []
    for feature in lines:
        props = dict(feature.get("properties") or {})
        route_id = props.get("rt_symbol")
        if route_id:
            props["color"] = route_color(route_id)
        out.append({**feature, "properties": props})
    return out


def line_feature_from_points(payload: Mapping[str, Any], route_id: str = SIR_ROUTE_ID) -> dict[str, Any]:
    """Build a LineString feature from ``{"id": ..., "points": [{"latitude", "longitude"}, ...]}``."""
    points = payload.get("points")
    if not isinstance(points, list) or len(points) < 2:
        raise ValueError(f"Line points for {route_id} need at least two points")
    coordinates = [[float(p["longitude"]), float(p["latitude"])] for p in points]
    logger.debug("Built %s line from %d points", route_id, len(coordinates))
    return {
        "type": "Feature",
        "properties": {
            "trip_id": payload.get("id"),
            "rt_symbol": route_id,
            "color": route_color(route_id),
        },
        "geometry": {"type": "LineString", "coordinates": coordinates},
    }
