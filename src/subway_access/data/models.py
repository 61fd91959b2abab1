"""Record types threaded through the build stages.

Features keep their raw GeoJSON properties in an open mapping so that
pass-through fields survive untouched; the fields a stage derives are
modelled explicitly. Stages never mutate a feature, they return a copy
built with :meth:`PointFeature.with_properties` or
:meth:`PolygonFeature.with_properties`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True)
class PointFeature:
    coordinates: tuple[float, float]
    properties: Mapping[str, Any] = field(default_factory=dict)
    id: Any = None

    @property
    def lon(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    @property
    def point(self) -> Point:
        return Point(self.coordinates)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def with_properties(self, **updates: Any) -> "PointFeature":
        return replace(self, properties={**self.properties, **updates})

    def to_geojson(self) -> dict[str, Any]:
        feature: dict[str, Any] = {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": list(self.coordinates)},
            "properties": dict(self.properties),
        }
        if self.id is not None:
            feature["id"] = self.id
        return feature


@dataclass(frozen=True)
class PolygonFeature:
    geometry: Mapping[str, Any]
    properties: Mapping[str, Any] = field(default_factory=dict)
    id: Any = None

    @property
    def shape(self) -> BaseGeometry:
        return shape(self.geometry)

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def with_properties(self, **updates: Any) -> "PolygonFeature":
        return replace(self, properties={**self.properties, **updates})

    def with_geometry(self, geometry: Mapping[str, Any]) -> "PolygonFeature":
        return replace(self, geometry=geometry)

    def to_geojson(self) -> dict[str, Any]:
        feature: dict[str, Any] = {
            "type": "Feature",
            "geometry": dict(self.geometry),
            "properties": dict(self.properties),
        }
        if self.id is not None:
            feature["id"] = self.id
        return feature


class AccessibilityClass(str, Enum):
    FULL = "full"
    SOUTHBOUND = "southbound"
    NORTHBOUND = "northbound"
    NO = "no"

    @classmethod
    def from_flags(cls, southbound: bool, northbound: bool) -> "AccessibilityClass":
        if southbound and northbound:
            return cls.FULL
        if southbound:
            return cls.SOUTHBOUND
        if northbound:
            return cls.NORTHBOUND
        return cls.NO

    @property
    def score(self) -> int:
        return ADA_SCORES[self]

    @property
    def is_accessible(self) -> bool:
        return self is not AccessibilityClass.NO


ADA_SCORES = {
    AccessibilityClass.FULL: 10,
    AccessibilityClass.SOUTHBOUND: 5,
    AccessibilityClass.NORTHBOUND: 5,
    AccessibilityClass.NO: 0,
}


@dataclass(frozen=True)
class ProjectAssociation:
    id: Any
    name: Optional[str]
    status: str
    type: Optional[str] = None
    details: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AggregateStats:
    total_outages: int = 0
    scheduled_outages: int = 0
    unscheduled_outages: int = 0
    entrapments: int = 0
    am_peak_availability: float = 0.0
    pm_peak_availability: float = 0.0
    _24_hour_availability: float = 0.0
    dataMissing: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NeighborhoodScore:
    neighborhood_id: Any
    num_nearest_stations: int
    num_accessible_stations: int
    accessible_station_score: float
    accessible_per_10k: float


def feature_collection(features) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": [f.to_geojson() for f in features]}
