"""Accessibility project enrichment and station association."""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Mapping, Sequence

from ..core import logger
from .models import PointFeature, ProjectAssociation
from .spatial import find_nearest_n

ASSOCIATED_STATUSES = ("Completed", "Ongoing")
STATUS_BY_STYLE = {
    "icon-1769-0288D1": "Completed",
    "icon-1590-A52714": "Ongoing",
}
PROJECT_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://new.mta.info/project/station-accessibility-upgrades")
DEFAULT_PROJECT_DISTANCE_M = 200.0


def status_from_style(style_url: Any) -> str | None:
    if not isinstance(style_url, str):
        return None
    for marker, status in STATUS_BY_STYLE.items():
        if marker in style_url:
            return status
    return None


def tag_project_status(projects: Sequence[PointFeature]) -> list[PointFeature]:
    """Derive ``status`` from the map marker style; an explicit status wins."""
    out = []
    for project in projects:
        status = project.get("status") or status_from_style(project.get("styleUrl"))
        out.append(project.with_properties(status=status) if status else project)
    return out


def assign_project_ids(projects: Sequence[PointFeature]) -> list[PointFeature]:
    """Give every project without an id a stable UUID."""
    out = []
    for idx, project in enumerate(projects):
        if project.id is not None:
            out.append(project)
            continue
        seed = f"{idx}|{project.get('name')}|{project.lon:.6f},{project.lat:.6f}"
        out.append(PointFeature(project.coordinates, dict(project.properties), str(uuid.uuid5(PROJECT_ID_NAMESPACE, seed))))
    return out


def merge_project_supplement(
    projects: Sequence[PointFeature],
    supplement: Iterable[Mapping[str, Any]],
) -> list[PointFeature]:
    """Fill in project fields from supplemental records matched by name."""
    by_name: dict[str, Mapping[str, Any]] = {}
    for record in supplement:
        name = record.get("name")
        if name:
            by_name[str(name).strip().lower()] = record

    out = []
    matched = 0
    for project in projects:
        name = project.get("name")
        record = by_name.get(str(name).strip().lower()) if name else None
        if record is None:
            out.append(project)
            continue
        matched += 1
        updates = {
            key: value
            for key, value in record.items()
            if key != "name" and value not in (None, "") and project.get(key) in (None, "")
        }
        out.append(project.with_properties(**updates))
    logger.info("Supplemental data matched %d of %d projects", matched, len(out))
    return out


def associate_projects(
    stations: Sequence[PointFeature],
    projects: Sequence[PointFeature],
    max_distance_m: float = DEFAULT_PROJECT_DISTANCE_M,
) -> list[PointFeature]:
    """Attach completed and ongoing projects to their nearest station within ``max_distance_m``."""
    by_station: dict[int, list[dict[str, Any]]] = {}
    position = {id(station): idx for idx, station in enumerate(stations)}
    associated = 0
    for project in projects:
        status = project.get("status")
        if status not in ASSOCIATED_STATUSES:
            continue
        nearest = find_nearest_n(1, stations, {"type": "Point", "coordinates": list(project.coordinates)}, max_distance_m)
        if not nearest:
            logger.warning("No station found within %.0f meters of project: %s", max_distance_m, project.get("name"))
            continue
        association = ProjectAssociation(
            id=project.id,
            name=project.get("name"),
            status=status,
            type=project.get("type"),
            details=project.get("details"),
        )
        by_station.setdefault(position[id(nearest[0])], []).append(association.as_dict())
        associated += 1

    logger.info("Associated %d projects with %d stations", associated, len(by_station))
    out = []
    for idx, station in enumerate(stations):
        additions = by_station.get(idx)
        if additions:
            existing = list(station.get("ada_projects") or [])
            out.append(station.with_properties(ada_projects=existing + additions))
        else:
            out.append(station)
    return out
