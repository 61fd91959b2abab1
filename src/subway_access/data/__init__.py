"""Data processing stages for the subway accessibility build."""

from .datasets import (
    DATASETS,
    Dataset,
    DatasetError,
    DatasetNotFoundError,
    DatasetValidationError,
    copy_dataset_to_output,
    dataset_path,
    load_dataset,
    write_artifact,
)
from .equipment import aggregate_equipment, attach_equipment_stats
from .geometry import GeometryError, normalize_winding, ring_is_clockwise, to_multipolygon
from .lines import colorize_lines, line_feature_from_points, route_color
from .models import (
    AccessibilityClass,
    AggregateStats,
    NeighborhoodScore,
    PointFeature,
    PolygonFeature,
    ProjectAssociation,
    feature_collection,
)
from .neighborhoods import merge_census, rescale_min_max, score_neighborhoods
from .platforms import attach_platform_availability, borough_centers, six_month_availability
from .projects import assign_project_ids, associate_projects, merge_project_supplement, tag_project_status
from .spatial import find_nearest_n, find_nearest_n_with_boundary, haversine_m, points_in_polygon
from .stations import deduplicate_stations, label_accessibility, merge_ridership

__all__ = [
    "DATASETS",
    "Dataset",
    "DatasetError",
    "DatasetNotFoundError",
    "DatasetValidationError",
    "copy_dataset_to_output",
    "dataset_path",
    "load_dataset",
    "write_artifact",
    "aggregate_equipment",
    "attach_equipment_stats",
    "GeometryError",
    "normalize_winding",
    "ring_is_clockwise",
    "to_multipolygon",
    "colorize_lines",
    "line_feature_from_points",
    "route_color",
    "AccessibilityClass",
    "AggregateStats",
    "NeighborhoodScore",
    "PointFeature",
    "PolygonFeature",
    "ProjectAssociation",
    "feature_collection",
    "merge_census",
    "rescale_min_max",
    "score_neighborhoods",
    "attach_platform_availability",
    "borough_centers",
    "six_month_availability",
    "assign_project_ids",
    "associate_projects",
    "merge_project_supplement",
    "tag_project_status",
    "find_nearest_n",
    "find_nearest_n_with_boundary",
    "haversine_m",
    "points_in_polygon",
    "deduplicate_stations",
    "label_accessibility",
    "merge_ridership",
]
