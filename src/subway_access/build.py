"""High-level orchestration of the data build."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .cli import BuildOptions, parse_args
from .core import ProgressReporter, logger, setup_logging
from .data import (
    DatasetError,
    aggregate_equipment,
    assign_project_ids,
    associate_projects,
    attach_equipment_stats,
    attach_platform_availability,
    borough_centers,
    colorize_lines,
    copy_dataset_to_output,
    deduplicate_stations,
    feature_collection,
    label_accessibility,
    line_feature_from_points,
    load_dataset,
    merge_census,
    merge_project_supplement,
    merge_ridership,
    score_neighborhoods,
    six_month_availability,
    tag_project_status,
    write_artifact,
)
from .data.lines import SIR_ROUTE_ID


@dataclass
class BuildReport:
    artifacts: list[Path] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def fail(self, stage: str, exc: Exception) -> None:
        logger.error("%s: %s", stage, exc)
        self.failed[stage] = str(exc)


def _copy_entrances(options: BuildOptions, report: BuildReport) -> None:
    report.artifacts.append(copy_dataset_to_output("subway-entrances-exits", options.datasets_dir, options.out_dir))


def _build_boroughs(options: BuildOptions, report: BuildReport) -> None:
    boroughs = load_dataset("borough-boundaries-geojson", options.datasets_dir)
    platforms = load_dataset("station-platform-availability", options.datasets_dir)
    availability = six_month_availability(platforms)
    logger.info("Platform availability by borough: %s", availability)
    boroughs = attach_platform_availability(boroughs, availability)
    report.artifacts.append(
        write_artifact("borough-centers-geojson", feature_collection(borough_centers(boroughs)), options.out_dir)
    )
    report.artifacts.append(write_artifact("borough-boundaries-geojson", feature_collection(boroughs), options.out_dir))


def _load_projects(options: BuildOptions, report: BuildReport):
    projects = load_dataset("mta-ada-projects", options.datasets_dir)
    projects = assign_project_ids(tag_project_status(projects))
    try:
        supplement = load_dataset("mta-ada-projects-supplement", options.datasets_dir)
    except DatasetError as exc:
        report.fail("mta-ada-projects-supplement", exc)
    else:
        projects = merge_project_supplement(projects, supplement)
    report.artifacts.append(write_artifact("mta-ada-projects", feature_collection(projects), options.out_dir))
    return projects


def _build_stations(options: BuildOptions, report: BuildReport) -> None:
    stations = load_dataset("mta-subway-stations-geojson", options.datasets_dir)
    stations = label_accessibility(deduplicate_stations(stations))

    if options.skips("mta-ada-projects"):
        report.skipped.append("mta-ada-projects")
    else:
        try:
            projects = _load_projects(options, report)
        except DatasetError as exc:
            report.fail("mta-ada-projects", exc)
        else:
            stations = associate_projects(stations, projects, options.project_distance_m)

    try:
        ridership = load_dataset("mta-last-full-month-ridership", options.datasets_dir)
    except DatasetError as exc:
        report.fail("mta-last-full-month-ridership", exc)
    else:
        stations = merge_ridership(stations, ridership, options.ridership_month_label)

    report.artifacts.append(write_artifact("mta-subway-stations-geojson", feature_collection(stations), options.out_dir))

    if options.skips("nyc-neighborhoods"):
        report.skipped.append("nyc-neighborhoods")
        return
    try:
        census = load_dataset("2020-census-data", options.datasets_dir)
        neighborhoods = load_dataset("nyc-neighborhoods", options.datasets_dir)
    except DatasetError as exc:
        report.fail("nyc-neighborhoods", exc)
        return
    neighborhoods = score_neighborhoods(
        merge_census(neighborhoods, census),
        stations,
        n=options.neighborhood_sample_size,
        fallback_distance_m=options.neighborhood_fallback_m,
        boundary_distance_m=options.neighborhood_boundary_m,
    )
    report.artifacts.append(write_artifact("nyc-neighborhoods", feature_collection(neighborhoods), options.out_dir))


def _build_lines(options: BuildOptions, report: BuildReport) -> None:
    lines = load_dataset("subway-lines-geojson", options.datasets_dir)
    features = colorize_lines(lines["features"])
    sir_points = load_dataset("sir-line-points", options.datasets_dir)
    features.append(line_feature_from_points(sir_points, SIR_ROUTE_ID))
    report.artifacts.append(write_artifact("subway-lines-geojson", {**lines, "features": features}, options.out_dir))


def _build_equipment(options: BuildOptions, report: BuildReport) -> None:
    availability = load_dataset("elevator-and-escalator-availability", options.datasets_dir)
    stats = aggregate_equipment(availability, options.equipment_anchor_month, options.equipment_months)
    info = load_dataset("mta-elevators-and-escalators", options.datasets_dir)
    report.artifacts.append(
        write_artifact("mta-elevators-and-escalators", attach_equipment_stats(info, stats), options.out_dir)
    )


STAGES: list[tuple[str, str, Callable[[BuildOptions, BuildReport], None]]] = [
    ("entrances", "subway-entrances-exits", _copy_entrances),
    ("boroughs", "borough-boundaries-geojson", _build_boroughs),
    ("stations", "mta-subway-stations-geojson", _build_stations),
    ("lines", "subway-lines-geojson", _build_lines),
    ("equipment", "mta-elevators-and-escalators", _build_equipment),
]


def build_app_data(options: BuildOptions) -> BuildReport:
    setup_logging(options.verbose)
    logger.info("Will skip datasets: %s", options.skip_datasets)
    options.out_dir.mkdir(parents=True, exist_ok=True)
    report = BuildReport()
    with ProgressReporter(len(STAGES), label="Data build") as progress:
        for stage, dataset_id, run in STAGES:
            if options.skips(dataset_id):
                logger.info("Skipping %s stage (%s in skip list)", stage, dataset_id)
                report.skipped.append(dataset_id)
            else:
                try:
                    run(options, report)
                except DatasetError as exc:
                    report.fail(stage, exc)
            progress.step(stage)
    logger.info("Wrote %d artifacts", len(report.artifacts))
    if report.failed:
        logger.warning("Stages with errors: %s", sorted(report.failed))
    return report


def main(argv: list[str] | None = None) -> int:
    options = parse_args(argv)
    try:
        report = build_app_data(options)
    except Exception:
        logger.exception("Data build aborted")
        return 1
    return 2 if report.failed else 0
