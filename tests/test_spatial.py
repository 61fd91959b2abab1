"""Tests for distance and nearest-neighbour helpers."""

import math
import unittest

from helpers import M_PER_DEG_LAT, labelled, square

from subway_access.data.spatial import (
    find_nearest_n,
    find_nearest_n_with_boundary,
    haversine_m,
    points_in_polygon,
)

ORIGIN = (-73.99, 40.75)
ORIGIN_POINT = {"type": "Point", "coordinates": list(ORIGIN)}


def north_of_origin(metres, station_id):
    return labelled(ORIGIN[0], ORIGIN[1] + metres / M_PER_DEG_LAT, station_id)


class TestHaversine(unittest.TestCase):

    def test_one_degree_of_latitude(self):
        self.assertAlmostEqual(float(haversine_m(0.0, 0.0, 0.0, 1.0)), M_PER_DEG_LAT, delta=1.0)

    def test_zero_distance(self):
        self.assertEqual(float(haversine_m(*ORIGIN, *ORIGIN)), 0.0)


class TestFindNearestN(unittest.TestCase):

    def setUp(self):
        self.points = [
            north_of_origin(900, "far"),
            north_of_origin(100, "near"),
            north_of_origin(500, "mid"),
            north_of_origin(5000, "very-far"),
        ]

    def test_sorted_and_capped(self):
        result = find_nearest_n(2, self.points, ORIGIN_POINT, 1000)
        self.assertEqual([p.get("station_id") for p in result], ["near", "mid"])

    def test_returns_fewer_than_n_when_filtered(self):
        result = find_nearest_n(10, self.points, ORIGIN_POINT, 1000)
        self.assertEqual([p.get("station_id") for p in result], ["near", "mid", "far"])

    def test_results_within_distance(self):
        for p in find_nearest_n(10, self.points, ORIGIN_POINT, 600):
            self.assertLessEqual(float(haversine_m(*ORIGIN, p.lon, p.lat)), 600)

    def test_empty_when_nothing_in_range(self):
        self.assertEqual(find_nearest_n(3, self.points, ORIGIN_POINT, 50), [])

    def test_no_candidates(self):
        self.assertEqual(find_nearest_n(3, [], ORIGIN_POINT), [])

    def test_unbounded_by_default(self):
        self.assertEqual(len(find_nearest_n(10, self.points, ORIGIN_POINT)), 4)

    def test_ties_keep_input_order(self):
        first = north_of_origin(300, "first")
        second = north_of_origin(300, "second")
        self.assertEqual([p.get("station_id") for p in find_nearest_n(2, [first, second], ORIGIN_POINT)], ["first", "second"])
        self.assertEqual([p.get("station_id") for p in find_nearest_n(1, [second, first], ORIGIN_POINT)], ["second"])

    def test_uneven_vertices_pull_the_centroid(self):
        # 101 vertices along the south edge, two on the north edge.
        south = [[-74.00 + 0.0002 * i, 40.70] for i in range(101)]
        geom = {"type": "Polygon", "coordinates": [south + [[-73.98, 40.72], [-74.00, 40.72], [-74.00, 40.70]]]}
        below = labelled(-73.99, 40.70 - 1000 / M_PER_DEG_LAT, "below")
        self.assertEqual(find_nearest_n(1, [below], geom, 1600), [below])

    def test_polygon_uses_centroid(self):
        geom = square(-74.00, 40.70, -73.98, 40.72)
        inside = labelled(-73.99, 40.71, "centre")
        corner = labelled(-74.00, 40.70, "corner")
        result = find_nearest_n(1, [corner, inside], geom)
        self.assertEqual(result[0].get("station_id"), "centre")


class TestFindNearestNWithBoundary(unittest.TestCase):
    """Points near a large polygon's edge qualify even when far from its centroid."""

    def setUp(self):
        # Roughly 11 km tall, so the edges are about 5.5 km from the centroid.
        self.geom = square(-74.00, 40.70, -73.90, 40.80)
        self.edge_point = labelled(-73.95, 40.80 + 50 / M_PER_DEG_LAT, "edge")
        self.centre_point = labelled(-73.95, 40.75 + 200 / M_PER_DEG_LAT, "centre")
        self.far_point = labelled(-73.95, 40.90, "far")

    def test_boundary_cap_admits_edge_point(self):
        points = [self.far_point, self.edge_point, self.centre_point]
        plain = find_nearest_n(5, points, self.geom, 1000)
        self.assertEqual([p.get("station_id") for p in plain], ["centre"])
        aware = find_nearest_n_with_boundary(5, points, self.geom, 1000, 100)
        self.assertEqual([p.get("station_id") for p in aware], ["edge", "centre"])

    def test_sorted_by_smaller_distance(self):
        result = find_nearest_n_with_boundary(1, [self.centre_point, self.edge_point], self.geom, 1000, 1000)
        self.assertEqual(result[0].get("station_id"), "edge")

    def test_hole_boundary_counts(self):
        outer = square(-74.00, 40.70, -73.90, 40.80)["coordinates"][0]
        hole = [[-73.96, 40.74], [-73.96, 40.76], [-73.94, 40.76], [-73.94, 40.74], [-73.96, 40.74]]
        geom = {"type": "MultiPolygon", "coordinates": [[outer, hole]]}
        near_hole = labelled(-73.95, 40.76 + 20 / M_PER_DEG_LAT, "hole")
        result = find_nearest_n_with_boundary(1, [near_hole], geom, 0, 50)
        self.assertEqual(len(result), 1)

    def test_point_geometry_has_no_boundary(self):
        result = find_nearest_n_with_boundary(1, [self.far_point], ORIGIN_POINT, 10, math.inf)
        self.assertEqual(result, [])


class TestPointsInPolygon(unittest.TestCase):

    def test_inside_and_boundary_points(self):
        geom = square(-74.00, 40.70, -73.98, 40.72)
        points = [
            labelled(-73.99, 40.71, "inside"),
            labelled(-73.97, 40.71, "outside"),
            labelled(-74.00, 40.71, "edge"),
        ]
        self.assertEqual(points_in_polygon(points, geom), [0, 2])

    def test_empty(self):
        self.assertEqual(points_in_polygon([], square(0, 0, 1, 1)), [])


if __name__ == "__main__":
    unittest.main()
