"""Tests for neighborhood station sampling and scoring."""

import unittest

import pandas as pd

from helpers import M_PER_DEG_LAT, labelled, neighborhood, square

from subway_access.data.geometry import ring_is_clockwise
from subway_access.data.neighborhoods import (
    merge_census,
    rescale_min_max,
    sample_stations,
    score_neighborhood,
    score_neighborhoods,
)

# Roughly 1.7 km wide and 2.2 km tall, centred on (-73.99, 40.71).
HOOD = square(-74.00, 40.70, -73.98, 40.72)


def inside(count, accessible, prefix="in"):
    return [
        labelled(-73.99, 40.702 + 0.002 * i, f"{prefix}{i}", "full" if i < accessible else "no")
        for i in range(count)
    ]


class TestSampleStations(unittest.TestCase):

    def test_inside_stations_only_when_enough(self):
        stations = inside(5, 0) + [labelled(-73.979, 40.71, "out")]
        sample = sample_stations(HOOD, stations, n=5)
        self.assertEqual(sorted(s.get("station_id") for s in sample), ["in0", "in1", "in2", "in3", "in4"])

    def test_extra_inside_stations_trimmed_to_nearest(self):
        stations = inside(8, 0)
        sample = sample_stations(HOOD, stations, n=5)
        self.assertEqual(len(sample), 5)
        self.assertNotIn("in0", [s.get("station_id") for s in sample])

    def test_topped_up_with_nearby_outside_stations(self):
        stations = inside(2, 0) + [
            labelled(-73.979, 40.71, "near1"),
            labelled(-73.978, 40.71, "near2"),
            labelled(-73.960, 40.71, "far"),
        ]
        sample = sample_stations(HOOD, stations, n=5, fallback_distance_m=1600)
        self.assertEqual([s.get("station_id") for s in sample], ["in0", "in1", "near1", "near2"])

    def test_boundary_distance_admits_stations_near_a_large_edge(self):
        # About 11 km tall, so the north edge is 5.5 km from the centroid.
        large = square(-74.00, 40.70, -73.90, 40.80)
        edge = labelled(-73.95, 40.80 + 50 / M_PER_DEG_LAT, "edge")
        self.assertEqual(sample_stations(large, [edge], n=5), [])
        self.assertEqual(sample_stations(large, [edge], n=5, boundary_distance_m=200), [edge])

    def test_no_stations(self):
        self.assertEqual(sample_stations(HOOD, [], n=5), [])


class TestScoreNeighborhood(unittest.TestCase):

    def test_five_inside_three_accessible(self):
        score = score_neighborhood(neighborhood("BK01", HOOD, 20000), inside(5, 3))
        self.assertEqual(score.num_nearest_stations, 5)
        self.assertEqual(score.num_accessible_stations, 3)
        self.assertAlmostEqual(score.accessible_station_score, 0.6)
        self.assertAlmostEqual(score.accessible_per_10k, 1.5)

    def test_two_inside_three_nearby(self):
        stations = inside(2, 1) + [
            labelled(-73.979, 40.71, "near1", "southbound"),
            labelled(-73.978, 40.71, "near2"),
            labelled(-73.977, 40.71, "near3"),
        ]
        score = score_neighborhood(neighborhood("BK02", HOOD, 10000), stations)
        self.assertEqual(score.num_nearest_stations, 5)
        self.assertEqual(score.num_accessible_stations, 2)
        self.assertAlmostEqual(score.accessible_station_score, 0.4)

    def test_empty_sample_scores_zero(self):
        score = score_neighborhood(neighborhood("BK03", HOOD, 10000), [labelled(-73.5, 40.71, "far", "full")])
        self.assertEqual(score.num_nearest_stations, 0)
        self.assertEqual(score.accessible_station_score, 0.0)

    def test_missing_population_gives_zero_per_capita(self):
        score = score_neighborhood(neighborhood("BK04", HOOD), inside(5, 5))
        self.assertEqual(score.accessible_per_10k, 0.0)


class TestRescaleMinMax(unittest.TestCase):

    def test_rescales_to_unit_range(self):
        self.assertEqual(rescale_min_max({"a": 2.0, "b": 4.0, "c": 3.0}), {"a": 0.0, "b": 1.0, "c": 0.5})

    def test_equal_values_map_to_zero(self):
        self.assertEqual(rescale_min_max({"a": 1.5, "b": 1.5}), {"a": 0.0, "b": 0.0})

    def test_empty(self):
        self.assertEqual(rescale_min_max({}), {})


class TestScoreNeighborhoods(unittest.TestCase):

    def test_scores_and_by_pop_rescaling(self):
        west = square(-74.00, 40.70, -73.98, 40.72)
        east = square(-73.90, 40.70, -73.88, 40.72)
        far = square(-73.70, 40.50, -73.68, 40.52)
        stations = inside(5, 1) + [
            labelled(-73.89, 40.705, "e0", "full"),
            labelled(-73.89, 40.710, "e1", "full"),
        ]
        hoods = [
            neighborhood("W", west, 10000),
            neighborhood("E", east, 40000),
            neighborhood("F", far),
        ]
        scored = score_neighborhoods(hoods, stations)

        by_id = {h.get("NTA2020"): h for h in scored}
        self.assertEqual(by_id["W"].get("num_nearest_stations"), 5)
        self.assertAlmostEqual(by_id["W"].get("accessible_station_score"), 0.2)
        self.assertEqual(by_id["E"].get("num_nearest_stations"), 2)
        self.assertAlmostEqual(by_id["E"].get("accessible_station_score"), 1.0)
        self.assertEqual(by_id["F"].get("num_nearest_stations"), 0)
        # W: 1 per 10k, E: 0.5 per 10k, F: 0.
        self.assertAlmostEqual(by_id["W"].get("accessible_station_score_by_pop"), 1.0)
        self.assertAlmostEqual(by_id["E"].get("accessible_station_score_by_pop"), 0.5)
        self.assertAlmostEqual(by_id["F"].get("accessible_station_score_by_pop"), 0.0)

    def test_geometry_becomes_normalized_multipolygon(self):
        clockwise = {"type": "Polygon", "coordinates": [list(reversed(HOOD["coordinates"][0]))]}
        [scored] = score_neighborhoods([neighborhood("W", clockwise, 1000)], inside(1, 1))
        self.assertEqual(scored.geometry["type"], "MultiPolygon")
        self.assertFalse(ring_is_clockwise(scored.geometry["coordinates"][0][0]))
        self.assertEqual(scored.get("num_accessible_stations"), 1)

    def test_all_equal_per_capita_scores_zero(self):
        hoods = [neighborhood("A", HOOD, 1000), neighborhood("B", square(-73.5, 40.5, -73.49, 40.51), 1000)]
        scored = score_neighborhoods(hoods, [])
        self.assertEqual([h.get("accessible_station_score_by_pop") for h in scored], [0.0, 0.0])


class TestMergeCensus(unittest.TestCase):

    def test_matches_nta_rows_only(self):
        census = pd.DataFrame(
            [
                {"GeoType": "NTA2020", "GeoID": "BK01", "Pop1": 1234.0},
                {"GeoType": "Boro2020", "GeoID": "BK02", "Pop1": 99.0},
            ]
        )
        hoods = [neighborhood("BK01", HOOD), neighborhood("BK02", HOOD)]
        merged = merge_census(hoods, census)
        self.assertEqual(merged[0].get("Pop1"), 1234.0)
        self.assertIsNone(merged[1].get("Pop1"))
        self.assertEqual(merged[1].properties, hoods[1].properties)


if __name__ == "__main__":
    unittest.main()
