"""Tests for route colours and the Staten Island Railway line."""

import unittest

from subway_access.data.lines import (
    GRAY,
    SIR_BLUE,
    colorize_lines,
    line_feature_from_points,
    route_color,
)


class TestRouteColors(unittest.TestCase):

    def test_known_routes(self):
        self.assertEqual(route_color("1"), "#EE352E")
        self.assertEqual(route_color("Q"), "#FCCC0A")
        self.assertEqual(route_color(" G "), "#00933C")

    def test_unknown_route_is_gray(self):
        self.assertEqual(route_color("X"), GRAY)

    def test_colorize_copies_features(self):
        lines = [
            {"type": "Feature", "properties": {"rt_symbol": "7"}, "geometry": None},
            {"type": "Feature", "properties": {}, "geometry": None},
        ]
        out = colorize_lines(lines)
        self.assertEqual(out[0]["properties"]["color"], "#B933AD")
        self.assertNotIn("color", out[1]["properties"])
        self.assertNotIn("color", lines[0]["properties"])


class TestLineFromPoints(unittest.TestCase):

    def test_builds_linestring_in_lon_lat_order(self):
        payload = {"id": "SIR-trip", "points": [{"latitude": 40.6, "longitude": -74.1}, {"latitude": 40.5, "longitude": -74.2}]}
        feature = line_feature_from_points(payload)
        self.assertEqual(feature["geometry"], {"type": "LineString", "coordinates": [[-74.1, 40.6], [-74.2, 40.5]]})
        self.assertEqual(feature["properties"], {"trip_id": "SIR-trip", "rt_symbol": "SIR", "color": SIR_BLUE})

    def test_needs_two_points(self):
        with self.assertRaises(ValueError):
            line_feature_from_points({"points": [{"latitude": 40.6, "longitude": -74.1}]})


if __name__ == "__main__":
    unittest.main()
