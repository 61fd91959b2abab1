"""Build pipeline for the subway accessibility map data."""
