"""Shared test fixtures."""

from __future__ import annotations

import pytest

from vtgeom.geometry import LineString, Point, Polygon


# Worked examples from the MVT 2.1 specification, section 4.3.5

POINT_WORDS = [9, 50, 34]
MULTIPOINT_WORDS = [17, 10, 14, 3, 9]
LINESTRING_WORDS = [9, 4, 4, 18, 0, 16, 16, 0]
MULTILINESTRING_WORDS = [9, 4, 4, 18, 0, 16, 16, 0, 9, 17, 17, 10, 4, 8]
POLYGON_WORDS = [9, 6, 12, 18, 10, 12, 24, 44, 15]
MULTIPOLYGON_WORDS = [
    9, 0, 0, 26, 20, 0, 0, 20, 19, 0, 15,
    9, 22, 2, 26, 18, 0, 0, 18, 17, 0, 15,
    9, 4, 13, 26, 0, 8, 8, 0, 0, 7, 15,
]


@pytest.fixture
def multilinestring():
    return [
        LineString([(2, 2), (2, 10), (10, 10)]),
        LineString([(1, 1), (3, 5)]),
    ]


@pytest.fixture
def multipolygon():
    return [
        Polygon([(0, 0), (10, 0), (10, 10), (0, 10)]),
        Polygon(
            [(11, 11), (20, 11), (20, 20), (11, 20)],
            [[(13, 13), (13, 17), (17, 17), (17, 13)]],
        ),
    ]


@pytest.fixture
def square():
    """Positive-area (exterior) square in tile coordinates."""
    return (Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10))
