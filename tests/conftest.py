"""Shared fixtures: small hand-built tiles."""

import pytest

from tests import pbf

# MoveTo(25,17) LineTo x3 ClosePath
SQUARE = [9, 50, 34, 26, 0, 4, 4, 0, 0, 3, 15]
# MoveTo(1,1) ClosePath
DOT_RING = [9, 2, 2, 15]
LINE = [9, 4, 4, 18, 10, 10, 20, 20]
POINT = [9, 50, 34]


@pytest.fixture
def water_layer():
    return pbf.layer(
        "water",
        features=[
            pbf.feature(SQUARE, type_=3, tags=[0, 0], id_=1),
            pbf.feature(DOT_RING, type_=3, tags=[0, 1], id_=2),
        ],
        keys=["class"],
        values=[("string", "lake"), ("string", "pond")],
    )


@pytest.fixture
def roads_layer():
    return pbf.layer(
        "roads",
        features=[
            pbf.feature(LINE, type_=2, tags=[0, 0, 1, 1], id_=10),
            pbf.feature(POINT, type_=1, unpacked=True),
        ],
        keys=["class", "oneway"],
        values=[("string", "primary"), ("bool", True)],
        version=1,
        extent=512,
    )


@pytest.fixture
def tile_bytes(water_layer, roads_layer):
    return pbf.tile(water_layer, roads_layer)
