"""Tests for the tile reader, using hand-built protobuf tiles."""

from __future__ import annotations

import logging

import pytest

from vtgeom import mvt_decoder
from vtgeom.errors import ErrorKind, GeometryError
from tests.conftest import MULTIPOLYGON_WORDS, POINT_WORDS, POLYGON_WORDS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _varint(n):
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def _field_varint(field, value):
    return _varint(field << 3) + _varint(value)


def _field_bytes(field, data):
    return _varint((field << 3) | 2) + _varint(len(data)) + data


def _packed(values):
    return b"".join(_varint(v) for v in values)


def _feature(geom_type, words, tags=(), feature_id=None):
    data = b""
    if feature_id is not None:
        data += _field_varint(1, feature_id)
    if tags:
        data += _field_bytes(2, _packed(tags))
    data += _field_varint(3, geom_type)
    data += _field_bytes(4, _packed(words))
    return data


def _layer(name, features, keys=(), values=(), extent=None, version=2):
    data = _field_varint(15, version) + _field_bytes(1, name.encode("utf-8"))
    for feature in features:
        data += _field_bytes(2, feature)
    for key in keys:
        data += _field_bytes(3, key.encode("utf-8"))
    for value in values:
        data += _field_bytes(4, value)
    if extent is not None:
        data += _field_varint(5, extent)
    return data


def _tile(*layers):
    return b"".join(_field_bytes(3, layer) for layer in layers)


def _string_value(s):
    return _field_bytes(1, s.encode("utf-8"))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class TestDecode:
    def test_layer_metadata_and_properties(self):
        tile = _tile(_layer(
            "parks",
            [_feature(3, POLYGON_WORDS, tags=(0, 0, 1, 1), feature_id=7)],
            keys=("class", "rank"),
            values=(_string_value("park"), _field_varint(6, 3)),
            extent=512,
        ))
        result = mvt_decoder.decode(tile)

        layer = result["parks"]
        assert layer["extent"] == 512
        assert layer["version"] == 2
        feature = layer["features"][0]
        assert feature["id"] == 7
        assert feature["type"] == 3
        assert feature["properties"] == {"class": "park", "rank": -2}
        assert feature["geometry"] == {
            "type": "Polygon",
            "coordinates": [[(3, 6), (8, 12), (20, 34), (3, 6)]],
        }

    def test_default_extent(self):
        result = mvt_decoder.decode(_tile(_layer("pois", [_feature(1, POINT_WORDS)])))
        assert result["pois"]["extent"] == mvt_decoder.DEFAULT_EXTENT
        assert result["pois"]["features"][0]["geometry"] == {"type": "Point", "coordinates": (25, 17)}

    def test_multipolygon_feature(self):
        result = mvt_decoder.decode(_tile(_layer("water", [_feature(3, MULTIPOLYGON_WORDS)])))
        geometry = result["water"]["features"][0]["geometry"]
        assert geometry["type"] == "MultiPolygon"
        assert len(geometry["coordinates"][1]) == 2

    def test_y_flip(self):
        tile = _tile(_layer("pois", [_feature(1, POINT_WORDS)], extent=4096))
        result = mvt_decoder.decode(tile, default_options={"y_coord_down": False})
        assert result["pois"]["features"][0]["geometry"]["coordinates"] == (25, 4096 - 17)

    def test_unknown_geometry_type(self):
        result = mvt_decoder.decode(_tile(_layer("misc", [_feature(0, [])])))
        assert result["misc"]["features"][0]["geometry"] == {"type": "Unknown", "coordinates": []}

    def test_nameless_layers_are_dropped(self):
        assert mvt_decoder.decode(_tile(_layer("", [_feature(1, POINT_WORDS)]))) == {}

    def test_accepts_memoryview(self):
        tile = _tile(_layer("pois", [_feature(1, POINT_WORDS)]))
        assert "pois" in mvt_decoder.decode(memoryview(tile))

    def test_truncated_varint(self):
        with pytest.raises(ValueError, match="Truncated varint"):
            mvt_decoder.decode(b"\x1a\x80")

    @pytest.mark.parametrize("tile, message", [
        (b"\x1d\x00\x00", "Truncated fixed32 field"),
        (b"\x19\x00\x00\x00\x00", "Truncated fixed64 field"),
        (b"\x1a\x05\x00", "Truncated length-delimited field"),
    ])
    def test_truncated_fixed_width_fields(self, tile, message):
        with pytest.raises(ValueError, match=message):
            mvt_decoder.decode(tile)


class TestInvalidGeometry:
    def _tile(self):
        return _tile(_layer("roads", [
            _feature(2, [9, 4, 4, 15], feature_id=1),
            _feature(2, [9, 4, 4, 18, 0, 16, 16, 0], feature_id=2),
        ]))

    def test_raises_by_default(self):
        with pytest.raises(GeometryError) as exc:
            mvt_decoder.decode(self._tile())
        assert exc.value.kind is ErrorKind.UNEXPECTED_COMMAND

    def test_skips_and_logs_when_asked(self, caplog):
        with caplog.at_level(logging.WARNING, logger="vtgeom.mvt_decoder"):
            result = mvt_decoder.decode(self._tile(), default_options={"skip_invalid_geometry": True})
        features = result["roads"]["features"]
        assert [f["id"] for f in features] == [2]
        assert "Skipping feature 0 in layer 'roads'" in caplog.text


class TestPackedUint32:
    def test_values_are_truncated_to_32_bits(self):
        assert mvt_decoder._decode_packed_uint32(_packed([(1 << 32) | 9, 50])) == [9, 50]
