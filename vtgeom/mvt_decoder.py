"""
Lightweight Mapbox Vector Tile (MVT) reader.

Walks the protobuf container by hand and hands each feature's geometry-type
tag and packed geometry words to ``vtgeom.geometry``. The output dict:

    {
        "layer_name": {
            "extent": 4096,
            "version": 2,
            "features": [
                {
                    "id": 1,
                    "type": 3,
                    "geometry": {"type": "Polygon", "coordinates": [...]},
                    "properties": {"class": "park", ...},
                },
                ...
            ],
        },
        ...
    }
"""

import logging
import struct

from vtgeom import geojson
from vtgeom.errors import GeometryError
from vtgeom.geometry import GeomType, LineString, Point, Polygon, decode_geometry
from vtgeom.zigzag import UINT32_MASK

logger = logging.getLogger(__name__)

DEFAULT_EXTENT = 4096
DEFAULT_VERSION = 1

DEFAULT_OPTIONS = {
    # Keep Y pointing down from the tile origin, as encoded.
    "y_coord_down": True,
    # Drop (and log) features whose geometry fails to decode instead of raising.
    "skip_invalid_geometry": False,
}

# ── Protobuf wire-format helpers (no external dependency) ────────────────

def _read_varint(buf, pos):
    result = 0
    shift = 0
    while True:
        if pos >= len(buf):
            raise ValueError("Truncated varint")
        b = buf[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            return result, pos
        shift += 7


def _parse_message(buf, start=0, end=None):
    """Yield (field_number, wire_type, value) tuples."""
    if end is None:
        end = len(buf)
    pos = start
    while pos < end:
        tag, pos = _read_varint(buf, pos)
        field = tag >> 3
        wtype = tag & 0x07
        if wtype == 0:  # varint
            val, pos = _read_varint(buf, pos)
            yield field, wtype, val
        elif wtype == 2:  # length-delimited
            length, pos = _read_varint(buf, pos)
            if pos + length > end:
                raise ValueError("Truncated length-delimited field")
            yield field, wtype, buf[pos : pos + length]
            pos += length
        elif wtype == 5:  # 32-bit
            if pos + 4 > end:
                raise ValueError("Truncated fixed32 field")
            yield field, wtype, struct.unpack_from("<f", buf, pos)[0]
            pos += 4
        elif wtype == 1:  # 64-bit
            if pos + 8 > end:
                raise ValueError("Truncated fixed64 field")
            yield field, wtype, struct.unpack_from("<d", buf, pos)[0]
            pos += 8
        else:
            break  # skip unknown wire types


def _decode_packed_uint32(buf):
    """Decode a packed repeated uint32 field."""
    values = []
    pos = 0
    end = len(buf)
    while pos < end:
        v, pos = _read_varint(buf, pos)
        values.append(v & UINT32_MASK)
    return values


def _signed64(v):
    return v - (1 << 64) if v >= (1 << 63) else v


# ── MVT tile decoding ────────────────────────────────────────────────────

# Protobuf field numbers from the MVT specification
_TILE_LAYER = 3

_LAYER_NAME = 1
_LAYER_FEATURE = 2
_LAYER_KEY = 3
_LAYER_VALUE = 4
_LAYER_EXTENT = 5
_LAYER_VERSION = 15

_FEATURE_ID = 1
_FEATURE_TAGS = 2
_FEATURE_TYPE = 3
_FEATURE_GEOMETRY = 4

_VALUE_STRING = 1
_VALUE_FLOAT = 2
_VALUE_DOUBLE = 3
_VALUE_INT = 4
_VALUE_UINT = 5
_VALUE_SINT = 6
_VALUE_BOOL = 7


def _decode_value(data):
    """Decode a protobuf Value message."""
    for field, wtype, val in _parse_message(data):
        if field == _VALUE_STRING:
            return val.decode("utf-8", errors="replace")
        elif field in (_VALUE_FLOAT, _VALUE_DOUBLE, _VALUE_UINT):
            return val
        elif field == _VALUE_INT:
            return _signed64(val)
        elif field == _VALUE_SINT:
            return (val >> 1) ^ -(val & 1)
        elif field == _VALUE_BOOL:
            return bool(val)
    return None


def _flip_y(geom_type, geometry, extent):
    def flip(points):
        return [Point(x, extent - y) for x, y in points]

    if geom_type == GeomType.POINT:
        return flip(geometry)
    if geom_type == GeomType.LINESTRING:
        return [LineString(flip(line.points)) for line in geometry]
    return [
        Polygon(flip(poly.exterior), [flip(ring) for ring in poly.interiors])
        for poly in geometry
    ]


def _decode_feature_geometry(geom_type, words, extent, y_coord_down):
    if geom_type not in (GeomType.POINT, GeomType.LINESTRING, GeomType.POLYGON):
        return {"type": "Unknown", "coordinates": []}

    geometry = decode_geometry(geom_type, words)
    if not y_coord_down:
        # Flip Y so it goes up (standard GeoJSON convention)
        geometry = _flip_y(geom_type, geometry, extent)
    return geojson.to_geojson(geom_type, geometry)


def _decode_feature(data, keys, values, extent, options):
    """Decode a single Feature message."""
    feature_id = None
    geom_type = GeomType.UNKNOWN
    geom_data = b""
    tags_raw = b""
    properties = {}

    for field, wtype, val in _parse_message(data):
        if field == _FEATURE_ID and wtype == 0:
            feature_id = val
        elif field == _FEATURE_TYPE and wtype == 0:
            geom_type = val
        elif field == _FEATURE_GEOMETRY and wtype == 2:
            geom_data = val
        elif field == _FEATURE_TAGS and wtype == 2:
            tags_raw = val

    # Decode tags (alternating key/value indices)
    if tags_raw:
        tag_indices = _decode_packed_uint32(tags_raw)
        for i in range(0, len(tag_indices) - 1, 2):
            ki = tag_indices[i]
            vi = tag_indices[i + 1]
            if ki < len(keys) and vi < len(values):
                properties[keys[ki]] = values[vi]

    words = _decode_packed_uint32(geom_data)
    geometry = _decode_feature_geometry(geom_type, words, extent, options["y_coord_down"])

    return {
        "id": feature_id,
        "type": geom_type,
        "geometry": geometry,
        "properties": properties,
    }


def _decode_layer(data, options):
    """Decode a single Layer message."""
    name = ""
    keys = []
    values = []
    extent = DEFAULT_EXTENT
    version = DEFAULT_VERSION
    feature_datas = []

    for field, wtype, val in _parse_message(data):
        if field == _LAYER_NAME and wtype == 2:
            name = val.decode("utf-8", errors="replace")
        elif field == _LAYER_KEY and wtype == 2:
            keys.append(val.decode("utf-8", errors="replace"))
        elif field == _LAYER_VALUE and wtype == 2:
            values.append(_decode_value(val))
        elif field == _LAYER_EXTENT and wtype == 0:
            extent = val
        elif field == _LAYER_VERSION and wtype == 0:
            version = val
        elif field == _LAYER_FEATURE and wtype == 2:
            feature_datas.append(val)

    features = []
    for index, fd in enumerate(feature_datas):
        try:
            features.append(_decode_feature(fd, keys, values, extent, options))
        except GeometryError as e:
            if not options["skip_invalid_geometry"]:
                raise
            logger.warning("Skipping feature %d in layer %r: %s", index, name, e)

    return name, {"extent": extent, "version": version, "features": features}


def decode(tile_bytes, default_options=None):
    """
    Decode MVT tile bytes into a dict of layers.

    Options (see ``DEFAULT_OPTIONS``):
        y_coord_down (bool): If True, keep Y pointing down (default True).
        skip_invalid_geometry (bool): If True, log and drop features whose
            geometry is malformed instead of raising ``GeometryError``.
    """
    options = dict(DEFAULT_OPTIONS)
    if default_options:
        options.update(default_options)

    result = {}
    buf = bytes(tile_bytes) if not isinstance(tile_bytes, (bytes, bytearray)) else tile_bytes

    for field, wtype, val in _parse_message(buf):
        if field == _TILE_LAYER and wtype == 2:
            name, layer = _decode_layer(val, options)
            if name:
                result[name] = layer

    logger.debug("Decoded %d layer(s) from %d bytes", len(result), len(buf))
    return result
