"""
Conversion between decoded geometry and GeoJSON-style geometry dicts.

Single-part collections map to ``Point``/``LineString``/``Polygon``,
anything else to the ``Multi*`` type. GeoJSON rings repeat their first point
at the end; geometry values do not.
"""

from vtgeom.geometry import GeomType, LineString, Polygon, as_point

_SINGLE_TYPES = {
    GeomType.POINT: "Point",
    GeomType.LINESTRING: "LineString",
    GeomType.POLYGON: "Polygon",
}

_MULTI_TYPES = {
    GeomType.POINT: "MultiPoint",
    GeomType.LINESTRING: "MultiLineString",
    GeomType.POLYGON: "MultiPolygon",
}


def _coords(points):
    return [(p[0], p[1]) for p in points]


def _closed(ring):
    coords = _coords(ring)
    if coords:
        coords.append(coords[0])
    return coords


def _open(ring):
    ring = list(ring)
    if len(ring) > 1 and tuple(ring[0]) == tuple(ring[-1]):
        ring = ring[:-1]
    return ring


def _part_coordinates(geom_type, part):
    if geom_type == GeomType.POINT:
        return (part[0], part[1])
    if geom_type == GeomType.LINESTRING:
        return _coords(part.points)
    return [_closed(part.exterior)] + [_closed(ring) for ring in part.interiors]


def to_geojson(geom_type, geometry):
    geom_type = GeomType(geom_type)
    if geom_type not in _SINGLE_TYPES:
        return {"type": "Unknown", "coordinates": []}

    parts = [_part_coordinates(geom_type, part) for part in geometry]
    if len(parts) == 1:
        return {"type": _SINGLE_TYPES[geom_type], "coordinates": parts[0]}
    return {"type": _MULTI_TYPES[geom_type], "coordinates": parts}


def _polygon(rings):
    if not rings:
        raise ValueError("Polygon without an exterior ring")
    return Polygon(_open(rings[0]), [_open(ring) for ring in rings[1:]])


def from_geojson(obj):
    """Return ``(geom_type, geometry)`` for a GeoJSON geometry dict."""
    kind = obj.get("type")
    coordinates = obj.get("coordinates", [])

    if kind == "Point":
        return GeomType.POINT, [as_point(coordinates)]
    if kind == "MultiPoint":
        return GeomType.POINT, [as_point(c) for c in coordinates]
    if kind == "LineString":
        return GeomType.LINESTRING, [LineString(coordinates)]
    if kind == "MultiLineString":
        return GeomType.LINESTRING, [LineString(line) for line in coordinates]
    if kind == "Polygon":
        return GeomType.POLYGON, [_polygon(coordinates)]
    if kind == "MultiPolygon":
        return GeomType.POLYGON, [_polygon(rings) for rings in coordinates]
    raise ValueError(f"Unsupported GeoJSON geometry type: {kind!r}")
