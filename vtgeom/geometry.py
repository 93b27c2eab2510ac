"""
Cursor-resolving assembly of vector tile geometry.

``assemble`` folds a list of ``Command`` records into the geometry selected by
the feature's type tag, resolving every delta against a cursor that starts at
(0, 0) and persists across all lines and rings of the feature. ``flatten`` is
the inverse, turning absolute points back into cursor-relative commands.

Decoded values per type:

    POINT       [Point, ...]
    LINESTRING  [LineString, ...]
    POLYGON     [Polygon, ...]   (each with its holes attached)
"""

import enum
import logging
from dataclasses import dataclass
from typing import NamedTuple, Tuple

from vtgeom.commands import LINE_TO, MOVE_TO, Command, decode_stream, encode_stream
from vtgeom.errors import ErrorKind, GeometryError
from vtgeom.rings import RingRole, classify, oriented

logger = logging.getLogger(__name__)


class GeomType(enum.IntEnum):
    UNKNOWN = 0
    POINT = 1
    LINESTRING = 2
    POLYGON = 3


class Point(NamedTuple):
    """Points are vectors in R2; ``+`` and ``-`` act component-wise."""

    x: int
    y: int

    def __add__(self, other):
        return Point(self.x + other[0], self.y + other[1])

    def __sub__(self, other):
        return Point(self.x - other[0], self.y - other[1])


def whole(value):
    """Coerce a coordinate to int, refusing values with a fractional part."""
    coord = int(value)
    if coord != value:
        raise ValueError(f"Coordinate {value!r} is not a whole number")
    return coord


def as_point(p):
    return Point(whole(p[0]), whole(p[1]))


def _as_points(seq):
    return tuple(as_point(p) for p in seq)


@dataclass(frozen=True)
class LineString:
    points: Tuple[Point, ...]

    def __post_init__(self):
        object.__setattr__(self, "points", _as_points(self.points))


@dataclass(frozen=True)
class Polygon:
    """An exterior ring plus holes. Rings are implicitly closed."""

    exterior: Tuple[Point, ...]
    interiors: Tuple[Tuple[Point, ...], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "exterior", _as_points(self.exterior))
        object.__setattr__(self, "interiors", tuple(_as_points(r) for r in self.interiors))


class Cursor:
    """Running absolute position for one feature's geometry."""

    def __init__(self):
        self.position = Point(0, 0)

    def move(self, dx, dy):
        self.position = self.position + (dx, dy)
        return self.position

    def delta_to(self, point):
        target = Point(point[0], point[1])
        delta = target - self.position
        self.position = target
        return delta


# ── Decoding ─────────────────────────────────────────────────────────────

def _assemble_points(commands):
    """A valid point feature holds only MoveTo commands."""
    cursor = Cursor()
    points = []
    for position, command in enumerate(commands):
        if command.cmd_id != MOVE_TO:
            raise GeometryError(
                ErrorKind.UNEXPECTED_COMMAND,
                f"Invalid command found in Point feature: {command!r}",
                raw=command,
                position=position,
            )
        points.append(cursor.move(command.dx, command.dy))
    return points


def _finish_line(points, start):
    if len(points) < 2:
        raise GeometryError(
            ErrorKind.DEGENERATE_LINESTRING,
            f"LineString has {len(points)} point(s), at least 2 required",
            raw=tuple(points),
            position=start,
        )
    return LineString(points)


def _assemble_linestrings(commands):
    cursor = Cursor()
    lines = []
    current = None
    start = None

    for position, command in enumerate(commands):
        if command.cmd_id == MOVE_TO:
            if current is not None:
                lines.append(_finish_line(current, start))
            current = [cursor.move(command.dx, command.dy)]
            start = position
        elif command.cmd_id == LINE_TO:
            if current is None:
                raise GeometryError(
                    ErrorKind.MISSING_MOVE_TO,
                    "LineTo before any MoveTo in LineString feature",
                    raw=command,
                    position=position,
                )
            current.append(cursor.move(command.dx, command.dy))
        else:
            raise GeometryError(
                ErrorKind.UNEXPECTED_COMMAND,
                f"Invalid command found in LineString feature: {command!r}",
                raw=command,
                position=position,
            )

    if current is not None:
        lines.append(_finish_line(current, start))
    return lines


def _collect_rings(commands):
    cursor = Cursor()
    rings = []
    current = None
    start = None

    for position, command in enumerate(commands):
        if command.cmd_id == MOVE_TO:
            if current is not None:
                raise GeometryError(
                    ErrorKind.UNEXPECTED_COMMAND,
                    "MoveTo found before the previous ring was closed",
                    raw=command,
                    position=position,
                )
            current = [cursor.move(command.dx, command.dy)]
            start = position
        elif current is None:
            raise GeometryError(
                ErrorKind.MISSING_MOVE_TO,
                f"{command.name} before any MoveTo in Polygon ring",
                raw=command,
                position=position,
            )
        elif command.cmd_id == LINE_TO:
            current.append(cursor.move(command.dx, command.dy))
        else:
            if len(current) < 3:
                raise GeometryError(
                    ErrorKind.DEGENERATE_RING,
                    f"ring has {len(current)} vertices, at least 3 required",
                    raw=tuple(current),
                    position=start,
                )
            rings.append(tuple(current))
            current = None

    if current is not None:
        raise GeometryError(
            ErrorKind.UNEXPECTED_COMMAND,
            "Polygon ring is missing its ClosePath",
            raw=tuple(current),
            position=len(commands),
        )
    return rings


def _assemble_polygons(commands):
    polygons = []
    exterior = None
    interiors = []

    for index, ring in enumerate(_collect_rings(commands)):
        if classify(ring, position=index) is RingRole.OUTER:
            if exterior is not None:
                polygons.append(Polygon(exterior, interiors))
            exterior, interiors = ring, []
        elif exterior is None:
            raise GeometryError(
                ErrorKind.ORPHAN_HOLE,
                "hole ring found before any outer ring",
                raw=ring,
                position=index,
            )
        else:
            interiors.append(ring)

    if exterior is not None:
        polygons.append(Polygon(exterior, interiors))
    return polygons


# ── Encoding ─────────────────────────────────────────────────────────────

def _flatten_points(points):
    cursor = Cursor()
    return [Command.move_to(*cursor.delta_to(p)) for p in points]


def _flatten_path(cursor, points, commands, kind):
    if not points:
        raise GeometryError(kind, "cannot encode an empty path", raw=tuple(points))
    first, rest = points[0], points[1:]
    commands.append(Command.move_to(*cursor.delta_to(first)))
    for p in rest:
        commands.append(Command.line_to(*cursor.delta_to(p)))


def _flatten_linestrings(lines):
    cursor = Cursor()
    commands = []
    for line in lines:
        _flatten_path(cursor, getattr(line, "points", line), commands, ErrorKind.DEGENERATE_LINESTRING)
    return commands


def _flatten_polygons(polygons):
    cursor = Cursor()
    commands = []
    for polygon in polygons:
        rings = [(RingRole.OUTER, polygon.exterior)]
        rings.extend((RingRole.HOLE, ring) for ring in polygon.interiors)
        for role, ring in rings:
            _flatten_path(cursor, oriented(ring, role), commands, ErrorKind.DEGENERATE_RING)
            commands.append(Command.close_path())
    return commands


_ASSEMBLERS = {
    GeomType.POINT: _assemble_points,
    GeomType.LINESTRING: _assemble_linestrings,
    GeomType.POLYGON: _assemble_polygons,
}

_FLATTENERS = {
    GeomType.POINT: _flatten_points,
    GeomType.LINESTRING: _flatten_linestrings,
    GeomType.POLYGON: _flatten_polygons,
}


def _lookup(table, geom_type):
    try:
        return table[GeomType(geom_type)]
    except (ValueError, KeyError):
        raise ValueError(f"Unsupported geometry type: {geom_type!r}") from None


def assemble(geom_type, commands):
    """Fold ``Command`` records into the geometry for ``geom_type``."""
    geometry = _lookup(_ASSEMBLERS, geom_type)(commands)
    logger.debug("Assembled %d %s part(s)", len(geometry), GeomType(geom_type).name)
    return geometry


def flatten(geom_type, geometry):
    """Turn a geometry back into cursor-relative ``Command`` records."""
    return _lookup(_FLATTENERS, geom_type)(geometry)


def decode_geometry(geom_type, words):
    """Decode one feature's packed geometry words."""
    return assemble(geom_type, decode_stream(words))


def encode_geometry(geom_type, geometry):
    """Encode a geometry into packed geometry words."""
    return encode_stream(flatten(geom_type, geometry))
