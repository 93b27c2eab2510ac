"""
Ring orientation for polygon assembly.

MVT 2.1 defines an exterior ring as one with positive area under the
surveyor's formula in tile coordinates (y pointing down, so it appears
clockwise on screen); interior rings have negative area.
"""

import enum
import logging

from vtgeom.errors import ErrorKind, GeometryError

logger = logging.getLogger(__name__)


class RingRole(enum.Enum):
    OUTER = "outer"
    HOLE = "hole"


def signed_area(ring):
    """Compute signed area of a ring (shoelace formula)."""
    area = 0
    n = len(ring)
    for i in range(n):
        j = (i + 1) % n
        area += ring[i][0] * ring[j][1]
        area -= ring[j][0] * ring[i][1]
    return area / 2.0


def classify(ring, position=None):
    area = signed_area(ring)
    if area > 0:
        role = RingRole.OUTER
    elif area < 0:
        role = RingRole.HOLE
    else:
        raise GeometryError(
            ErrorKind.DEGENERATE_RING,
            "ring has zero area",
            raw=tuple(ring),
            position=position,
        )
    logger.debug("Ring %s: area=%s role=%s", position, area, role.value)
    return role


def oriented(ring, role):
    """Return ``ring`` wound the way ``role`` requires, keeping its first vertex.

    Zero-area rings are left alone.
    """
    area = signed_area(ring)
    if (role is RingRole.OUTER and area < 0) or (role is RingRole.HOLE and area > 0):
        ring = tuple(ring)
        return ring[:1] + tuple(reversed(ring[1:]))
    return tuple(ring)
