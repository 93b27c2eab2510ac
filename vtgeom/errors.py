"""
Errors raised while decoding or encoding vector tile geometry.

Every failure is one ``GeometryError`` carrying a ``kind`` from the closed
``ErrorKind`` set, the offending raw value and where it was found.
"""

import enum


class ErrorKind(enum.Enum):
    INVALID_COMMAND_ID = "invalid command id"
    INVALID_CLOSE_PATH_COUNT = "invalid ClosePath count"
    UNEVEN_PARAMETER_LIST = "uneven parameter list"
    UNEXPECTED_COMMAND = "unexpected command"
    MISSING_MOVE_TO = "missing MoveTo"
    DEGENERATE_LINESTRING = "degenerate linestring"
    DEGENERATE_RING = "degenerate ring"
    ORPHAN_HOLE = "orphan hole"
    DELTA_OUT_OF_RANGE = "delta out of range"


class GeometryError(ValueError):
    """
    A geometry stream or value that violates the wire format.

    ``position`` is a word index for stream errors, a command index for
    assembly errors and a ring index for classification errors.
    """

    def __init__(self, kind, message, raw=None, position=None):
        self.kind = kind
        self.message = message
        self.raw = raw
        self.position = position
        super().__init__(self._describe())

    def _describe(self):
        text = f"{self.kind.value}: {self.message}"
        details = []
        if self.raw is not None:
            details.append(f"raw={self.raw!r}")
        if self.position is not None:
            details.append(f"position={self.position}")
        if details:
            text += f" ({', '.join(details)})"
        return text
