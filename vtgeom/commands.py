"""
Command/parameter integer codec for vector tile geometry.

A geometry is a flat list of unsigned 32-bit words. A command integer packs
``count << 3 | id``; MoveTo and LineTo are followed by ``count`` zigzag-encoded
(dx, dy) pairs, ClosePath by nothing:

    https://github.com/mapbox/vector-tile-spec/tree/master/2.1#43-geometry-encoding

Decoding expands every pair into its own ``Command`` record, so a MoveTo with
count 3 becomes three MoveTo records.
"""

import logging
from typing import NamedTuple

from vtgeom import zigzag
from vtgeom.errors import ErrorKind, GeometryError

logger = logging.getLogger(__name__)

MOVE_TO = 1
LINE_TO = 2
CLOSE_PATH = 7

COMMAND_NAMES = {
    MOVE_TO: "MoveTo",
    LINE_TO: "LineTo",
    CLOSE_PATH: "ClosePath",
}


class Command(NamedTuple):
    cmd_id: int
    dx: int = 0
    dy: int = 0

    @classmethod
    def move_to(cls, dx, dy):
        return cls(MOVE_TO, dx, dy)

    @classmethod
    def line_to(cls, dx, dy):
        return cls(LINE_TO, dx, dy)

    @classmethod
    def close_path(cls):
        return cls(CLOSE_PATH)

    @property
    def name(self):
        return COMMAND_NAMES.get(self.cmd_id, f"Command({self.cmd_id})")

    def __repr__(self):
        if self.cmd_id == CLOSE_PATH:
            return "ClosePath"
        return f"{self.name}({self.dx}, {self.dy})"


def pack_command_int(cmd_id, count):
    if cmd_id not in COMMAND_NAMES:
        raise ValueError(f"Unknown command id: {cmd_id}")
    return (count << 3) | cmd_id


def parse_command_int(word, position=None):
    """Split a command integer into ``(cmd_id, count)``."""
    cmd_id = word & 0x07
    count = word >> 3

    if cmd_id in (MOVE_TO, LINE_TO):
        return cmd_id, count
    if cmd_id == CLOSE_PATH:
        if count != 1:
            raise GeometryError(
                ErrorKind.INVALID_CLOSE_PATH_COUNT,
                f"ClosePath was given a parameter count: {count}",
                raw=word,
                position=position,
            )
        return cmd_id, count
    raise GeometryError(
        ErrorKind.INVALID_COMMAND_ID,
        f"Invalid command integer {cmd_id} found in: {word:X}",
        raw=word,
        position=position,
    )


def decode_stream(words):
    """
    Parse a list of command/parameter integers into ``Command`` records.

    The first malformed word aborts the whole stream.
    """
    commands = []
    idx = 0
    end = len(words)

    while idx < end:
        word = words[idx]
        cmd_id, count = parse_command_int(word, position=idx)
        header = idx
        idx += 1

        if cmd_id == CLOSE_PATH:
            commands.append(Command.close_path())
            continue

        wanted = count * 2
        remaining = end - idx
        if remaining < wanted:
            raise GeometryError(
                ErrorKind.UNEVEN_PARAMETER_LIST,
                f"{COMMAND_NAMES[cmd_id]} declares {wanted} parameters "
                f"but only {remaining} remain",
                raw=word,
                position=header,
            )

        for _ in range(count):
            dx = zigzag.unzig(words[idx])
            dy = zigzag.unzig(words[idx + 1])
            idx += 2
            commands.append(Command(cmd_id, dx, dy))

    logger.debug("Decoded %d words into %d commands", end, len(commands))
    return commands


def encode_stream(commands):
    """
    Serialize ``Command`` records into command/parameter integers.

    Consecutive MoveTo (or LineTo) records share one command integer; each
    ClosePath is emitted on its own.
    """
    words = []
    run_id = None
    run_header = None
    run_count = 0

    for position, command in enumerate(commands):
        if command.cmd_id == CLOSE_PATH:
            if run_header is not None:
                words[run_header] = pack_command_int(run_id, run_count)
            run_id, run_header, run_count = None, None, 0
            words.append(pack_command_int(CLOSE_PATH, 1))
            continue

        for delta in (command.dx, command.dy):
            if not zigzag.in_range(delta):
                raise GeometryError(
                    ErrorKind.DELTA_OUT_OF_RANGE,
                    f"{command.name} delta does not fit in 32 bits",
                    raw=delta,
                    position=position,
                )

        if command.cmd_id != run_id:
            if run_header is not None:
                words[run_header] = pack_command_int(run_id, run_count)
            run_id = command.cmd_id
            run_header = len(words)
            run_count = 0
            words.append(None)

        run_count += 1
        words.append(zigzag.zig(command.dx))
        words.append(zigzag.zig(command.dy))

    if run_header is not None:
        words[run_header] = pack_command_int(run_id, run_count)

    logger.debug("Encoded %d commands into %d words", len(commands), len(words))
    return words
