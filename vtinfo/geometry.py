"""
MVT geometry command-stream decoding.

A feature's geometry is a flat list of unsigned ints. Each round starts with a
command integer: the low 3 bits are the command id, the rest the repeat count.
MoveTo and LineTo take two parameter ints (a zig-zag encoded dx, dy) per
repetition; ClosePath takes none.

    [9, 50, 34,  26, 0, 4, 4, 0, 0, 3,  15]
     │            │                     └ ClosePath x1
     │            └ LineTo x3, 3 pairs
     └ MoveTo x1, 1 pair

The decoder walks the stream as a small state machine and returns an immutable
:class:`GeometryResult`; it never prints or mutates shared state.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Tuple

from vtinfo.errors import TruncatedStream, UnknownCommand
from vtinfo.mvt_decoder import GeomType

logger = logging.getLogger(__name__)

# ── MVT geometry commands ────────────────────────────────────────────────

_CMD_BITS = 3
_CMD_MASK = (1 << _CMD_BITS) - 1

_CMD_MOVE_TO = 1
_CMD_LINE_TO = 2
# Legacy close-path constant; only its low 3 bits are on the wire.
_SEG_CLOSE = 0x40 | 0x0F
_CMD_CLOSE_PATH = _SEG_CLOSE & _CMD_MASK


class DecoderState(enum.Enum):
    AWAITING_COMMAND = "awaiting_command"
    MOVE_TO = "move_to"
    LINE_TO = "line_to"
    CLOSE_PATH = "close_path"


_COMMAND_STATES = {
    _CMD_MOVE_TO: DecoderState.MOVE_TO,
    _CMD_LINE_TO: DecoderState.LINE_TO,
    _CMD_CLOSE_PATH: DecoderState.CLOSE_PATH,
}


def _zigzag(v):
    return (v >> 1) ^ -(v & 1)


@dataclass(frozen=True)
class Ring:
    """
    One sub-path: the raw parameter pairs read for it, in stream order.

    ``params`` are left exactly as encoded; use :meth:`deltas` for the signed
    cursor movements.
    """

    params: Tuple[Tuple[int, int], ...]
    closed: bool = False

    def deltas(self):
        return [(_zigzag(px), _zigzag(py)) for px, py in self.params]

    def __len__(self):
        return len(self.params)


@dataclass(frozen=True)
class GeometryResult:
    """Decoded rings of one feature plus the counters gathered on the way."""

    rings: Tuple[Ring, ...] = ()
    total: int = 0
    num_commands: int = 0
    move_to: int = 0
    line_to: int = 0
    close: int = 0
    empty: int = 0
    degenerate: int = 0

    def coordinates(self, origin=(0, 0)):
        """
        Absolute integer coordinates per ring.

        The cursor carries over from one ring to the next, as in the encoding.
        """
        cx, cy = origin
        out = []
        for ring in self.rings:
            points = []
            for dx, dy in ring.deltas():
                cx += dx
                cy += dy
                points.append((cx, cy))
            out.append(points)
        return out


def decode_geometry(stream, geom_type=GeomType.UNKNOWN):
    """
    Decode a geometry command stream.

    ``geom_type`` is informational: ClosePath inside a Point or Unknown
    feature is decoded and counted like anywhere else.

    Raises UnknownCommand for a command id other than MoveTo/LineTo/ClosePath,
    and TruncatedStream when a MoveTo/LineTo repetition runs out of parameters.
    """
    n = len(stream)
    pos = 0
    state = DecoderState.AWAITING_COMMAND
    remaining = 0

    num_commands = move_to = line_to = close = empty = degenerate = 0
    # points accumulated since the last MoveTo round
    ring_points = 0
    rings = []
    current = None

    while True:
        if state is DecoderState.AWAITING_COMMAND:
            if pos >= n:
                break
            cmd_int = stream[pos] & 0xFFFFFFFF
            cmd_id = cmd_int & _CMD_MASK
            state = _COMMAND_STATES.get(cmd_id)
            if state is None:
                raise UnknownCommand(cmd_id, pos)
            pos += 1
            remaining = cmd_int >> _CMD_BITS
            num_commands += 1
            if state is DecoderState.MOVE_TO:
                ring_points = 0
            if remaining == 0:
                empty += 1
                state = DecoderState.AWAITING_COMMAND
            continue

        if state is DecoderState.CLOSE_PATH:
            close += 1
            if ring_points <= 2:
                degenerate += 1
            if current:
                rings.append(Ring(tuple(current), closed=True))
                current = None
        else:
            if n - pos < 2:
                raise TruncatedStream(pos)
            pair = (stream[pos], stream[pos + 1])
            pos += 2
            ring_points += 1
            if state is DecoderState.MOVE_TO:
                move_to += 1
                if current:
                    rings.append(Ring(tuple(current)))
                current = [pair]
            else:
                line_to += 1
                if current is None:
                    current = []
                current.append(pair)

        remaining -= 1
        if remaining == 0:
            state = DecoderState.AWAITING_COMMAND

    if current:
        rings.append(Ring(tuple(current)))

    result = GeometryResult(
        rings=tuple(rings),
        total=n,
        num_commands=num_commands,
        move_to=move_to,
        line_to=line_to,
        close=close,
        empty=empty,
        degenerate=degenerate,
    )
    logger.debug("Decoded type=%d stream of %d ints: %s", geom_type, n, result)
    return result


def decode_feature_geometry(feature):
    return decode_geometry(feature.geometry, feature.type)
