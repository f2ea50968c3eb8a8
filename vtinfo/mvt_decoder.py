"""
Lightweight Mapbox Vector Tile (MVT) protobuf decoder.

Reads the tile/layer/feature/value envelope straight off the protobuf wire
format, without generated bindings. Geometry is *not* interpreted here: each
feature keeps its raw command stream (a list of unsigned ints) for
``vtinfo.geometry`` to decode.

    Tile
     └─ layers: [Layer]
          ├─ name, version, extent
          ├─ keys:   ["class", "name", ...]
          ├─ values: [Value(kind=STRING, data="park"), None, ...]
          └─ features: [Feature(id, type, tags=[k, v, ...], geometry=[9, 50, 34, ...])]
"""

import enum
import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional

from vtinfo.errors import StructuredMessageError, TagError

logger = logging.getLogger(__name__)

# ── Protobuf wire-format helpers (no external dependency) ────────────────

_WIRE_VARINT = 0
_WIRE_FIXED64 = 1
_WIRE_LEN = 2
_WIRE_FIXED32 = 5


def _read_varint(buf, pos):
    result = 0
    shift = 0
    while True:
        if pos >= len(buf):
            raise StructuredMessageError("Truncated varint")
        b = buf[pos]
        pos += 1
        result |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            return result, pos
        shift += 7
        if shift >= 64:
            raise StructuredMessageError("Varint longer than 10 bytes")


def _zigzag(v):
    return (v >> 1) ^ -(v & 1)


def _to_int64(v):
    v &= 0xFFFFFFFFFFFFFFFF
    return v - (1 << 64) if v & (1 << 63) else v


def _parse_message(buf, start=0, end=None):
    """Yield (field_number, wire_type, value) tuples."""
    if end is None:
        end = len(buf)
    pos = start
    while pos < end:
        tag, pos = _read_varint(buf, pos)
        field_no = tag >> 3
        wtype = tag & 0x07
        if field_no == 0:
            raise StructuredMessageError(f"Invalid field number 0 at byte {pos}")
        if wtype == _WIRE_VARINT:
            val, pos = _read_varint(buf, pos)
            yield field_no, wtype, val
        elif wtype == _WIRE_LEN:
            length, pos = _read_varint(buf, pos)
            if pos + length > end:
                raise StructuredMessageError(
                    f"Field {field_no} length {length} overruns message end"
                )
            yield field_no, wtype, bytes(buf[pos : pos + length])
            pos += length
        elif wtype == _WIRE_FIXED32:
            if pos + 4 > end:
                raise StructuredMessageError(f"Truncated 32-bit field {field_no}")
            yield field_no, wtype, struct.unpack_from("<f", buf, pos)[0]
            pos += 4
        elif wtype == _WIRE_FIXED64:
            if pos + 8 > end:
                raise StructuredMessageError(f"Truncated 64-bit field {field_no}")
            yield field_no, wtype, struct.unpack_from("<d", buf, pos)[0]
            pos += 8
        else:
            raise StructuredMessageError(
                f"Unsupported wire type {wtype} for field {field_no}"
            )


def _decode_packed_uint32(buf):
    """Decode a packed repeated uint32 field."""
    values = []
    pos = 0
    end = len(buf)
    while pos < end:
        v, pos = _read_varint(buf, pos)
        values.append(v & 0xFFFFFFFF)
    return values


def _decode_string(raw):
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise StructuredMessageError(f"Invalid UTF-8 string: {e}") from e


# ── Data model ───────────────────────────────────────────────────────────


class GeomType(enum.IntEnum):
    UNKNOWN = 0
    POINT = 1
    LINESTRING = 2
    POLYGON = 3

    @property
    def label(self):
        return {0: "Unknown", 1: "Point", 2: "LineString", 3: "Polygon"}[self.value]


class ValueKind(enum.Enum):
    STRING = "string"
    FLOAT = "float"
    DOUBLE = "double"
    INT = "int"
    UINT = "uint"
    SINT = "sint"
    BOOL = "bool"


@dataclass(frozen=True)
class Value:
    """One entry of a layer's value table; exactly one typed alternative."""

    kind: ValueKind
    data: object


@dataclass
class Feature:
    id: Optional[int] = None
    type: GeomType = GeomType.UNKNOWN
    tags: List[int] = field(default_factory=list)
    geometry: List[int] = field(default_factory=list)


@dataclass
class Layer:
    name: str = ""
    version: int = 1
    extent: int = 4096
    features: List[Feature] = field(default_factory=list)
    keys: List[str] = field(default_factory=list)
    values: List[Optional[Value]] = field(default_factory=list)


@dataclass
class Tile:
    layers: List[Layer] = field(default_factory=list)


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
    """Decode a protobuf Value message. Returns None if no field is set."""
    value = None
    for field_no, wtype, val in _parse_message(data):
        if field_no == _VALUE_STRING and wtype == _WIRE_LEN:
            value = Value(ValueKind.STRING, _decode_string(val))
        elif field_no == _VALUE_FLOAT and wtype == _WIRE_FIXED32:
            value = Value(ValueKind.FLOAT, val)
        elif field_no == _VALUE_DOUBLE and wtype == _WIRE_FIXED64:
            value = Value(ValueKind.DOUBLE, val)
        elif field_no == _VALUE_INT and wtype == _WIRE_VARINT:
            value = Value(ValueKind.INT, _to_int64(val))
        elif field_no == _VALUE_UINT and wtype == _WIRE_VARINT:
            value = Value(ValueKind.UINT, val)
        elif field_no == _VALUE_SINT and wtype == _WIRE_VARINT:
            value = Value(ValueKind.SINT, _zigzag(val))
        elif field_no == _VALUE_BOOL and wtype == _WIRE_VARINT:
            value = Value(ValueKind.BOOL, bool(val))
    return value


def _repeated_uint32(wtype, val, out):
    # repeated uint32 may arrive packed or one varint at a time
    if wtype == _WIRE_LEN:
        out.extend(_decode_packed_uint32(val))
    elif wtype == _WIRE_VARINT:
        out.append(val & 0xFFFFFFFF)


def _decode_feature(data):
    """Decode a single Feature message."""
    feature = Feature()

    for field_no, wtype, val in _parse_message(data):
        if field_no == _FEATURE_ID and wtype == _WIRE_VARINT:
            feature.id = val
        elif field_no == _FEATURE_TYPE and wtype == _WIRE_VARINT:
            try:
                feature.type = GeomType(val)
            except ValueError:
                logger.debug("Unrecognized geometry type %d, treating as Unknown", val)
                feature.type = GeomType.UNKNOWN
        elif field_no == _FEATURE_TAGS:
            _repeated_uint32(wtype, val, feature.tags)
        elif field_no == _FEATURE_GEOMETRY:
            _repeated_uint32(wtype, val, feature.geometry)

    return feature


def _decode_layer(data):
    """Decode a single Layer message."""
    layer = Layer()

    for field_no, wtype, val in _parse_message(data):
        if field_no == _LAYER_NAME and wtype == _WIRE_LEN:
            layer.name = _decode_string(val)
        elif field_no == _LAYER_KEY and wtype == _WIRE_LEN:
            layer.keys.append(_decode_string(val))
        elif field_no == _LAYER_VALUE and wtype == _WIRE_LEN:
            layer.values.append(_decode_value(val))
        elif field_no == _LAYER_EXTENT and wtype == _WIRE_VARINT:
            layer.extent = val
        elif field_no == _LAYER_VERSION and wtype == _WIRE_VARINT:
            layer.version = val
        elif field_no == _LAYER_FEATURE and wtype == _WIRE_LEN:
            layer.features.append(_decode_feature(val))

    return layer


def parse(tile_bytes):
    """
    Decode uncompressed MVT bytes into a :class:`Tile`.

    Raises StructuredMessageError when the protobuf envelope is malformed.
    """
    buf = bytes(tile_bytes) if not isinstance(tile_bytes, (bytes, bytearray)) else tile_bytes

    tile = Tile()
    for field_no, wtype, val in _parse_message(buf):
        if field_no == _TILE_LAYER and wtype == _WIRE_LEN:
            tile.layers.append(_decode_layer(val))

    logger.debug("Parsed %d layer(s) from %d bytes", len(tile.layers), len(buf))
    return tile


def validate_tags(layer, feature):
    """
    Check a feature's flat ``[key_idx, value_idx, ...]`` tag list.

    Raises TagError for an odd-length list or an index outside the layer's
    key/value tables.
    """
    tags = feature.tags
    if len(tags) % 2:
        raise TagError(f"odd number of tag ids ({len(tags)})")

    for i in range(0, len(tags), 2):
        ki = tags[i]
        vi = tags[i + 1]
        if ki >= len(layer.keys):
            raise TagError(f"key index {ki} out of range ({len(layer.keys)} keys)")
        if vi >= len(layer.values):
            raise TagError(f"value index {vi} out of range ({len(layer.values)} values)")


def resolve_tags(layer, feature):
    """Map a feature's tag ids to a ``{key: value}`` dict; see validate_tags."""
    validate_tags(layer, feature)

    properties = {}
    tags = feature.tags
    for i in range(0, len(tags), 2):
        value = layer.values[tags[i + 1]]
        properties[layer.keys[tags[i]]] = value.data if value is not None else None
    return properties
