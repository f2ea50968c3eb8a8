"""
Transport compression for tile payloads.

Tiles on disk or from a server may be raw protobuf, zlib-framed or
gzip-framed. Detection looks only at the leading magic bytes.
"""

import enum
import logging
import zlib

from vtinfo.errors import DecompressionError

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
# Second byte of a zlib header for the common compression levels.
_ZLIB_FLG = (0x01, 0x5E, 0x9C, 0xDA)


class Compression(enum.Enum):
    RAW = "raw"
    ZLIB = "zlib"
    GZIP = "gzip"


def is_gzip_compressed(data):
    return len(data) > 2 and data[:2] == _GZIP_MAGIC


def is_zlib_compressed(data):
    return len(data) > 2 and data[0] == 0x78 and data[1] in _ZLIB_FLG


def detect(data):
    if is_zlib_compressed(data):
        return Compression.ZLIB
    if is_gzip_compressed(data):
        return Compression.GZIP
    return Compression.RAW


def decompress(data):
    """
    Inflate ``data`` if it carries zlib or gzip framing, else return it unchanged.
    """
    kind = detect(data)
    if kind is Compression.RAW:
        return bytes(data)

    # 32 + MAX_WBITS accepts both zlib and gzip headers
    try:
        out = zlib.decompress(data, 32 + zlib.MAX_WBITS)
    except zlib.error as e:
        raise DecompressionError(f"failed to inflate {kind.value} payload: {e}") from e

    logger.info("Inflated %s payload: %d -> %d bytes", kind.value, len(data), len(out))
    return out
