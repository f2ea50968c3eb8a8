"""Exceptions raised while reading, decoding and summarizing vector tiles."""


class VtinfoError(Exception):
    """Base class for every error vtinfo raises on purpose."""


class InputError(VtinfoError):
    """Tile bytes could not be read from disk or fetched over HTTP."""


class DecompressionError(VtinfoError):
    """zlib/gzip framing was detected but the payload would not inflate."""


class StructuredMessageError(VtinfoError):
    """The protobuf envelope (tile/layer/feature/value) is malformed."""


class TagError(VtinfoError):
    """A feature's tag list does not fit the layer's key/value tables."""


class GeometryError(VtinfoError):
    """A feature's geometry command stream could not be decoded."""

    def __init__(self, message, offset):
        super().__init__(message)
        self.offset = offset


class UnknownCommand(GeometryError):
    def __init__(self, command_id, offset):
        super().__init__(f"unknown command id {command_id} at offset {offset}", offset)
        self.command_id = command_id


class TruncatedStream(GeometryError):
    def __init__(self, offset):
        super().__init__(f"truncated coordinate pair at offset {offset}", offset)


class FeatureDecodeError(VtinfoError):
    """Wraps a per-feature failure with the layer/feature it came from."""

    def __init__(self, layer_name, feature_index, cause):
        super().__init__(
            f"layer '{layer_name}' feature {feature_index}: {cause}"
        )
        self.layer_name = layer_name
        self.feature_index = feature_index
        self.cause = cause

    @property
    def kind(self):
        return type(self.cause).__name__
