"""
Plain-text tile reports.

Two modes, both returning a string:
    render_summary  layer header + aggregated geometry counters
    render_verbose  layer keys/values and a raw per-feature dump
"""

from vtinfo.compression import Compression
from vtinfo.mvt_decoder import ValueKind

_COMPRESSION_LINES = {
    Compression.ZLIB: "message: zlib compressed",
    Compression.GZIP: "message: gzip compressed",
    Compression.RAW: "message: appears not to be compressed",
}


def compression_line(kind):
    return _COMPRESSION_LINES[kind]


def format_value(value):
    if value is None:
        return "null"
    if value.kind is ValueKind.BOOL:
        return "true" if value.data else "false"
    if value.kind in (ValueKind.FLOAT, ValueKind.DOUBLE):
        return f"{value.data:g}"
    return str(value.data)


def _join(items):
    return ",".join(str(i) for i in items)


def render_summary(tile, layer_stats):
    lines = [f"layers: {len(tile.layers)}"]
    for layer, stats in zip(tile.layers, layer_stats):
        lines.append(f"{layer.name}:")
        lines.append(f"  version: {layer.version}")
        lines.append(f"  extent: {layer.extent}")
        lines.append(f"  features: {len(layer.features)}")
        lines.append(f"  keys: {len(layer.keys)}")
        lines.append(f"  values: {len(layer.values)}")
        lines.append("  geometry summary:")
        lines.append(f"    total: {stats.total_repeated}")
        lines.append(f"    commands: {stats.num_commands}")
        lines.append(f"    move_to: {stats.move_to}")
        lines.append(f"    line_to: {stats.line_to}")
        lines.append(f"    close: {stats.close}")
        lines.append(f"    degenerate polygons: {stats.degenerate}")
        lines.append(f"    empty geoms: {stats.empty}")
        if stats.skipped:
            lines.append(f"    skipped: {stats.skipped}")
            for err in stats.errors:
                lines.append(f"      feature {err.feature_index}: {err.kind}: {err.cause}")
    return "\n".join(lines)


def render_verbose(tile):
    lines = []
    for layer in tile.layers:
        lines.append(f"layer: {layer.name}")
        lines.append(f"  version: {layer.version}")
        lines.append(f"  extent: {layer.extent}")
        lines.append(f"  keys: {_join(layer.keys)}")
        lines.append(f"  values: {_join(format_value(v) for v in layer.values)}")
        for feature in layer.features:
            lines.append(f"  feature: {feature.id if feature.id is not None else 0}")
            lines.append(f"    type: {feature.type.label}")
            lines.append(f"    tags: {_join(feature.tags)}")
            lines.append(f"    geometries: {_join(feature.geometry)}")
        lines.append("")
    return "\n".join(lines)
