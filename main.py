import argparse
import logging
import sys

from vtinfo import compression, mvt_decoder, report, stats, tiles
from vtinfo.errors import VtinfoError

LOG_FORMAT = "%(asctime)s [%(relativeCreated).0fms] %(levelname)s %(name)s: %(message)s"
DEFAULT_LOG_LEVEL = "WARNING"

logger = logging.getLogger("vtinfo")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="vtinfo",
        description="Output information about a Mapbox vector tile.",
    )
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "source",
        nargs="?",
        help="path or http(s) URL of an uncompressed, zlib-compressed, or gzip compressed tile",
    )
    src.add_argument("--tile", metavar="Z/X/Y", help="fetch a tile through the local cache")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="dump raw keys, values, tags and geometry per feature",
    )
    parser.add_argument(
        "--on-error",
        choices=[m.value for m in stats.OnError],
        default=stats.OnError.ABORT.value,
        help="abort on the first bad feature, or skip it and keep going",
    )
    parser.add_argument(
        "--log-level", type=str.upper, default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def load_tile_bytes(args):
    if args.tile:
        return tiles.fetch_tile(*tiles.parse_zxy(args.tile))
    return tiles.read_tile(args.source)


def run(args, out=None):
    out = out or sys.stdout
    raw = load_tile_bytes(args)
    kind = compression.detect(raw)
    print(report.compression_line(kind), file=out)

    tile = mvt_decoder.parse(compression.decompress(raw))

    if args.verbose:
        print(report.render_verbose(tile), file=out)
    else:
        layer_stats = stats.decode_tile_geometry(tile, stats.OnError(args.on_error))
        print(report.render_summary(tile, layer_stats), file=out)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        run(args)
    except VtinfoError as e:
        logger.error("error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
