"""Per-layer geometry statistics."""

import enum
import logging
from dataclasses import dataclass, field
from typing import List

from vtinfo.errors import FeatureDecodeError, GeometryError, TagError
from vtinfo.geometry import decode_feature_geometry
from vtinfo.mvt_decoder import validate_tags

logger = logging.getLogger(__name__)


class OnError(enum.Enum):
    """What to do when one feature of a layer fails to decode."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass
class LayerStatistics:
    name: str = ""
    total_repeated: int = 0
    num_commands: int = 0
    move_to: int = 0
    line_to: int = 0
    close: int = 0
    empty: int = 0
    degenerate: int = 0
    features: int = 0
    skipped: int = 0
    errors: List[FeatureDecodeError] = field(default_factory=list)

    def add(self, result):
        self.total_repeated += result.total
        self.num_commands += result.num_commands
        self.move_to += result.move_to
        self.line_to += result.line_to
        self.close += result.close
        self.empty += result.empty
        self.degenerate += result.degenerate
        self.features += 1


def decode_layer_geometry(layer, on_error=OnError.ABORT):
    """
    Decode every feature of ``layer`` in order and sum up the counters.

    With ``OnError.ABORT`` the first bad feature raises FeatureDecodeError.
    With ``OnError.SKIP`` the feature is left out of the totals and the error
    is kept on ``LayerStatistics.errors`` instead.
    """
    on_error = OnError(on_error)
    stats = LayerStatistics(name=layer.name)

    for index, feature in enumerate(layer.features):
        try:
            validate_tags(layer, feature)
            result = decode_feature_geometry(feature)
        except (GeometryError, TagError) as e:
            err = FeatureDecodeError(layer.name, index, e)
            if on_error is OnError.ABORT:
                raise err from e
            logger.warning("Skipping %s", err)
            stats.errors.append(err)
            stats.skipped += 1
            continue
        stats.add(result)

    return stats


def decode_tile_geometry(tile, on_error=OnError.ABORT):
    """One fresh LayerStatistics per layer, in tile order."""
    return [decode_layer_geometry(layer, on_error) for layer in tile.layers]
