"""Shared constants and configuration defaults for the layout pipeline."""

from dataclasses import dataclass

# Orientation steps: 0 = facing -y (north), 1 = +x (east), 2 = +y (south), 3 = -x (west)
ORIENTATION_COUNT = 4
ORIENTATION_NAMES = ("north", "east", "south", "west")

# Wiring defaults
DEFAULT_WIRE_REACH = 7.0
# Connection slot written into every wire tuple; exported blueprints use 5
DEFAULT_WIRE_PORT = 5

# Direction repair looks for producers within this many tiles on each axis
DEFAULT_TRANSFER_REACH = 1.1

# Blueprint direction values are orientation * DIRECTION_SCALE (16-way directions)
DEFAULT_DIRECTION_SCALE = 4

DEFAULT_BLUEPRINT_ITEM = "blueprint"
DEFAULT_BLUEPRINT_VERSION = 5629499581399004

# Positions are finalized on this grid
SNAP_GRANULARITY = 0.5
# Dedup keys round positions to this many decimals
DEDUP_PRECISION = 1

# Tolerance for "same row / same column" comparisons in wiring
AXIS_EPSILON = 1e-6


@dataclass(frozen=True)
class TilerConfig:
    """Configuration settings for the layout pipeline."""

    wire_reach: float = DEFAULT_WIRE_REACH
    wire_port: int = DEFAULT_WIRE_PORT
    transfer_reach: float = DEFAULT_TRANSFER_REACH
    direction_scale: int = DEFAULT_DIRECTION_SCALE
    default_item: str = DEFAULT_BLUEPRINT_ITEM
    default_version: int = DEFAULT_BLUEPRINT_VERSION
    snap_granularity: float = SNAP_GRANULARITY
    dedup_precision: int = DEDUP_PRECISION


DEFAULT_CONFIG = TilerConfig()
