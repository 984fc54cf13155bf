"""Domain models, board generation and resource bookkeeping."""

from .board import (
    BASE_NUMBER_TOKENS,
    BASE_RESOURCE_POOL,
    PRODUCING_RESOURCES,
    BoardState,
    HexTile,
    Node,
    NodeAnchor,
    Resource,
    build_standard_board,
    node_point,
)
from .ledger import (
    InsufficientResourcesError,
    ResourceBundle,
    ResourceLedger,
    normalize_bundle,
    transfer,
)
from .randomizer import generate_randomized_board, randomize_tiles, validate_standard_counts

__all__ = [
    "BASE_NUMBER_TOKENS",
    "BASE_RESOURCE_POOL",
    "PRODUCING_RESOURCES",
    "BoardState",
    "HexTile",
    "InsufficientResourcesError",
    "Node",
    "NodeAnchor",
    "Resource",
    "ResourceBundle",
    "ResourceLedger",
    "build_standard_board",
    "generate_randomized_board",
    "node_point",
    "normalize_bundle",
    "randomize_tiles",
    "transfer",
    "validate_standard_counts",
]
