from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

Point = Tuple[float, float]
CornerKey = Tuple[int, int]

BOARD_RADIUS = 2
TILE_COUNT = 19
CORNERS_PER_TILE = 6

# Corner k of a flat-top hex sits at angle 60*k degrees. Offsets are kept in
# doubled half-width units (x) and half-height units (y) so every corner lands
# on an exact integer lattice point shared by all tiles touching it.
_CORNER_DX = (2, 1, -1, -2, -1, 1)
_CORNER_DY = (0, 1, 1, 0, -1, -1)


class Resource(str, Enum):
    BRICK = "brick"
    LUMBER = "lumber"
    WOOL = "wool"
    GRAIN = "grain"
    ORE = "ore"
    DESERT = "desert"


PRODUCING_RESOURCES: Tuple[Resource, ...] = (
    Resource.BRICK,
    Resource.LUMBER,
    Resource.WOOL,
    Resource.GRAIN,
    Resource.ORE,
)

BASE_RESOURCE_POOL: Tuple[Resource, ...] = (
    (Resource.BRICK,) * 3
    + (Resource.LUMBER,) * 4
    + (Resource.WOOL,) * 4
    + (Resource.GRAIN,) * 4
    + (Resource.ORE,) * 3
    + (Resource.DESERT,)
)

BASE_NUMBER_TOKENS: Tuple[int, ...] = (5, 2, 6, 3, 8, 10, 9, 12, 11, 4, 8, 10, 9, 4, 5, 6, 3, 11)


@dataclass(frozen=True)
class HexTile:
    id: str
    q: int
    r: int
    resource: Resource
    token_number: Optional[int]


@dataclass(frozen=True)
class NodeAnchor:
    tile_id: str
    corner_index: int


@dataclass(frozen=True)
class Node:
    id: str
    adjacent_tile_ids: Tuple[str, ...]
    neighbor_node_ids: Tuple[str, ...]
    anchor: NodeAnchor


@dataclass(frozen=True)
class BoardState:
    """Read-only board: tiles are a tuple, node indexes are mapping proxies."""

    tiles: Tuple[HexTile, ...]
    nodes: Mapping[str, Node]
    tile_nodes: Mapping[str, Tuple[str, ...]]
    _tile_lookup: Mapping[str, HexTile] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tiles", tuple(self.tiles))
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        object.__setattr__(self, "tile_nodes", MappingProxyType(dict(self.tile_nodes)))
        object.__setattr__(self, "_tile_lookup", MappingProxyType({tile.id: tile for tile in self.tiles}))

    def has_tile(self, tile_id: str) -> bool:
        return tile_id in self._tile_lookup

    def get_tile(self, tile_id: str) -> HexTile:
        return self._tile_lookup[tile_id]

    def node_adjacent_tiles(self, node_id: str) -> List[HexTile]:
        return [self.get_tile(tile_id) for tile_id in self.nodes[node_id].adjacent_tile_ids]

    def desert_tile_id(self) -> str:
        """Robber start: the desert tile, or the first tile on a board without one."""
        for tile in self.tiles:
            if tile.resource is Resource.DESERT:
                return tile.id
        return self.tiles[0].id

    def blocked_nodes(self, occupied_nodes: Iterable[str]) -> set[str]:
        occupied = set(occupied_nodes)
        blocked = set(occupied)
        for node_id in occupied:
            blocked.update(self.nodes[node_id].neighbor_node_ids)
        return blocked

    def legal_settlement_nodes(self, occupied_nodes: Iterable[str]) -> List[str]:
        blocked = self.blocked_nodes(occupied_nodes)
        return [node_id for node_id in self.nodes if node_id not in blocked]

    def is_legal_settlement(self, node_id: str, occupied_nodes: Iterable[str]) -> bool:
        if node_id not in self.nodes:
            return False
        return node_id not in self.blocked_nodes(occupied_nodes)


def build_standard_board(tiles: Optional[Sequence[HexTile]] = None) -> BoardState:
    """Build the 19-tile board and its deduplicated corner-node graph.

    Without ``tiles`` the default resource/number layout is used. Supplied
    tiles must follow the standard id order; their positions are what the
    node graph is derived from.
    """
    board_tiles = list(tiles) if tiles is not None else default_tiles()
    if len(board_tiles) != TILE_COUNT:
        raise ValueError(f"Expected {TILE_COUNT} tiles, received {len(board_tiles)}.")

    nodes, tile_nodes = _build_nodes(board_tiles)
    return BoardState(tiles=board_tiles, nodes=nodes, tile_nodes=tile_nodes)


def default_tiles() -> List[HexTile]:
    coords = generate_axial_coords(BOARD_RADIUS)
    non_desert = [resource for resource in BASE_RESOURCE_POOL if resource is not Resource.DESERT]

    tiles: List[HexTile] = []
    resource_index = 0
    number_index = 0
    for index, (q, r) in enumerate(coords):
        if q == 0 and r == 0:
            resource = Resource.DESERT
            token_number = None
        else:
            resource = non_desert[resource_index % len(non_desert)]
            resource_index += 1
            token_number = BASE_NUMBER_TOKENS[number_index]
            number_index += 1
        tiles.append(HexTile(id=tile_id_for(index), q=q, r=r, resource=resource, token_number=token_number))
    return tiles


def tile_id_for(index: int) -> str:
    return f"T{index + 1}"


def generate_axial_coords(radius: int) -> List[Tuple[int, int]]:
    coords: List[Tuple[int, int]] = []
    for q in range(-radius, radius + 1):
        r_min = max(-radius, -q - radius)
        r_max = min(radius, -q + radius)
        for r in range(r_min, r_max + 1):
            coords.append((q, r))
    coords.sort(key=lambda item: (item[1], item[0]))
    return coords


def corner_key(q: int, r: int, corner_index: int) -> CornerKey:
    return (3 * q + _CORNER_DX[corner_index], 2 * r + q + _CORNER_DY[corner_index])


def axial_to_pixel(q: int, r: int, size: float) -> Point:
    x = size * 1.5 * q
    y = size * math.sqrt(3) * (r + q / 2)
    return (x, y)


def hex_corner_offset(size: float, corner_index: int) -> Point:
    angle_rad = math.radians(60 * corner_index)
    return (size * math.cos(angle_rad), size * math.sin(angle_rad))


def node_point(board: BoardState, node_id: str, size: float) -> Point:
    anchor = board.nodes[node_id].anchor
    tile = board.get_tile(anchor.tile_id)
    center_x, center_y = axial_to_pixel(tile.q, tile.r, size)
    dx, dy = hex_corner_offset(size, anchor.corner_index)
    return (center_x + dx, center_y + dy)


def _build_nodes(tiles: Sequence[HexTile]) -> Tuple[Dict[str, Node], Dict[str, Tuple[str, ...]]]:
    node_lookup: Dict[CornerKey, str] = {}
    node_anchors: Dict[str, NodeAnchor] = {}
    node_tiles: Dict[str, List[str]] = {}
    node_neighbors: Dict[str, set[str]] = {}
    tile_nodes: Dict[str, Tuple[str, ...]] = {}

    for tile in tiles:
        ring: List[str] = []
        for corner_index in range(CORNERS_PER_TILE):
            key = corner_key(tile.q, tile.r, corner_index)
            node_id = node_lookup.get(key)
            if node_id is None:
                node_id = f"N{len(node_lookup) + 1}"
                node_lookup[key] = node_id
                node_anchors[node_id] = NodeAnchor(tile_id=tile.id, corner_index=corner_index)
                node_tiles[node_id] = []
                node_neighbors[node_id] = set()
            node_tiles[node_id].append(tile.id)
            ring.append(node_id)

        for first, second in zip(ring, ring[1:] + ring[:1]):
            node_neighbors[first].add(second)
            node_neighbors[second].add(first)
        tile_nodes[tile.id] = tuple(ring)

    nodes: Dict[str, Node] = {}
    for node_id, anchor in node_anchors.items():
        nodes[node_id] = Node(
            id=node_id,
            adjacent_tile_ids=tuple(node_tiles[node_id]),
            neighbor_node_ids=tuple(sorted(node_neighbors[node_id], key=node_order)),
            anchor=anchor,
        )
    return nodes, tile_nodes


def node_order(node_id: str) -> int:
    return int(node_id[1:])
