from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from catan_game.domain.board import PRODUCING_RESOURCES, BoardState, HexTile, Resource
from catan_game.domain.ledger import ResourceLedger

from .dice import DiceRoll


class IllegalActionError(ValueError):
    """Raised when a call is not allowed in the current game state."""


class RollInFlightError(IllegalActionError):
    """Raised when the engine is mutated while a dice roll is still pending."""


class GamePhase(str, Enum):
    NOT_STARTED = "not_started"
    SETUP_PLACEMENT = "setup_placement"
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_ROBBER_MOVE = "awaiting_robber_move"
    AWAITING_ACTIONS = "awaiting_actions"


@dataclass
class PlayerState:
    player_id: str
    name: str
    resources: ResourceLedger = field(default_factory=ResourceLedger)
    settlements: set[str] = field(default_factory=set)
    victory_points: int = 0

    def clone(self) -> "PlayerState":
        return PlayerState(
            player_id=self.player_id,
            name=self.name,
            resources=self.resources.copy(),
            settlements=set(self.settlements),
            victory_points=int(self.victory_points),
        )

    def card_count(self) -> int:
        return self.resources.total()


@dataclass
class GameState:
    board: BoardState
    bank: ResourceLedger
    players: Dict[str, PlayerState] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    current_index: int = 0
    robber_tile_id: str = ""
    turn_number: int = 0
    phase: GamePhase = GamePhase.NOT_STARTED
    node_ownership: Dict[str, Optional[str]] = field(default_factory=dict)
    setup_round: int = 1
    setup_direction: int = 1
    event_log: List[str] = field(default_factory=list)
    last_roll: Optional[DiceRoll] = None

    def __post_init__(self) -> None:
        if not self.robber_tile_id:
            self.robber_tile_id = self.board.desert_tile_id()
        for node_id in self.board.nodes:
            self.node_ownership.setdefault(node_id, None)

    def clone(self) -> "GameState":
        return GameState(
            board=self.board,
            bank=self.bank.copy(),
            players={player_id: player.clone() for player_id, player in self.players.items()},
            order=list(self.order),
            current_index=self.current_index,
            robber_tile_id=self.robber_tile_id,
            turn_number=self.turn_number,
            phase=self.phase,
            node_ownership=dict(self.node_ownership),
            setup_round=self.setup_round,
            setup_direction=self.setup_direction,
            event_log=list(self.event_log),
            last_roll=self.last_roll,
        )

    @property
    def current_player_id(self) -> Optional[str]:
        if not self.order:
            return None
        return self.order[self.current_index]

    def owned_nodes(self) -> set[str]:
        return {node_id for node_id, owner in self.node_ownership.items() if owner is not None}

    def resource_totals(self) -> Dict[Resource, int]:
        """Bank plus every hand, per resource; constant for the whole session."""
        totals = self.bank.as_dict()
        for player in self.players.values():
            for resource in PRODUCING_RESOURCES:
                totals[resource] += player.resources.count(resource)
        return totals


@dataclass(frozen=True)
class PlayerSummary:
    id: str
    name: str
    victory_points: int


@dataclass(frozen=True)
class PublicGameView:
    players: tuple[PlayerSummary, ...]
    robber_tile_id: str
    bank: Dict[Resource, int]
    tiles: tuple[HexTile, ...]
    current_player_id: Optional[str]
    turn: int
    phase: GamePhase
    node_ownership: Dict[str, Optional[str]]
    node_adjacent_tiles: Dict[str, tuple[str, ...]]
    node_anchors: Dict[str, tuple[str, int]]

    def to_dict(self) -> dict:
        return {
            "players": [
                {"id": player.id, "name": player.name, "victory_points": player.victory_points}
                for player in self.players
            ],
            "robber_tile_id": self.robber_tile_id,
            "bank": {resource.value: amount for resource, amount in self.bank.items()},
            "tiles": [tile_to_dict(tile) for tile in self.tiles],
            "current_player_id": self.current_player_id,
            "turn": self.turn,
            "phase": self.phase.value,
            "node_ownership": dict(self.node_ownership),
            "node_adjacent_tiles": {node_id: list(tiles) for node_id, tiles in self.node_adjacent_tiles.items()},
            "node_anchors": {
                node_id: {"tile_id": tile_id, "corner_index": corner_index}
                for node_id, (tile_id, corner_index) in self.node_anchors.items()
            },
        }


def tile_to_dict(tile: HexTile) -> dict:
    return {
        "id": tile.id,
        "q": tile.q,
        "r": tile.r,
        "resource": tile.resource.value,
        "token_number": tile.token_number,
    }


def initial_bank_counts(start: int) -> Dict[Resource, int]:
    return {resource: int(start) for resource in PRODUCING_RESOURCES}


def snake_order(player_count: int) -> List[int]:
    """Seat indices in setup placement order: forward, then backward."""
    if player_count < 2:
        raise ValueError("player_count must be at least 2.")
    forward = list(range(player_count))
    return forward + forward[::-1]
