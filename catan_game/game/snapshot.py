"""
Snapshot codec: engine state to and from plain JSON-serializable data.

The snapshot carries everything needed to resume a session: tiles, bank,
players, turn order, robber, phase, node ownership and the setup-snake
position. Geometry is not stored; it is rebuilt from the tile list.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from catan_game.config import EngineConfig, RulesetVariant
from catan_game.domain.board import HexTile, Resource, build_standard_board, node_order
from catan_game.domain.ledger import ResourceLedger, normalize_bundle
from catan_game.logging_config import get_logger

from .dice import DiceRoll, LocalRandomSource, RandomSource, is_valid_roll
from .engine import GameEngine
from .state import GamePhase, GameState, PlayerState, tile_to_dict
from .trading import TradingRule

log = get_logger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be exported or decoded."""


def export_state(engine: GameEngine) -> Dict[str, Any]:
    if engine.roll_in_flight:
        raise SnapshotError("Cannot export while a dice roll is in flight.")
    state = engine.clone_state()
    return {
        "version": SNAPSHOT_VERSION,
        "config": _config_to_dict(engine.config),
        "tiles": [tile_to_dict(tile) for tile in state.board.tiles],
        "bank": _ledger_to_dict(state.bank),
        "players": [
            {
                "id": player.player_id,
                "name": player.name,
                "resources": _ledger_to_dict(player.resources),
                "settlements": sorted(player.settlements, key=node_order),
                "victory_points": player.victory_points,
            }
            for player in state.players.values()
        ],
        "order": list(state.order),
        "current_index": state.current_index,
        "robber_tile_id": state.robber_tile_id,
        "turn": state.turn_number,
        "phase": state.phase.value,
        "node_ownership": dict(state.node_ownership),
        "setup_round": state.setup_round,
        "setup_direction": state.setup_direction,
        "event_log": list(state.event_log),
        "last_roll": _roll_to_dict(state.last_roll),
    }


def import_state(
    snapshot: Dict[str, Any],
    random_source: RandomSource,
    trading_rule: TradingRule,
    *,
    config: Optional[EngineConfig] = None,
    fallback_dice: Optional[LocalRandomSource] = None,
) -> GameEngine:
    try:
        state = _decode_state(snapshot)
        if config is None:
            config = _config_from_dict(snapshot.get("config"))
    except SnapshotError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Malformed snapshot: {exc}") from exc
    return GameEngine.from_state(
        state,
        random_source,
        trading_rule,
        config=config,
        fallback_dice=fallback_dice,
    )


def dumps(engine: GameEngine, *, indent: Optional[int] = None) -> str:
    return json.dumps(export_state(engine), indent=indent)


def loads(text: str, random_source: RandomSource, trading_rule: TradingRule, **kwargs: Any) -> GameEngine:
    try:
        snapshot = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(snapshot, dict):
        raise SnapshotError("Snapshot root must be an object.")
    return import_state(snapshot, random_source, trading_rule, **kwargs)


def save_snapshot(engine: GameEngine, path: Path | str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dumps(engine, indent=2), encoding="utf-8")
    log.info("snapshot_saved", path=str(target))
    return target


def load_snapshot(path: Path | str, random_source: RandomSource, trading_rule: TradingRule, **kwargs: Any) -> GameEngine:
    source = Path(path)
    engine = loads(source.read_text(encoding="utf-8"), random_source, trading_rule, **kwargs)
    log.info("snapshot_loaded", path=str(source))
    return engine


def _decode_state(snapshot: Dict[str, Any]) -> GameState:
    version = snapshot.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {version}.")

    tiles = [_tile_from_dict(raw) for raw in snapshot["tiles"]]
    board = build_standard_board(tiles)

    players: Dict[str, PlayerState] = {}
    for raw_player in snapshot["players"]:
        player_id = str(raw_player["id"])
        settlements = {str(node_id) for node_id in raw_player.get("settlements", [])}
        unknown = settlements.difference(board.nodes)
        if unknown:
            raise SnapshotError(f"Player {player_id} owns unknown nodes: {sorted(unknown)}.")
        players[player_id] = PlayerState(
            player_id=player_id,
            name=str(raw_player["name"]),
            resources=ResourceLedger(raw_player.get("resources") or {}),
            settlements=settlements,
            victory_points=int(raw_player.get("victory_points", 0)),
        )

    order = [str(player_id) for player_id in snapshot["order"]]
    if set(order) != set(players) or len(order) != len(players):
        raise SnapshotError("Turn order must list every player exactly once.")
    current_index = int(snapshot["current_index"])
    if order and not 0 <= current_index < len(order):
        raise SnapshotError(f"Current index {current_index} is out of range.")

    robber_tile_id = str(snapshot["robber_tile_id"])
    if not board.has_tile(robber_tile_id):
        raise SnapshotError(f"Robber sits on unknown tile {robber_tile_id}.")

    node_ownership: Dict[str, Optional[str]] = {node_id: None for node_id in board.nodes}
    for node_id, owner in (snapshot.get("node_ownership") or {}).items():
        if node_id not in board.nodes:
            raise SnapshotError(f"Unknown node {node_id} in ownership map.")
        if owner is not None and owner not in players:
            raise SnapshotError(f"Node {node_id} is owned by unknown player {owner}.")
        node_ownership[node_id] = owner
    for player in players.values():
        for node_id in player.settlements:
            if node_ownership[node_id] != player.player_id:
                raise SnapshotError(f"Ownership of {node_id} disagrees with {player.player_id}'s settlements.")

    setup_round = int(snapshot.get("setup_round", 1))
    setup_direction = int(snapshot.get("setup_direction", 1))
    if setup_round not in (1, 2) or setup_direction not in (1, -1):
        raise SnapshotError("Setup round must be 1 or 2 and direction 1 or -1.")

    return GameState(
        board=board,
        bank=ResourceLedger(snapshot["bank"]),
        players=players,
        order=order,
        current_index=current_index,
        robber_tile_id=robber_tile_id,
        turn_number=int(snapshot["turn"]),
        phase=GamePhase(snapshot["phase"]),
        node_ownership=node_ownership,
        setup_round=setup_round,
        setup_direction=setup_direction,
        event_log=[str(line) for line in snapshot.get("event_log", [])],
        last_roll=_roll_from_dict(snapshot.get("last_roll")),
    )


def _tile_from_dict(raw: Dict[str, Any]) -> HexTile:
    token = raw.get("token_number")
    return HexTile(
        id=str(raw["id"]),
        q=int(raw["q"]),
        r=int(raw["r"]),
        resource=Resource(raw["resource"]),
        token_number=int(token) if token is not None else None,
    )


def _ledger_to_dict(ledger: ResourceLedger) -> Dict[str, int]:
    return {resource.value: amount for resource, amount in ledger.items()}


def _roll_to_dict(roll: Optional[DiceRoll]) -> Optional[Dict[str, Any]]:
    if roll is None:
        return None
    return {"die1": roll.die1, "die2": roll.die2, "total": roll.total, "source": roll.source}


def _roll_from_dict(raw: Optional[Dict[str, Any]]) -> Optional[DiceRoll]:
    if raw is None:
        return None
    roll = DiceRoll(die1=raw["die1"], die2=raw["die2"], total=raw["total"], source=raw["source"])
    if not is_valid_roll(roll):
        raise SnapshotError(f"Invalid last roll: {raw}.")
    return roll


def _config_to_dict(config: EngineConfig) -> Dict[str, Any]:
    return {
        "variant": config.variant.value,
        "trade_ratio": config.trade_ratio,
        "discard_threshold": config.discard_threshold,
        "bank_start": config.bank_start,
        "settlement_cost": {
            resource.value: amount for resource, amount in normalize_bundle(config.settlement_cost).items()
        },
        "strict_trade_phase": config.strict_trade_phase,
        "setup_grants_resources": config.setup_grants_resources,
        "event_log_limit": config.event_log_limit,
    }


def _config_from_dict(raw: Optional[Dict[str, Any]]) -> Optional[EngineConfig]:
    """Ruleset stored with the snapshot; ``None`` keeps the engine default."""
    if raw is None:
        return None
    return EngineConfig(
        variant=RulesetVariant(raw["variant"]),
        trade_ratio=int(raw["trade_ratio"]),
        discard_threshold=int(raw["discard_threshold"]),
        bank_start=int(raw["bank_start"]),
        settlement_cost=normalize_bundle(raw["settlement_cost"]),
        strict_trade_phase=bool(raw["strict_trade_phase"]),
        setup_grants_resources=bool(raw["setup_grants_resources"]),
        event_log_limit=int(raw["event_log_limit"]),
    )
