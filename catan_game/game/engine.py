from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from catan_game.config import EngineConfig
from catan_game.domain.board import PRODUCING_RESOURCES, HexTile, Resource, build_standard_board, node_order
from catan_game.domain.ledger import ResourceLedger, normalize_bundle, transfer
from catan_game.logging_config import get_logger

from .dice import DiceRoll, LocalRandomSource, RandomSource, is_valid_roll
from .state import (
    GamePhase,
    GameState,
    IllegalActionError,
    PlayerState,
    PlayerSummary,
    PublicGameView,
    RollInFlightError,
    initial_bank_counts,
)
from .trading import TradingRule

log = get_logger(__name__)

ROBBER_ROLL = 7

ResourceDelta = Dict[Resource, int]


@dataclass(frozen=True)
class RollOutcome:
    die1: int
    die2: int
    total: int
    source: str
    gains: Dict[str, ResourceDelta] = field(default_factory=dict)
    discards: Dict[str, ResourceDelta] = field(default_factory=dict)


@dataclass(frozen=True)
class Theft:
    from_player_id: str
    to_player_id: str
    resource: Resource


class GameEngine:
    """
    Owns one game session: board, bank, players and the turn state machine.

    Phases run not_started -> setup_placement -> awaiting_roll ->
    (awaiting_robber_move ->) awaiting_actions -> awaiting_roll -> ...

    Setup, roll, robber and turn calls raise IllegalActionError when they are
    not allowed. Paid actions (building, bank trades) answer False instead.
    Every accessor hands out copies.
    """

    def __init__(
        self,
        random_source: RandomSource,
        trading_rule: TradingRule,
        *,
        tiles: Optional[Sequence[HexTile]] = None,
        initial_bank: Optional[Mapping[Resource, int]] = None,
        config: Optional[EngineConfig] = None,
        fallback_dice: Optional[LocalRandomSource] = None,
    ) -> None:
        self.config = config if config is not None else EngineConfig()
        board = build_standard_board(tiles)
        bank = ResourceLedger(
            initial_bank if initial_bank is not None else initial_bank_counts(self.config.bank_start)
        )
        self._state = GameState(board=board, bank=bank)
        self._random = random_source
        self._trader = trading_rule
        self._fallback_dice = fallback_dice if fallback_dice is not None else LocalRandomSource()
        self._roll_in_flight = False

    @classmethod
    def from_state(
        cls,
        state: GameState,
        random_source: RandomSource,
        trading_rule: TradingRule,
        *,
        config: Optional[EngineConfig] = None,
        fallback_dice: Optional[LocalRandomSource] = None,
    ) -> "GameEngine":
        engine = cls(
            random_source,
            trading_rule,
            tiles=state.board.tiles,
            initial_bank=state.bank.as_dict(),
            config=config,
            fallback_dice=fallback_dice,
        )
        engine._state = state.clone()
        return engine

    # ----- read-only accessors -----

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def current_player_id(self) -> Optional[str]:
        return self._state.current_player_id

    @property
    def turn(self) -> int:
        return self._state.turn_number

    @property
    def robber_tile_id(self) -> str:
        return self._state.robber_tile_id

    @property
    def roll_in_flight(self) -> bool:
        return self._roll_in_flight

    @property
    def last_roll(self) -> Optional[DiceRoll]:
        return self._state.last_roll

    @property
    def event_log(self) -> List[str]:
        return list(self._state.event_log)

    def clone_state(self) -> GameState:
        return self._state.clone()

    def get_player_resources(self, player_id: str) -> Dict[Resource, int]:
        player = self._state.players.get(player_id)
        return player.resources.as_dict() if player is not None else {}

    def get_public_state(self) -> PublicGameView:
        state = self._state
        nodes = state.board.nodes
        return PublicGameView(
            players=tuple(
                PlayerSummary(id=player.player_id, name=player.name, victory_points=player.victory_points)
                for player in state.players.values()
            ),
            robber_tile_id=state.robber_tile_id,
            bank=state.bank.as_dict(),
            tiles=tuple(state.board.tiles),
            current_player_id=state.current_player_id,
            turn=state.turn_number,
            phase=state.phase,
            node_ownership=dict(state.node_ownership),
            node_adjacent_tiles={node_id: node.adjacent_tile_ids for node_id, node in nodes.items()},
            node_anchors={
                node_id: (node.anchor.tile_id, node.anchor.corner_index) for node_id, node in nodes.items()
            },
        )

    def get_available_settlement_spots(self) -> List[str]:
        return self._state.board.legal_settlement_nodes(self._state.owned_nodes())

    # ----- lifecycle -----

    def add_player(self, name: str, player_id: Optional[str] = None) -> str:
        self._ensure_idle()
        state = self._state
        if state.phase is not GamePhase.NOT_STARTED:
            raise IllegalActionError("Players can only join before the game starts.")
        if player_id is None:
            player_id = self._mint_player_id()
        else:
            player_id = str(player_id)
            if not player_id:
                raise IllegalActionError("Player id cannot be empty.")
            if player_id in state.players:
                raise IllegalActionError(f"Player id {player_id} exists.")

        display_name = (name or "").strip() or f"Player {len(state.players) + 1}"
        state.players[player_id] = PlayerState(player_id=player_id, name=display_name)
        state.order.append(player_id)
        self._record_event(f"{display_name} joined as {player_id}.")
        log.info("player_added", player_id=player_id, name=display_name)
        return player_id

    def start_game(self, first_player_id: Optional[str] = None) -> None:
        self._ensure_idle()
        state = self._state
        if state.phase is not GamePhase.NOT_STARTED:
            raise IllegalActionError("Game already started.")
        if len(state.players) < 2:
            raise IllegalActionError("Need at least 2 players.")
        if first_player_id is not None:
            if first_player_id not in state.players:
                raise IllegalActionError("Unknown first player.")
            index = state.order.index(first_player_id)
            state.order = state.order[index:] + state.order[:index]

        state.turn_number = 1
        state.current_index = 0
        state.phase = GamePhase.SETUP_PLACEMENT
        state.setup_round = 1
        state.setup_direction = 1
        self._record_event("Setup: each player places 2 settlements (snake order).")
        log.info("game_started", order=list(state.order))

    # ----- setup -----

    def place_initial_settlement(self, player_id: str, node_id: str) -> None:
        self._ensure_idle()
        state = self._state
        if state.phase is not GamePhase.SETUP_PLACEMENT:
            raise IllegalActionError("Not in setup phase.")
        player = self._require_player(player_id)
        if player_id != state.current_player_id:
            raise IllegalActionError(f"It is {state.current_player_id}'s turn to place.")
        if node_id not in state.board.nodes:
            raise IllegalActionError(f"Unknown node {node_id}.")
        if state.node_ownership[node_id] is not None:
            raise IllegalActionError("Spot occupied.")
        if not self._is_spot_available(node_id):
            raise IllegalActionError("Too close to another settlement.")

        self._claim_node(player, node_id)
        if self.config.setup_grants_resources and len(player.settlements) == 2:
            self._grant_starting_resources(player, node_id)
        self._record_event(f"{player.name} placed a settlement on {node_id}.")
        self._advance_setup()

    def _advance_setup(self) -> None:
        state = self._state
        last_index = len(state.order) - 1
        if state.setup_round == 1:
            if state.current_index == last_index:
                state.setup_round = 2
                state.setup_direction = -1
            else:
                state.current_index += 1
            return

        if state.current_index == 0:
            state.phase = GamePhase.AWAITING_ROLL
            self._record_event("Setup complete.")
            log.info("setup_complete")
        else:
            state.current_index -= 1

    def _grant_starting_resources(self, player: PlayerState, node_id: str) -> None:
        for tile in self._state.board.node_adjacent_tiles(node_id):
            if tile.resource is Resource.DESERT:
                continue
            granted = self._state.bank.take_up_to(tile.resource, 1)
            if granted:
                player.resources.add({tile.resource: granted})

    # ----- turn play -----

    async def roll_and_distribute(self) -> RollOutcome:
        self._ensure_idle()
        if self._state.phase is not GamePhase.AWAITING_ROLL:
            raise IllegalActionError("Cannot roll now.")

        self._roll_in_flight = True
        try:
            roll = await self._request_roll()
        finally:
            self._roll_in_flight = False

        state = self._state
        state.last_roll = roll
        current = state.players[state.current_player_id]
        self._record_event(f"{current.name} rolled {roll.total} ({roll.source}).")
        log.info("dice_rolled", player_id=current.player_id, total=roll.total, source=roll.source)

        if roll.total == ROBBER_ROLL:
            discards = self._discard_on_seven()
            state.phase = GamePhase.AWAITING_ROBBER_MOVE
            return RollOutcome(
                die1=roll.die1,
                die2=roll.die2,
                total=roll.total,
                source=roll.source,
                discards=discards,
            )

        gains = self._distribute_for(roll.total)
        state.phase = GamePhase.AWAITING_ACTIONS
        return RollOutcome(
            die1=roll.die1,
            die2=roll.die2,
            total=roll.total,
            source=roll.source,
            gains=gains,
        )

    async def _request_roll(self) -> DiceRoll:
        try:
            roll = await self._random.roll_dice()
        except Exception as exc:
            log.warning("dice_source_failed", error=repr(exc))
            return self._fallback_dice.roll_now()
        if not is_valid_roll(roll):
            log.warning("dice_source_malformed", roll=repr(roll))
            return self._fallback_dice.roll_now()
        return roll

    def _distribute_for(self, number: int) -> Dict[str, ResourceDelta]:
        state = self._state
        gains: Dict[str, ResourceDelta] = {}
        for tile in state.board.tiles:
            if tile.token_number != number or tile.id == state.robber_tile_id:
                continue
            if tile.resource is Resource.DESERT:
                continue
            for node_id in sorted(state.board.tile_nodes[tile.id], key=node_order):
                owner_id = state.node_ownership.get(node_id)
                if owner_id is None:
                    continue
                # Lowest node id first once the bank runs dry.
                granted = state.bank.take_up_to(tile.resource, 1)
                if granted == 0:
                    log.debug("bank_exhausted", resource=tile.resource.value, tile_id=tile.id)
                    continue
                state.players[owner_id].resources.add({tile.resource: granted})
                delta = gains.setdefault(owner_id, {})
                delta[tile.resource] = delta.get(tile.resource, 0) + granted

        for owner_id, delta in gains.items():
            self._record_event(f"{state.players[owner_id].name} collected {_describe(delta)}.")
        return gains

    def _discard_on_seven(self) -> Dict[str, ResourceDelta]:
        losses: Dict[str, ResourceDelta] = {}
        for player in self._state.players.values():
            total = player.card_count()
            if total < self.config.discard_threshold:
                continue
            lost = self._discard_evenly(player, total // 2)
            if lost:
                losses[player.player_id] = lost
                self._record_event(f"{player.name} discarded {_describe(lost)}.")
                log.info("cards_discarded", player_id=player.player_id, count=sum(lost.values()))
        return losses

    def _discard_evenly(self, player: PlayerState, to_discard: int) -> ResourceDelta:
        lost: ResourceDelta = {}
        remaining = to_discard
        while remaining > 0:
            discarded_this_pass = False
            for resource in PRODUCING_RESOURCES:
                if remaining <= 0:
                    break
                if player.resources.count(resource) <= 0:
                    continue
                transfer(player.resources, self._state.bank, {resource: 1})
                lost[resource] = lost.get(resource, 0) + 1
                remaining -= 1
                discarded_this_pass = True
            if not discarded_this_pass:
                break
        return lost

    def move_robber(self, tile_id: str, victim_id: Optional[str] = None) -> Optional[Theft]:
        self._ensure_idle()
        state = self._state
        if state.phase is GamePhase.NOT_STARTED:
            raise IllegalActionError("Game has not started.")
        if not state.board.has_tile(tile_id):
            raise IllegalActionError("Unknown tile.")
        victim: Optional[PlayerState] = None
        if victim_id is not None:
            victim = self._require_player(victim_id)
            if victim_id == state.current_player_id:
                raise IllegalActionError("Cannot steal from yourself.")

        was_awaiting_robber = state.phase is GamePhase.AWAITING_ROBBER_MOVE
        state.robber_tile_id = tile_id
        thief = state.players[state.current_player_id]
        self._record_event(f"{thief.name} moved the robber to {tile_id}.")
        log.info("robber_moved", tile_id=tile_id, victim_id=victim_id)

        theft: Optional[Theft] = None
        if victim is not None and victim.card_count() > 0:
            resource = self._draw_card(victim.resources)
            transfer(victim.resources, thief.resources, {resource: 1})
            theft = Theft(from_player_id=victim.player_id, to_player_id=thief.player_id, resource=resource)
            self._record_event(f"{thief.name} stole 1 {resource.value} from {victim.name}.")

        if was_awaiting_robber:
            state.phase = GamePhase.AWAITING_ACTIONS
        return theft

    def _draw_card(self, hand: ResourceLedger) -> Resource:
        cards = hand.cards()
        try:
            index = int(self._random.randbelow(len(cards)))
        except Exception as exc:
            log.warning("card_draw_failed", error=repr(exc))
            index = self._fallback_dice.randbelow(len(cards))
        if not 0 <= index < len(cards):
            log.warning("card_draw_out_of_range", index=index, size=len(cards))
            index = self._fallback_dice.randbelow(len(cards))
        return cards[index]

    def build_settlement_at(self, player_id: str, node_id: str) -> bool:
        self._ensure_idle()
        state = self._state
        if state.phase is not GamePhase.AWAITING_ACTIONS:
            return False
        player = state.players.get(player_id)
        if player is None:
            return False
        if node_id not in state.board.nodes or state.node_ownership[node_id] is not None:
            return False
        if not self._is_spot_available(node_id):
            return False
        cost = normalize_bundle(self.config.settlement_cost)
        if not self._trader.has_resources(player, cost):
            return False

        transfer(player.resources, state.bank, cost)
        self._claim_node(player, node_id)
        self._record_event(f"{player.name} built a settlement on {node_id}.")
        return True

    def maritime_trade(
        self,
        player_id: str,
        give: Mapping[Resource, int],
        receive: Mapping[Resource, int],
    ) -> bool:
        self._ensure_idle()
        state = self._state
        player = state.players.get(player_id)
        if player is None:
            return False
        if self.config.strict_trade_phase and state.phase is not GamePhase.AWAITING_ACTIONS:
            return False
        traded = self._trader.trade_with_bank(player, state.bank, give, receive)
        if traded:
            self._record_event(f"{player.name} traded with the bank.")
            log.info("bank_trade", player_id=player_id)
        return traded

    def next_player(self) -> None:
        self._ensure_idle()
        state = self._state
        if state.phase is not GamePhase.AWAITING_ACTIONS:
            raise IllegalActionError("Finish actions first.")
        state.current_index = (state.current_index + 1) % len(state.order)
        state.turn_number += 1
        state.phase = GamePhase.AWAITING_ROLL
        log.debug("turn_advanced", turn=state.turn_number, player_id=state.current_player_id)

    # ----- helpers -----

    def _ensure_idle(self) -> None:
        if self._roll_in_flight:
            raise RollInFlightError("A dice roll is still in flight.")

    def _require_player(self, player_id: str) -> PlayerState:
        player = self._state.players.get(player_id)
        if player is None:
            raise IllegalActionError(f"Unknown player {player_id}.")
        return player

    def _is_spot_available(self, node_id: str) -> bool:
        return self._state.board.is_legal_settlement(node_id, self._state.owned_nodes())

    def _claim_node(self, player: PlayerState, node_id: str) -> None:
        self._state.node_ownership[node_id] = player.player_id
        player.settlements.add(node_id)
        player.victory_points += 1
        log.info("settlement_placed", player_id=player.player_id, node_id=node_id)

    def _mint_player_id(self) -> str:
        sequence = len(self._state.players) + 1
        while f"P{sequence}" in self._state.players:
            sequence += 1
        return f"P{sequence}"

    def _record_event(self, text: str) -> None:
        self._state.event_log.append(text)
        limit = self.config.event_log_limit
        if len(self._state.event_log) > limit:
            self._state.event_log = self._state.event_log[-limit:]


def _describe(delta: Mapping[Resource, int]) -> str:
    return ", ".join(f"{amount} {resource.value}" for resource, amount in delta.items())
