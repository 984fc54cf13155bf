"""Game engine, turn state machine and collaborator interfaces."""

from .dice import DiceApiRandomSource, DiceRoll, LocalRandomSource, RandomSource, is_valid_roll
from .engine import GameEngine, RollOutcome, Theft
from .snapshot import (
    SnapshotError,
    dumps,
    export_state,
    import_state,
    load_snapshot,
    loads,
    save_snapshot,
)
from .state import (
    GamePhase,
    GameState,
    IllegalActionError,
    PlayerState,
    PlayerSummary,
    PublicGameView,
    RollInFlightError,
    snake_order,
)
from .trading import FourToOneTradingRule, TradingRule

__all__ = [
    "DiceApiRandomSource",
    "DiceRoll",
    "FourToOneTradingRule",
    "GameEngine",
    "GamePhase",
    "GameState",
    "IllegalActionError",
    "LocalRandomSource",
    "PlayerState",
    "PlayerSummary",
    "PublicGameView",
    "RandomSource",
    "RollInFlightError",
    "RollOutcome",
    "SnapshotError",
    "Theft",
    "TradingRule",
    "dumps",
    "export_state",
    "import_state",
    "is_valid_roll",
    "load_snapshot",
    "loads",
    "save_snapshot",
    "snake_order",
]
