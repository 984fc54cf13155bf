from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from catan_game.domain.board import Resource

RESOURCE_BANK_START = 19
EVENT_LOG_LIMIT = 120

DEFAULT_DICE_ENDPOINT = "https://qrandom.io/api/random/dice?n=2"
DEFAULT_BEACON_ENDPOINT = "https://api.drand.sh/public/latest"


class RulesetVariant(str, Enum):
    STANDARD = "standard"
    STRICT = "strict"
    QUICK = "quick"


FULL_SETTLEMENT_COST: Mapping[Resource, int] = MappingProxyType(
    {
        Resource.BRICK: 1,
        Resource.LUMBER: 1,
        Resource.WOOL: 1,
        Resource.GRAIN: 1,
    }
)
QUICK_SETTLEMENT_COST: Mapping[Resource, int] = MappingProxyType(
    {
        Resource.BRICK: 1,
        Resource.LUMBER: 1,
    }
)


@dataclass(frozen=True)
class EngineConfig:
    variant: RulesetVariant = RulesetVariant.STANDARD
    trade_ratio: int = 4
    discard_threshold: int = 8
    bank_start: int = RESOURCE_BANK_START
    settlement_cost: Mapping[Resource, int] = field(default_factory=lambda: dict(FULL_SETTLEMENT_COST))
    strict_trade_phase: bool = False
    setup_grants_resources: bool = False
    event_log_limit: int = EVENT_LOG_LIMIT

    def __post_init__(self) -> None:
        if self.trade_ratio < 1:
            raise ValueError("trade_ratio must be positive.")
        if self.discard_threshold < 1:
            raise ValueError("discard_threshold must be positive.")
        if self.bank_start < 0:
            raise ValueError("bank_start cannot be negative.")


@dataclass(frozen=True)
class ServiceConfig:
    dice_endpoint: str = DEFAULT_DICE_ENDPOINT
    beacon_endpoint: str = DEFAULT_BEACON_ENDPOINT
    request_timeout_s: float = 3.0


RULESET_PRESETS: dict[RulesetVariant, EngineConfig] = {
    RulesetVariant.STANDARD: EngineConfig(),
    RulesetVariant.STRICT: EngineConfig(variant=RulesetVariant.STRICT, strict_trade_phase=True),
    RulesetVariant.QUICK: EngineConfig(
        variant=RulesetVariant.QUICK,
        settlement_cost=dict(QUICK_SETTLEMENT_COST),
        strict_trade_phase=True,
    ),
}


def config_for_variant(variant: RulesetVariant | str) -> EngineConfig:
    return RULESET_PRESETS[RulesetVariant(variant)]
