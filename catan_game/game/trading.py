from __future__ import annotations

from typing import Mapping, Protocol

from catan_game.domain.board import Resource
from catan_game.domain.ledger import ResourceLedger, normalize_bundle

from .state import PlayerState


class TradingRule(Protocol):
    def has_resources(self, player: PlayerState, bundle: Mapping[Resource, int]) -> bool:
        ...

    def trade_with_bank(
        self,
        player: PlayerState,
        bank: ResourceLedger,
        give: Mapping[Resource, int],
        receive: Mapping[Resource, int],
    ) -> bool:
        ...


class FourToOneTradingRule:
    """Fixed-ratio bank trade: ``ratio`` identical cards buy one card of another kind.

    Bundles may request several units at once as long as the ratio holds
    exactly (8 brick for 2 ore). Rejections never touch either ledger.
    """

    def __init__(self, ratio: int = 4) -> None:
        if ratio < 1:
            raise ValueError("ratio must be positive.")
        self.ratio = int(ratio)

    def has_resources(self, player: PlayerState, bundle: Mapping[Resource, int]) -> bool:
        try:
            checked = normalize_bundle(bundle)
        except ValueError:
            return False
        return player.resources.has(checked)

    def trade_with_bank(
        self,
        player: PlayerState,
        bank: ResourceLedger,
        give: Mapping[Resource, int],
        receive: Mapping[Resource, int],
    ) -> bool:
        try:
            give_bundle = normalize_bundle(give)
            receive_bundle = normalize_bundle(receive)
        except ValueError:
            return False

        if len(give_bundle) != 1 or len(receive_bundle) != 1:
            return False
        (give_resource, give_amount), = give_bundle.items()
        (receive_resource, receive_amount), = receive_bundle.items()
        if give_resource is receive_resource:
            return False
        if give_amount % self.ratio != 0:
            return False
        if receive_amount != give_amount // self.ratio:
            return False

        if not player.resources.has(give_bundle):
            return False
        if not bank.has(receive_bundle):
            return False

        player.resources.subtract(give_bundle)
        bank.add(give_bundle)
        bank.subtract(receive_bundle)
        player.resources.add(receive_bundle)
        return True
