from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Literal, Optional, Protocol

import requests

from catan_game.config import DEFAULT_DICE_ENDPOINT
from catan_game.logging_config import get_logger

log = get_logger(__name__)

DiceSource = Literal["external", "local"]
DIE_FACES = 6


@dataclass(frozen=True)
class DiceRoll:
    die1: int
    die2: int
    total: int
    source: DiceSource


class RandomSource(Protocol):
    async def roll_dice(self) -> DiceRoll:
        ...

    def randbelow(self, n: int) -> int:
        ...


def _valid_die(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= DIE_FACES


def is_valid_roll(roll: Any) -> bool:
    if not isinstance(roll, DiceRoll):
        return False
    if not (_valid_die(roll.die1) and _valid_die(roll.die2)):
        return False
    if roll.source not in ("external", "local"):
        return False
    return roll.total == roll.die1 + roll.die2


class LocalRandomSource:
    """Pseudo-random dice and card draws from ``random.Random``; never fails."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def roll_now(self) -> DiceRoll:
        die1 = self._rng.randint(1, DIE_FACES)
        die2 = self._rng.randint(1, DIE_FACES)
        return DiceRoll(die1=die1, die2=die2, total=die1 + die2, source="local")

    async def roll_dice(self) -> DiceRoll:
        return self.roll_now()

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("randbelow requires a positive bound.")
        return self._rng.randrange(n)


class DiceApiRandomSource:
    """Two dice from an HTTP dice API, with a local fallback.

    The endpoint must answer ``{"dice": [d1, d2]}`` with integers 1..6. Any
    transport error, HTTP error or malformed payload yields a local roll
    tagged ``"local"``. Card draws always use the local generator.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_DICE_ENDPOINT,
        *,
        timeout_s: float = 3.0,
        session: Optional[requests.Session] = None,
        fallback: Optional[LocalRandomSource] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_s = float(timeout_s)
        self._session = session if session is not None else requests.Session()
        self._fallback = fallback if fallback is not None else LocalRandomSource()

    async def roll_dice(self) -> DiceRoll:
        try:
            return await asyncio.to_thread(self._fetch_roll)
        except (requests.RequestException, ValueError) as exc:
            log.warning("dice_api_unavailable", endpoint=self.endpoint, error=str(exc))
            return self._fallback.roll_now()

    def randbelow(self, n: int) -> int:
        return self._fallback.randbelow(n)

    def _fetch_roll(self) -> DiceRoll:
        response = self._session.get(
            self.endpoint,
            timeout=self.timeout_s,
            headers={"Cache-Control": "no-store"},
        )
        response.raise_for_status()
        payload = response.json()
        dice = payload.get("dice") if isinstance(payload, dict) else None
        if not isinstance(dice, list) or len(dice) < 2:
            raise ValueError("Malformed payload (missing dice array).")
        die1, die2 = dice[0], dice[1]
        if not (_valid_die(die1) and _valid_die(die2)):
            raise ValueError("Dice out of range.")
        return DiceRoll(die1=die1, die2=die2, total=die1 + die2, source="external")
