from __future__ import annotations

import hashlib
from typing import Any, Optional, Tuple

import requests

from catan_game.config import DEFAULT_BEACON_ENDPOINT
from catan_game.domain.board import BoardState, build_standard_board
from catan_game.domain.randomizer import UINT32_MASK, generate_randomized_board
from catan_game.logging_config import get_logger

log = get_logger(__name__)

SEED_HEX_CHARS = 16


class SeedUnavailableError(RuntimeError):
    """Raised when the randomness beacon cannot provide a seed."""


def fold_hex_seed(randomness: str) -> int:
    """Fold the first 8 bytes of a hex string into an unsigned 32-bit seed."""
    if len(randomness) < SEED_HEX_CHARS:
        raise ValueError("Beacon randomness is too short for a 32-bit seed.")
    seed = 0
    for index in range(0, SEED_HEX_CHARS, 2):
        byte = int(randomness[index:index + 2], 16)
        seed = ((seed << 8) ^ (byte & 0xFF)) & UINT32_MASK
    return seed


def fetch_beacon_seed(
    url: str = DEFAULT_BEACON_ENDPOINT,
    *,
    timeout_s: float = 3.0,
    session: Optional[requests.Session] = None,
) -> int:
    """Fetch the latest drand round and turn its randomness into a uint32 seed."""
    http = session if session is not None else requests.Session()
    try:
        response = http.get(url, timeout=timeout_s, headers={"Cache-Control": "no-store"})
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise SeedUnavailableError(f"Beacon request failed: {exc}") from exc

    randomness = payload.get("randomness") if isinstance(payload, dict) else None
    if not isinstance(randomness, str):
        raise SeedUnavailableError("Beacon response has no randomness field.")
    try:
        return fold_hex_seed(randomness)
    except ValueError as exc:
        raise SeedUnavailableError(str(exc)) from exc


def board_from_beacon(
    url: str = DEFAULT_BEACON_ENDPOINT,
    *,
    timeout_s: float = 3.0,
    session: Optional[requests.Session] = None,
) -> Tuple[BoardState, Optional[int]]:
    """Randomized board from the beacon seed, or the default board when it is unreachable."""
    try:
        seed = fetch_beacon_seed(url, timeout_s=timeout_s, session=session)
    except SeedUnavailableError as exc:
        log.warning("beacon_unavailable", url=url, error=str(exc))
        return build_standard_board(), None
    log.info("beacon_seed", seed=seed)
    return generate_randomized_board(seed), seed


def derive_seed(base_seed: int, *parts: Any) -> int:
    """Stable uint32 seed derived from a base seed and labels (e.g. a dice stream per session)."""
    payload = "|".join([str(base_seed), *(str(part) for part in parts)]).encode("utf-8")
    return int.from_bytes(hashlib.blake2b(payload, digest_size=4).digest(), "big")
