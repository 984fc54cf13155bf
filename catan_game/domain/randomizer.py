from __future__ import annotations

from typing import Callable, Dict, List, MutableSequence, Sequence, TypeVar

from .board import (
    BASE_NUMBER_TOKENS,
    BASE_RESOURCE_POOL,
    BoardState,
    HexTile,
    Resource,
    build_standard_board,
    default_tiles,
)

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF
_MULBERRY_INCREMENT = 0x6D2B79F5

RESOURCE_COUNTS: Dict[Resource, int] = {
    resource: BASE_RESOURCE_POOL.count(resource) for resource in Resource
}


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


class Mulberry32:
    """Small 32-bit PRNG; identical sequences for identical uint32 seeds."""

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & UINT32_MASK

    def random(self) -> float:
        self._state = (self._state + _MULBERRY_INCREMENT) & UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296.0


def seeded_shuffle(items: Sequence[T], rand: Callable[[], float]) -> List[T]:
    shuffled: MutableSequence[T] = list(items)
    for index in range(len(shuffled) - 1, 0, -1):
        swap_index = int(rand() * (index + 1))
        shuffled[index], shuffled[swap_index] = shuffled[swap_index], shuffled[index]
    return list(shuffled)


def randomize_tiles(seed: int) -> List[HexTile]:
    """Shuffle resources and number tokens over the fixed tile positions.

    Pure function of the seed. Resources are shuffled first, then numbers,
    from the same generator.
    """
    rng = Mulberry32(int(seed) & UINT32_MASK)
    resources = seeded_shuffle(BASE_RESOURCE_POOL, rng.random)
    numbers = seeded_shuffle(BASE_NUMBER_TOKENS, rng.random)

    tiles: List[HexTile] = []
    number_index = 0
    for template, resource in zip(default_tiles(), resources):
        if resource is Resource.DESERT:
            token_number = None
        else:
            token_number = numbers[number_index]
            number_index += 1
        tiles.append(
            HexTile(
                id=template.id,
                q=template.q,
                r=template.r,
                resource=resource,
                token_number=token_number,
            )
        )
    return tiles


def generate_randomized_board(seed: int) -> BoardState:
    return build_standard_board(randomize_tiles(seed))


def validate_standard_counts(board: BoardState) -> bool:
    resource_counts: Dict[Resource, int] = {resource: 0 for resource in RESOURCE_COUNTS}
    numbers = []
    for tile in board.tiles:
        resource_counts[tile.resource] += 1
        if tile.resource is Resource.DESERT:
            if tile.token_number is not None:
                return False
        elif tile.token_number is None:
            return False
        else:
            numbers.append(tile.token_number)

    if resource_counts != RESOURCE_COUNTS:
        return False

    return sorted(numbers) == sorted(BASE_NUMBER_TOKENS)
