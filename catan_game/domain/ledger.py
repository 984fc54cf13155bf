from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional

from .board import PRODUCING_RESOURCES, Resource

ResourceBundle = Mapping[Resource, int]


class InsufficientResourcesError(ValueError):
    """Raised when a ledger cannot cover a requested debit."""


def normalize_bundle(raw: Optional[Mapping[Resource | str, int]]) -> Dict[Resource, int]:
    """Coerce keys to producing resources and drop zero entries.

    Negative amounts and the desert are rejected with ``ValueError``.
    """
    if not raw:
        return {}
    normalized: Dict[Resource, int] = {}
    for key, value in raw.items():
        resource = key if isinstance(key, Resource) else Resource(str(key))
        if resource is Resource.DESERT:
            raise ValueError("Desert is not a tradable resource.")
        amount = int(value)
        if amount < 0:
            raise ValueError(f"Negative amount for {resource.value}: {amount}.")
        if amount == 0:
            continue
        normalized[resource] = normalized.get(resource, 0) + amount
    return normalized


def empty_bundle() -> Dict[Resource, int]:
    return {resource: 0 for resource in PRODUCING_RESOURCES}


def bundle_total(bundle: Mapping[Resource, int]) -> int:
    return int(sum(int(amount) for amount in bundle.values()))


class ResourceLedger(Mapping[Resource, int]):
    """Non-negative multiset of producing resources.

    Used for the bank and for every player hand. Counts never drop below
    zero; a debit that cannot be covered fails before touching any count.
    """

    def __init__(self, initial: Optional[Mapping[Resource | str, int]] = None) -> None:
        self._counts: Dict[Resource, int] = empty_bundle()
        if initial:
            self.add(normalize_bundle(initial))

    def __getitem__(self, resource: Resource) -> int:
        return self._counts[resource]

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        inner = ", ".join(f"{resource.value}={amount}" for resource, amount in self._counts.items())
        return f"ResourceLedger({inner})"

    def count(self, resource: Resource) -> int:
        return self._counts.get(resource, 0)

    def total(self) -> int:
        return bundle_total(self._counts)

    def has(self, bundle: Mapping[Resource, int]) -> bool:
        return all(self.count(resource) >= int(amount) for resource, amount in bundle.items())

    def add(self, bundle: Mapping[Resource, int]) -> None:
        checked = normalize_bundle(bundle)
        for resource, amount in checked.items():
            self._counts[resource] += amount

    def subtract(self, bundle: Mapping[Resource, int]) -> None:
        checked = normalize_bundle(bundle)
        if not self.has(checked):
            raise InsufficientResourcesError(f"Cannot cover {_describe(checked)} from {self!r}.")
        for resource, amount in checked.items():
            self._counts[resource] -= amount

    def take_up_to(self, resource: Resource, amount: int) -> int:
        """Remove at most ``amount`` units of ``resource`` and return how many were taken."""
        if resource is Resource.DESERT or amount <= 0:
            return 0
        taken = min(self._counts[resource], int(amount))
        self._counts[resource] -= taken
        return taken

    def cards(self) -> List[Resource]:
        flattened: List[Resource] = []
        for resource, amount in self._counts.items():
            flattened.extend([resource] * amount)
        return flattened

    def as_dict(self) -> Dict[Resource, int]:
        return dict(self._counts)

    def copy(self) -> "ResourceLedger":
        return ResourceLedger(self._counts)


def transfer(source: ResourceLedger, target: ResourceLedger, bundle: Mapping[Resource, int]) -> None:
    source.subtract(bundle)
    target.add(bundle)


def _describe(bundle: Mapping[Resource, int]) -> str:
    return ", ".join(f"{amount} {resource.value}" for resource, amount in bundle.items()) or "nothing"
