"""A draw - one mutable slot per trait."""

from typing import TYPE_CHECKING, Iterator

from ..models import TraitValuePair

if TYPE_CHECKING:
    from .conflicts import Resolution


class Draw:
    """Trait value pairs indexed by trait id, in trait order.

    Conflict resolution rewrites slots in place, so a later conflict sees
    the effect of an earlier one.
    """

    def __init__(self, pairs: list[TraitValuePair]):
        self.slots: dict[str, TraitValuePair] = {pair.trait.id: pair for pair in pairs}
        self.resolutions: list["Resolution"] = []  # Conflict resolutions applied, in order

    def get(self, trait_id: str) -> TraitValuePair | None:
        return self.slots.get(trait_id)

    @property
    def pairs(self) -> list[TraitValuePair]:
        return list(self.slots.values())

    def __iter__(self) -> Iterator[TraitValuePair]:
        return iter(self.slots.values())

    def __len__(self) -> int:
        return len(self.slots)

    def __repr__(self) -> str:
        values = ", ".join(
            f"{p.trait.name}={p.trait_value.name if p.trait_value else None}" for p in self
        )
        return f"Draw({values})"
