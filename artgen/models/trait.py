"""Trait and trait value models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Trait:
    """A categorical attribute of an item (e.g. "Background")."""
    id: str
    name: str
    z_index: int = 0                      # Layering order, bottom to top
    is_always_unique: bool = False        # Each value used by at most one item per run
    trait_set_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TraitValue:
    """One possible setting of a trait.

    Rarity is a relative weight in [0, 1]. Values of always-unique traits
    carry rarity -1 and are drawn uniformly instead.
    """
    id: str
    trait_id: str
    name: str
    rarity: float = 0.0
