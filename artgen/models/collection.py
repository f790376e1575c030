"""Collection model - the supply a run generates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Collection:
    """A collection of `supply` items to generate."""
    id: str
    name: str
    supply: int


@dataclass(frozen=True)
class TraitSet:
    """Named subset of traits active for `supply` consecutive items of a collection."""
    id: str
    name: str
    supply: int
