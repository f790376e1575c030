"""Conflict model - declared incompatibility between two trait selections."""

from dataclasses import dataclass, field
from enum import Enum


class ConflictResolutionType(Enum):
    DROP_FIRST = "trait1None"
    DROP_SECOND = "trait2None"
    RANDOMIZE_FIRST = "trait1Random"
    RANDOMIZE_SECOND = "trait2Random"


@dataclass(frozen=True)
class Conflict:
    """Resolve a draw where trait1 (optionally = value1) meets trait2 (optionally = value2).

    A None value id matches any value of that trait.
    """
    id: str
    trait1_id: str
    trait2_id: str
    resolution_type: ConflictResolutionType
    trait1_value_id: str | None = None
    trait2_value_id: str | None = None
    trait_set_ids: list[str] = field(default_factory=list)
