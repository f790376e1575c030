"""Conflict resolution between trait value pairs."""

import logging
from dataclasses import dataclass

from ..models import Conflict, ConflictResolutionType, TraitValue, TraitValuePair
from .draw import Draw
from .sampler import RarityWeightedSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """What a matched conflict did to a draw."""
    conflict_id: str
    trait_name: str                 # Trait whose value was rewritten
    old_value: TraitValue | None
    new_value: TraitValue | None
    action: str                     # "dropped" or "updated"


class ConflictResolver:
    """Rewrite a draw so that none of the configured conflicts apply.

    Conflicts are processed in stored order against the same draw. There is
    no cycle detection: a conflict graph that keeps re-triggering is a
    configuration problem, and the last rewrite wins.
    """

    def __init__(self, sampler: RarityWeightedSampler):
        self.sampler = sampler

    def resolve(
        self,
        draw: Draw,
        conflicts: list[Conflict],
        pools: dict[str, list[TraitValue]],
    ) -> Draw:
        """Resolve conflicts in place and return the same draw.

        Applied resolutions are appended to `draw.resolutions`.
        """
        for conflict in conflicts:
            resolution = self._resolve_one(draw, conflict, pools)
            if resolution:
                draw.resolutions.append(resolution)
        return draw

    def _resolve_one(
        self,
        draw: Draw,
        conflict: Conflict,
        pools: dict[str, list[TraitValue]],
    ) -> Resolution | None:
        pair1 = draw.get(conflict.trait1_id)
        pair2 = draw.get(conflict.trait2_id)
        if pair1 is None or pair2 is None:
            return None

        if not _matches(pair1, conflict.trait1_value_id):
            return None
        if not _matches(pair2, conflict.trait2_value_id):
            return None

        trait1_desc = f"{pair1.trait.name}:{_value_name(pair1, conflict.trait1_value_id)}"
        trait2_desc = f"{pair2.trait.name}:{_value_name(pair2, conflict.trait2_value_id)}"

        resolution_type = conflict.resolution_type
        if resolution_type == ConflictResolutionType.DROP_FIRST:
            resolution = self._drop(pair1, conflict)
        elif resolution_type == ConflictResolutionType.DROP_SECOND:
            resolution = self._drop(pair2, conflict)
        elif resolution_type == ConflictResolutionType.RANDOMIZE_FIRST:
            resolution = self._randomize(pair1, conflict, pools)
        elif resolution_type == ConflictResolutionType.RANDOMIZE_SECOND:
            resolution = self._randomize(pair2, conflict, pools)
        else:
            raise ValueError(f"Unknown resolution type: {resolution_type}")

        new_name = resolution.new_value.name if resolution.new_value else "None"
        logger.info(
            f"Resolved conflict for {trait1_desc} and {trait2_desc}: "
            f"{resolution.action} {resolution.trait_name}"
            + (f" to {new_name}" if resolution.action == "updated" else "")
        )
        return resolution

    def _drop(self, pair: TraitValuePair, conflict: Conflict) -> Resolution:
        old_value = pair.trait_value
        pair.trait_value = None
        return Resolution(conflict.id, pair.trait.name, old_value, None, "dropped")

    def _randomize(
        self,
        pair: TraitValuePair,
        conflict: Conflict,
        pools: dict[str, list[TraitValue]],
    ) -> Resolution:
        old_value = pair.trait_value
        pair.trait_value = self.sampler.random_value(
            pools.get(pair.trait.id, []),
            pair.trait.is_always_unique,
            exclude_value_id=old_value.id if old_value else None,
        )
        return Resolution(conflict.id, pair.trait.name, old_value, pair.trait_value, "updated")


def _matches(pair: TraitValuePair, value_id: str | None) -> bool:
    """A conflict side without a value id matches any value of the trait."""
    if value_id is None:
        return True
    return pair.trait_value is not None and pair.trait_value.id == value_id


def _value_name(pair: TraitValuePair, value_id: str | None) -> str:
    if value_id is None or pair.trait_value is None:
        return "Any"
    return pair.trait_value.name
