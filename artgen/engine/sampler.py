"""Rarity-weighted trait value sampling."""

import logging
import secrets
from typing import Callable

from ..config import RANDOM_VALUE_MAX_ATTEMPTS, TRAIT_VALUE_RARITY_PRECISION
from ..models import Trait, TraitValue, TraitValuePair
from .draw import Draw

logger = logging.getLogger(__name__)


def total_rarity(trait: Trait, values: list[TraitValue]) -> float:
    """Sum of a weighted trait's rarities. Warns when it exceeds 1.

    Rarities are expected to sum to at most 1. Above that, later values are
    shadowed by earlier segments; the sampler does not reject the config.
    """
    if trait.is_always_unique:
        return 0.0
    total = sum(v.rarity for v in values)
    if total > 1:
        logger.warning(f"Rarities of trait {trait.name} sum to {total:.4f} > 1; later values may never be drawn")
    return total


class RarityWeightedSampler:
    """
    Draws trait values by rarity from a cryptographically secure source.

    Picture a trait with 5 values (A-E) on a bar from 0 to 1, where each
    value's rarity covers some share of the bar:

        0 [--A--|-----B-----|-C-|--D--|-----E-----] 1

    A random number in [0, 1) lands within one of the segments. If rarities
    sum to less than 1 the number can land past the last segment, and the
    draw yields no value.
    """

    def __init__(
        self,
        randbelow: Callable[[int], int] = secrets.randbelow,
        precision: int = TRAIT_VALUE_RARITY_PRECISION,
        max_attempts: int = RANDOM_VALUE_MAX_ATTEMPTS,
    ):
        self.randbelow = randbelow
        self.precision = precision
        self.max_attempts = max_attempts

    def random_number(self) -> float:
        """Secure random number in [0, 1) with `precision` decimal digits."""
        scale = 10 ** self.precision
        return self.randbelow(scale) / scale

    def random_value(
        self,
        values: list[TraitValue],
        is_always_unique: bool,
        exclude_value_id: str | None = None,
    ) -> TraitValue | None:
        """
        Draw one value for a trait.

        Args:
            values: Candidate values, in stored order
            is_always_unique: Draw uniformly instead of by rarity
            exclude_value_id: Redraw while this value comes up

        Returns:
            The drawn value, or None if nothing was drawn or only the
            excluded value came up within the attempt budget
        """
        for _ in range(self.max_attempts):
            value = self._draw(values, is_always_unique)
            if exclude_value_id is None or value is None or value.id != exclude_value_id:
                return value
        return None

    def _draw(self, values: list[TraitValue], is_always_unique: bool) -> TraitValue | None:
        if not values:
            return None

        if is_always_unique:
            return values[self.randbelow(len(values))]

        random_number = self.random_number()
        cumulative = 0.0
        for value in values:
            cumulative += value.rarity
            if random_number <= cumulative:
                return value
        return None

    def random_values(self, traits: list[Trait], pools: dict[str, list[TraitValue]]) -> Draw:
        """Draw a value for every trait."""
        return Draw([
            TraitValuePair(
                trait=trait,
                trait_value=self.random_value(pools.get(trait.id, []), trait.is_always_unique),
            )
            for trait in traits
        ])
