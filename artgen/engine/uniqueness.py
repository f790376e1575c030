"""Traits hash fingerprinting and uniqueness checks within a composite group."""

import hashlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from ..clients.store import DuplicateHashError, ProjectStore
from ..config import UNIQUE_DRAW_MAX_ATTEMPTS
from ..models import GenerationRun, ImageComposite, TraitValuePair
from .draw import Draw

logger = logging.getLogger(__name__)


class DrawState(Enum):
    SAMPLING = "sampling"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


@dataclass
class DrawOutcome:
    """Result of searching for an unused combination."""
    state: DrawState
    attempts: int = 0
    draw: Draw | None = None
    traits_hash: str | None = None  # Fingerprint of the unresolved draw


def fingerprint(pairs: Iterable[TraitValuePair]) -> str:
    """Canonical traits hash of a combination.

    Pairs are keyed by trait id and sorted, so pair order does not matter.
    A trait without a value is encoded with an empty value id.
    """
    entries = sorted(
        (pair.trait.id, pair.trait_value.id if pair.trait_value else "")
        for pair in pairs
    )
    canonical = ";".join(f"{trait_id}:{value_id}" for trait_id, value_id in entries)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class UniquenessRegistry:
    """Tracks which traits hashes a run has consumed.

    The store holds hashes persisted by earlier batches; hashes consumed in
    this batch are also kept locally so a draw never repeats one before the
    store reflects it.
    """

    def __init__(
        self,
        store: ProjectStore,
        run: GenerationRun,
        max_attempts: int = UNIQUE_DRAW_MAX_ATTEMPTS,
    ):
        self.store = store
        self.run = run
        self.max_attempts = max_attempts
        self.consumed: set[str] = set()

    def reserve(self, traits_hash: str) -> bool:
        """Whether a hash is still unused in the run's composite group."""
        if traits_hash in self.consumed:
            return False
        return self.store.is_unique_hash(traits_hash, self.run)

    def find_unused_draw(self, sample: Callable[[], Draw]) -> DrawOutcome:
        """Sample until a draw with an unused fingerprint comes up.

        Gives up after `max_attempts` draws rather than producing a duplicate.
        """
        outcome = DrawOutcome(state=DrawState.SAMPLING)

        while outcome.state == DrawState.SAMPLING:
            draw = sample()
            traits_hash = fingerprint(draw)
            outcome.attempts += 1

            if self.reserve(traits_hash):
                outcome.state = DrawState.SUCCESS
                outcome.draw = draw
                outcome.traits_hash = traits_hash
            elif outcome.attempts >= self.max_attempts:
                outcome.state = DrawState.EXHAUSTED
                logger.warning(f"Unable to find unused trait combination after {outcome.attempts} attempts, last draw: {draw}")

        return outcome

    def record(self, composite: ImageComposite, base_hash: str | None = None) -> ImageComposite | None:
        """Persist a composite and mark its hashes consumed.

        Returns None if the store already holds the composite's hash.
        """
        try:
            created = self.store.create_composite(composite, self.run)
        except DuplicateHashError as e:
            logger.warning(f"Skipping duplicate composite at index {composite.item_index}: {e}")
            if base_hash:
                self.consumed.add(base_hash)
            return None

        self.consumed.add(created.traits_hash)
        if base_hash:
            self.consumed.add(base_hash)
        return created
