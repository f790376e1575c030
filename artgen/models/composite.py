"""Generated composite models."""

from dataclasses import dataclass, field

from .image_layer import ImageLayer
from .trait import Trait, TraitValue


@dataclass
class TraitValuePair:
    """One slot of a combination. A None value means the trait contributes nothing."""
    trait: Trait
    trait_value: TraitValue | None = None
    image_layer: ImageLayer | None = None


@dataclass(frozen=True)
class ImageComposite:
    """A generated item. Immutable once created."""
    traits: list[TraitValuePair]
    traits_hash: str
    external_url: str | None       # None when the upload failed
    item_index: int | None = None
    composite_group_id: str | None = None
    id: str | None = None          # Assigned by the store
    created_at: str | None = None  # ISO timestamp, assigned by the store

    def value_for(self, trait_id: str) -> TraitValue | None:
        """Value chosen for a trait, or None."""
        for pair in self.traits:
            if pair.trait.id == trait_id:
                return pair.trait_value
        return None

    @property
    def value_ids(self) -> list[str]:
        return [p.trait_value.id for p in self.traits if p.trait_value is not None]
