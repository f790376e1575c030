"""Project store interface - catalog readers and composite registry."""

from abc import ABC, abstractmethod

from ..models import (
    Collection,
    Conflict,
    GenerationRun,
    ImageComposite,
    ImageLayer,
    Trait,
    TraitSet,
    TraitValue,
)


class StoreError(Exception):
    """Failed to read or write the project store."""
    pass


class DuplicateHashError(StoreError):
    """A composite with the same traits hash already exists in the composite group."""
    pass


class ProjectStore(ABC):
    """Document store holding a project's collections and generated composites.

    Readers return the full matching set for a run's scope. Ordering is only
    meaningful for conflicts, which are returned in stored order.
    """

    @abstractmethod
    def get_collection(self, project_id: str, collection_id: str) -> Collection:
        pass

    @abstractmethod
    def trait_sets(self, project_id: str, collection_id: str) -> list[TraitSet]:
        """Trait sets in the order they cover the supply."""
        pass

    @abstractmethod
    def traits(self, run: GenerationRun) -> list[Trait]:
        pass

    @abstractmethod
    def trait_values(self, run: GenerationRun, trait: Trait) -> list[TraitValue]:
        """All values of a trait, in stored order."""
        pass

    @abstractmethod
    def image_layers(self, run: GenerationRun) -> list[ImageLayer]:
        pass

    @abstractmethod
    def conflicts(self, run: GenerationRun) -> list[Conflict]:
        pass

    @abstractmethod
    def used_value_ids(self, run: GenerationRun, trait: Trait) -> set[str]:
        """Ids of the trait's values already used by composites of the run's group."""
        pass

    @abstractmethod
    def create_composite(self, composite: ImageComposite, run: GenerationRun) -> ImageComposite:
        """Persist a composite and return it with id/created_at assigned.

        Raises DuplicateHashError if its traits hash is already used in the group.
        """
        pass

    @abstractmethod
    def is_unique_hash(self, traits_hash: str, run: GenerationRun) -> bool:
        pass

    @abstractmethod
    def composites(self, run: GenerationRun) -> list[ImageComposite]:
        """Composites of the run's group, ordered by item index."""
        pass

    def value_pool(
        self,
        run: GenerationRun,
        trait: Trait,
        value_ids_with_images: set[str],
    ) -> list[TraitValue]:
        """Candidate values for a trait in this run.

        Only values that have an image layer in scope are candidates. For
        always-unique traits, values consumed by earlier batches of the
        composite group are excluded.
        """
        values = [v for v in self.trait_values(run, trait) if v.id in value_ids_with_images]
        if trait.is_always_unique:
            used = self.used_value_ids(run, trait)
            values = [v for v in values if v.id not in used]
        return values
