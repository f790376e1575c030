"""Run descriptors passed from the scheduler to the engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationRun:
    """One generation pass over a collection. The composite group is the uniqueness scope."""
    project_id: str
    collection_id: str
    composite_group_id: str
    trait_set_id: str | None = None


@dataclass(frozen=True)
class BatchJob:
    """A contiguous index window [start_index, end_index) of a run."""
    run: GenerationRun
    start_index: int
    end_index: int
    is_first_batch_in_trait_set: bool = False

    @property
    def size(self) -> int:
        return self.end_index - self.start_index
