"""Batch planning - split a run's supply into contiguous index windows."""

from ..models import BatchJob, GenerationRun, TraitSet


class ScheduleError(Exception):
    """Invalid batch plan request."""
    pass


def plan_batches(
    run: GenerationRun,
    supply: int,
    batch_size: int,
    trait_sets: list[TraitSet] | None = None,
) -> list[BatchJob]:
    """
    Plan the batches of a run.

    Trait sets cover the supply in order, each for `trait_set.supply` items.
    Batches never cross a trait set boundary, and the first batch of each
    segment is flagged so its layers get prefetched. Supply left over after
    the trait sets (or all of it, without trait sets) runs unscoped.

    Args:
        run: Run descriptor; its trait_set_id is replaced per segment
        supply: Collection supply
        batch_size: Maximum items per batch
        trait_sets: Trait sets in supply order

    Returns:
        Batches covering [0, supply) in order
    """
    if batch_size <= 0:
        raise ScheduleError(f"batch_size must be positive, got {batch_size}")
    if supply < 0:
        raise ScheduleError(f"supply must not be negative, got {supply}")

    segments: list[tuple[str | None, int, int]] = []
    start = 0
    for trait_set in trait_sets or []:
        end = min(start + trait_set.supply, supply)
        if end > start:
            segments.append((trait_set.id, start, end))
        start = end
    if start < supply:
        segments.append((None, start, supply))

    jobs = []
    for trait_set_id, segment_start, segment_end in segments:
        segment_run = GenerationRun(
            project_id=run.project_id,
            collection_id=run.collection_id,
            composite_group_id=run.composite_group_id,
            trait_set_id=trait_set_id,
        )
        for batch_start in range(segment_start, segment_end, batch_size):
            jobs.append(BatchJob(
                run=segment_run,
                start_index=batch_start,
                end_index=min(batch_start + batch_size, segment_end),
                is_first_batch_in_trait_set=batch_start == segment_start,
            ))
    return jobs
