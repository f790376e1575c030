"""Artwork generation engine - one batch of a run at a time."""

import logging
from dataclasses import dataclass, field

from ..clients.compositor import Compositor
from ..clients.storage import LocalStorage, StorageClient, StorageError
from ..clients.store import ProjectStore, StoreError
from ..models import (
    BatchJob,
    Collection,
    Conflict,
    GenerationRun,
    ImageComposite,
    ImageLayer,
    Trait,
    TraitValue,
)
from ..services.staging import StagingArea
from ..utils import generated_key
from .conflicts import ConflictResolver
from .layers import attach_layers, layer_paths, layers_by_value, plan_layers, sort_pairs
from .sampler import RarityWeightedSampler, total_rarity
from .uniqueness import DrawState, UniquenessRegistry, fingerprint

logger = logging.getLogger(__name__)


class BatchRangeError(Exception):
    """Batch index range falls outside the collection supply."""
    pass


@dataclass
class BatchContext:
    """Everything loaded once per batch.

    `pools` is the per-trait candidate list. Always-unique values are removed
    from it as items consume them, so later draws in the batch cannot reuse
    them.
    """
    collection: Collection
    traits: list[Trait]
    image_layers: list[ImageLayer]
    conflicts: list[Conflict]
    value_layers: dict[str, ImageLayer] = field(default_factory=dict)
    pools: dict[str, list[TraitValue]] = field(default_factory=dict)


class ArtworkEngine:
    """Generates, renders and records the composites of a batch.

    Items are generated strictly in index order: each item's draw must see
    the hashes and always-unique values consumed by the previous one.
    """

    def __init__(
        self,
        store: ProjectStore,
        storage: StorageClient | LocalStorage,
        compositor: Compositor | None = None,
        sampler: RarityWeightedSampler | None = None,
        staging: StagingArea | None = None,
    ):
        self.store = store
        self.storage = storage
        self.compositor = compositor or Compositor()
        self.sampler = sampler or RarityWeightedSampler()
        self.resolver = ConflictResolver(self.sampler)
        self.staging = staging

    def generate(self, job: BatchJob) -> list[ImageComposite | None]:
        """
        Generate composites for indexes [job.start_index, job.end_index).

        Returns one entry per index, in index order. None marks an index
        that produced no composite (no unused combination found, or
        rendering failed). Never raises for per-item failures, store errors
        included. Raises BatchRangeError if the range ends past the supply.
        """
        run = job.run
        staging = self.staging or StagingArea(run.project_id)
        logger.info(f"Generate artwork for project: {run.project_id} collection: {run.collection_id}")

        context = self._load(run)
        if job.end_index > context.collection.supply:
            raise BatchRangeError(
                f"Batch {job.start_index} - {job.end_index} exceeds supply {context.collection.supply}"
            )

        # Setup only needed at the beginning of a run
        if job.start_index == 0:
            staging.prepare()

        if job.is_first_batch_in_trait_set:
            staging.prefetch(self.storage, run.collection_id, context.image_layers)
        else:
            # Staging is local to the container, which may not be the one that prefetched
            staging.fetch_missing(self.storage, run.collection_id, context.image_layers)

        logger.info(f"Generating: {job.start_index} - {job.end_index}")
        logger.info(f"Trait set: {run.trait_set_id}")
        logger.info(f"Matching traits: {len(context.traits)}")
        logger.info(f"Matching trait values: {sum(len(p) for p in context.pools.values())}")
        logger.info(f"Matching image layers: {len(context.image_layers)}")

        if self._has_inputs(context):
            composites = self._generate_batch(job, context, staging)
        else:
            composites = []

        # Cleanup only after the last batch of the run
        if job.end_index == context.collection.supply:
            staging.teardown()

        return composites

    def _load(self, run: GenerationRun) -> BatchContext:
        """Fetch the collection, traits, layers and conflicts, then each trait's value pool."""
        context = BatchContext(
            collection=self.store.get_collection(run.project_id, run.collection_id),
            traits=self.store.traits(run),
            image_layers=self.store.image_layers(run),
            conflicts=self.store.conflicts(run),
        )
        context.value_layers = layers_by_value(context.image_layers)

        value_ids_with_images = set(context.value_layers)
        for trait in context.traits:
            pool = self.store.value_pool(run, trait, value_ids_with_images)
            total_rarity(trait, pool)
            context.pools[trait.id] = pool

        return context

    def _has_inputs(self, context: BatchContext) -> bool:
        if not context.traits:
            logger.info("No matching traits")
            return False
        if not any(context.pools.values()):
            logger.info("No matching trait values")
            return False
        if not context.image_layers:
            logger.info("No matching image layers")
            return False
        return True

    def _generate_batch(
        self,
        job: BatchJob,
        context: BatchContext,
        staging: StagingArea,
    ) -> list[ImageComposite | None]:
        registry = UniquenessRegistry(self.store, job.run)
        composites: list[ImageComposite | None] = []

        for item_index in range(job.start_index, job.end_index):
            try:
                composite = self._generate_item(item_index, job.run, context, registry, staging)
            except StoreError as e:
                logger.error(f"Store error on item {item_index}, skipping: {e}")
                composite = None
            composites.append(composite)

            if composite:
                self._remove_used_always_unique_values(context, composite)

        generated = sum(1 for c in composites if c)
        logger.info(f"Generated {generated}/{len(composites)} composites for {job.start_index} - {job.end_index}")
        return composites

    def _generate_item(
        self,
        item_index: int,
        run: GenerationRun,
        context: BatchContext,
        registry: UniquenessRegistry,
        staging: StagingArea,
    ) -> ImageComposite | None:
        # 1. Draw a combination not used in this composite group yet
        outcome = registry.find_unused_draw(
            lambda: self.sampler.random_values(context.traits, context.pools)
        )
        if outcome.state == DrawState.EXHAUSTED:
            logger.warning(f"Abandoning item {item_index}: no unused combination after {outcome.attempts} attempts")
            return None

        # 2. Deal with any pairs that conflict
        draw = self.resolver.resolve(outcome.draw, context.conflicts, context.pools)

        # 3. Order the layers representing each value, companions included
        pairs = sort_pairs(attach_layers(draw, context.value_layers))
        layers = plan_layers(pairs, context.image_layers)
        input_paths = layer_paths(layers, staging.existing_layer_path)

        # 4. Render
        output_path = staging.output_path(item_index)
        if not self.compositor.composite(input_paths, output_path):
            logger.error(f"Compositing failed for item {item_index} ({len(layers)} layers)")
            return None

        # 5. Upload and record
        external_url = self._upload(output_path, run, item_index)
        composite = ImageComposite(
            traits=pairs,
            traits_hash=fingerprint(pairs),
            external_url=external_url,
            item_index=item_index,
            composite_group_id=run.composite_group_id,
        )
        return registry.record(composite, base_hash=outcome.traits_hash)

    def _upload(self, output_path: str, run: GenerationRun, item_index: int) -> str | None:
        """Upload a rendered composite. Returns None if the upload failed."""
        key = generated_key(run.project_id, run.collection_id, run.composite_group_id, item_index)
        try:
            return self.storage.put(output_path, key, "image/png")
        except StorageError as e:
            logger.error(f"Error uploading item {item_index} to {key}: {e}")
            return None

    def _remove_used_always_unique_values(self, context: BatchContext, composite: ImageComposite):
        """Drop always-unique values the composite used from the batch pools."""
        for trait in context.traits:
            if not trait.is_always_unique:
                continue
            value = composite.value_for(trait.id)
            if value is None:
                continue
            pool = context.pools.get(trait.id, [])
            pool[:] = [v for v in pool if v.id != value.id]
