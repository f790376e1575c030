"""In-process project store for local runs and tests."""

import json
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

from ..api.serializers import (
    parse_collection,
    parse_conflict,
    parse_image_layer,
    parse_trait,
    parse_trait_set,
    parse_trait_value,
)
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
from ..utils import in_trait_set
from .store import DuplicateHashError, ProjectStore, StoreError


@dataclass
class Catalog:
    """Everything authored for one collection."""
    collection: Collection
    trait_sets: list[TraitSet] = field(default_factory=list)
    traits: list[Trait] = field(default_factory=list)
    trait_values: list[TraitValue] = field(default_factory=list)
    image_layers: list[ImageLayer] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)


class MemoryStore(ProjectStore):
    """Dict-backed store. Catalogs are keyed by (project_id, collection_id)."""

    def __init__(self):
        self.catalogs: dict[tuple[str, str], Catalog] = {}
        self.composites_by_group: dict[tuple[str, str, str], list[ImageComposite]] = {}

    @classmethod
    def from_dict(cls, project_id: str, data: dict) -> "MemoryStore":
        store = cls()
        store.add_catalog(project_id, data)
        return store

    @classmethod
    def from_json_file(cls, project_id: str, path: str | Path) -> "MemoryStore":
        with open(path) as f:
            return cls.from_dict(project_id, json.load(f))

    def add_catalog(self, project_id: str, data: dict) -> Catalog:
        """Add a collection catalog given as camelCase records.

        {
            "collection": {"id": ..., "supply": ...},
            "traitSets": [...], "traits": [...], "traitValues": [...],
            "imageLayers": [...], "conflicts": [...]
        }
        """
        catalog = Catalog(
            collection=parse_collection(data["collection"]),
            trait_sets=[parse_trait_set(r) for r in data.get("traitSets", [])],
            traits=[parse_trait(r) for r in data.get("traits", [])],
            trait_values=[parse_trait_value(r) for r in data.get("traitValues", [])],
            image_layers=[parse_image_layer(r) for r in data.get("imageLayers", [])],
            conflicts=[parse_conflict(r) for r in data.get("conflicts", [])],
        )
        self.catalogs[(project_id, catalog.collection.id)] = catalog
        return catalog

    def _catalog(self, project_id: str, collection_id: str) -> Catalog:
        try:
            return self.catalogs[(project_id, collection_id)]
        except KeyError:
            raise StoreError(f"Unknown collection {collection_id} in project {project_id}")

    def _group(self, run: GenerationRun) -> list[ImageComposite]:
        key = (run.project_id, run.collection_id, run.composite_group_id)
        return self.composites_by_group.setdefault(key, [])

    def get_collection(self, project_id: str, collection_id: str) -> Collection:
        return self._catalog(project_id, collection_id).collection

    def trait_sets(self, project_id: str, collection_id: str) -> list[TraitSet]:
        return list(self._catalog(project_id, collection_id).trait_sets)

    def traits(self, run: GenerationRun) -> list[Trait]:
        catalog = self._catalog(run.project_id, run.collection_id)
        return [t for t in catalog.traits if in_trait_set(t.trait_set_ids, run.trait_set_id)]

    def trait_values(self, run: GenerationRun, trait: Trait) -> list[TraitValue]:
        catalog = self._catalog(run.project_id, run.collection_id)
        return [v for v in catalog.trait_values if v.trait_id == trait.id]

    def image_layers(self, run: GenerationRun) -> list[ImageLayer]:
        catalog = self._catalog(run.project_id, run.collection_id)
        return [
            layer for layer in catalog.image_layers
            if in_trait_set(layer.trait_set_ids, run.trait_set_id)
        ]

    def conflicts(self, run: GenerationRun) -> list[Conflict]:
        catalog = self._catalog(run.project_id, run.collection_id)
        return [c for c in catalog.conflicts if in_trait_set(c.trait_set_ids, run.trait_set_id)]

    def used_value_ids(self, run: GenerationRun, trait: Trait) -> set[str]:
        used = set()
        for composite in self._group(run):
            value = composite.value_for(trait.id)
            if value is not None:
                used.add(value.id)
        return used

    def create_composite(self, composite: ImageComposite, run: GenerationRun) -> ImageComposite:
        if not self.is_unique_hash(composite.traits_hash, run):
            raise DuplicateHashError(f"Traits hash {composite.traits_hash} already used in {run.composite_group_id}")

        created = replace(
            composite,
            id=uuid.uuid4().hex,
            composite_group_id=run.composite_group_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._group(run).append(created)
        return created

    def is_unique_hash(self, traits_hash: str, run: GenerationRun) -> bool:
        return all(c.traits_hash != traits_hash for c in self._group(run))

    def composites(self, run: GenerationRun) -> list[ImageComposite]:
        return sorted(self._group(run), key=lambda c: c.item_index or 0)
