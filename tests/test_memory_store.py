"""Tests for the in-memory project store."""

import pytest

from artgen.clients.memory import MemoryStore
from artgen.clients.store import DuplicateHashError, StoreError
from artgen.models import GenerationRun, ImageComposite, TraitValuePair

from conftest import PROJECT_ID, catalog_record, make_trait, make_value


@pytest.fixture
def store():
    traits = [
        {"id": "bg", "name": "Background", "zIndex": 0},
        {"id": "id", "name": "Id", "zIndex": 1, "isAlwaysUnique": True},
    ]
    values = [
        {"id": "red", "traitId": "bg", "name": "Red", "rarity": 0.5},
        {"id": "id-0", "traitId": "id", "name": "Id 0", "rarity": -1},
        {"id": "id-1", "traitId": "id", "name": "Id 1", "rarity": -1},
    ]
    catalog = catalog_record(4, traits, values)
    catalog["traitValues"].append({"id": "blue", "traitId": "bg", "name": "Blue", "rarity": 0.5})
    return MemoryStore.from_dict(PROJECT_ID, catalog)


@pytest.fixture
def run():
    return GenerationRun(PROJECT_ID, "c1", "g1")


def composite(value, traits_hash="h1", item_index=0) -> ImageComposite:
    pair = TraitValuePair(trait=make_trait("id", z_index=1, always_unique=True), trait_value=value)
    return ImageComposite(traits=[pair], traits_hash=traits_hash, external_url=None, item_index=item_index)


class TestMemoryStore:

    def test_unknown_collection(self, store):
        with pytest.raises(StoreError):
            store.get_collection(PROJECT_ID, "missing")

    def test_value_pool_requires_image_layer(self, store, run):
        bg = store.traits(run)[0]
        with_images = {layer.trait_value_id for layer in store.image_layers(run)}

        assert [v.id for v in store.value_pool(run, bg, with_images)] == ["red"]

    def test_value_pool_excludes_used_always_unique(self, store, run):
        trait = store.traits(run)[1]
        with_images = {layer.trait_value_id for layer in store.image_layers(run)}
        store.create_composite(composite(make_value("id-0", "id", -1)), run)

        assert [v.id for v in store.value_pool(run, trait, with_images)] == ["id-1"]

    def test_duplicate_hash_rejected(self, store, run):
        store.create_composite(composite(None), run)

        with pytest.raises(DuplicateHashError):
            store.create_composite(composite(None, item_index=1), run)

    def test_composites_ordered_by_index(self, store, run):
        store.create_composite(composite(None, "h2", item_index=2), run)
        store.create_composite(composite(None, "h1", item_index=1), run)

        assert [c.item_index for c in store.composites(run)] == [1, 2]
        assert all(c.created_at for c in store.composites(run))
