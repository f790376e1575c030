"""Shared fixtures: catalog records, PNG layers on disk, local bucket and staging."""

import os

import pytest
from PIL import Image

from artgen.clients.memory import MemoryStore
from artgen.clients.storage import LocalStorage
from artgen.models import BatchJob, GenerationRun, Trait, TraitValue
from artgen.services.staging import StagingArea

PROJECT_ID = "p1"
COLLECTION_ID = "c1"

COLORS = {
    "red": (255, 0, 0, 255),
    "blue": (0, 0, 255, 255),
    "green": (0, 255, 0, 255),
    "yellow": (255, 255, 0, 255),
}


def write_png(path, color, size=(4, 4)) -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return str(path)


def make_trait(trait_id: str, z_index: int = 0, always_unique: bool = False) -> Trait:
    return Trait(id=trait_id, name=trait_id.title(), z_index=z_index, is_always_unique=always_unique)


def make_value(value_id: str, trait_id: str, rarity: float) -> TraitValue:
    return TraitValue(id=value_id, trait_id=trait_id, name=value_id.title(), rarity=rarity)


def catalog_record(supply: int, traits: list[dict], values: list[dict], conflicts: list[dict] | None = None) -> dict:
    """Catalog with one image layer per value, stored at layers/<value id>.png."""
    return {
        "collection": {"id": COLLECTION_ID, "name": "Test Collection", "supply": supply},
        "traits": traits,
        "traitValues": values,
        "imageLayers": [
            {"id": f"layer-{v['id']}", "bucketFilename": f"layers/{v['id']}.png", "traitValueId": v["id"]}
            for v in values
        ],
        "conflicts": conflicts or [],
    }


def upload_layers(bucket_root, catalog: dict, skip: tuple[str, ...] = ()):
    """Write a small PNG into the local bucket for every image layer."""
    palette = list(COLORS.values())
    for i, layer in enumerate(catalog["imageLayers"]):
        if layer["id"] in skip:
            continue
        path = os.path.join(bucket_root, PROJECT_ID, COLLECTION_ID, layer["bucketFilename"])
        write_png(path, palette[i % len(palette)])


def batch(start: int, end: int, first: bool = True, group: str = "g1") -> BatchJob:
    run = GenerationRun(project_id=PROJECT_ID, collection_id=COLLECTION_ID, composite_group_id=group)
    return BatchJob(run=run, start_index=start, end_index=end, is_first_batch_in_trait_set=first)


@pytest.fixture
def bucket(tmp_path):
    return LocalStorage(tmp_path / "bucket")


@pytest.fixture
def staging(tmp_path):
    return StagingArea(PROJECT_ID, root=str(tmp_path / "staging"), max_workers=2)


@pytest.fixture
def grid_catalog():
    """Two traits with four equally likely values each: 16 combinations."""
    traits = [
        {"id": "bg", "name": "Background", "zIndex": 0},
        {"id": "eyes", "name": "Eyes", "zIndex": 1},
    ]
    values = [
        {"id": f"{trait}-{i}", "traitId": trait, "name": f"{trait} {i}", "rarity": 0.25}
        for trait in ("bg", "eyes")
        for i in range(4)
    ]
    return catalog_record(8, traits, values)


@pytest.fixture
def memory_store():
    def build(catalog: dict) -> MemoryStore:
        return MemoryStore.from_dict(PROJECT_ID, catalog)
    return build
