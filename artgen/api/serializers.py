"""Serializers between models and camelCase records (JSON catalogs, DynamoDB items, API bodies)."""

from typing import Any

from ..config import NO_TRAIT_SET
from ..models import (
    BatchJob,
    Collection,
    Conflict,
    ConflictResolutionType,
    GenerationRun,
    ImageComposite,
    ImageLayer,
    Trait,
    TraitSet,
    TraitValue,
    TraitValuePair,
)


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


# ===== Catalog records =====

def parse_collection(record: dict) -> Collection:
    return Collection(
        id=record["id"],
        name=record.get("name", ""),
        supply=int(record["supply"]),
    )


def parse_trait_set(record: dict) -> TraitSet:
    return TraitSet(
        id=record["id"],
        name=record.get("name", ""),
        supply=int(record["supply"]),
    )


def parse_trait(record: dict) -> Trait:
    return Trait(
        id=record["id"],
        name=record.get("name", ""),
        z_index=int(record.get("zIndex", 0)),
        is_always_unique=bool(record.get("isAlwaysUnique", False)),
        trait_set_ids=list(record.get("traitSetIds") or []),
    )


def parse_trait_value(record: dict) -> TraitValue:
    return TraitValue(
        id=record["id"],
        trait_id=record["traitId"],
        name=record.get("name", ""),
        rarity=float(record.get("rarity", 0)),
    )


def parse_image_layer(record: dict) -> ImageLayer:
    return ImageLayer(
        id=record["id"],
        bucket_filename=record["bucketFilename"],
        name=record.get("name", ""),
        trait_value_id=record.get("traitValueId"),
        companion_layer_id=record.get("companionLayerId"),
        companion_layer_z_index=_optional_int(record.get("companionLayerZIndex")),
        trait_set_ids=list(record.get("traitSetIds") or []),
    )


def parse_conflict(record: dict) -> Conflict:
    return Conflict(
        id=record["id"],
        trait1_id=record["trait1Id"],
        trait2_id=record["trait2Id"],
        resolution_type=ConflictResolutionType(record["resolutionType"]),
        trait1_value_id=record.get("trait1ValueId"),
        trait2_value_id=record.get("trait2ValueId"),
        trait_set_ids=list(record.get("traitSetIds") or []),
    )


def serialize_trait(trait: Trait) -> dict:
    return {
        "id": trait.id,
        "name": trait.name,
        "zIndex": trait.z_index,
        "isAlwaysUnique": trait.is_always_unique,
    }


def serialize_trait_value(value: TraitValue) -> dict:
    return {
        "id": value.id,
        "traitId": value.trait_id,
        "name": value.name,
        "rarity": value.rarity,
    }


def serialize_image_layer(layer: ImageLayer) -> dict:
    result = {
        "id": layer.id,
        "name": layer.name,
        "bucketFilename": layer.bucket_filename,
        "traitValueId": layer.trait_value_id,
    }
    if layer.has_companion:
        result["companionLayerId"] = layer.companion_layer_id
        result["companionLayerZIndex"] = layer.companion_layer_z_index
    return result


# ===== Composites =====

def serialize_pair(pair: TraitValuePair) -> dict:
    return {
        "trait": serialize_trait(pair.trait),
        "traitValue": serialize_trait_value(pair.trait_value) if pair.trait_value else None,
        "imageLayer": serialize_image_layer(pair.image_layer) if pair.image_layer else None,
    }


def parse_pair(record: dict) -> TraitValuePair:
    value = record.get("traitValue")
    layer = record.get("imageLayer")
    return TraitValuePair(
        trait=parse_trait(record["trait"]),
        trait_value=parse_trait_value(value) if value else None,
        image_layer=parse_image_layer(layer) if layer else None,
    )


def serialize_composite(composite: ImageComposite) -> dict:
    """Serialize a composite for storage and API response."""
    return {
        "id": composite.id,
        "externalURL": composite.external_url,
        "traits": [serialize_pair(p) for p in composite.traits],
        "traitsHash": composite.traits_hash,
        "itemIndex": composite.item_index,
        "compositeGroupId": composite.composite_group_id,
        "createdAt": composite.created_at,
    }


def parse_composite(record: dict) -> ImageComposite:
    return ImageComposite(
        id=record.get("id"),
        external_url=record.get("externalURL"),
        traits=[parse_pair(p) for p in record.get("traits", [])],
        traits_hash=record["traitsHash"],
        item_index=_optional_int(record.get("itemIndex")),
        composite_group_id=record.get("compositeGroupId"),
        created_at=record.get("createdAt"),
    )


# ===== Jobs =====

def serialize_batch_job(job: BatchJob) -> dict:
    """Serialize a batch for the work queue."""
    return {
        "projectId": job.run.project_id,
        "collectionId": job.run.collection_id,
        "compositeGroupId": job.run.composite_group_id,
        "traitSetId": job.run.trait_set_id or NO_TRAIT_SET,
        "startIndex": job.start_index,
        "endIndex": job.end_index,
        "isFirstBatchInTraitSet": job.is_first_batch_in_trait_set,
    }


def parse_batch_job(body: dict) -> BatchJob:
    """Parse a queued batch. Raises KeyError/ValueError on malformed input."""
    trait_set_id = body.get("traitSetId") or NO_TRAIT_SET
    start_index = int(body["startIndex"])
    end_index = int(body["endIndex"])
    if start_index < 0 or end_index < start_index:
        raise ValueError(f"Invalid index range [{start_index}, {end_index})")

    run = GenerationRun(
        project_id=body["projectId"],
        collection_id=body["collectionId"],
        composite_group_id=body["compositeGroupId"],
        trait_set_id=None if trait_set_id == NO_TRAIT_SET else trait_set_id,
    )
    return BatchJob(
        run=run,
        start_index=start_index,
        end_index=end_index,
        is_first_batch_in_trait_set=bool(body.get("isFirstBatchInTraitSet", False)),
    )
