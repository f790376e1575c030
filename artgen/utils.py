def source_key(project_id: str, collection_id: str, bucket_filename: str) -> str:
    """Bucket key of an uploaded source layer.

    Example: ("p1", "c1", "bg/red.png") -> "p1/c1/bg/red.png"
    """
    return f"{project_id}/{collection_id}/{bucket_filename}"


def generated_key(project_id: str, collection_id: str, composite_group_id: str, item_index: int) -> str:
    """Bucket key of a generated composite."""
    return f"{project_id}/{collection_id}/generated/{composite_group_id}/{item_index}.png"


def in_trait_set(trait_set_ids: list[str], trait_set_id: str | None) -> bool:
    """Whether an item scoped to `trait_set_ids` is active for a trait set.

    A run without a trait set sees everything.
    """
    if trait_set_id is None:
        return True
    return trait_set_id in trait_set_ids
