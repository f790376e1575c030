"""Data models."""

from .collection import Collection, TraitSet
from .composite import ImageComposite, TraitValuePair
from .conflict import Conflict, ConflictResolutionType
from .image_layer import ImageLayer, OrderedImageLayer
from .run import BatchJob, GenerationRun
from .trait import Trait, TraitValue

__all__ = [
    "BatchJob",
    "Collection",
    "Conflict",
    "ConflictResolutionType",
    "GenerationRun",
    "ImageComposite",
    "ImageLayer",
    "OrderedImageLayer",
    "Trait",
    "TraitSet",
    "TraitValue",
    "TraitValuePair",
]
