"""Generation engine."""

from .conflicts import ConflictResolver, Resolution
from .draw import Draw
from .engine import ArtworkEngine, BatchContext, BatchRangeError
from .layers import attach_layers, layer_paths, layers_by_value, plan_layers, sort_pairs
from .sampler import RarityWeightedSampler, total_rarity
from .uniqueness import DrawOutcome, DrawState, UniquenessRegistry, fingerprint

__all__ = [
    "ArtworkEngine",
    "BatchContext",
    "BatchRangeError",
    "ConflictResolver",
    "Draw",
    "DrawOutcome",
    "DrawState",
    "RarityWeightedSampler",
    "Resolution",
    "UniquenessRegistry",
    "attach_layers",
    "fingerprint",
    "layer_paths",
    "layers_by_value",
    "plan_layers",
    "sort_pairs",
    "total_rarity",
]
