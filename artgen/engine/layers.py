"""Layer ordering for compositing, including companion layers."""

from typing import Callable

from ..models import ImageLayer, OrderedImageLayer, TraitValuePair
from .draw import Draw


def layers_by_value(image_layers: list[ImageLayer]) -> dict[str, ImageLayer]:
    """Map trait value id -> the image layer representing it."""
    return {layer.trait_value_id: layer for layer in image_layers if layer.trait_value_id}


def attach_layers(draw: Draw, value_layers: dict[str, ImageLayer]) -> list[TraitValuePair]:
    """Set each pair's image layer to the one for its value (None when there is none)."""
    for pair in draw:
        pair.image_layer = value_layers.get(pair.trait_value.id) if pair.trait_value else None
    return draw.pairs


def sort_pairs(pairs: list[TraitValuePair]) -> list[TraitValuePair]:
    """Sort pairs bottom to top by trait z-index. Stable for equal z-indexes."""
    return sorted(pairs, key=lambda pair: pair.trait.z_index)


def plan_layers(sorted_pairs: list[TraitValuePair], image_layers: list[ImageLayer]) -> list[ImageLayer]:
    """
    Order image layers bottom to top, injecting companions.

    Each pair's layer is emitted at its trait's z-index. A layer with a
    companion also emits the companion at the companion's own z-index, which
    may fall anywhere among the other traits, so the combined list is sorted
    again by effective z-index.

    Args:
        sorted_pairs: Pairs already sorted by trait z-index, layers attached
        image_layers: Full image layer catalog, for companion lookup

    Returns:
        Image layers in compositing order
    """
    catalog = {layer.id: layer for layer in image_layers}
    ordered: list[OrderedImageLayer] = []

    for pair in sorted_pairs:
        layer = pair.image_layer
        if layer is None:
            continue

        ordered.append(OrderedImageLayer(image_layer=layer, z_index=pair.trait.z_index))

        if layer.has_companion:
            companion = catalog.get(layer.companion_layer_id)
            if companion:
                ordered.append(OrderedImageLayer(image_layer=companion, z_index=layer.companion_layer_z_index))

    ordered.sort(key=lambda entry: entry.z_index)
    return [entry.image_layer for entry in ordered]


def layer_paths(layers: list[ImageLayer], path_for: Callable[[ImageLayer], str | None]) -> list[str | None]:
    """Map layers to local files. None marks a layer with no usable file."""
    return [path_for(layer) for layer in layers]
