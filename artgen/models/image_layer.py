"""Image layer models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageLayer:
    """A source raster representing a trait value."""
    id: str
    bucket_filename: str
    name: str = ""
    trait_value_id: str | None = None
    companion_layer_id: str | None = None       # Co-rendered whenever this layer is chosen
    companion_layer_z_index: int | None = None  # Companion's own stacking position
    trait_set_ids: list[str] = field(default_factory=list)

    @property
    def has_companion(self) -> bool:
        return self.companion_layer_id is not None and self.companion_layer_z_index is not None


@dataclass(frozen=True)
class OrderedImageLayer:
    """An emitted layer tagged with its effective z-index."""
    image_layer: ImageLayer
    z_index: int
