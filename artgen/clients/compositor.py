"""Raster compositor - stacks PNG layers bottom to top with Pillow."""

import logging

from PIL import Image

logger = logging.getLogger(__name__)


class Compositor:
    """Alpha-composites layer files into a single PNG."""

    def composite(self, input_paths: list[str | None], output_path: str) -> bool:
        """
        Composite layers in order, first path at the bottom.

        None entries are skipped. A single layer is converted straight to PNG.
        Layers are aligned at the top-left corner of the bottom layer and
        cropped (or padded with transparency) to its size.

        Args:
            input_paths: Ordered layer paths, bottom to top
            output_path: Destination PNG path

        Returns:
            True if the output was written, False if there was nothing to
            composite or rendering failed
        """
        paths = [p for p in input_paths if p]
        if not paths:
            return False

        first_path, rest = paths[0], paths[1:]

        try:
            with Image.open(first_path) as first:
                base = first.convert("RGBA")

            for path in rest:
                with Image.open(path) as layer_image:
                    layer = layer_image.convert("RGBA")
                if layer.size != base.size:
                    layer = layer.crop((0, 0) + base.size)
                base.alpha_composite(layer)

            base.save(output_path, format="PNG")
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error compositing {len(paths)} layers, first path: {first_path}: {e}")
            return False
