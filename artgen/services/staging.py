"""Staging directory for downloaded layers and rendered composites."""

import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..clients.storage import StorageError
from ..config import PREFETCH_WORKERS, STAGING_ROOT
from ..models import ImageLayer
from ..utils import source_key

logger = logging.getLogger(__name__)


class StagingArea:
    """Per-project scratch space shared by the batches of a run.

    <root>/<project id>/                   rendered composites (<index>.png)
    <root>/<project id>/layered-images/    downloaded source layers (<layer id>.png)
    """

    def __init__(self, project_id: str, root: str = STAGING_ROOT, max_workers: int = PREFETCH_WORKERS):
        self.project_id = project_id
        self.root = root
        self.max_workers = max_workers

    @property
    def project_dir(self) -> str:
        return os.path.join(self.root, self.project_id)

    @property
    def layers_dir(self) -> str:
        return os.path.join(self.project_dir, "layered-images")

    def layer_path(self, layer: ImageLayer) -> str:
        return os.path.join(self.layers_dir, f"{layer.id}.png")

    def existing_layer_path(self, layer: ImageLayer) -> str | None:
        """Local path of a layer, or None if it was never fetched."""
        path = self.layer_path(layer)
        return path if os.path.exists(path) else None

    def output_path(self, item_index: int) -> str:
        return os.path.join(self.project_dir, f"{item_index}.png")

    def prepare(self):
        """Create the project and layer directories."""
        os.makedirs(self.layers_dir, exist_ok=True)
        logger.info(f"Prepared staging directory {self.project_dir}")

    def teardown(self) -> bool:
        """Delete all downloaded layers and composites. Failures are logged only."""
        try:
            shutil.rmtree(self.project_dir)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.error(f"Staging cleanup failed for {self.project_dir}: {e}")
            return False
        logger.info(f"Removed staging directory {self.project_dir}")
        return True

    def prefetch(self, storage, collection_id: str, layers: list[ImageLayer]) -> dict[str, str | None]:
        """
        Download every distinct layer concurrently.

        Each download fails independently; a failed layer maps to None and
        later renders as absent.

        Args:
            storage: Blob store with download(key, destination)
            collection_id: Collection owning the layers
            layers: Layers to fetch (duplicates by id are fetched once)

        Returns:
            Layer id -> local path, or None for failed downloads
        """
        distinct = list({layer.id: layer for layer in layers}.values())
        if not distinct:
            return {}

        os.makedirs(self.layers_dir, exist_ok=True)
        logger.info(f"Prefetching {len(distinct)} image layers")

        results: dict[str, str | None] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._download, storage, collection_id, layer): layer
                for layer in distinct
            }
            for future in as_completed(futures):
                layer = futures[future]
                results[layer.id] = future.result()

        failed = sum(1 for path in results.values() if path is None)
        if failed:
            logger.warning(f"{failed}/{len(distinct)} image layers failed to download")
        return results

    def fetch_missing(self, storage, collection_id: str, layers: list[ImageLayer]) -> dict[str, str | None]:
        """
        Download only the layers not already on local disk.

        The staging directory lives on the container running the batch, so a
        batch can start without the layers an earlier batch prefetched.

        Returns:
            Layer id -> local path (or None) for the layers that were missing
        """
        missing = [layer for layer in layers if self.existing_layer_path(layer) is None]
        if not missing:
            return {}
        logger.info(f"{len(missing)} image layers not staged locally")
        return self.prefetch(storage, collection_id, missing)

    def _download(self, storage, collection_id: str, layer: ImageLayer) -> str | None:
        key = source_key(self.project_id, collection_id, layer.bucket_filename)
        destination = self.layer_path(layer)
        try:
            return storage.download(key, destination)
        except StorageError as e:
            logger.error(f"Failed to download layer {layer.id} to {destination}: {e}")
            return None
