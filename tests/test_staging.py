"""Tests for the staging directory and layer prefetch."""

import os

from artgen.models import ImageLayer

from conftest import COLLECTION_ID, COLORS, PROJECT_ID, write_png


def layer(layer_id: str) -> ImageLayer:
    return ImageLayer(id=layer_id, bucket_filename=f"layers/{layer_id}.png")


class TestStagingArea:

    def test_paths(self, staging):
        assert staging.layers_dir == os.path.join(staging.root, PROJECT_ID, "layered-images")
        assert staging.layer_path(layer("l1")).endswith(os.path.join("layered-images", "l1.png"))
        assert staging.output_path(3) == os.path.join(staging.root, PROJECT_ID, "3.png")

    def test_prefetch_downloads_each_layer_once(self, staging, bucket):
        write_png(bucket.root / PROJECT_ID / COLLECTION_ID / "layers" / "l1.png", COLORS["red"])
        write_png(bucket.root / PROJECT_ID / COLLECTION_ID / "layers" / "l2.png", COLORS["blue"])

        results = staging.prefetch(bucket, COLLECTION_ID, [layer("l1"), layer("l2"), layer("l1")])

        assert results == {"l1": staging.layer_path(layer("l1")), "l2": staging.layer_path(layer("l2"))}
        assert sorted(os.listdir(staging.layers_dir)) == ["l1.png", "l2.png"]

    def test_failed_download_maps_to_none(self, staging, bucket, caplog):
        write_png(bucket.root / PROJECT_ID / COLLECTION_ID / "layers" / "l1.png", COLORS["red"])

        results = staging.prefetch(bucket, COLLECTION_ID, [layer("l1"), layer("gone")])

        assert results["gone"] is None
        assert staging.existing_layer_path(layer("gone")) is None
        assert staging.existing_layer_path(layer("l1")) is not None
        assert "1/2 image layers failed" in caplog.text

    def test_prefetch_nothing(self, staging, bucket):
        assert staging.prefetch(bucket, COLLECTION_ID, []) == {}

    def test_teardown(self, staging):
        staging.prepare()
        assert os.path.isdir(staging.layers_dir)

        assert staging.teardown()
        assert not os.path.exists(staging.project_dir)
        assert staging.teardown()

    def test_fetch_missing_downloads_only_absent_layers(self, staging, bucket):
        write_png(bucket.root / PROJECT_ID / COLLECTION_ID / "layers" / "l1.png", COLORS["red"])
        write_png(bucket.root / PROJECT_ID / COLLECTION_ID / "layers" / "l2.png", COLORS["blue"])
        staging.prefetch(bucket, COLLECTION_ID, [layer("l1")])

        fetched = staging.fetch_missing(bucket, COLLECTION_ID, [layer("l1"), layer("l2")])

        assert list(fetched) == ["l2"]
        assert staging.existing_layer_path(layer("l2")) is not None
        assert staging.fetch_missing(bucket, COLLECTION_ID, [layer("l1"), layer("l2")]) == {}
