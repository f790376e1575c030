"""Blob storage clients for source layers and generated composites."""

import os
import shutil
from pathlib import Path
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError


class StorageError(Exception):
    """Failed to read or write a blob."""
    pass


class StorageClient:
    """S3 bucket holding source layers and generated composites."""

    def __init__(self, bucket: str, region_name: str | None = None):
        self.bucket = bucket
        self.region_name = region_name or "us-east-1"
        self.s3 = boto3.client("s3", region_name=self.region_name)

    def get(self, key: str) -> bytes:
        """Read a blob into memory."""
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to get s3://{self.bucket}/{key}: {e}")

    def download(self, key: str, destination: str) -> str:
        """Download a blob to a local path. Returns the path."""
        try:
            self.s3.download_file(self.bucket, key, destination)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to download s3://{self.bucket}/{key}: {e}")
        return destination

    def put(self, path: str, key: str, content_type: str = "image/png") -> str:
        """
        Upload a local file.

        Args:
            path: Local file to upload
            key: Destination key in the bucket
            content_type: Stored Content-Type

        Returns:
            Public URL of the uploaded object
        """
        try:
            self.s3.upload_file(path, self.bucket, key, ExtraArgs={"ContentType": content_type})
        except (BotoCoreError, ClientError, OSError) as e:
            raise StorageError(f"Failed to upload {path} to s3://{self.bucket}/{key}: {e}")
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region_name}.amazonaws.com/{quote(key)}"


class LocalStorage:
    """Directory standing in for the bucket when running locally."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / key

    def get(self, key: str) -> bytes:
        try:
            return self._path(key).read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to get {key}: {e}")

    def download(self, key: str, destination: str) -> str:
        try:
            shutil.copyfile(self._path(key), destination)
        except OSError as e:
            raise StorageError(f"Failed to download {key}: {e}")
        return destination

    def put(self, path: str, key: str, content_type: str = "image/png") -> str:
        target = self._path(key)
        try:
            os.makedirs(target.parent, exist_ok=True)
            shutil.copyfile(path, target)
        except OSError as e:
            raise StorageError(f"Failed to upload {path} to {key}: {e}")
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return self._path(key).resolve().as_uri()
