"""Clients for external collaborators: project store, blob storage, compositor."""

from .compositor import Compositor
from .memory import MemoryStore
from .storage import LocalStorage, StorageClient, StorageError
from .store import DuplicateHashError, ProjectStore, StoreError

__all__ = [
    "Compositor",
    "DuplicateHashError",
    "LocalStorage",
    "MemoryStore",
    "ProjectStore",
    "StorageClient",
    "StorageError",
    "StoreError",
]
