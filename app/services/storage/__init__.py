# Blob storage backends
from app.services.storage.base import BlobStore, StoredBlob
from app.services.storage.local import LocalBlobStore
from app.services.storage.memory import InMemoryBlobStore


def get_blob_store(backend: str, **kwargs) -> BlobStore:
    """
    Factory function to get a blob store by backend name.

    Args:
        backend: One of 'local', 'memory'
        **kwargs: Backend-specific configuration (local: root)

    Returns:
        BlobStore instance
    """
    backends = {
        "local": LocalBlobStore,
        "filesystem": LocalBlobStore,
        "memory": InMemoryBlobStore,
    }

    store_class = backends.get(backend.lower())
    if not store_class:
        raise ValueError(f"Unknown blob store backend: {backend}")

    return store_class(**kwargs)


__all__ = [
    "BlobStore",
    "StoredBlob",
    "LocalBlobStore",
    "InMemoryBlobStore",
    "get_blob_store",
]
