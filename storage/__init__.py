from storage.blob_store import (
    BlobStore,
    InMemoryBlobStore,
    ProgressCallback,
    StorageError,
    photo_path,
    progress_percent,
)

__all__ = [
    "BlobStore",
    "InMemoryBlobStore",
    "ProgressCallback",
    "StorageError",
    "photo_path",
    "progress_percent",
]
