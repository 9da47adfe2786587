"""Storage module for picture blobs."""

from .base import BlobNotFoundError, BlobStore, StorageError
from .local import LocalBlobStore

__all__ = ["BlobStore", "LocalBlobStore", "StorageError", "BlobNotFoundError"]
