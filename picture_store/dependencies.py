"""FastAPI dependency injection configuration."""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from picture_store.coordinator import StorageCoordinator
from picture_store.db import get_db
from picture_store.repositories import (
    InMemoryMetadataIndex,
    MetadataIndex,
    PictureDBRepository,
)
from picture_store.storage.base import BlobStore
from picture_store.storage.local import LocalBlobStore
from config import get_settings

logger = logging.getLogger(__name__)


# Global instance for in-memory metadata index
_in_memory_index: InMemoryMetadataIndex | None = None

# Global instance for blob store
_blob_store: BlobStore | None = None


def get_metadata_index(db: Session = Depends(get_db)) -> MetadataIndex:
    """Get the metadata index selected by METADATA_STORAGE.

    - "memory": InMemoryMetadataIndex shared by all requests (lost on restart)
    - "database": PictureDBRepository bound to the request's session

    Args:
        db: Database session (only used for database metadata storage)

    Returns:
        MetadataIndex: The configured metadata index instance
    """
    settings = get_settings()

    if settings.metadata_storage == "database":
        logger.debug("Using database repository for picture metadata")
        return PictureDBRepository(db)

    global _in_memory_index
    if _in_memory_index is None:
        _in_memory_index = InMemoryMetadataIndex()
        logger.info("Created in-memory index for picture metadata")
    return _in_memory_index


def get_blob_store() -> BlobStore:
    """Get the process-wide blob store rooted at STORAGE_ROOT."""
    global _blob_store

    if _blob_store is None:
        settings = get_settings()
        _blob_store = LocalBlobStore(settings.storage_root, settings.upload_chunk_size)
        logger.info(f"Created local blob store with root: {settings.storage_root}")

    return _blob_store


def get_storage_coordinator(
    request: Request,
    metadata_index: MetadataIndex = Depends(get_metadata_index),
    blob_store: BlobStore = Depends(get_blob_store),
) -> StorageCoordinator:
    """Build a coordinator for the current request.

    Retrieval URLs use PUBLIC_BASE_URL when set, otherwise the base URL the
    request arrived on, followed by the pictures path under API_PREFIX.
    """
    settings = get_settings()
    base_url = settings.public_base_url or str(request.base_url)
    return StorageCoordinator(blob_store, metadata_index, base_url, settings.api_prefix)
