"""Repository implementations for data access."""

from .picture import InMemoryMetadataIndex, MetadataIndex, PictureDBRepository

__all__ = [
    "MetadataIndex",
    "InMemoryMetadataIndex",
    "PictureDBRepository",
]
