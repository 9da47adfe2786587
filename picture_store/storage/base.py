"""Blob store interface for picture bytes."""

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
from uuid import UUID

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@runtime_checkable
class BlobStore(Protocol):
    """Abstract interface for raw blob storage keyed by identifier.

    A blob store owns a single storage root. Every blob lives in one file
    named after its identifier, with no extension and no sharding. Writes
    are last-writer-wins and deletes are idempotent.
    """

    def write(self, object_id: str | UUID, stream: BinaryIO) -> int:
        """Copy a binary stream into the blob named ``object_id``.

        Args:
            object_id: Identifier of the blob.
            stream: Readable binary stream with the payload.

        Returns:
            int: Number of bytes written.

        Raises:
            StorageError: If the root cannot be created or the write fails.
                No partial file is left behind.
        """
        ...

    def read(self, object_id: str | UUID) -> bytes:
        """Read the full contents of a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist.
            StorageError: If the blob cannot be read.
        """
        ...

    def delete(self, object_id: str | UUID) -> None:
        """Delete a blob. Deleting a missing blob is a no-op."""
        ...

    def exists(self, object_id: str | UUID) -> bool:
        """Check whether a blob exists."""
        ...

    def path_for(self, object_id: str | UUID) -> Path:
        """Absolute location of the blob for ``object_id``."""
        ...

    def probe_content_type(self, object_id: str | UUID) -> str:
        """Best-effort MIME type of a stored blob, never raises."""
        ...


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class BlobNotFoundError(StorageError):
    """Raised when a blob does not exist in the store."""
    pass
