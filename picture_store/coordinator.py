"""Storage coordinator keeping blobs and metadata records consistent."""
import logging
import unicodedata
import uuid
from typing import BinaryIO, Optional
from uuid import UUID

from picture_store.models.record import ObjectRecord
from picture_store.repositories.picture import MetadataIndex
from picture_store.storage.base import BlobNotFoundError, BlobStore, StorageError
from picture_store.urls import DEFAULT_API_PREFIX, build_retrieval_url

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when there is no data to store."""
    pass


def clean_filename(name: Optional[str]) -> Optional[str]:
    """Strip directory traversal segments from a client supplied file name.

    Control characters are removed and backslashes are treated as
    separators. Empty, ``.`` and ``..`` segments are dropped. Returns None
    when nothing usable is left.
    """
    if not name:
        return None
    printable = "".join(ch for ch in name if unicodedata.category(ch) != "Cc")
    segments = [
        segment
        for segment in printable.replace("\\", "/").split("/")
        if segment not in ("", ".", "..")
    ]
    return "/".join(segments) or None


class StorageCoordinator:
    """Coordinates the blob store and the metadata index.

    This is the only component that mutates both stores. It keeps them in
    step by ordering alone: the blob is written before its record is saved
    and deleted before its record is removed. There is no cross-store
    transaction, so a failed save is compensated by deleting the new blob.

    Every method blocks on file system and metadata I/O.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_index: MetadataIndex,
        base_url: str,
        api_prefix: str = DEFAULT_API_PREFIX,
    ):
        """Initialize the coordinator.

        Args:
            blob_store: Store holding the raw picture bytes.
            metadata_index: Index holding one record per picture.
            base_url: Base URL used to build retrieval URLs.
            api_prefix: API prefix the pictures routes are mounted under.
        """
        self.blob_store = blob_store
        self.metadata_index = metadata_index
        self.base_url = base_url
        self.api_prefix = api_prefix

    def store(
        self,
        stream: Optional[BinaryIO],
        original_filename: Optional[str],
        content_type: Optional[str],
        size_bytes: Optional[int],
    ) -> ObjectRecord:
        """Store a new picture and its metadata record.

        Args:
            stream: Binary stream with the picture bytes.
            original_filename: File name reported by the client.
            content_type: MIME type reported by the client. When missing,
                the type is sniffed from the stored bytes.
            size_bytes: Size reported by the client. When missing, the
                number of bytes written is used.

        Returns:
            ObjectRecord: The persisted record.

        Raises:
            InvalidInputError: If the stream is missing or empty, or the
                reported size is negative.
            StorageError: If the blob cannot be written.
            Exception: Whatever the metadata index raised while saving, after
                the new blob has been removed again.
        """
        if stream is None:
            raise InvalidInputError("Picture content cannot be empty")
        if size_bytes is not None and size_bytes < 0:
            raise InvalidInputError(f"Picture size cannot be negative: {size_bytes}")

        # uuid4 collisions are treated as impossible, there is no retry
        object_id = uuid.uuid4()
        original_name = clean_filename(original_filename) or str(object_id)

        written = self.blob_store.write(object_id, stream)
        if written == 0:
            self._discard_blob(object_id)
            raise InvalidInputError("Picture content cannot be empty")
        logger.info(f"Saving picture to storage with id [{object_id}]")

        try:
            record = ObjectRecord.create(
                object_id=object_id,
                original_name=original_name,
                content_type=content_type or self.blob_store.probe_content_type(object_id),
                size_bytes=written if size_bytes is None else size_bytes,
                blob_path=str(self.blob_store.path_for(object_id)),
                retrieval_url=build_retrieval_url(self.base_url, object_id, self.api_prefix),
            )
            self.metadata_index.save(record)
        except Exception as e:
            logger.error(f"Could not persist metadata for picture {object_id}: {e}")
            self._discard_blob(object_id)
            raise

        return record

    def _discard_blob(self, object_id: UUID) -> None:
        """Best-effort removal of a blob that has no record."""
        try:
            self.blob_store.delete(object_id)
        except StorageError:
            logger.exception(f"Failed to remove orphaned blob {object_id}")

    def find_by_id(self, object_id: UUID) -> Optional[ObjectRecord]:
        """Look up a picture's metadata without touching the blob store."""
        return self.metadata_index.find_by_id(object_id)

    def fetch(self, object_id: UUID) -> Optional[bytes]:
        """Read a picture's bytes.

        The blob store alone decides the outcome, whether or not a record
        exists.

        Returns:
            Optional[bytes]: The picture bytes, or None if there is no blob.

        Raises:
            StorageError: If the blob exists but cannot be read.
        """
        try:
            return self.blob_store.read(object_id)
        except BlobNotFoundError:
            logger.info(f"Picture with id [{object_id}] not found")
            return None

    def remove(self, object_id: UUID) -> bool:
        """Delete a picture's blob and then its record.

        A record whose blob is already gone is still removed.

        Returns:
            bool: True if the picture was deleted, False if no record exists.

        Raises:
            StorageError: If the blob exists but cannot be deleted. The
                record is left in place.
        """
        record = self.metadata_index.find_by_id(object_id)
        if record is None:
            logger.info(f"Cannot delete picture with id [{object_id}]: no record")
            return False

        if not self.blob_store.exists(object_id):
            logger.warning(f"Picture {object_id} has a record but no blob, removing record")
        self.blob_store.delete(object_id)
        self.metadata_index.delete(record)

        logger.info(f"Successfully deleted picture with id [{object_id}]")
        return True
