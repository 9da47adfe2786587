"""Local filesystem implementation of BlobStore."""
import logging
import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional
from uuid import UUID

from PIL import Image

from config import get_settings

from .base import DEFAULT_CONTENT_TYPE, BlobNotFoundError, BlobStore, StorageError

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Local filesystem blob store.

    Stores each blob as a file named after its identifier directly under
    the storage root.
    """

    def __init__(
        self,
        storage_root: Optional[str | Path] = None,
        chunk_size: Optional[int] = None,
    ):
        """Initialize local blob store.

        Args:
            storage_root: Root directory for blobs.
                         If not provided, uses the configured storage root from settings.
            chunk_size: Number of bytes copied per read when writing a stream.
        """
        settings = get_settings()

        if storage_root is not None:
            self.storage_root = Path(storage_root).absolute()
        else:
            self.storage_root = settings.storage_root.absolute()
        self.chunk_size = chunk_size or settings.upload_chunk_size

        self._ensure_storage_dir()
        logger.info(f"Initialized LocalBlobStore with root: {self.storage_root}")

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directory exists."""
        try:
            # exist_ok covers a concurrent writer creating it first
            self.storage_root.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise StorageError(f"Failed to create storage directory: {e}")

    def path_for(self, object_id: str | UUID) -> Path:
        """Absolute location of the blob for ``object_id``.

        Raises:
            ValueError: If the identifier is empty or could escape the root.
        """
        name = str(object_id)
        if not name:
            raise ValueError("Blob id cannot be empty")
        if "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid blob id: {name!r}")
        return self.storage_root / name

    def write(self, object_id: str | UUID, stream: BinaryIO) -> int:
        """Copy ``stream`` to the blob file, replacing any existing one.

        Raises:
            StorageError: If the blob cannot be written.
        """
        file_path = self.path_for(object_id)
        self._ensure_storage_dir()

        written = 0
        try:
            with file_path.open("wb") as fh:
                while chunk := stream.read(self.chunk_size):
                    fh.write(chunk)
                    written += len(chunk)
        except Exception as e:
            logger.error(f"Failed to write blob {object_id}: {e}")
            self._discard(file_path)
            raise StorageError(f"Failed to write blob {object_id}: {e}") from e

        logger.debug(f"Wrote {written} bytes to: {file_path}")
        return written

    def _discard(self, file_path: Path) -> None:
        """Remove a partially written file, logging if that fails too."""
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to remove partial blob {file_path}: {e}")

    def read(self, object_id: str | UUID) -> bytes:
        """Read blob content from local filesystem.

        Raises:
            BlobNotFoundError: If the blob does not exist.
            StorageError: If the blob cannot be read.
        """
        file_path = self.path_for(object_id)

        if not file_path.exists():
            logger.warning(f"Blob not found: {object_id}")
            raise BlobNotFoundError(f"Blob not found: {object_id}")

        try:
            content = file_path.read_bytes()
        except FileNotFoundError:
            # Deleted between the existence check and the read
            logger.warning(f"Blob disappeared while reading: {object_id}")
            raise BlobNotFoundError(f"Blob not found: {object_id}")
        except Exception as e:
            logger.error(f"Failed to read blob from {file_path}: {e}")
            raise StorageError(f"Failed to read blob: {e}")

        logger.debug(f"Successfully read blob from: {file_path}")
        return content

    def delete(self, object_id: str | UUID) -> None:
        """Delete a blob if present.

        Raises:
            StorageError: If an existing blob cannot be removed.
        """
        file_path = self.path_for(object_id)
        try:
            file_path.unlink(missing_ok=True)
        except Exception as e:
            logger.error(f"Failed to delete blob {file_path}: {e}")
            raise StorageError(f"Failed to delete blob: {e}")
        logger.debug(f"Deleted blob: {file_path}")

    def exists(self, object_id: str | UUID) -> bool:
        return self.path_for(object_id).is_file()

    def probe_content_type(self, object_id: str | UUID) -> str:
        """Sniff the MIME type of a stored blob.

        Pillow identifies the bytes first; the file name is used as a hint
        second. Falls back to ``application/octet-stream``.
        """
        try:
            file_path = self.path_for(object_id)
        except ValueError:
            return DEFAULT_CONTENT_TYPE

        try:
            with Image.open(file_path) as img:
                detected = Image.MIME.get(img.format or "")
            if detected:
                return detected
        except Exception as e:
            logger.debug(f"Could not identify blob {object_id} as an image: {e}")

        guessed, _ = mimetypes.guess_type(file_path.name)
        return guessed or DEFAULT_CONTENT_TYPE
