"""Metadata index for stored picture records."""

import logging
import threading
from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from picture_store.models.db import Picture
from picture_store.models.record import ObjectRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class MetadataIndex(Protocol):
    """Interface for picture metadata storage.

    Holds exactly one record per identifier. The identifier is the same one
    that names the blob in the blob store.
    """

    def save(self, record: ObjectRecord) -> ObjectRecord:
        """Insert or replace the record with the same identifier.

        Args:
            record: Record to persist.

        Returns:
            ObjectRecord: The persisted record.
        """
        ...

    def find_by_id(self, object_id: UUID) -> Optional[ObjectRecord]:
        """Look up a record.

        Args:
            object_id: Identifier of the picture.

        Returns:
            Optional[ObjectRecord]: The record, or None if absent.
        """
        ...

    def delete(self, record: ObjectRecord) -> None:
        """Delete the record with the same identifier.

        Deleting a record that is already gone is not an error.
        """
        ...

    def count(self) -> int:
        """Get the total number of records."""
        ...


class InMemoryMetadataIndex(MetadataIndex):
    """In-memory implementation of MetadataIndex.

    Records live in a dictionary keyed by identifier and are lost when the
    application restarts. Suitable for development and testing.
    """

    def __init__(self):
        """Initialize the in-memory index."""
        self._records: dict[UUID, ObjectRecord] = {}
        self._lock = threading.Lock()
        logger.info("Initialized InMemoryMetadataIndex")

    def save(self, record: ObjectRecord) -> ObjectRecord:
        with self._lock:
            self._records[record.id] = record
        logger.debug(f"Saved record: {record.id}")
        return record

    def find_by_id(self, object_id: UUID) -> Optional[ObjectRecord]:
        return self._records.get(object_id)

    def delete(self, record: ObjectRecord) -> None:
        with self._lock:
            removed = self._records.pop(record.id, None)
        if removed is None:
            logger.debug(f"Record already absent: {record.id}")
        else:
            logger.debug(f"Deleted record: {record.id}")

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        """Clear all records from the index.

        This is mainly useful for testing purposes.
        """
        with self._lock:
            self._records.clear()
        logger.debug("Cleared all records from index")


class PictureDBRepository(MetadataIndex):
    """SQLAlchemy-based implementation of MetadataIndex.

    Records are persisted in the ``pictures`` table and survive application
    restarts. Every mutating call commits on its own and rolls back on
    failure before re-raising.
    """

    def __init__(self, db: Session):
        """Initialize the repository with a database session.

        Args:
            db: SQLAlchemy session for database operations
        """
        self.db = db
        logger.debug("Initialized PictureDBRepository")

    def save(self, record: ObjectRecord) -> ObjectRecord:
        """Upsert the record's row.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the row cannot be written.
        """
        try:
            self.db.merge(self._to_row(record))
            self.db.commit()
            logger.info(f"Saved picture record: {record.id}")
            return record
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save picture record {record.id}: {e}")
            raise

    def find_by_id(self, object_id: UUID) -> Optional[ObjectRecord]:
        row = self._get_row(object_id)
        if row is None:
            logger.debug(f"Picture record not found: {object_id}")
            return None
        return self._to_record(row)

    def delete(self, record: ObjectRecord) -> None:
        row = self._get_row(record.id)
        if row is None:
            logger.debug(f"Picture record already absent: {record.id}")
            return

        try:
            self.db.delete(row)
            self.db.commit()
            logger.info(f"Deleted picture record: {record.id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete picture record {record.id}: {e}")
            raise

    def count(self) -> int:
        return self.db.query(Picture).count()

    def _get_row(self, object_id: UUID) -> Optional[Picture]:
        return self.db.query(Picture).filter(Picture.id == object_id).first()

    @staticmethod
    def _to_row(record: ObjectRecord) -> Picture:
        return Picture(
            id=record.id,
            original_file_name=record.original_name,
            content_type=record.content_type,
            size=record.size_bytes,
            upload_date=record.created_at,
            file_path=record.blob_path,
            picture_url=record.retrieval_url,
        )

    @staticmethod
    def _to_record(row: Picture) -> ObjectRecord:
        return ObjectRecord.create(
            object_id=row.id,
            original_name=row.original_file_name,
            content_type=row.content_type,
            size_bytes=row.size,
            blob_path=row.file_path,
            retrieval_url=row.picture_url,
            created_at=row.upload_date,
        )
