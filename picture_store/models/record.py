"""Immutable metadata record for a stored picture."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ObjectRecord(BaseModel):
    """Metadata of one stored blob.

    Records are frozen once built. Use :meth:`create` rather than the
    constructor so timestamps are normalized in one place.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    original_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    size_bytes: int = Field(..., ge=0)
    created_at: datetime
    blob_path: str = Field(..., min_length=1)
    retrieval_url: str = Field(..., min_length=1)

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def create(
        cls,
        object_id: UUID,
        original_name: str,
        content_type: str,
        size_bytes: int,
        blob_path: str,
        retrieval_url: str,
        created_at: Optional[datetime] = None,
    ) -> "ObjectRecord":
        """Build a validated record, stamping ``created_at`` with the current UTC time by default.

        Raises:
            pydantic.ValidationError: If a field is missing or out of range.
        """
        return cls(
            id=object_id,
            original_name=original_name,
            content_type=content_type,
            size_bytes=size_bytes,
            created_at=created_at or datetime.now(timezone.utc),
            blob_path=blob_path,
            retrieval_url=retrieval_url,
        )
