"""Picture-related Pydantic schemas for API responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from picture_store.models.record import ObjectRecord


class PictureUploadResponse(BaseModel):
    """Response model for a successful picture upload.

    The id addresses the picture in every later call, and picture_url can
    be used as-is to fetch the bytes.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                    "picture_unique_name": "holiday.jpg",
                    "upload_date": "2024-05-01T12:00:00Z",
                    "picture_url": "http://localhost:8000/api/v1/pictures/view/3fa85f64-5717-4562-b3fc-2c963f66afa6"
                }
            ]
        }
    )

    id: UUID = Field(..., description="Unique identifier of the stored picture")
    picture_unique_name: str = Field(
        ...,
        description="Cleaned original file name, or the id when the client sent none"
    )
    upload_date: datetime = Field(..., description="When the picture was stored (UTC)")
    picture_url: str = Field(..., description="URL serving the picture bytes")

    @classmethod
    def from_record(cls, record: ObjectRecord) -> "PictureUploadResponse":
        return cls(
            id=record.id,
            picture_unique_name=record.original_name,
            upload_date=record.created_at,
            picture_url=record.retrieval_url,
        )


class PictureDetailResponse(BaseModel):
    """Metadata of a stored picture."""

    id: UUID
    original_name: str
    content_type: str
    size_bytes: int = Field(..., ge=0)
    created_at: datetime
    picture_url: str

    @classmethod
    def from_record(cls, record: ObjectRecord) -> "PictureDetailResponse":
        return cls(
            id=record.id,
            original_name=record.original_name,
            content_type=record.content_type,
            size_bytes=record.size_bytes,
            created_at=record.created_at,
            picture_url=record.retrieval_url,
        )
