"""Pydantic schemas for request/response validation."""

from .picture import PictureDetailResponse, PictureUploadResponse

__all__ = [
    "PictureUploadResponse",
    "PictureDetailResponse",
]
