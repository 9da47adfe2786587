"""Data models for the Picture Store service."""

from .db import Base, Picture
from .record import ObjectRecord

__all__ = ["Base", "Picture", "ObjectRecord"]
