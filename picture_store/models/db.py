"""SQLAlchemy database models."""

from sqlalchemy import BigInteger, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

# Create the declarative base
Base = declarative_base()


class Picture(Base):
    """Metadata row for one stored picture blob.

    The primary key is the same identifier that names the blob file, and is
    the only link between this table and the blob store.
    """
    __tablename__ = "pictures"

    id = Column(UUID(as_uuid=True), primary_key=True, nullable=False)

    # Client supplied file name, already cleaned of traversal segments
    original_file_name = Column(String, nullable=False)

    content_type = Column(String, nullable=False)

    size = Column(BigInteger, nullable=False)

    upload_date = Column(DateTime(timezone=True), nullable=False)

    # Absolute path of the blob file
    file_path = Column(String, nullable=False)

    picture_url = Column(String, nullable=False)

    def __repr__(self) -> str:
        return f"<Picture(id={self.id}, name={self.original_file_name}, size={self.size})>"
