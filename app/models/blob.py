# app/models/blob.py
from sqlalchemy import Column, String, Integer, LargeBinary, DateTime, ForeignKey, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base


class BlobFile(Base):
    """File metadata for the chunked binary store; content lives in BlobChunk rows."""
    __tablename__ = "fs_files"
    __table_args__ = (
        Index('ix_fs_files_bucket_filename', 'bucket', 'filename'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    bucket = Column(String(50), nullable=False, default="fs", comment='Logical bucket, e.g. fs or policyFiles')
    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=True)
    length = Column(Integer, nullable=False, default=0)
    chunk_size = Column(Integer, nullable=False)
    upload_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # "metadata" is reserved on declarative classes
    file_metadata = Column("metadata", JSON, nullable=True)

    chunks = relationship(
        "BlobChunk",
        back_populates="file",
        cascade="all, delete-orphan",
        order_by="BlobChunk.n",
    )

    def __repr__(self):
        return f"<BlobFile {self.bucket}/{self.id} filename={self.filename}>"


class BlobChunk(Base):
    __tablename__ = "fs_chunks"
    __table_args__ = (
        UniqueConstraint('file_id', 'n', name='uq_fs_chunks_file_n'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_id = Column(String(36), ForeignKey("fs_files.id", ondelete="CASCADE"), nullable=False, index=True)
    n = Column(Integer, nullable=False, comment='Sequence number, starting at 0')
    data = Column(LargeBinary, nullable=False)

    file = relationship("BlobFile", back_populates="chunks")
