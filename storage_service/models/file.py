from enum import Enum
from sqlalchemy import Column, String, BigInteger, ForeignKey, Uuid, Enum as SAEnum
from .base import Base, TimestampMixin, SoftDeleteMixin


class FileStatus(str, Enum):
    """Upload lifecycle of a file record"""
    UPLOADING = "UPLOADING"  # Metadata registered, content not confirmed yet
    ACTIVE = "ACTIVE"


class File(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "storage_files"

    workspace_id = Column(Uuid, nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("storage_projects.id", ondelete="CASCADE"), nullable=True, index=True)
    folder_id = Column(Uuid, ForeignKey("storage_folders.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    content_type = Column(String(255), nullable=False, default="application/octet-stream")
    extension = Column(String(50))
    file_size = Column(BigInteger, nullable=False, default=0)
    file_key = Column(String(1024), nullable=False, unique=True)
    status = Column(
        SAEnum(FileStatus, name="file_status", native_enum=False, length=20),
        nullable=False,
        default=FileStatus.UPLOADING,
    )
    uploaded_by = Column(Uuid, nullable=False)
