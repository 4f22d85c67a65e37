from sqlalchemy import Column, String, ForeignKey, Uuid
from .base import Base, TimestampMixin, SoftDeleteMixin


class Folder(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "storage_folders"

    workspace_id = Column(Uuid, nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("storage_projects.id", ondelete="CASCADE"), nullable=True, index=True)
    parent_id = Column(Uuid, ForeignKey("storage_folders.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    color = Column(String(20))
    created_by = Column(Uuid, nullable=False)
