from enum import Enum
from typing import Any
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, UniqueConstraint, Enum as SAEnum
from .base import Base, TimestampMixin, SoftDeleteMixin


class ProjectPermission(str, Enum):
    """Permission level of a user inside a project, ordered VIEWER < EDITOR < OWNER"""
    OWNER = "OWNER"    # Full control, can delete the project and manage members
    EDITOR = "EDITOR"  # Can upload, edit and delete files/folders
    VIEWER = "VIEWER"  # Can only view and download files

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def can_view(self) -> bool:
        return self in (ProjectPermission.OWNER, ProjectPermission.EDITOR, ProjectPermission.VIEWER)

    def can_edit(self) -> bool:
        return self in (ProjectPermission.OWNER, ProjectPermission.EDITOR)

    def can_manage(self) -> bool:
        return self is ProjectPermission.OWNER

    def satisfies(self, required: "ProjectPermission") -> bool:
        return self.rank >= ProjectPermission(required).rank

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        if isinstance(value, cls):
            return True
        if not isinstance(value, str):
            return False
        return value in {member.value for member in cls}


_RANKS = {
    ProjectPermission.VIEWER: 1,
    ProjectPermission.EDITOR: 2,
    ProjectPermission.OWNER: 3,
}


def permission_column_type() -> SAEnum:
    return SAEnum(
        ProjectPermission,
        name="project_permission",
        native_enum=False,
        length=20,
        validate_strings=True,
    )


class Project(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "storage_projects"

    workspace_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1024))
    # Applied to workspace members when the project is public
    default_permission = Column(permission_column_type(), nullable=False, default=ProjectPermission.VIEWER)
    is_public = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, nullable=False)


class ProjectMember(Base, TimestampMixin):
    __tablename__ = "storage_project_members"

    project_id = Column(Uuid, ForeignKey("storage_projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False, index=True)
    permission = Column(permission_column_type(), nullable=False, default=ProjectPermission.VIEWER)
    added_by = Column(Uuid, nullable=False)

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member_user"),
    )
