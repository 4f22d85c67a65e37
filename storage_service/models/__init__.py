from .base import Base, utcnow
from .project import Project, ProjectMember, ProjectPermission
from .folder import Folder
from .file import File, FileStatus

__all__ = [
    "Base",
    "utcnow",
    "Project",
    "ProjectMember",
    "ProjectPermission",
    "Folder",
    "File",
    "FileStatus",
]
