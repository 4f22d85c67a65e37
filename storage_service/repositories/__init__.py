from .project_repository import ProjectRepository, ProjectStats
from .folder_repository import FolderRepository
from .file_repository import FileRepository, StorageUsage

__all__ = [
    "ProjectRepository",
    "ProjectStats",
    "FolderRepository",
    "FileRepository",
    "StorageUsage",
]
