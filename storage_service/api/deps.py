"""FastAPI dependencies that wire sessions, clients and services together"""
from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.config import settings
from storage_service.database import get_db
from storage_service.pagination import normalize_pagination
from storage_service.services.access import AccessService
from storage_service.services.files import FileService
from storage_service.services.folders import FolderService
from storage_service.services.projects import ProjectService
from storage_service.services.workspace_client import WorkspaceClient


class Pagination:
    def __init__(
        self,
        page: int = Query(1),
        page_size: int = Query(settings.default_page_size, alias="pageSize")
    ):
        self.page, self.page_size = normalize_pagination(page, page_size)


def get_workspace_client() -> WorkspaceClient:
    return WorkspaceClient(settings.user_service_url, timeout=settings.http_timeout_seconds)


def get_access_service(
    db: AsyncSession = Depends(get_db),
    workspace_client: WorkspaceClient = Depends(get_workspace_client)
) -> AccessService:
    return AccessService(
        db,
        workspace_client,
        conceal_inaccessible_projects=settings.conceal_inaccessible_projects,
    )


def get_project_service(
    db: AsyncSession = Depends(get_db),
    access: AccessService = Depends(get_access_service)
) -> ProjectService:
    return ProjectService(
        db, access, require_trash_before_permanent_delete=settings.require_trash_before_permanent_delete
    )


def get_folder_service(
    db: AsyncSession = Depends(get_db),
    access: AccessService = Depends(get_access_service)
) -> FolderService:
    return FolderService(
        db, access, require_trash_before_permanent_delete=settings.require_trash_before_permanent_delete
    )


def get_file_service(
    db: AsyncSession = Depends(get_db),
    access: AccessService = Depends(get_access_service)
) -> FileService:
    return FileService(
        db, access, require_trash_before_permanent_delete=settings.require_trash_before_permanent_delete
    )
