"""Workspace-scoped listings"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from storage_service.api.auth import get_current_principal
from storage_service.api.deps import Pagination, get_file_service, get_folder_service, get_project_service
from storage_service.schemas import (
    FileListResponse,
    FileResponse,
    FolderResponse,
    ProjectListResponse,
    ProjectResponse,
    StorageUsageResponse,
)
from storage_service.services.access import Principal
from storage_service.services.files import FileService
from storage_service.services.folders import FolderService
from storage_service.services.projects import ProjectService


router = APIRouter()


@router.get("/workspaces/{workspace_id}/projects", response_model=ProjectListResponse)
async def list_workspace_projects(
    workspace_id: uuid.UUID,
    pagination: Pagination = Depends(),
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    """Projects the caller can access, newest first"""
    return await service.get_workspace_projects(
        workspace_id, principal, pagination.page, pagination.page_size
    )


@router.get("/workspaces/{workspace_id}/trash/projects", response_model=List[ProjectResponse])
async def list_trash_projects(
    workspace_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.get_trash_projects(workspace_id, principal)


@router.get("/workspaces/{workspace_id}/folders", response_model=List[FolderResponse])
async def list_workspace_folders(
    workspace_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    """Folder tree of the workspace"""
    return await service.get_workspace_folders(workspace_id, principal)


@router.get("/workspaces/{workspace_id}/trash/folders", response_model=List[FolderResponse])
async def list_trash_folders(
    workspace_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    return await service.get_trash_folders(workspace_id, principal)


@router.get("/workspaces/{workspace_id}/files", response_model=FileListResponse)
async def list_workspace_files(
    workspace_id: uuid.UUID,
    folder_id: Optional[uuid.UUID] = Query(None, alias="folderId"),
    pagination: Pagination = Depends(),
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.get_workspace_files(
        workspace_id, folder_id, principal, pagination.page, pagination.page_size
    )


@router.get("/workspaces/{workspace_id}/files/search", response_model=FileListResponse)
async def search_files(
    workspace_id: uuid.UUID,
    q: str = Query(..., min_length=1),
    pagination: Pagination = Depends(),
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.search_files(workspace_id, q, principal, pagination.page, pagination.page_size)


@router.get("/workspaces/{workspace_id}/trash/files", response_model=List[FileResponse])
async def list_trash_files(
    workspace_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.get_trash_files(workspace_id, principal)


@router.get("/workspaces/{workspace_id}/usage", response_model=StorageUsageResponse)
async def get_storage_usage(
    workspace_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.get_storage_usage(workspace_id, principal)
