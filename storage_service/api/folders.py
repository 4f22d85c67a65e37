import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from storage_service.api.auth import get_current_principal
from storage_service.api.deps import get_folder_service
from storage_service.schemas import (
    CreateFolderRequest,
    FolderContentsResponse,
    FolderResponse,
    MessageResponse,
    UpdateFolderRequest,
)
from storage_service.services.access import Principal
from storage_service.services.folders import FolderService


router = APIRouter()


@router.post("/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    req: CreateFolderRequest,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    return await service.create_folder(req, principal)


# Declared before /folders/{folder_id} so "contents" is not parsed as an id
@router.get("/folders/contents", response_model=FolderContentsResponse)
async def get_folder_contents(
    workspace_id: uuid.UUID = Query(..., alias="workspaceId"),
    folder_id: Optional[uuid.UUID] = Query(None, alias="folderId"),
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    """List a folder, or the workspace root when no folderId is given"""
    return await service.get_folder_contents(workspace_id, folder_id, principal)


@router.get("/folders/{folder_id}", response_model=FolderResponse)
async def get_folder(
    folder_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    return await service.get_folder(folder_id, principal)


@router.put("/folders/{folder_id}", response_model=FolderResponse)
async def update_folder(
    folder_id: uuid.UUID,
    req: UpdateFolderRequest,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    return await service.update_folder(folder_id, req, principal)


@router.delete("/folders/{folder_id}", response_model=MessageResponse)
async def delete_folder(
    folder_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    await service.delete_folder(folder_id, principal)
    return MessageResponse(message="Folder moved to trash")


@router.post("/folders/{folder_id}/restore", response_model=FolderResponse)
async def restore_folder(
    folder_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    return await service.restore_folder(folder_id, principal)


@router.delete("/folders/{folder_id}/permanent", response_model=MessageResponse)
async def permanent_delete_folder(
    folder_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FolderService = Depends(get_folder_service)
):
    await service.permanent_delete_folder(folder_id, principal)
    return MessageResponse(message="Folder permanently deleted")
