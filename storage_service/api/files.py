import uuid

from fastapi import APIRouter, Depends, status

from storage_service.api.auth import get_current_principal
from storage_service.api.deps import get_file_service
from storage_service.schemas import FileResponse, MessageResponse, RegisterFileRequest, UpdateFileRequest
from storage_service.services.access import Principal
from storage_service.services.files import FileService


router = APIRouter()


@router.post("/files", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def register_file(
    req: RegisterFileRequest,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    """Register an upload. The record stays UPLOADING until confirmed"""
    return await service.register_file(req, principal)


@router.post("/files/{file_id}/confirm", response_model=FileResponse)
async def confirm_upload(
    file_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.confirm_upload(file_id, principal)


@router.get("/files/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.get_file(file_id, principal)


@router.put("/files/{file_id}", response_model=FileResponse)
async def update_file(
    file_id: uuid.UUID,
    req: UpdateFileRequest,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.update_file(file_id, req, principal)


@router.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    await service.delete_file(file_id, principal)
    return MessageResponse(message="File moved to trash")


@router.post("/files/{file_id}/restore", response_model=FileResponse)
async def restore_file(
    file_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    return await service.restore_file(file_id, principal)


@router.delete("/files/{file_id}/permanent", response_model=MessageResponse)
async def permanent_delete_file(
    file_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: FileService = Depends(get_file_service)
):
    await service.permanent_delete_file(file_id, principal)
    return MessageResponse(message="File permanently deleted")
