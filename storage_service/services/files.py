"""File metadata. Object content lives in external storage under ``file_key``."""
import logging
import os
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.errors import ConflictError, ForbiddenError, ValidationError
from storage_service.models import File, FileStatus, ProjectPermission
from storage_service.pagination import total_pages
from storage_service.repositories import FileRepository, FolderRepository
from storage_service.schemas import (
    FileListResponse,
    FileResponse,
    RegisterFileRequest,
    StorageUsageResponse,
    UpdateFileRequest,
)
from storage_service.services.access import AccessService, Principal

logger = logging.getLogger(__name__)


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, empty when there is none"""
    _, ext = os.path.splitext(file_name)
    return ext.lower()


def generate_file_key(workspace_id: uuid.UUID, file_name: str) -> str:
    return f"{workspace_id}/{uuid.uuid4()}{file_extension(file_name)}"


class FileService:

    def __init__(
        self,
        db: AsyncSession,
        access: AccessService,
        require_trash_before_permanent_delete: bool = False
    ):
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)
        self.access = access
        self.require_trash_before_permanent_delete = require_trash_before_permanent_delete

    async def register_file(self, req: RegisterFileRequest, principal: Principal) -> FileResponse:
        """Record an upload in progress; the file stays hidden until confirm_upload"""
        await self.access.validate_resource_access(
            req.workspace_id, req.project_id, principal, ProjectPermission.EDITOR
        )
        if req.folder_id is not None:
            await self._check_target_folder(req.folder_id, req.workspace_id, req.project_id)

        name = req.file_name.strip()
        file = File(
            id=uuid.uuid4(),
            workspace_id=req.workspace_id,
            project_id=req.project_id,
            folder_id=req.folder_id,
            name=name,
            original_name=name,
            content_type=req.content_type,
            extension=file_extension(name) or None,
            file_size=req.file_size,
            file_key=generate_file_key(req.workspace_id, name),
            status=FileStatus.UPLOADING,
            uploaded_by=principal.user_id,
        )
        await self.files.create(file)
        logger.info("File %s registered in workspace %s by %s", file.id, file.workspace_id, principal.user_id)
        return FileResponse.model_validate(file)

    async def confirm_upload(self, file_id: uuid.UUID, principal: Principal) -> FileResponse:
        file = await self.access.validate_file_access(file_id, principal, ProjectPermission.EDITOR)
        if file.uploaded_by != principal.user_id:
            raise ForbiddenError("Only the uploader can confirm this upload")
        if file.status is not FileStatus.UPLOADING:
            raise ConflictError("Upload already confirmed")

        file.status = FileStatus.ACTIVE
        await self.files.update(file)
        logger.info("File %s upload confirmed", file.id)
        return FileResponse.model_validate(file)

    async def get_file(self, file_id: uuid.UUID, principal: Principal) -> FileResponse:
        file = await self.access.validate_file_access(file_id, principal, ProjectPermission.VIEWER)
        return FileResponse.model_validate(file)

    async def update_file(self, file_id: uuid.UUID, req: UpdateFileRequest, principal: Principal) -> FileResponse:
        """Rename and/or move a file. An explicit null folder moves it to the root"""
        file = await self.access.validate_file_access(file_id, principal, ProjectPermission.EDITOR)

        fields = req.model_fields_set
        if "name" in fields and req.name is not None:
            file.name = req.name.strip()
        if "folder_id" in fields and req.folder_id != file.folder_id:
            if req.folder_id is not None:
                await self._check_target_folder(req.folder_id, file.workspace_id, file.project_id)
            logger.info("File %s moved from %s to %s", file.id, file.folder_id, req.folder_id)
            file.folder_id = req.folder_id

        await self.files.update(file)
        return FileResponse.model_validate(file)

    async def delete_file(self, file_id: uuid.UUID, principal: Principal) -> None:
        await self.access.validate_file_access(file_id, principal, ProjectPermission.EDITOR)
        await self.files.delete(file_id)
        logger.info("File %s moved to trash by %s", file_id, principal.user_id)

    async def restore_file(self, file_id: uuid.UUID, principal: Principal) -> FileResponse:
        await self.access.validate_file_access(file_id, principal, ProjectPermission.EDITOR, include_deleted=True)
        file = await self.files.restore(file_id)
        logger.info("File %s restored by %s", file_id, principal.user_id)
        return FileResponse.model_validate(file)

    async def permanent_delete_file(self, file_id: uuid.UUID, principal: Principal) -> None:
        file = await self.access.validate_file_access(
            file_id, principal, ProjectPermission.EDITOR, include_deleted=True
        )
        if self.require_trash_before_permanent_delete and not file.is_deleted:
            raise ConflictError("File must be moved to trash before it can be permanently deleted")

        await self.files.permanent_delete(file_id)
        logger.info("File %s permanently deleted by %s", file_id, principal.user_id)

    async def get_workspace_files(
        self,
        workspace_id: uuid.UUID,
        folder_id: Optional[uuid.UUID],
        principal: Principal,
        page: int,
        page_size: int
    ) -> FileListResponse:
        await self.access.validate_workspace_access(workspace_id, principal)
        files, total = await self.files.get_workspace_files(
            workspace_id, principal.user_id, folder_id, page, page_size
        )
        return self._list_response(files, total, page, page_size)

    async def search_files(
        self,
        workspace_id: uuid.UUID,
        query: str,
        principal: Principal,
        page: int,
        page_size: int
    ) -> FileListResponse:
        if not query or not query.strip():
            raise ValidationError("Search query must not be empty")
        await self.access.validate_workspace_access(workspace_id, principal)
        files, total = await self.files.search(workspace_id, principal.user_id, query, page, page_size)
        return self._list_response(files, total, page, page_size)

    async def get_trash_files(self, workspace_id: uuid.UUID, principal: Principal) -> List[FileResponse]:
        await self.access.validate_workspace_access(workspace_id, principal)
        files = await self.files.get_trash(workspace_id, principal.user_id)
        return [FileResponse.model_validate(f) for f in files]

    async def get_storage_usage(self, workspace_id: uuid.UUID, principal: Principal) -> StorageUsageResponse:
        await self.access.validate_workspace_access(workspace_id, principal)
        usage = await self.files.get_storage_usage(workspace_id, principal.user_id)
        return StorageUsageResponse(
            workspace_id=workspace_id,
            file_count=usage.file_count,
            total_size=usage.total_size,
        )

    async def _check_target_folder(
        self,
        folder_id: uuid.UUID,
        workspace_id: uuid.UUID,
        project_id: Optional[uuid.UUID]
    ) -> None:
        folder = await self.folders.get_by_id(folder_id)
        if folder.workspace_id != workspace_id:
            raise ValidationError("Folder belongs to another workspace")
        if folder.project_id != project_id:
            raise ValidationError("Folder belongs to another project")

    @staticmethod
    def _list_response(files: List[File], total: int, page: int, page_size: int) -> FileListResponse:
        return FileListResponse(
            files=[FileResponse.model_validate(f) for f in files],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
        )
