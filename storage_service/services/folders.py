"""Folder tree management"""
import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.errors import ConflictError, ValidationError
from storage_service.models import Folder, ProjectPermission
from storage_service.repositories import FolderRepository, FileRepository
from storage_service.schemas import (
    CreateFolderRequest,
    FileResponse,
    FolderContentsResponse,
    FolderResponse,
    UpdateFolderRequest,
)
from storage_service.services.access import AccessService, Principal

logger = logging.getLogger(__name__)


def build_tree(folders: List[Folder]) -> List[FolderResponse]:
    """Nest a flat folder list by parent_id. Folders whose parent is not in the list become roots."""
    nodes: Dict[uuid.UUID, FolderResponse] = {
        folder.id: FolderResponse.model_validate(folder) for folder in folders
    }
    roots = []
    for folder in folders:
        node = nodes[folder.id]
        parent = nodes.get(folder.parent_id) if folder.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


class FolderService:

    def __init__(
        self,
        db: AsyncSession,
        access: AccessService,
        require_trash_before_permanent_delete: bool = False
    ):
        self.folders = FolderRepository(db)
        self.files = FileRepository(db)
        self.access = access
        self.require_trash_before_permanent_delete = require_trash_before_permanent_delete

    async def create_folder(self, req: CreateFolderRequest, principal: Principal) -> FolderResponse:
        await self.access.validate_resource_access(
            req.workspace_id, req.project_id, principal, ProjectPermission.EDITOR
        )

        if req.parent_id is not None:
            parent = await self.folders.get_by_id(req.parent_id)
            if parent.workspace_id != req.workspace_id:
                raise ValidationError("Parent folder belongs to another workspace")
            if parent.project_id != req.project_id:
                raise ValidationError("Parent folder belongs to another project")

        name = req.name.strip()
        await self._ensure_unique_name(req.workspace_id, req.parent_id, name)

        folder = Folder(
            id=uuid.uuid4(),
            workspace_id=req.workspace_id,
            project_id=req.project_id,
            parent_id=req.parent_id,
            name=name,
            color=req.color,
            created_by=principal.user_id,
        )
        await self.folders.create(folder)
        logger.info("Folder %s created in workspace %s by %s", folder.id, folder.workspace_id, principal.user_id)
        return FolderResponse.model_validate(folder)

    async def get_folder(self, folder_id: uuid.UUID, principal: Principal) -> FolderResponse:
        folder = await self.access.validate_folder_access(folder_id, principal, ProjectPermission.VIEWER)
        return FolderResponse.model_validate(folder)

    async def get_folder_contents(
        self,
        workspace_id: uuid.UUID,
        folder_id: Optional[uuid.UUID],
        principal: Principal
    ) -> FolderContentsResponse:
        """Child folders and files of a folder, or of the workspace root when folder_id is None"""
        folder = None
        if folder_id is None:
            await self.access.validate_workspace_access(workspace_id, principal)
        else:
            folder = await self.access.validate_folder_access(folder_id, principal, ProjectPermission.VIEWER)
            if folder.workspace_id != workspace_id:
                raise ValidationError("Folder belongs to another workspace")

        folders = await self.folders.get_children(workspace_id, principal.user_id, folder_id)
        files = await self.files.get_by_folder(workspace_id, principal.user_id, folder_id)
        return FolderContentsResponse(
            folder=FolderResponse.model_validate(folder) if folder is not None else None,
            folders=[FolderResponse.model_validate(f) for f in folders],
            files=[FileResponse.model_validate(f) for f in files],
        )

    async def get_workspace_folders(self, workspace_id: uuid.UUID, principal: Principal) -> List[FolderResponse]:
        await self.access.validate_workspace_access(workspace_id, principal)
        folders = await self.folders.get_workspace_folders(workspace_id, principal.user_id)
        return build_tree(folders)

    async def update_folder(
        self,
        folder_id: uuid.UUID,
        req: UpdateFolderRequest,
        principal: Principal
    ) -> FolderResponse:
        folder = await self.access.validate_folder_access(folder_id, principal, ProjectPermission.EDITOR)

        fields = req.model_fields_set
        parent_id = folder.parent_id
        if "parent_id" in fields and req.parent_id != folder.parent_id:
            parent_id = req.parent_id
            if parent_id is not None:
                if await self.folders.is_descendant(parent_id, folder.id):
                    raise ValidationError("A folder cannot be moved into itself or one of its subfolders")
                parent = await self.folders.get_by_id(parent_id)
                if parent.workspace_id != folder.workspace_id:
                    raise ValidationError("Target folder belongs to another workspace")
                if parent.project_id != folder.project_id:
                    raise ValidationError("Target folder belongs to another project")

        name = folder.name
        if "name" in fields and req.name is not None:
            name = req.name.strip()

        if name != folder.name or parent_id != folder.parent_id:
            await self._ensure_unique_name(folder.workspace_id, parent_id, name, exclude_id=folder.id)

        if parent_id != folder.parent_id:
            logger.info("Folder %s moved from %s to %s", folder.id, folder.parent_id, parent_id)
        folder.name = name
        folder.parent_id = parent_id
        if "color" in fields:
            folder.color = req.color

        await self.folders.update(folder)
        return FolderResponse.model_validate(folder)

    async def delete_folder(self, folder_id: uuid.UUID, principal: Principal) -> None:
        """Move a folder, its subfolders and their files to the trash"""
        await self.access.validate_folder_access(folder_id, principal, ProjectPermission.EDITOR)
        stamp = await self.folders.delete(folder_id)
        logger.info("Folder %s moved to trash by %s at %s", folder_id, principal.user_id, stamp.isoformat())

    async def restore_folder(self, folder_id: uuid.UUID, principal: Principal) -> FolderResponse:
        await self.access.validate_folder_access(
            folder_id, principal, ProjectPermission.EDITOR, include_deleted=True
        )
        folder = await self.folders.restore(folder_id)
        logger.info("Folder %s restored by %s", folder_id, principal.user_id)
        return FolderResponse.model_validate(folder)

    async def permanent_delete_folder(self, folder_id: uuid.UUID, principal: Principal) -> None:
        folder = await self.access.validate_folder_access(
            folder_id, principal, ProjectPermission.EDITOR, include_deleted=True
        )
        if self.require_trash_before_permanent_delete and not folder.is_deleted:
            raise ConflictError("Folder must be moved to trash before it can be permanently deleted")

        removed = await self.folders.permanent_delete(folder_id)
        logger.info("Folder %s permanently deleted by %s (%d folders)", folder_id, principal.user_id, removed)

    async def get_trash_folders(self, workspace_id: uuid.UUID, principal: Principal) -> List[FolderResponse]:
        await self.access.validate_workspace_access(workspace_id, principal)
        folders = await self.folders.get_trash(workspace_id, principal.user_id)
        return [FolderResponse.model_validate(f) for f in folders]

    async def _ensure_unique_name(
        self,
        workspace_id: uuid.UUID,
        parent_id: Optional[uuid.UUID],
        name: str,
        exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        existing = await self.folders.find_sibling_by_name(workspace_id, parent_id, name, exclude_id=exclude_id)
        if existing is not None:
            raise ConflictError(f"A folder named '{name}' already exists here")
