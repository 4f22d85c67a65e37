"""Access resolution for workspaces, projects, folders and files.

A user's effective permission on a project is resolved in this order:

1. an explicit ProjectMember row wins, whatever the project settings are;
2. otherwise a public project grants its ``default_permission``;
3. otherwise the project creator is OWNER;
4. otherwise the user has no access (``None``).

Folders and files are checked through the project they belong to. Resources
that are not scoped to a project only require workspace membership, which is
decided by the user service.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.errors import ForbiddenError, ProjectNotFoundError, ValidationError
from storage_service.models import Project, ProjectPermission, Folder, File
from storage_service.repositories import ProjectRepository, FolderRepository, FileRepository
from storage_service.services.workspace_client import WorkspaceClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller. The token is forwarded to collaborating services."""
    user_id: uuid.UUID
    token: str = ""


@dataclass
class AccessCheckResult:
    has_access: bool
    permission: Optional[ProjectPermission] = None
    is_owner: bool = False
    reason: Optional[str] = None


class AccessService:

    def __init__(
        self,
        db: AsyncSession,
        workspace_client: WorkspaceClient,
        conceal_inaccessible_projects: bool = False
    ):
        self.projects = ProjectRepository(db)
        self.folders = FolderRepository(db)
        self.files = FileRepository(db)
        self.workspace_client = workspace_client
        self.conceal_inaccessible_projects = conceal_inaccessible_projects

    # Resolution

    async def resolve_permission_for(self, project: Project, user_id: uuid.UUID) -> Optional[ProjectPermission]:
        member = await self.projects.find_member(project.id, user_id)
        if member is not None:
            return member.permission
        if project.is_public:
            return project.default_permission
        if project.created_by == user_id:
            return ProjectPermission.OWNER
        return None

    async def resolve_project_permission(
        self,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        include_deleted: bool = False
    ) -> Optional[ProjectPermission]:
        """Effective permission of a user on a project, None when the user has no access"""
        project = await self.projects.get_by_id(project_id, include_deleted=include_deleted)
        return await self.resolve_permission_for(project, user_id)

    async def check_project_access(self, project_id: uuid.UUID, user_id: uuid.UUID) -> AccessCheckResult:
        project = await self.projects.get_by_id(project_id)
        permission = await self.resolve_permission_for(project, user_id)
        if permission is None:
            return AccessCheckResult(has_access=False, reason="Not a member of this private project")
        return AccessCheckResult(
            has_access=True,
            permission=permission,
            is_owner=permission.can_manage(),
        )

    # Gating

    async def validate_workspace_access(self, workspace_id: uuid.UUID, principal: Principal) -> None:
        is_member = await self.workspace_client.validate_member(workspace_id, principal.user_id, principal.token)
        if not is_member:
            logger.info("User %s denied access to workspace %s", principal.user_id, workspace_id)
            raise ForbiddenError("You are not a member of this workspace")

    async def validate_project_access(
        self,
        project_id: uuid.UUID,
        principal: Principal,
        required: ProjectPermission,
        include_deleted: bool = False,
        check_workspace: bool = True
    ) -> Tuple[Project, ProjectPermission]:
        """Load a project and make sure the caller holds at least ``required`` on it"""
        project = await self.projects.get_by_id(project_id, include_deleted=include_deleted)
        if check_workspace:
            await self.validate_workspace_access(project.workspace_id, principal)

        permission = await self.resolve_permission_for(project, principal.user_id)
        if permission is None:
            logger.info("User %s has no access to project %s", principal.user_id, project_id)
            if self.conceal_inaccessible_projects:
                raise ProjectNotFoundError()
            raise ForbiddenError("You do not have access to this project")

        if not permission.satisfies(required):
            logger.info(
                "User %s holds %s on project %s, %s required",
                principal.user_id, permission.value, project_id, required.value
            )
            raise ForbiddenError(f"This operation requires {required.value} permission")

        return project, permission

    async def validate_resource_access(
        self,
        workspace_id: uuid.UUID,
        project_id: Optional[uuid.UUID],
        principal: Principal,
        required: ProjectPermission
    ) -> Optional[ProjectPermission]:
        """Workspace membership, plus ``required`` on the project when the resource is project scoped"""
        await self.validate_workspace_access(workspace_id, principal)
        if project_id is None:
            return None

        project, permission = await self.validate_project_access(
            project_id, principal, required, check_workspace=False
        )
        if project.workspace_id != workspace_id:
            raise ValidationError("Project does not belong to this workspace")
        return permission

    async def validate_folder_access(
        self,
        folder_id: uuid.UUID,
        principal: Principal,
        required: ProjectPermission,
        include_deleted: bool = False
    ) -> Folder:
        folder = await self.folders.get_by_id(folder_id, include_deleted=include_deleted)
        await self.validate_resource_access(folder.workspace_id, folder.project_id, principal, required)
        return folder

    async def validate_file_access(
        self,
        file_id: uuid.UUID,
        principal: Principal,
        required: ProjectPermission,
        include_deleted: bool = False
    ) -> File:
        file = await self.files.get_by_id(file_id, include_deleted=include_deleted)
        await self.validate_resource_access(file.workspace_id, file.project_id, principal, required)
        return file
