"""Project lifecycle and membership"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.errors import ConflictError, ForbiddenError
from storage_service.models import Project, ProjectMember, ProjectPermission
from storage_service.pagination import total_pages
from storage_service.repositories import ProjectRepository
from storage_service.schemas import (
    AddProjectMemberRequest,
    CreateProjectRequest,
    ProjectListResponse,
    ProjectMemberResponse,
    ProjectResponse,
    UpdateProjectMemberRequest,
    UpdateProjectRequest,
)
from storage_service.services.access import AccessService, Principal

logger = logging.getLogger(__name__)

# Columns that cannot be cleared with an explicit null
_REQUIRED_FIELDS = {"name", "default_permission", "is_public"}
# Changing these alters who can see the project
_POLICY_FIELDS = {"default_permission", "is_public"}


class ProjectService:

    def __init__(
        self,
        db: AsyncSession,
        access: AccessService,
        require_trash_before_permanent_delete: bool = False
    ):
        self.projects = ProjectRepository(db)
        self.access = access
        self.require_trash_before_permanent_delete = require_trash_before_permanent_delete

    async def create_project(self, req: CreateProjectRequest, principal: Principal) -> ProjectResponse:
        """Create a project; the creator becomes its first OWNER member"""
        await self.access.validate_workspace_access(req.workspace_id, principal)

        project = Project(
            id=uuid.uuid4(),
            workspace_id=req.workspace_id,
            name=req.name.strip(),
            description=req.description,
            default_permission=req.default_permission or ProjectPermission.VIEWER,
            is_public=bool(req.is_public),
            created_by=principal.user_id,
        )
        owner = ProjectMember(
            id=uuid.uuid4(),
            user_id=principal.user_id,
            permission=ProjectPermission.OWNER,
            added_by=principal.user_id,
        )
        await self.projects.create(project, owner=owner)
        logger.info("Project %s created in workspace %s by %s", project.id, project.workspace_id, principal.user_id)

        return await self._to_response(project, ProjectPermission.OWNER)

    async def get_project(
        self,
        project_id: uuid.UUID,
        principal: Principal,
        include_members: bool = False
    ) -> ProjectResponse:
        project, permission = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.VIEWER
        )
        response = await self._to_response(project, permission)
        if include_members:
            members = await self.projects.get_members(project.id)
            response.members = [ProjectMemberResponse.model_validate(m) for m in members]
        return response

    async def get_workspace_projects(
        self,
        workspace_id: uuid.UUID,
        principal: Principal,
        page: int,
        page_size: int
    ) -> ProjectListResponse:
        """Projects of a workspace that the caller can access, newest first"""
        await self.access.validate_workspace_access(workspace_id, principal)

        projects, total = await self.projects.get_user_projects(
            workspace_id, principal.user_id, page, page_size
        )
        responses = []
        for project in projects:
            permission = await self.access.resolve_permission_for(project, principal.user_id)
            responses.append(await self._to_response(project, permission))

        return ProjectListResponse(
            projects=responses,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
        )

    async def get_trash_projects(self, workspace_id: uuid.UUID, principal: Principal) -> List[ProjectResponse]:
        """Trashed projects the caller could restore"""
        await self.access.validate_workspace_access(workspace_id, principal)

        trashed = await self.projects.get_trashed_user_projects(workspace_id, principal.user_id)
        responses = []
        for project in trashed:
            permission = await self.access.resolve_permission_for(project, principal.user_id)
            if permission is not None and permission.can_manage():
                responses.append(ProjectResponse.model_validate(project).model_copy(
                    update={"my_permission": permission}
                ))
        return responses

    async def update_project(
        self,
        project_id: uuid.UUID,
        req: UpdateProjectRequest,
        principal: Principal
    ) -> ProjectResponse:
        project, permission = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.EDITOR
        )

        changes = req.model_dump(exclude_unset=True)
        changes = {
            field: value for field, value in changes.items()
            if value is not None or field not in _REQUIRED_FIELDS
        }
        if _POLICY_FIELDS & changes.keys() and not permission.can_manage():
            raise ForbiddenError("Only project owners can change visibility or default permission")

        if "name" in changes:
            changes["name"] = changes["name"].strip()
        for field, value in changes.items():
            setattr(project, field, value)

        await self.projects.update(project)
        logger.info("Project %s updated by %s: %s", project.id, principal.user_id, sorted(changes))
        return await self._to_response(project, permission)

    async def delete_project(self, project_id: uuid.UUID, principal: Principal) -> None:
        """Move a project to the trash"""
        await self.access.validate_project_access(project_id, principal, ProjectPermission.OWNER)
        await self.projects.delete(project_id)
        logger.info("Project %s moved to trash by %s", project_id, principal.user_id)

    async def restore_project(self, project_id: uuid.UUID, principal: Principal) -> ProjectResponse:
        project, permission = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.OWNER, include_deleted=True
        )
        await self.projects.restore(project_id)
        logger.info("Project %s restored by %s", project_id, principal.user_id)
        return await self._to_response(project, permission)

    async def permanent_delete_project(self, project_id: uuid.UUID, principal: Principal) -> None:
        project, _ = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.OWNER, include_deleted=True
        )
        if self.require_trash_before_permanent_delete and not project.is_deleted:
            raise ConflictError("Project must be moved to trash before it can be permanently deleted")

        await self.projects.permanent_delete(project_id)
        logger.info("Project %s permanently deleted by %s", project_id, principal.user_id)

    # Members

    async def add_member(
        self,
        project_id: uuid.UUID,
        req: AddProjectMemberRequest,
        principal: Principal
    ) -> ProjectMemberResponse:
        _, permission = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.EDITOR
        )
        if req.permission is ProjectPermission.OWNER and not permission.can_manage():
            raise ForbiddenError("Only project owners can grant OWNER permission")

        member = ProjectMember(
            id=uuid.uuid4(),
            project_id=project_id,
            user_id=req.user_id,
            permission=req.permission,
            added_by=principal.user_id,
        )
        await self.projects.add_member(member)
        logger.info(
            "User %s added to project %s as %s by %s",
            req.user_id, project_id, req.permission.value, principal.user_id
        )
        return ProjectMemberResponse.model_validate(member)

    async def get_members(self, project_id: uuid.UUID, principal: Principal) -> List[ProjectMemberResponse]:
        await self.access.validate_project_access(project_id, principal, ProjectPermission.VIEWER)
        members = await self.projects.get_members(project_id)
        return [ProjectMemberResponse.model_validate(m) for m in members]

    async def get_member_by_id(self, member_id: uuid.UUID, principal: Principal) -> ProjectMemberResponse:
        """Look a membership up by its own id rather than by (project, user)"""
        member = await self.projects.get_member_by_id(member_id)
        await self.access.validate_project_access(member.project_id, principal, ProjectPermission.VIEWER)
        return ProjectMemberResponse.model_validate(member)

    async def update_member(
        self,
        project_id: uuid.UUID,
        member_user_id: uuid.UUID,
        req: UpdateProjectMemberRequest,
        principal: Principal
    ) -> ProjectMemberResponse:
        await self.access.validate_project_access(project_id, principal, ProjectPermission.OWNER)

        member = await self.projects.get_member(project_id, member_user_id)
        previous = member.permission
        member.permission = req.permission
        await self.projects.update_member(member)
        logger.info(
            "Member %s of project %s changed from %s to %s by %s",
            member_user_id, project_id, previous.value, req.permission.value, principal.user_id
        )
        return ProjectMemberResponse.model_validate(member)

    async def remove_member(
        self,
        project_id: uuid.UUID,
        member_user_id: uuid.UUID,
        principal: Principal
    ) -> None:
        """Owners can remove anyone; every member can remove themself"""
        _, permission = await self.access.validate_project_access(
            project_id, principal, ProjectPermission.VIEWER
        )
        if member_user_id != principal.user_id and not permission.can_manage():
            raise ForbiddenError("Only project owners can remove other members")

        await self.projects.remove_member(project_id, member_user_id)
        logger.info("User %s removed from project %s by %s", member_user_id, project_id, principal.user_id)

    async def _to_response(self, project: Project, permission: Optional[ProjectPermission]) -> ProjectResponse:
        stats = await self.projects.get_project_stats(project.id)
        member_count = await self.projects.count_members(project.id)
        return ProjectResponse.model_validate(project).model_copy(update={
            "member_count": member_count,
            "file_count": stats.file_count,
            "folder_count": stats.folder_count,
            "total_size": stats.total_size,
            "my_permission": permission,
        })
