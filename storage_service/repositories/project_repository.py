"""Data access for projects and project members"""
import uuid
from typing import List, NamedTuple, Optional, Tuple

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storage_service.errors import ProjectNotFoundError, MemberNotFoundError, MemberExistsError
from storage_service.models import Project, ProjectMember, Folder, File, FileStatus, utcnow


def accessible_project_ids(user_id: uuid.UUID):
    """Ids of active projects the user can open: member, creator, or public"""
    return select(Project.id).where(
        Project.deleted_at.is_(None),
        ProjectRepository._accessible_by(user_id),
    )


def project_visible_to(column, user_id: uuid.UUID):
    """Condition on a nullable project reference: unscoped, or a project the user can open"""
    return or_(column.is_(None), column.in_(accessible_project_ids(user_id)))


class ProjectStats(NamedTuple):
    file_count: int
    folder_count: int
    total_size: int


class ProjectRepository:
    """Persistence operations for Project and ProjectMember rows"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Project CRUD

    async def create(self, project: Project, owner: Optional[ProjectMember] = None) -> Project:
        """Insert a project, and optionally its first member, in one transaction"""
        self.db.add(project)
        await self.db.flush()
        if owner is not None:
            owner.project_id = project.id
            self.db.add(owner)
        await self.db.commit()
        return project

    async def get_by_id(self, project_id: uuid.UUID, include_deleted: bool = False) -> Project:
        query = select(Project).where(Project.id == project_id)
        if not include_deleted:
            query = query.where(Project.deleted_at.is_(None))
        result = await self.db.execute(query)
        project = result.scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError()
        return project

    async def get_by_workspace_id(
        self,
        workspace_id: uuid.UUID,
        page: int,
        page_size: int
    ) -> Tuple[List[Project], int]:
        conditions = [Project.workspace_id == workspace_id, Project.deleted_at.is_(None)]
        return await self._paginate(conditions, page, page_size)

    async def get_user_projects(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        page: int,
        page_size: int
    ) -> Tuple[List[Project], int]:
        """Projects in a workspace the user is a member of, created, or can see because they are public"""
        conditions = [
            Project.workspace_id == workspace_id,
            Project.deleted_at.is_(None),
            self._accessible_by(user_id),
        ]
        return await self._paginate(conditions, page, page_size)

    async def get_trashed_user_projects(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(
                Project.workspace_id == workspace_id,
                Project.deleted_at.is_not(None),
                self._accessible_by(user_id),
            )
            .order_by(Project.deleted_at.desc())
        )
        return list(result.scalars().all())

    async def update(self, project: Project) -> Project:
        project.updated_at = utcnow()
        await self.db.commit()
        return project

    async def delete(self, project_id: uuid.UUID) -> None:
        """Move a project to the trash"""
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id, Project.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        if result.rowcount == 0:
            raise ProjectNotFoundError()
        await self.db.commit()

    async def restore(self, project_id: uuid.UUID) -> None:
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id, Project.deleted_at.is_not(None))
            .values(deleted_at=None, updated_at=utcnow())
        )
        if result.rowcount == 0:
            raise ProjectNotFoundError()
        await self.db.commit()

    async def permanent_delete(self, project_id: uuid.UUID) -> None:
        """Remove a project with its members, folders and files"""
        await self.db.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
        project_folders = select(Folder.id).where(Folder.project_id == project_id)
        await self.db.execute(
            delete(File).where(or_(File.project_id == project_id, File.folder_id.in_(project_folders)))
        )
        await self.db.execute(delete(Folder).where(Folder.project_id == project_id))
        result = await self.db.execute(delete(Project).where(Project.id == project_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise ProjectNotFoundError()
        await self.db.commit()

    # Project members

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        """Insert a member; the (project, user) unique constraint rejects duplicates"""
        self.db.add(member)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise MemberExistsError()
        return member

    async def find_member(self, project_id: uuid.UUID, user_id: uuid.UUID) -> Optional[ProjectMember]:
        result = await self.db.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def get_member(self, project_id: uuid.UUID, user_id: uuid.UUID) -> ProjectMember:
        member = await self.find_member(project_id, user_id)
        if member is None:
            raise MemberNotFoundError()
        return member

    async def get_member_by_id(self, member_id: uuid.UUID) -> ProjectMember:
        result = await self.db.execute(select(ProjectMember).where(ProjectMember.id == member_id))
        member = result.scalar_one_or_none()
        if member is None:
            raise MemberNotFoundError()
        return member

    async def get_members(self, project_id: uuid.UUID) -> List[ProjectMember]:
        result = await self.db.execute(
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.created_at.asc())
        )
        return list(result.scalars().all())

    async def count_members(self, project_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(ProjectMember.id)).where(ProjectMember.project_id == project_id)
        )
        return result.scalar() or 0

    async def update_member(self, member: ProjectMember) -> ProjectMember:
        member.updated_at = utcnow()
        await self.db.commit()
        return member

    async def remove_member(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
        result = await self.db.execute(
            delete(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id
            )
        )
        if result.rowcount == 0:
            raise MemberNotFoundError()
        await self.db.commit()

    # Stats

    async def get_project_stats(self, project_id: uuid.UUID) -> ProjectStats:
        active_files = [
            File.project_id == project_id,
            File.deleted_at.is_(None),
            File.status == FileStatus.ACTIVE,
        ]

        file_count = await self.db.execute(select(func.count(File.id)).where(*active_files))
        folder_count = await self.db.execute(
            select(func.count(Folder.id)).where(
                Folder.project_id == project_id,
                Folder.deleted_at.is_(None)
            )
        )
        total_size = await self.db.execute(
            select(func.coalesce(func.sum(File.file_size), 0)).where(*active_files)
        )

        return ProjectStats(
            file_count=file_count.scalar() or 0,
            folder_count=folder_count.scalar() or 0,
            total_size=int(total_size.scalar() or 0),
        )

    # Helpers

    @staticmethod
    def _accessible_by(user_id: uuid.UUID):
        return or_(
            Project.is_public == True,  # noqa: E712
            Project.created_by == user_id,
            Project.id.in_(
                select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
            ),
        )

    async def _paginate(self, conditions: list, page: int, page_size: int) -> Tuple[List[Project], int]:
        total_result = await self.db.execute(select(func.count(Project.id)).where(*conditions))
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc(), Project.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total
