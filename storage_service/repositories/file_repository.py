"""Data access for file metadata"""
import uuid
from typing import List, NamedTuple, Optional, Tuple

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from storage_service.errors import FileRecordNotFoundError
from storage_service.models import File, FileStatus, Folder, utcnow
from storage_service.repositories.project_repository import project_visible_to


class StorageUsage(NamedTuple):
    file_count: int
    total_size: int


class FileRepository:
    """Persistence operations for File rows"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, file: File) -> File:
        self.db.add(file)
        await self.db.commit()
        return file

    async def get_by_id(self, file_id: uuid.UUID, include_deleted: bool = False) -> File:
        query = select(File).where(File.id == file_id)
        if not include_deleted:
            query = query.where(File.deleted_at.is_(None))
        result = await self.db.execute(query)
        file = result.scalar_one_or_none()
        if file is None:
            raise FileRecordNotFoundError()
        return file

    async def get_by_folder(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        folder_id: Optional[uuid.UUID]
    ) -> List[File]:
        query = select(File).where(*self._visible(workspace_id, user_id))
        if folder_id is None:
            query = query.where(File.folder_id.is_(None))
        else:
            query = query.where(File.folder_id == folder_id)
        result = await self.db.execute(query.order_by(File.name))
        return list(result.scalars().all())

    async def get_workspace_files(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        folder_id: Optional[uuid.UUID],
        page: int,
        page_size: int
    ) -> Tuple[List[File], int]:
        conditions = self._visible(workspace_id, user_id)
        if folder_id is not None:
            conditions.append(File.folder_id == folder_id)
        return await self._paginate(conditions, page, page_size)

    async def search(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        query: str,
        page: int,
        page_size: int
    ) -> Tuple[List[File], int]:
        pattern = f"%{query.strip().lower()}%"
        conditions = self._visible(workspace_id, user_id)
        conditions.append(func.lower(File.name).like(pattern))
        return await self._paginate(conditions, page, page_size)

    async def get_trash(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> List[File]:
        """Trashed files that were deleted on their own, not along with their folder"""
        folder = aliased(Folder)
        result = await self.db.execute(
            select(File)
            .outerjoin(folder, File.folder_id == folder.id)
            .where(
                File.workspace_id == workspace_id,
                File.deleted_at.is_not(None),
                project_visible_to(File.project_id, user_id),
                or_(
                    folder.id.is_(None),
                    folder.deleted_at.is_(None),
                    folder.deleted_at != File.deleted_at,
                )
            )
            .order_by(File.deleted_at.desc())
        )
        return list(result.scalars().all())

    async def update(self, file: File) -> File:
        file.updated_at = utcnow()
        await self.db.commit()
        return file

    async def delete(self, file_id: uuid.UUID) -> None:
        result = await self.db.execute(
            update(File)
            .where(File.id == file_id, File.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        if result.rowcount == 0:
            raise FileRecordNotFoundError()
        await self.db.commit()

    async def restore(self, file_id: uuid.UUID) -> File:
        file = await self.get_by_id(file_id, include_deleted=True)
        if file.deleted_at is None:
            raise FileRecordNotFoundError("File is not in the trash")

        # A file whose folder is still trashed comes back at the root
        if file.folder_id is not None:
            result = await self.db.execute(select(Folder.deleted_at).where(Folder.id == file.folder_id))
            row = result.first()
            if row is None or row[0] is not None:
                file.folder_id = None

        file.deleted_at = None
        file.updated_at = utcnow()
        await self.db.commit()
        return file

    async def permanent_delete(self, file_id: uuid.UUID) -> None:
        result = await self.db.execute(delete(File).where(File.id == file_id))
        if result.rowcount == 0:
            raise FileRecordNotFoundError()
        await self.db.commit()

    async def get_storage_usage(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> StorageUsage:
        """Count and size of the active files the user can see"""
        result = await self.db.execute(
            select(func.count(File.id), func.coalesce(func.sum(File.file_size), 0))
            .where(*self._visible(workspace_id, user_id))
        )
        count, total = result.one()
        return StorageUsage(file_count=count or 0, total_size=int(total or 0))

    @staticmethod
    def _visible(workspace_id: uuid.UUID, user_id: uuid.UUID) -> list:
        return [
            File.workspace_id == workspace_id,
            File.deleted_at.is_(None),
            File.status == FileStatus.ACTIVE,
            project_visible_to(File.project_id, user_id),
        ]

    async def _paginate(self, conditions: list, page: int, page_size: int) -> Tuple[List[File], int]:
        total_result = await self.db.execute(select(func.count(File.id)).where(*conditions))
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(File)
            .where(*conditions)
            .order_by(File.created_at.desc(), File.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total
