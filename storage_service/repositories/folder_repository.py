"""Data access for folders, including subtree trash and restore"""
import uuid
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from storage_service.errors import FolderNotFoundError
from storage_service.models import Folder, File, utcnow
from storage_service.repositories.project_repository import project_visible_to


class FolderRepository:
    """Persistence operations for Folder rows"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, folder: Folder) -> Folder:
        self.db.add(folder)
        await self.db.commit()
        return folder

    async def get_by_id(self, folder_id: uuid.UUID, include_deleted: bool = False) -> Folder:
        query = select(Folder).where(Folder.id == folder_id)
        if not include_deleted:
            query = query.where(Folder.deleted_at.is_(None))
        result = await self.db.execute(query)
        folder = result.scalar_one_or_none()
        if folder is None:
            raise FolderNotFoundError()
        return folder

    async def get_children(
        self,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        parent_id: Optional[uuid.UUID]
    ) -> List[Folder]:
        """Active folders directly under parent_id, or at the workspace root when parent_id is None"""
        query = select(Folder).where(
            Folder.workspace_id == workspace_id,
            Folder.deleted_at.is_(None),
            project_visible_to(Folder.project_id, user_id)
        )
        if parent_id is None:
            query = query.where(Folder.parent_id.is_(None))
        else:
            query = query.where(Folder.parent_id == parent_id)
        result = await self.db.execute(query.order_by(Folder.name))
        return list(result.scalars().all())

    async def get_workspace_folders(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> List[Folder]:
        result = await self.db.execute(
            select(Folder)
            .where(
                Folder.workspace_id == workspace_id,
                Folder.deleted_at.is_(None),
                project_visible_to(Folder.project_id, user_id)
            )
            .order_by(Folder.name)
        )
        return list(result.scalars().all())

    async def find_sibling_by_name(
        self,
        workspace_id: uuid.UUID,
        parent_id: Optional[uuid.UUID],
        name: str,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[Folder]:
        query = select(Folder).where(
            Folder.workspace_id == workspace_id,
            Folder.deleted_at.is_(None),
            Folder.name == name
        )
        if parent_id is None:
            query = query.where(Folder.parent_id.is_(None))
        else:
            query = query.where(Folder.parent_id == parent_id)
        if exclude_id is not None:
            query = query.where(Folder.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def get_trash(self, workspace_id: uuid.UUID, user_id: uuid.UUID) -> List[Folder]:
        """Trashed folders that were deleted on their own, not as part of a parent's subtree"""
        parent = aliased(Folder)
        result = await self.db.execute(
            select(Folder)
            .outerjoin(parent, Folder.parent_id == parent.id)
            .where(
                Folder.workspace_id == workspace_id,
                Folder.deleted_at.is_not(None),
                project_visible_to(Folder.project_id, user_id),
                or_(
                    parent.id.is_(None),
                    parent.deleted_at.is_(None),
                    parent.deleted_at != Folder.deleted_at,
                )
            )
            .order_by(Folder.deleted_at.desc())
        )
        return list(result.scalars().all())

    async def is_descendant(self, folder_id: uuid.UUID, ancestor_id: uuid.UUID) -> bool:
        """True when ancestor_id appears on the parent chain of folder_id (or is folder_id itself)"""
        current: Optional[uuid.UUID] = folder_id
        seen: Set[uuid.UUID] = set()
        while current is not None and current not in seen:
            if current == ancestor_id:
                return True
            seen.add(current)
            result = await self.db.execute(select(Folder.parent_id).where(Folder.id == current))
            current = result.scalar_one_or_none()
        return False

    async def update(self, folder: Folder) -> Folder:
        folder.updated_at = utcnow()
        await self.db.commit()
        return folder

    async def delete(self, folder_id: uuid.UUID) -> datetime:
        """Trash a folder together with its active descendants and their files.

        Every affected row gets the same deleted_at stamp so restore can bring
        back exactly what this call removed.
        """
        folder = await self.get_by_id(folder_id)
        stamp = utcnow()
        ids = await self._subtree_ids(folder.id, Folder.deleted_at.is_(None))

        await self.db.execute(
            update(Folder)
            .where(Folder.id.in_(ids), Folder.deleted_at.is_(None))
            .values(deleted_at=stamp)
        )
        await self.db.execute(
            update(File)
            .where(File.folder_id.in_(ids), File.deleted_at.is_(None))
            .values(deleted_at=stamp)
        )
        await self.db.commit()
        return stamp

    async def restore(self, folder_id: uuid.UUID) -> Folder:
        """Restore a trashed folder and everything trashed along with it"""
        folder = await self.get_by_id(folder_id, include_deleted=True)
        if folder.deleted_at is None:
            raise FolderNotFoundError("Folder is not in the trash")

        stamp = folder.deleted_at
        ids = await self._subtree_ids(folder.id, Folder.deleted_at == stamp)

        # A folder whose parent is still trashed comes back at the root
        if folder.parent_id is not None:
            result = await self.db.execute(
                select(Folder.deleted_at).where(Folder.id == folder.parent_id)
            )
            row = result.first()
            if row is None or row[0] is not None:
                folder.parent_id = None

        now = utcnow()
        await self.db.execute(
            update(Folder)
            .where(Folder.id.in_(ids), Folder.deleted_at == stamp)
            .values(deleted_at=None, updated_at=now)
        )
        await self.db.execute(
            update(File)
            .where(File.folder_id.in_(ids), File.deleted_at == stamp)
            .values(deleted_at=None, updated_at=now)
        )
        await self.db.commit()
        return folder

    async def permanent_delete(self, folder_id: uuid.UUID) -> int:
        """Remove a folder, all descendants and their files. Returns the number of folders removed"""
        folder = await self.get_by_id(folder_id, include_deleted=True)
        ids = await self._subtree_ids(folder.id, None)

        await self.db.execute(delete(File).where(File.folder_id.in_(ids)))
        await self.db.execute(delete(Folder).where(Folder.id.in_(ids)))
        await self.db.commit()
        return len(ids)

    async def _subtree_ids(self, root_id: uuid.UUID, condition) -> List[uuid.UUID]:
        """Breadth-first walk of descendants matching condition, root included"""
        ids = [root_id]
        frontier = [root_id]
        while frontier:
            query = select(Folder.id).where(Folder.parent_id.in_(frontier))
            if condition is not None:
                query = query.where(condition)
            result = await self.db.execute(query)
            frontier = [child_id for child_id in result.scalars().all() if child_id not in ids]
            ids.extend(frontier)
        return ids
