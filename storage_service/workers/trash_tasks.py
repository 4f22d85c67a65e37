"""Periodic removal of items that stayed in the trash past the retention period"""
import logging
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from storage_service.config import settings
from storage_service.database import SessionLocal
from storage_service.models import File, Folder, Project, ProjectMember, utcnow
from storage_service.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def purge_expired_trash(db: Session, cutoff: datetime) -> Dict[str, int]:
    """Permanently delete projects, folders and files trashed before ``cutoff``.

    Folders trashed together share one deleted_at stamp, so a whole subtree
    expires at once. A purged project takes its folders and files with it,
    the same as a manual permanent delete.
    """
    project_ids = list(db.execute(
        select(Project.id).where(Project.deleted_at.is_not(None), Project.deleted_at < cutoff)
    ).scalars().all())

    removed_files = removed_folders = 0
    if project_ids:
        db.execute(
            delete(ProjectMember)
            .where(ProjectMember.project_id.in_(project_ids))
            .execution_options(synchronize_session=False)
        )
        project_folders = select(Folder.id).where(Folder.project_id.in_(project_ids))
        removed_files += db.execute(
            delete(File)
            .where(or_(File.project_id.in_(project_ids), File.folder_id.in_(project_folders)))
            .execution_options(synchronize_session=False)
        ).rowcount
        removed_folders += db.execute(
            delete(Folder)
            .where(Folder.project_id.in_(project_ids))
            .execution_options(synchronize_session=False)
        ).rowcount
        db.execute(
            delete(Project)
            .where(Project.id.in_(project_ids))
            .execution_options(synchronize_session=False)
        )

    removed_files += db.execute(
        delete(File)
        .where(File.deleted_at.is_not(None), File.deleted_at < cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount
    removed_folders += db.execute(
        delete(Folder)
        .where(Folder.deleted_at.is_not(None), Folder.deleted_at < cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.commit()

    return {
        "projects": len(project_ids),
        "folders": removed_folders,
        "files": removed_files,
    }


@celery_app.task(name="storage_service.workers.trash_tasks.purge_expired_trash_task")
def purge_expired_trash_task() -> Dict:
    """Purge trash older than the configured retention"""
    if settings.trash_retention_days <= 0:
        logger.info("Trash retention disabled, nothing purged")
        return {"status": "disabled"}

    cutoff = utcnow() - timedelta(days=settings.trash_retention_days)
    db = SessionLocal()
    try:
        counts = purge_expired_trash(db, cutoff)
    except Exception:
        db.rollback()
        logger.exception("Trash purge failed")
        raise
    finally:
        db.close()

    logger.info(
        "Purged %d projects, %d folders and %d files trashed before %s",
        counts["projects"], counts["folders"], counts["files"], cutoff.isoformat()
    )
    return {"status": "completed", **counts}
