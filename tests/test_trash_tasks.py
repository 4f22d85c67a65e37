import uuid
from datetime import timedelta

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from storage_service.models import Base, File, FileStatus, Folder, Project, ProjectMember, ProjectPermission, utcnow
from storage_service.workers import trash_tasks
from storage_service.workers.trash_tasks import purge_expired_trash


@pytest.fixture
def sync_db():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    session = Session(engine, expire_on_commit=False)
    yield session
    session.close()
    engine.dispose()


def test_purge_removes_expired_items_and_project_contents(sync_db):
    workspace_id = uuid.uuid4()
    user_id = uuid.uuid4()
    now = utcnow()
    old = now - timedelta(days=40)

    expired_project = Project(workspace_id=workspace_id, name="old", created_by=user_id, deleted_at=old)
    recent_project = Project(workspace_id=workspace_id, name="recent", created_by=user_id, deleted_at=now)
    active_project = Project(workspace_id=workspace_id, name="active", created_by=user_id)
    sync_db.add_all([expired_project, recent_project, active_project])
    sync_db.flush()

    sync_db.add(ProjectMember(project_id=expired_project.id, user_id=user_id,
                              permission=ProjectPermission.OWNER, added_by=user_id))
    plans = Folder(workspace_id=workspace_id, project_id=expired_project.id, name="plans", created_by=user_id)
    old_folder = Folder(workspace_id=workspace_id, name="old", created_by=user_id, deleted_at=old)
    active_folder = Folder(workspace_id=workspace_id, project_id=active_project.id, name="active",
                           created_by=user_id)
    sync_db.add_all([plans, old_folder, active_folder])
    sync_db.flush()
    sync_db.add_all([
        File(workspace_id=workspace_id, folder_id=old_folder.id, name="a", original_name="a",
             file_key="k/a", status=FileStatus.ACTIVE, uploaded_by=user_id, deleted_at=old),
        File(workspace_id=workspace_id, name="b", original_name="b",
             file_key="k/b", status=FileStatus.ACTIVE, uploaded_by=user_id),
        File(workspace_id=workspace_id, project_id=expired_project.id, folder_id=plans.id, name="c",
             original_name="c", file_key="k/c", status=FileStatus.ACTIVE, uploaded_by=user_id),
    ])
    sync_db.commit()

    counts = purge_expired_trash(sync_db, now - timedelta(days=30))

    assert counts == {"projects": 1, "folders": 2, "files": 2}
    names = set(sync_db.execute(select(Project.name)).scalars())
    assert names == {"recent", "active"}
    assert sync_db.execute(select(ProjectMember)).first() is None
    assert list(sync_db.execute(select(Folder.name)).scalars()) == ["active"]
    assert list(sync_db.execute(select(File.name)).scalars()) == ["b"]


def test_task_is_disabled_without_retention(monkeypatch):
    monkeypatch.setattr(trash_tasks.settings, "trash_retention_days", 0)

    assert trash_tasks.purge_expired_trash_task() == {"status": "disabled"}
