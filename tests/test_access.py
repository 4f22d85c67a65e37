import uuid

import pytest

from storage_service.errors import ForbiddenError, ProjectNotFoundError, ValidationError
from storage_service.models import Project, ProjectMember, ProjectPermission
from storage_service.repositories import ProjectRepository
from storage_service.services.access import AccessService, Principal


async def make_project(db, workspace_id, created_by, is_public=False, default_permission=ProjectPermission.VIEWER):
    project = Project(
        id=uuid.uuid4(),
        workspace_id=workspace_id,
        name="Assets",
        default_permission=default_permission,
        is_public=is_public,
        created_by=created_by,
    )
    return await ProjectRepository(db).create(project)


async def add_member(db, project, user_id, permission):
    member = ProjectMember(
        project_id=project.id,
        user_id=user_id,
        permission=permission,
        added_by=project.created_by,
    )
    return await ProjectRepository(db).add_member(member)


async def test_member_row_wins_over_public_and_creator(db, access, workspace_id):
    creator = uuid.uuid4()
    project = await make_project(
        db, workspace_id, creator, is_public=True, default_permission=ProjectPermission.EDITOR
    )
    await add_member(db, project, creator, ProjectPermission.VIEWER)

    assert await access.resolve_project_permission(project.id, creator) is ProjectPermission.VIEWER


async def test_public_project_grants_default_permission(db, access, workspace_id):
    project = await make_project(
        db, workspace_id, uuid.uuid4(), is_public=True, default_permission=ProjectPermission.EDITOR
    )

    assert await access.resolve_project_permission(project.id, uuid.uuid4()) is ProjectPermission.EDITOR


async def test_private_project_denies_strangers(db, access, workspace_id):
    project = await make_project(db, workspace_id, uuid.uuid4())

    assert await access.resolve_project_permission(project.id, uuid.uuid4()) is None
    result = await access.check_project_access(project.id, uuid.uuid4())
    assert result.has_access is False
    assert result.reason


async def test_creator_without_member_row_is_owner(db, access, workspace_id):
    creator = uuid.uuid4()
    project = await make_project(db, workspace_id, creator)

    result = await access.check_project_access(project.id, creator)
    assert result.permission is ProjectPermission.OWNER
    assert result.is_owner


async def test_missing_project_is_not_found(access):
    with pytest.raises(ProjectNotFoundError):
        await access.resolve_project_permission(uuid.uuid4(), uuid.uuid4())


async def test_insufficient_permission_is_forbidden(db, access, workspace_id):
    project = await make_project(db, workspace_id, uuid.uuid4())
    viewer = Principal(user_id=uuid.uuid4())
    await add_member(db, project, viewer.user_id, ProjectPermission.VIEWER)

    _, permission = await access.validate_project_access(project.id, viewer, ProjectPermission.VIEWER)
    assert permission is ProjectPermission.VIEWER
    with pytest.raises(ForbiddenError):
        await access.validate_project_access(project.id, viewer, ProjectPermission.EDITOR)


async def test_no_access_can_be_reported_as_not_found(db, workspace_client, workspace_id):
    project = await make_project(db, workspace_id, uuid.uuid4())
    stranger = Principal(user_id=uuid.uuid4())

    open_access = AccessService(db, workspace_client)
    with pytest.raises(ForbiddenError):
        await open_access.validate_project_access(project.id, stranger, ProjectPermission.VIEWER)

    concealing = AccessService(db, workspace_client, conceal_inaccessible_projects=True)
    with pytest.raises(ProjectNotFoundError):
        await concealing.validate_project_access(project.id, stranger, ProjectPermission.VIEWER)


async def test_workspace_outsider_is_forbidden(db, access, workspace_client, workspace_id):
    creator = Principal(user_id=uuid.uuid4())
    project = await make_project(db, workspace_id, creator.user_id)
    workspace_client.outsiders.add((workspace_id, creator.user_id))

    with pytest.raises(ForbiddenError):
        await access.validate_project_access(project.id, creator, ProjectPermission.VIEWER)


async def test_project_must_belong_to_the_workspace(db, access, workspace_id):
    creator = Principal(user_id=uuid.uuid4())
    project = await make_project(db, workspace_id, creator.user_id)

    with pytest.raises(ValidationError):
        await access.validate_resource_access(uuid.uuid4(), project.id, creator, ProjectPermission.VIEWER)
    assert await access.validate_resource_access(
        workspace_id, None, creator, ProjectPermission.EDITOR
    ) is None
