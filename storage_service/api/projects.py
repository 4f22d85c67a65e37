import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from storage_service.api.auth import get_current_principal
from storage_service.api.deps import get_project_service
from storage_service.schemas import (
    AddProjectMemberRequest,
    CreateProjectRequest,
    MemberListResponse,
    ProjectMemberResponse,
    ProjectResponse,
    UpdateProjectMemberRequest,
    UpdateProjectRequest,
)
from storage_service.services.access import Principal
from storage_service.services.projects import ProjectService


router = APIRouter()


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    req: CreateProjectRequest,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    """Create a project; the caller becomes its owner"""
    return await service.create_project(req, principal)


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    include_members: bool = Query(False, alias="includeMembers"),
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.get_project(project_id, principal, include_members=include_members)


@router.put("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    req: UpdateProjectRequest,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.update_project(project_id, req, principal)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    """Move a project to the trash"""
    await service.delete_project(project_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/projects/{project_id}/restore", response_model=ProjectResponse)
async def restore_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.restore_project(project_id, principal)


@router.delete("/projects/{project_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def permanent_delete_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    await service.permanent_delete_project(project_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Members

@router.post(
    "/projects/{project_id}/members",
    response_model=ProjectMemberResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_member(
    project_id: uuid.UUID,
    req: AddProjectMemberRequest,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.add_member(project_id, req, principal)


@router.get("/projects/{project_id}/members", response_model=MemberListResponse)
async def list_members(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    members = await service.get_members(project_id, principal)
    return MemberListResponse(members=members)


@router.get("/projects/members/{member_id}", response_model=ProjectMemberResponse)
async def get_member(
    member_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    """Look up a membership by its own id"""
    return await service.get_member_by_id(member_id, principal)


@router.put("/projects/{project_id}/members/{user_id}", response_model=ProjectMemberResponse)
async def update_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    req: UpdateProjectMemberRequest,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    return await service.update_member(project_id, user_id, req, principal)


@router.delete("/projects/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: ProjectService = Depends(get_project_service)
):
    await service.remove_member(project_id, user_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
