"""Request and response models. JSON field names are camelCase."""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from storage_service.models import ProjectPermission, FileStatus


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def strip_name(value: Optional[str]) -> Optional[str]:
    """Trim surrounding whitespace; a name that is only whitespace is rejected"""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Projects

class CreateProjectRequest(APIModel):
    workspace_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1024)
    default_permission: Optional[ProjectPermission] = None  # VIEWER when omitted
    is_public: Optional[bool] = None  # False when omitted

    normalize_name = field_validator("name")(strip_name)


class UpdateProjectRequest(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1024)
    default_permission: Optional[ProjectPermission] = None
    is_public: Optional[bool] = None

    normalize_name = field_validator("name")(strip_name)


class AddProjectMemberRequest(APIModel):
    user_id: uuid.UUID
    permission: ProjectPermission


class UpdateProjectMemberRequest(APIModel):
    permission: ProjectPermission


class ProjectMemberResponse(APIModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    permission: ProjectPermission
    added_by: uuid.UUID
    created_at: datetime


class ProjectResponse(APIModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    name: str
    description: Optional[str] = None
    default_permission: ProjectPermission
    is_public: bool
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    member_count: int = 0
    file_count: int = 0
    folder_count: int = 0
    total_size: int = 0
    members: Optional[List[ProjectMemberResponse]] = None
    my_permission: Optional[ProjectPermission] = None


class ProjectListResponse(APIModel):
    projects: List[ProjectResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class MemberListResponse(APIModel):
    members: List[ProjectMemberResponse]


# Folders

class CreateFolderRequest(APIModel):
    workspace_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    name: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)

    normalize_name = field_validator("name")(strip_name)


class UpdateFolderRequest(APIModel):
    """An explicit ``"parentId": null`` moves the folder to the workspace root"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    parent_id: Optional[uuid.UUID] = None

    normalize_name = field_validator("name")(strip_name)


class FolderResponse(APIModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    name: str
    color: Optional[str] = None
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    children: List["FolderResponse"] = []


FolderResponse.model_rebuild()


# Files

class RegisterFileRequest(APIModel):
    workspace_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    folder_id: Optional[uuid.UUID] = None
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field("application/octet-stream", max_length=255)
    file_size: int = Field(..., ge=0)

    normalize_name = field_validator("file_name")(strip_name)


class UpdateFileRequest(APIModel):
    """An explicit ``"folderId": null`` moves the file to the workspace root"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    folder_id: Optional[uuid.UUID] = None

    normalize_name = field_validator("name")(strip_name)


class FileResponse(APIModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    folder_id: Optional[uuid.UUID] = None
    name: str
    original_name: str
    content_type: str
    extension: Optional[str] = None
    file_size: int
    file_key: str
    status: FileStatus
    uploaded_by: uuid.UUID
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None


class FileListResponse(APIModel):
    files: List[FileResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class FolderContentsResponse(APIModel):
    folder: Optional[FolderResponse] = None
    folders: List[FolderResponse]
    files: List[FileResponse]


class StorageUsageResponse(APIModel):
    workspace_id: uuid.UUID
    file_count: int
    total_size: int


class MessageResponse(APIModel):
    message: str
