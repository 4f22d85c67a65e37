"""Domain errors shared by repositories, services and HTTP handlers.

Every error carries a machine-readable ``code``; the HTTP status is looked up
from ``STATUS_BY_CODE`` when the error reaches the API layer.
"""
from typing import Any, Optional


ERR_VALIDATION = "VALIDATION_ERROR"
ERR_UNAUTHORIZED = "UNAUTHORIZED"
ERR_FORBIDDEN = "FORBIDDEN"
ERR_NOT_FOUND = "NOT_FOUND"
ERR_PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
ERR_FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
ERR_FILE_NOT_FOUND = "FILE_NOT_FOUND"
ERR_MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
ERR_CONFLICT = "CONFLICT"
ERR_MEMBER_EXISTS = "MEMBER_EXISTS"
ERR_UPSTREAM = "UPSTREAM_ERROR"
ERR_INTERNAL = "INTERNAL_ERROR"

STATUS_BY_CODE = {
    ERR_VALIDATION: 400,
    ERR_UNAUTHORIZED: 401,
    ERR_FORBIDDEN: 403,
    ERR_NOT_FOUND: 404,
    ERR_PROJECT_NOT_FOUND: 404,
    ERR_FOLDER_NOT_FOUND: 404,
    ERR_FILE_NOT_FOUND: 404,
    ERR_MEMBER_NOT_FOUND: 404,
    ERR_CONFLICT: 409,
    ERR_MEMBER_EXISTS: 409,
    ERR_UPSTREAM: 502,
    ERR_INTERNAL: 500,
}


def http_status_for(code: str) -> int:
    return STATUS_BY_CODE.get(code, 500)


class AppError(Exception):
    """Base class for errors that are safe to show to API clients"""
    code = ERR_INTERNAL
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None, code: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        if code is not None:
            self.code = code
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return http_status_for(self.code)

    def to_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    code = ERR_VALIDATION
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    code = ERR_UNAUTHORIZED
    default_message = "User not authenticated"


class ForbiddenError(AppError):
    code = ERR_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    code = ERR_NOT_FOUND
    default_message = "Resource not found"


class ProjectNotFoundError(NotFoundError):
    code = ERR_PROJECT_NOT_FOUND
    default_message = "Project not found"


class FolderNotFoundError(NotFoundError):
    code = ERR_FOLDER_NOT_FOUND
    default_message = "Folder not found"


class FileRecordNotFoundError(NotFoundError):
    code = ERR_FILE_NOT_FOUND
    default_message = "File not found"


class MemberNotFoundError(NotFoundError):
    code = ERR_MEMBER_NOT_FOUND
    default_message = "Project member not found"


class ConflictError(AppError):
    code = ERR_CONFLICT
    default_message = "Resource conflict"


class MemberExistsError(ConflictError):
    code = ERR_MEMBER_EXISTS
    default_message = "Project member already exists"


class UpstreamError(AppError):
    code = ERR_UPSTREAM
    default_message = "Upstream service unavailable"
