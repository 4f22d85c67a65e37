import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from storage_service.config import settings
from storage_service.errors import UnauthorizedError, UpstreamError
from storage_service.services.access import Principal
from storage_service.services.auth_client import AuthClient


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token the way the auth service does. Used by scripts and tests."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> uuid.UUID:
    """Verify a token locally and return the user id it carries"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")

    subject = payload.get("sub") or payload.get("userId")
    if subject is None:
        raise UnauthorizedError("Token has no subject")
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        raise UnauthorizedError("Token subject is not a valid user id")


def get_auth_client() -> AuthClient:
    return AuthClient(settings.auth_service_url, timeout=settings.http_timeout_seconds)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_client: AuthClient = Depends(get_auth_client)
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    token = credentials.credentials

    if auth_client.enabled:
        try:
            user_id = await auth_client.validate_token(token)
        except UpstreamError as e:
            # Auth service down: trust the shared secret instead
            logger.warning("Remote token validation failed, using local validation: %s", e.message)
            return Principal(user_id=decode_token(token), token=token)
        if user_id is None:
            raise UnauthorizedError("Invalid or expired token")
        return Principal(user_id=user_id, token=token)

    return Principal(user_id=decode_token(token), token=token)
