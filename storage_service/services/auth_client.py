"""Remote token validation against the auth service"""
import logging
import time
import uuid
from typing import Optional

import httpx

from storage_service.errors import UpstreamError
from storage_service.metrics import record_external_request, categorize_status

logger = logging.getLogger(__name__)


class AuthClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def validate_token(self, token: str) -> Optional[uuid.UUID]:
        """Return the user id the token belongs to, or None when the auth service rejects it"""
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/api/auth/validate",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            record_external_request("auth-validate", "error", time.perf_counter() - start)
            raise UpstreamError("Auth service unavailable", details=str(e))

        record_external_request(
            "auth-validate",
            categorize_status(response.status_code),
            time.perf_counter() - start,
        )

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise UpstreamError(f"Auth service returned {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("Auth service returned a non-JSON body")
        if not isinstance(data, dict):
            raise UpstreamError("Auth service returned a non-object body")
        if not data.get("valid"):
            return None
        try:
            return uuid.UUID(str(data.get("userId")))
        except ValueError:
            logger.warning("Auth service returned a malformed user id")
            return None
