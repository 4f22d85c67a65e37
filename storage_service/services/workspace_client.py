"""Client for the workspace-membership endpoint of the user service"""
import logging
import time
import uuid
from typing import Optional

import httpx

from storage_service.errors import UpstreamError
from storage_service.metrics import record_external_request, categorize_status

logger = logging.getLogger(__name__)


class WorkspaceClient:
    """Asks the user service whether a user belongs to a workspace"""

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

    async def validate_member(self, workspace_id: uuid.UUID, user_id: uuid.UUID, token: str) -> bool:
        if not self.enabled:
            # No user service configured (local development): every workspace is open
            logger.debug("Workspace check skipped for %s, user service not configured", workspace_id)
            return True

        url = f"{self.base_url}/api/workspaces/{workspace_id}/validate-member/{user_id}"
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            record_external_request("validate-member", "error", time.perf_counter() - start)
            logger.warning("Workspace membership check failed for %s: %s", workspace_id, e)
            raise UpstreamError("Workspace service unavailable")

        record_external_request(
            "validate-member",
            categorize_status(response.status_code),
            time.perf_counter() - start,
        )

        if response.status_code in (403, 404):
            return False
        if response.status_code != 200:
            logger.warning(
                "Workspace membership check for %s returned %s", workspace_id, response.status_code
            )
            raise UpstreamError("Workspace service returned an unexpected response")

        try:
            data = response.json()
        except ValueError:
            logger.warning("Workspace membership check for %s returned a non-JSON body", workspace_id)
            raise UpstreamError("Workspace service returned an unexpected response")
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        if not isinstance(data, dict):
            logger.warning("Workspace membership check for %s returned a non-object body", workspace_id)
            raise UpstreamError("Workspace service returned an unexpected response")
        return bool(data.get("valid", data.get("isMember", False)))
