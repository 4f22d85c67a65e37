import uuid

import httpx
import pytest

from storage_service.errors import UpstreamError
from storage_service.services.auth_client import AuthClient
from storage_service.services.workspace_client import WorkspaceClient


def responding(status_code=200, **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)
    return httpx.MockTransport(handler)


def workspace_client(transport):
    return WorkspaceClient("http://users.test", transport=transport)


def auth_client(transport):
    return AuthClient("http://auth.test", transport=transport)


class TestWorkspaceClient:

    async def test_member(self):
        client = workspace_client(responding(json={"data": {"valid": True}}))

        assert await client.validate_member(uuid.uuid4(), uuid.uuid4(), "token") is True

    async def test_not_found_is_not_member(self):
        client = workspace_client(responding(404))

        assert await client.validate_member(uuid.uuid4(), uuid.uuid4(), "token") is False

    @pytest.mark.parametrize("body", [[{"valid": True}], True, "member"])
    async def test_non_object_body_is_upstream_error(self, body):
        client = workspace_client(responding(json=body))

        with pytest.raises(UpstreamError):
            await client.validate_member(uuid.uuid4(), uuid.uuid4(), "token")

    async def test_non_json_body_is_upstream_error(self):
        client = workspace_client(responding(text="<html>ok</html>"))

        with pytest.raises(UpstreamError):
            await client.validate_member(uuid.uuid4(), uuid.uuid4(), "token")

    async def test_server_error_is_upstream_error(self):
        client = workspace_client(responding(500))

        with pytest.raises(UpstreamError):
            await client.validate_member(uuid.uuid4(), uuid.uuid4(), "token")


class TestAuthClient:

    async def test_valid_token(self):
        user_id = uuid.uuid4()
        client = auth_client(responding(json={"valid": True, "userId": str(user_id)}))

        assert await client.validate_token("token") == user_id

    async def test_rejected_token(self):
        client = auth_client(responding(401))

        assert await client.validate_token("token") is None

    @pytest.mark.parametrize("body", [["valid"], True, 1])
    async def test_non_object_body_is_upstream_error(self, body):
        client = auth_client(responding(json=body))

        with pytest.raises(UpstreamError):
            await client.validate_token("token")

    async def test_non_json_body_is_upstream_error(self):
        client = auth_client(responding(text="not json"))

        with pytest.raises(UpstreamError):
            await client.validate_token("token")
