import uuid

import pytest

from storage_service.config import settings

BASE = f"{settings.api_prefix}/storage"


async def create_project(client, headers, principal, workspace_id, **body):
    payload = {"workspaceId": str(workspace_id), "name": "Assets", **body}
    response = await client.post(f"{BASE}/projects", json=payload, headers=headers(principal))
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_metrics_endpoint(client):
    await client.get("/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "storage_http_requests_total" in response.text


async def test_missing_token_is_unauthorized(client, workspace_id):
    response = await client.get(f"{BASE}/workspaces/{workspace_id}/projects")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


async def test_garbage_token_is_unauthorized(client, workspace_id):
    response = await client.get(
        f"{BASE}/workspaces/{workspace_id}/projects",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
    assert set(response.json()) == {"code", "message"}


async def test_create_project_response(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id, isPublic=True)

    assert project["workspaceId"] == str(workspace_id)
    assert project["myPermission"] == "OWNER"
    assert project["memberCount"] == 1
    assert project["defaultPermission"] == "VIEWER"
    assert project["isPublic"] is True
    assert project["isDeleted"] is False


async def test_unknown_permission_is_rejected(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id)

    response = await client.post(
        f"{BASE}/projects/{project['id']}/members",
        json={"userId": str(uuid.uuid4()), "permission": "ADMIN"},
        headers=headers(owner),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]


async def test_blank_names_are_rejected(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id, name="  Assets  ")
    assert project["name"] == "Assets"

    blank_project = await client.post(
        f"{BASE}/projects", json={"workspaceId": str(workspace_id), "name": "   "}, headers=headers(owner)
    )
    blank_rename = await client.put(
        f"{BASE}/projects/{project['id']}", json={"name": "\t"}, headers=headers(owner)
    )
    blank_folder = await client.post(
        f"{BASE}/folders", json={"workspaceId": str(workspace_id), "name": " "}, headers=headers(owner)
    )

    for response in (blank_project, blank_rename, blank_folder):
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


async def test_private_project_is_forbidden_to_strangers(client, headers, owner, outsider, workspace_id):
    project = await create_project(client, headers, owner, workspace_id)

    response = await client.get(f"{BASE}/projects/{project['id']}", headers=headers(outsider))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


async def test_concealed_project_is_not_found(client, headers, owner, outsider, workspace_id, monkeypatch):
    project = await create_project(client, headers, owner, workspace_id)
    monkeypatch.setattr(settings, "conceal_inaccessible_projects", True)

    response = await client.get(f"{BASE}/projects/{project['id']}", headers=headers(outsider))

    assert response.status_code == 404
    assert response.json()["code"] == "PROJECT_NOT_FOUND"


async def test_duplicate_member(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id)
    url = f"{BASE}/projects/{project['id']}/members"
    member = {"userId": str(uuid.uuid4()), "permission": "EDITOR"}

    first = await client.post(url, json=member, headers=headers(owner))
    second = await client.post(url, json={**member, "permission": "VIEWER"}, headers=headers(owner))

    assert first.status_code == 201
    assert first.json()["permission"] == "EDITOR"
    assert second.status_code == 409
    assert second.json()["code"] == "MEMBER_EXISTS"
    members = (await client.get(url, headers=headers(owner))).json()["members"]
    assert len(members) == 2


async def test_member_lifecycle(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id)
    user_id = str(uuid.uuid4())
    url = f"{BASE}/projects/{project['id']}/members"

    created = await client.post(url, json={"userId": user_id, "permission": "VIEWER"}, headers=headers(owner))
    updated = await client.put(f"{url}/{user_id}", json={"permission": "EDITOR"}, headers=headers(owner))
    fetched = await client.get(f"{BASE}/projects/members/{created.json()['id']}", headers=headers(owner))
    removed = await client.delete(f"{url}/{user_id}", headers=headers(owner))
    missing = await client.delete(f"{url}/{user_id}", headers=headers(owner))

    assert updated.json()["permission"] == "EDITOR"
    assert fetched.json()["userId"] == user_id
    assert removed.status_code == 204
    assert missing.status_code == 404
    assert missing.json()["code"] == "MEMBER_NOT_FOUND"


async def test_trash_lifecycle(client, headers, owner, workspace_id):
    project = await create_project(client, headers, owner, workspace_id)
    url = f"{BASE}/projects/{project['id']}"

    assert (await client.delete(url, headers=headers(owner))).status_code == 204
    hidden = await client.get(url, headers=headers(owner))
    assert hidden.status_code == 404
    assert hidden.json()["code"] == "PROJECT_NOT_FOUND"
    trash = await client.get(f"{BASE}/workspaces/{workspace_id}/trash/projects", headers=headers(owner))
    assert [p["id"] for p in trash.json()] == [project["id"]]

    restored = await client.post(f"{url}/restore", headers=headers(owner))
    assert restored.status_code == 200
    assert restored.json()["isDeleted"] is False
    again = await client.post(f"{url}/restore", headers=headers(owner))
    assert again.status_code == 404

    assert (await client.delete(f"{url}/permanent", headers=headers(owner))).status_code == 204
    assert (await client.get(url, headers=headers(owner))).status_code == 404
    assert (await client.post(f"{url}/restore", headers=headers(owner))).status_code == 404


@pytest.mark.parametrize("query,page,page_size", [
    ("", 1, 20),
    ("?pageSize=0", 1, 20),
    ("?pageSize=500", 1, 20),
    ("?page=0&pageSize=5", 1, 5),
    ("?page=-3&pageSize=100", 1, 100),
])
async def test_pagination_is_clamped(client, headers, owner, workspace_id, query, page, page_size):
    await create_project(client, headers, owner, workspace_id)

    response = await client.get(f"{BASE}/workspaces/{workspace_id}/projects{query}", headers=headers(owner))

    body = response.json()
    assert body["page"] == page
    assert body["pageSize"] == page_size
    assert body["total"] == 1
    assert body["totalPages"] == 1


async def test_workspace_outsider_cannot_list(client, headers, owner, workspace_client, workspace_id):
    workspace_client.outsiders.add((workspace_id, owner.user_id))

    response = await client.get(f"{BASE}/workspaces/{workspace_id}/projects", headers=headers(owner))

    assert response.status_code == 403


async def test_folder_and_file_flow(client, headers, owner, workspace_id):
    folder = await client.post(
        f"{BASE}/folders", json={"workspaceId": str(workspace_id), "name": "Docs"}, headers=headers(owner)
    )
    assert folder.status_code == 201
    folder_id = folder.json()["id"]

    duplicate = await client.post(
        f"{BASE}/folders", json={"workspaceId": str(workspace_id), "name": "Docs"}, headers=headers(owner)
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "CONFLICT"

    registered = await client.post(f"{BASE}/files", json={
        "workspaceId": str(workspace_id),
        "folderId": folder_id,
        "fileName": "plan.txt",
        "contentType": "text/plain",
        "fileSize": 12,
    }, headers=headers(owner))
    assert registered.status_code == 201
    file_id = registered.json()["id"]
    assert registered.json()["status"] == "UPLOADING"

    confirmed = await client.post(f"{BASE}/files/{file_id}/confirm", headers=headers(owner))
    assert confirmed.json()["status"] == "ACTIVE"

    contents = await client.get(
        f"{BASE}/folders/contents",
        params={"workspaceId": str(workspace_id), "folderId": folder_id},
        headers=headers(owner),
    )
    assert [f["id"] for f in contents.json()["files"]] == [file_id]

    deleted = await client.delete(f"{BASE}/folders/{folder_id}", headers=headers(owner))
    assert deleted.status_code == 200
    assert (await client.get(f"{BASE}/files/{file_id}", headers=headers(owner))).status_code == 404
    trash = await client.get(f"{BASE}/workspaces/{workspace_id}/trash/folders", headers=headers(owner))
    assert [f["id"] for f in trash.json()] == [folder_id]
    file_trash = await client.get(f"{BASE}/workspaces/{workspace_id}/trash/files", headers=headers(owner))
    assert file_trash.json() == []

    restored = await client.post(f"{BASE}/folders/{folder_id}/restore", headers=headers(owner))
    assert restored.status_code == 200
    found = await client.get(
        f"{BASE}/workspaces/{workspace_id}/files/search", params={"q": "PLAN"}, headers=headers(owner)
    )
    assert found.json()["total"] == 1
    usage = await client.get(f"{BASE}/workspaces/{workspace_id}/usage", headers=headers(owner))
    assert usage.json() == {"workspaceId": str(workspace_id), "fileCount": 1, "totalSize": 12}


async def test_root_contents_without_folder(client, headers, owner, workspace_id):
    response = await client.get(
        f"{BASE}/folders/contents", params={"workspaceId": str(workspace_id)}, headers=headers(owner)
    )

    assert response.status_code == 200
    assert response.json()["folder"] is None
    assert response.json()["folders"] == []
