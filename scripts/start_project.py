#!/usr/bin/env python3
"""
Storage CLI - Create a project in a workspace

Usage:
    python scripts/start_project.py "Design assets" --workspace <workspace-id> --member <user-id>:EDITOR
"""

import argparse
import asyncio
import os
import sys

import httpx


PERMISSIONS = ("VIEWER", "EDITOR", "OWNER")


def parse_member(value: str):
    user_id, _, permission = value.partition(":")
    permission = (permission or "VIEWER").upper()
    if permission not in PERMISSIONS:
        raise argparse.ArgumentTypeError(f"unknown permission '{permission}'")
    return {"userId": user_id, "permission": permission}


async def main() -> int:
    parser = argparse.ArgumentParser(description="Create a storage project")
    parser.add_argument("name", help="Project name")
    parser.add_argument("--workspace", required=True, help="Workspace id")
    parser.add_argument("--description", help="Project description")
    parser.add_argument("--public", action="store_true", help="Make the project visible to the whole workspace")
    parser.add_argument("--default-permission", choices=PERMISSIONS, default="VIEWER",
                        help="Permission granted to workspace members of a public project")
    parser.add_argument("--member", action="append", type=parse_member, default=[],
                        help="USER_ID[:PERMISSION], may be repeated")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API URL")
    parser.add_argument("--token", default=os.getenv("STORAGE_TOKEN"),
                        help="Bearer token (defaults to $STORAGE_TOKEN)")

    args = parser.parse_args()
    if not args.token:
        print("A bearer token is required (--token or STORAGE_TOKEN)")
        return 1

    headers = {"Authorization": f"Bearer {args.token}"}
    base = f"{args.api_url.rstrip('/')}/api/storage"

    async with httpx.AsyncClient(headers=headers) as client:
        try:
            print(f"Creating project '{args.name}'...")
            project_response = await client.post(f"{base}/projects", json={
                "workspaceId": args.workspace,
                "name": args.name,
                "description": args.description,
                "isPublic": args.public,
                "defaultPermission": args.default_permission,
            })
            if project_response.status_code != 201:
                print(f"Failed to create project: {project_response.text}")
                return 1

            project_id = project_response.json()["id"]
            print(f"✓ Project created with ID: {project_id}")

            for member in args.member:
                member_response = await client.post(f"{base}/projects/{project_id}/members", json=member)
                if member_response.status_code == 201:
                    print(f"✓ Added {member['userId']} as {member['permission']}")
                else:
                    print(f"Failed to add {member['userId']}: {member_response.text}")
        except httpx.HTTPError as e:
            print(f"Error: {e}")
            return 1

    print("\nNext steps:")
    print(f"1. View your project: {base}/projects/{project_id}")
    print(f"2. Browse workspace projects: {base}/workspaces/{args.workspace}/projects")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
