"""
Async client for the Asana REST API.

Covers the five resource families the tools need: tasks, projects,
workspaces, sections and task dependencies. Every method issues exactly one
request and returns the `data` member of Asana's JSON envelope. Non-2xx
responses raise RemoteServiceError; nothing is retried.

WARNING: Task dependency endpoints require a PREMIUM Asana account and answer
402 Payment Required otherwise (raised as PremiumRequiredError).
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from asana_mcp.config import Settings
from asana_mcp.errors import PremiumRequiredError, RemoteServiceError

logger = logging.getLogger(__name__)


def _segment(gid: str) -> str:
    """Quote an id as a single path segment ("/" included)."""
    return quote(str(gid), safe="")


class AsanaClient:
    """Thin async wrapper around httpx for the Asana API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not settings.access_token:
            raise ValueError("Asana access token required")
        headers = {
            "Authorization": f"Bearer {settings.access_token}",
            "Content-Type": "application/json",
        }
        self._http = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "AsanaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, endpoint: str, data: Optional[dict] = None, premium: bool = False) -> Any:
        """Make an API request and unwrap the response envelope."""
        body = {"data": data} if data is not None else None
        if body is not None:
            logger.debug(f"{method} {endpoint} with data: {json.dumps(body)}")
        else:
            logger.debug(f"{method} {endpoint}")

        try:
            response = await self._http.request(method, endpoint, json=body)
        except httpx.RequestError as e:
            logger.debug(f"Request to {endpoint} failed: {e}")
            raise RemoteServiceError(None, [f"Request failed: {e}"]) from e

        if response.is_error:
            error_cls = PremiumRequiredError if premium and response.status_code == 402 else RemoteServiceError
            error = error_cls.from_response(response)
            logger.debug(f"Response status: {response.status_code}, errors: {error.messages}")
            raise error

        if response.status_code == 204 or not response.content:
            return None

        try:
            payload = response.json()
        except json.JSONDecodeError:
            raise RemoteServiceError(response.status_code, ["Invalid JSON response from Asana"]) from None
        return payload.get("data") if isinstance(payload, dict) else payload

    # Tasks

    async def create_task(
        self,
        name: str,
        project_id: str,
        notes: str = "",
        due_on: Optional[str] = None,
        assignee: Optional[str] = None,
    ) -> dict:
        task_data: dict[str, Any] = {"name": name, "notes": notes, "projects": [project_id]}
        if due_on:
            task_data["due_on"] = due_on
        if assignee:
            task_data["assignee"] = assignee
        return await self._request("POST", "/tasks", task_data)

    async def list_tasks(self, project_id: str) -> list[dict]:
        return await self._request("GET", f"/projects/{_segment(project_id)}/tasks") or []

    async def get_task(self, task_id: str) -> dict:
        return await self._request("GET", f"/tasks/{_segment(task_id)}")

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> dict:
        return await self._request("PUT", f"/tasks/{_segment(task_id)}", fields)

    async def complete_task(self, task_id: str) -> dict:
        return await self._request("PUT", f"/tasks/{_segment(task_id)}", {"completed": True})

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{_segment(task_id)}")

    # Projects and workspaces

    async def create_project(
        self,
        name: str,
        workspace_id: str,
        notes: str = "",
        color: Optional[str] = None,
        is_public: bool = True,
    ) -> dict:
        project_data: dict[str, Any] = {
            "name": name,
            "notes": notes,
            "workspace": workspace_id,
            "public": is_public,
        }
        if color:
            project_data["color"] = color
        return await self._request("POST", "/projects", project_data)

    async def list_projects(self, workspace_id: str) -> list[dict]:
        return await self._request("GET", f"/workspaces/{_segment(workspace_id)}/projects") or []

    async def get_project(self, project_id: str) -> dict:
        return await self._request("GET", f"/projects/{_segment(project_id)}")

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> dict:
        return await self._request("PUT", f"/projects/{_segment(project_id)}", fields)

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", f"/projects/{_segment(project_id)}")

    async def list_workspaces(self) -> list[dict]:
        return await self._request("GET", "/workspaces") or []

    # Sections

    async def create_section(
        self,
        project_id: str,
        name: str,
        insert_before: Optional[str] = None,
        insert_after: Optional[str] = None,
    ) -> dict:
        section_data: dict[str, Any] = {"name": name}
        # Asana accepts only one positioning hint; insert_before wins
        if insert_before:
            section_data["insert_before"] = insert_before
        elif insert_after:
            section_data["insert_after"] = insert_after
        return await self._request("POST", f"/projects/{_segment(project_id)}/sections", section_data)

    async def list_sections(self, project_id: str) -> list[dict]:
        return await self._request("GET", f"/projects/{_segment(project_id)}/sections") or []

    async def add_task_to_section(self, section_id: str, task_id: str) -> None:
        await self._request("POST", f"/sections/{_segment(section_id)}/addTask", {"task": task_id})

    # Dependencies (premium only)

    async def add_dependencies(self, task_id: str, dependency_ids: list[str]) -> None:
        await self._request(
            "POST",
            f"/tasks/{_segment(task_id)}/addDependencies",
            {"dependencies": list(dependency_ids)},
            premium=True,
        )

    async def remove_dependencies(self, task_id: str, dependency_ids: list[str]) -> None:
        await self._request(
            "POST",
            f"/tasks/{_segment(task_id)}/removeDependencies",
            {"dependencies": list(dependency_ids)},
            premium=True,
        )

    async def get_dependencies(self, task_id: str) -> list[dict]:
        return await self._request("GET", f"/tasks/{_segment(task_id)}/dependencies", premium=True) or []
