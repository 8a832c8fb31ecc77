"""
Tool registry and handlers.

The registry maps each tool name to its argument schema and handler. It is
filled once at startup from TOOL_DEFINITIONS and frozen; after that it only
serves lookups, so it can be shared freely.

Handlers never raise for remote or configuration failures: ToolSpec.invoke
catches them and renders "Error <action>: <reason>" as the tool result text.
When no Asana credential is configured the context carries no client and every
handler answers with a labelled stub result instead.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterator, Mapping, Optional

from mcp.types import TextContent, Tool
from pydantic import ValidationError

from asana_mcp.asana_client import AsanaClient
from asana_mcp.config import Settings
from asana_mcp.errors import InvalidArgumentsError, MissingConfigurationError, RemoteServiceError, UnknownToolError
from asana_mcp.formatters import (
    format_dependencies,
    format_projects,
    format_record,
    format_sections,
    format_tasks,
    format_workspaces,
)
from asana_mcp.schemas import (
    AddTaskToSectionArgs,
    CreateProjectArgs,
    CreateSectionArgs,
    CreateTaskArgs,
    DependencyArgs,
    ListProjectsArgs,
    ListSectionsArgs,
    ListTasksArgs,
    NoArguments,
    ProjectIdArgs,
    TaskIdArgs,
    ToolArguments,
    UpdateProjectArgs,
    UpdateTaskArgs,
)

logger = logging.getLogger(__name__)

STUB = "(stub implementation)"


@dataclass(frozen=True)
class ToolContext:
    """What a handler may use: the frozen settings and, when authenticated, the Asana client."""

    settings: Settings
    client: Optional[AsanaClient] = None

    def project_id(self, explicit: Optional[str]) -> str:
        project_id = explicit or self.settings.default_project_id
        if not project_id:
            raise MissingConfigurationError("project", "ASANA_PROJECT_ID")
        return project_id

    def workspace_id(self, explicit: Optional[str]) -> str:
        workspace_id = explicit or self.settings.default_workspace_id
        if not workspace_id:
            raise MissingConfigurationError("workspace", "ASANA_WORKSPACE_ID")
        return workspace_id


Handler = Callable[[ToolContext, Any], Awaitable[list[TextContent]]]


def text(*blocks: str) -> list[TextContent]:
    return [TextContent(type="text", text=block) for block in blocks]


def _gid(record: Optional[dict]) -> str:
    return str((record or {}).get("gid", "unknown"))


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: type[ToolArguments]
    handler: Handler
    action: str

    def as_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=self.arguments.input_schema())

    def validate(self, raw: Optional[Mapping[str, Any]]) -> ToolArguments:
        try:
            return self.arguments.model_validate(dict(raw or {}))
        except ValidationError as e:
            problems = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "arguments"
                problems.append(f"{location}: {error['msg']}")
            raise InvalidArgumentsError(self.name, problems) from e

    async def invoke(self, context: ToolContext, arguments: ToolArguments) -> list[TextContent]:
        """Run the handler; remote and configuration failures become result text."""
        try:
            return await self.handler(context, arguments)
        except MissingConfigurationError as e:
            logger.warning(f"{self.name}: {e}")
            return text(f"Error {self.action}: {e}")
        except RemoteServiceError as e:
            logger.warning(f"{self.name} failed: {e}")
            return text(f"Error {self.action}: {e}")


class ToolRegistry:
    """Name -> ToolSpec table, immutable once frozen."""

    def __init__(self):
        self._tools: dict[str, ToolSpec] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        arguments: type[ToolArguments],
        handler: Handler,
        description: str = "",
        action: Optional[str] = None,
    ) -> ToolSpec:
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")
        spec = ToolSpec(
            name=name,
            description=description,
            arguments=arguments,
            handler=handler,
            action=action or f"running {name}",
        )
        self._tools[name] = spec
        return spec

    def freeze(self) -> "ToolRegistry":
        self._tools = MappingProxyType(dict(self._tools))
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list_tools(self) -> list[Tool]:
        return [spec.as_tool() for spec in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)


# Task handlers

async def create_task(ctx: ToolContext, args: CreateTaskArgs) -> list[TextContent]:
    project_id = ctx.project_id(args.project)
    logger.debug(f"Creating Asana task: {args.name} (project {project_id})")
    if ctx.client is None:
        return text(f'Task "{args.name}" created successfully {STUB}')
    task = await ctx.client.create_task(
        args.name,
        project_id,
        notes=args.description or "",
        due_on=args.due_date,
        assignee=args.assignee,
    )
    logger.debug(f"Task created with ID: {_gid(task)}")
    return text(f'Task "{args.name}" created successfully with ID: {_gid(task)}')


async def list_tasks(ctx: ToolContext, args: ListTasksArgs) -> list[TextContent]:
    project_id = ctx.project_id(args.project_id)
    logger.debug(f"Listing Asana tasks for project: {project_id}")
    if ctx.client is None:
        sample = [
            {"gid": "1234567890", "name": "Example Task 1", "completed": False, "due_on": "2025-04-01"},
            {"gid": "0987654321", "name": "Example Task 2", "completed": True, "due_on": "2025-03-15"},
        ]
        return text(format_tasks(sample, title=f"Tasks {STUB}"))
    tasks = await ctx.client.list_tasks(project_id)
    logger.debug(f"Found {len(tasks)} tasks")
    return text(format_tasks(tasks))


async def get_task(ctx: ToolContext, args: TaskIdArgs) -> list[TextContent]:
    if ctx.client is None:
        return text(f"Task {args.task_id} {STUB}: no details available")
    task = await ctx.client.get_task(args.task_id)
    return text(f"Task {args.task_id}:", format_record(task))


async def update_task(ctx: ToolContext, args: UpdateTaskArgs) -> list[TextContent]:
    updated_fields: dict[str, Any] = {}
    if args.name is not None:
        updated_fields["name"] = args.name
    if args.description is not None:
        updated_fields["notes"] = args.description
    if args.due_date is not None:
        updated_fields["due_on"] = args.due_date
    if args.assignee is not None:
        updated_fields["assignee"] = args.assignee
    if args.completed is not None:
        updated_fields["completed"] = args.completed

    if not updated_fields:
        return text(f"No fields to update for task {args.task_id}")
    logger.debug(f"Updating Asana task {args.task_id}: {sorted(updated_fields)}")
    if ctx.client is None:
        return text(f"Task {args.task_id} updated successfully {STUB}")
    await ctx.client.update_task(args.task_id, updated_fields)
    return text(f"Task {args.task_id} updated successfully")


async def complete_task(ctx: ToolContext, args: TaskIdArgs) -> list[TextContent]:
    if ctx.client is None:
        return text(f"Task {args.task_id} marked as completed {STUB}")
    await ctx.client.complete_task(args.task_id)
    return text(f"Task {args.task_id} marked as completed")


async def delete_task(ctx: ToolContext, args: TaskIdArgs) -> list[TextContent]:
    logger.debug(f"Deleting task: {args.task_id}")
    if ctx.client is None:
        return text(f"Task {args.task_id} deleted successfully {STUB}")
    await ctx.client.delete_task(args.task_id)
    return text(f"Task {args.task_id} deleted successfully")


# Project and workspace handlers

async def create_project(ctx: ToolContext, args: CreateProjectArgs) -> list[TextContent]:
    workspace_id = ctx.workspace_id(args.workspace_id)
    logger.debug(f"Creating Asana project: {args.name} (workspace {workspace_id})")
    if ctx.client is None:
        return text(f'Project "{args.name}" created successfully {STUB}')
    project = await ctx.client.create_project(
        args.name,
        workspace_id,
        notes=args.notes or "",
        color=args.color,
        is_public=True if args.is_public is None else args.is_public,
    )
    return text(f'Project "{args.name}" created successfully with ID: {_gid(project)}')


async def list_projects(ctx: ToolContext, args: ListProjectsArgs) -> list[TextContent]:
    workspace_id = ctx.workspace_id(args.workspace_id)
    logger.debug(f"Listing projects in workspace {workspace_id}")
    if ctx.client is None:
        return text(format_projects([], title=f"Projects {STUB}"))
    projects = await ctx.client.list_projects(workspace_id)
    logger.debug(f"Found {len(projects)} projects")
    return text(format_projects(projects))


async def get_project(ctx: ToolContext, args: ProjectIdArgs) -> list[TextContent]:
    if ctx.client is None:
        return text(f"Project {args.project_id} {STUB}: no details available")
    project = await ctx.client.get_project(args.project_id)
    return text(f"Project {args.project_id}:", format_record(project))


async def update_project(ctx: ToolContext, args: UpdateProjectArgs) -> list[TextContent]:
    updated_fields: dict[str, Any] = {}
    for field, key in (("name", "name"), ("notes", "notes"), ("color", "color"), ("is_public", "public")):
        value = getattr(args, field)
        if value is not None:
            updated_fields[key] = value

    if not updated_fields:
        return text(f"No fields to update for project {args.project_id}")
    if ctx.client is None:
        return text(f"Project {args.project_id} updated successfully {STUB}")
    await ctx.client.update_project(args.project_id, updated_fields)
    return text(f"Project {args.project_id} updated successfully")


async def delete_project(ctx: ToolContext, args: ProjectIdArgs) -> list[TextContent]:
    logger.debug(f"Deleting project: {args.project_id}")
    if ctx.client is None:
        return text(f"Project {args.project_id} deleted successfully {STUB}")
    await ctx.client.delete_project(args.project_id)
    return text(f"Project {args.project_id} deleted successfully")


async def list_workspaces(ctx: ToolContext, args: NoArguments) -> list[TextContent]:
    if ctx.client is None:
        return text(format_workspaces([], title=f"Workspaces {STUB}"))
    workspaces = await ctx.client.list_workspaces()
    return text(format_workspaces(workspaces))


# Section handlers

async def create_section(ctx: ToolContext, args: CreateSectionArgs) -> list[TextContent]:
    logger.debug(f'Creating section "{args.name}" in project {args.project_id}')
    if ctx.client is None:
        return text(f'Section "{args.name}" created successfully in project {args.project_id} {STUB}')
    section = await ctx.client.create_section(
        args.project_id,
        args.name,
        insert_before=args.insert_before,
        insert_after=args.insert_after,
    )
    return text(f'Section "{args.name}" created successfully in project {args.project_id} with ID: {_gid(section)}')


async def list_sections(ctx: ToolContext, args: ListSectionsArgs) -> list[TextContent]:
    project_id = ctx.project_id(args.project_id)
    if ctx.client is None:
        return text(format_sections([], title=f"Sections {STUB}"))
    sections = await ctx.client.list_sections(project_id)
    return text(format_sections(sections))


async def add_task_to_section(ctx: ToolContext, args: AddTaskToSectionArgs) -> list[TextContent]:
    logger.debug(f"Adding task {args.task_id} to section {args.section_id}")
    if ctx.client is None:
        return text(f"Task {args.task_id} added to section {args.section_id} successfully {STUB}")
    await ctx.client.add_task_to_section(args.section_id, args.task_id)
    return text(f"Task {args.task_id} added to section {args.section_id} successfully")


# Dependency handlers

async def add_dependencies(ctx: ToolContext, args: DependencyArgs) -> list[TextContent]:
    ids = ", ".join(args.dependency_ids)
    logger.debug(f"Adding dependencies {ids} to task {args.task_id}")
    if ctx.client is None:
        return text(f"Dependencies {ids} added to task {args.task_id} successfully {STUB}")
    await ctx.client.add_dependencies(args.task_id, args.dependency_ids)
    return text(f"Dependencies {ids} added to task {args.task_id} successfully")


async def remove_dependencies(ctx: ToolContext, args: DependencyArgs) -> list[TextContent]:
    ids = ", ".join(args.dependency_ids)
    logger.debug(f"Removing dependencies {ids} from task {args.task_id}")
    if ctx.client is None:
        return text(f"Dependencies {ids} removed from task {args.task_id} successfully {STUB}")
    await ctx.client.remove_dependencies(args.task_id, args.dependency_ids)
    return text(f"Dependencies {ids} removed from task {args.task_id} successfully")


async def get_dependencies(ctx: ToolContext, args: TaskIdArgs) -> list[TextContent]:
    if ctx.client is None:
        sample = [
            {"gid": "12345", "name": "Stub dependency 1", "completed": False},
            {"gid": "67890", "name": "Stub dependency 2", "completed": True},
        ]
        return text(f"Dependencies for task {args.task_id} {STUB}:", format_dependencies(sample))
    dependencies = await ctx.client.get_dependencies(args.task_id)
    return text(f"Dependencies for task {args.task_id}:", format_dependencies(dependencies))


PREMIUM_NOTE = " (REQUIRES PREMIUM ASANA ACCOUNT)"

# (name, arguments, handler, description, action used in error text)
TOOL_DEFINITIONS: list[tuple[str, type[ToolArguments], Handler, str, str]] = [
    ("create-task", CreateTaskArgs, create_task, "Create a new Asana task", "creating task"),
    ("list-tasks", ListTasksArgs, list_tasks, "List tasks in an Asana project", "listing tasks"),
    ("get-task", TaskIdArgs, get_task, "Get the details of an Asana task", "getting task"),
    ("update-task", UpdateTaskArgs, update_task, "Update an existing Asana task", "updating task"),
    ("complete-task", TaskIdArgs, complete_task, "Mark an Asana task as completed", "completing task"),
    ("delete-task", TaskIdArgs, delete_task, "Delete an Asana task", "deleting task"),
    ("create-project", CreateProjectArgs, create_project, "Create a new Asana project", "creating project"),
    ("list-projects", ListProjectsArgs, list_projects, "List projects in an Asana workspace", "listing projects"),
    ("get-project", ProjectIdArgs, get_project, "Get the details of an Asana project", "getting project"),
    ("update-project", UpdateProjectArgs, update_project, "Update an Asana project", "updating project"),
    ("delete-project", ProjectIdArgs, delete_project, "Delete an Asana project", "deleting project"),
    ("list-workspaces", NoArguments, list_workspaces, "List the workspaces visible to the token", "listing workspaces"),
    ("create-section", CreateSectionArgs, create_section, "Create a new section in an Asana project", "creating section"),
    ("list-sections", ListSectionsArgs, list_sections, "List sections in an Asana project", "listing sections"),
    ("add-task-to-section", AddTaskToSectionArgs, add_task_to_section, "Add a task to a section", "adding task to section"),
    (
        "add-dependencies",
        DependencyArgs,
        add_dependencies,
        "Add dependencies to a task" + PREMIUM_NOTE,
        "adding dependencies to task",
    ),
    (
        "remove-dependencies",
        DependencyArgs,
        remove_dependencies,
        "Remove dependencies from a task" + PREMIUM_NOTE,
        "removing dependencies from task",
    ),
    (
        "get-dependencies",
        TaskIdArgs,
        get_dependencies,
        "Get the dependencies of a task" + PREMIUM_NOTE,
        "getting dependencies for task",
    ),
]


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    for name, arguments, handler, description, action in TOOL_DEFINITIONS:
        registry.register(name, arguments, handler, description=description, action=action)
    return registry.freeze()
