"""
Argument schemas for every registered tool.

Each tool's input is a strict pydantic model. Field names are snake_case in
Python and camelCase on the wire (taskId, dueDate, ...). Strict mode means no
coercion: a number where a string is expected, or "true" for a boolean, is
rejected. Required ids must be non-empty. Explicit nulls on optional fields
are treated as omitted and unknown fields are ignored.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolArguments(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def input_schema(cls) -> dict[str, Any]:
        """JSON schema advertised in tools/list."""
        return cls.model_json_schema(by_alias=True)


class NoArguments(ToolArguments):
    pass


# Task schemas
class CreateTaskArgs(ToolArguments):
    name: str = Field(description="Name of the task")
    description: Optional[str] = Field(None, description="Task notes")
    due_date: Optional[str] = Field(None, description="Due date (YYYY-MM-DD)")
    assignee: Optional[str] = Field(None, description="Assignee gid, email or 'me'")
    project: Optional[str] = Field(None, description="Project gid (defaults to ASANA_PROJECT_ID)")


class ListTasksArgs(ToolArguments):
    project_id: Optional[str] = Field(None, description="Project gid (defaults to ASANA_PROJECT_ID)")


class TaskIdArgs(ToolArguments):
    task_id: str = Field(min_length=1, description="Task gid")


class UpdateTaskArgs(ToolArguments):
    task_id: str = Field(min_length=1, description="Task gid")
    name: Optional[str] = Field(None, description="New task name")
    description: Optional[str] = Field(None, description="New task notes")
    due_date: Optional[str] = Field(None, description="New due date (YYYY-MM-DD)")
    assignee: Optional[str] = Field(None, description="New assignee")
    completed: Optional[bool] = Field(None, description="Completion state")


# Project schemas
class CreateProjectArgs(ToolArguments):
    name: str = Field(description="Name of the project")
    notes: Optional[str] = Field(None, description="Project notes")
    color: Optional[str] = Field(None, description="Project color (light-green, dark-blue, ...)")
    is_public: Optional[bool] = Field(None, description="Visible to the whole team (default: true)")
    workspace_id: Optional[str] = Field(None, description="Workspace gid (defaults to ASANA_WORKSPACE_ID)")


class ListProjectsArgs(ToolArguments):
    workspace_id: Optional[str] = Field(None, description="Workspace gid (defaults to ASANA_WORKSPACE_ID)")


class ProjectIdArgs(ToolArguments):
    project_id: str = Field(min_length=1, description="Project gid")


class UpdateProjectArgs(ToolArguments):
    project_id: str = Field(min_length=1, description="Project gid")
    name: Optional[str] = Field(None, description="New project name")
    notes: Optional[str] = Field(None, description="New project notes")
    color: Optional[str] = Field(None, description="New project color")
    is_public: Optional[bool] = Field(None, description="New visibility")


# Section schemas
class CreateSectionArgs(ToolArguments):
    project_id: str = Field(min_length=1, description="Project gid to create the section in")
    name: str = Field(description="Name of the section")
    insert_before: Optional[str] = Field(None, description="Section gid to insert before (wins over insertAfter)")
    insert_after: Optional[str] = Field(None, description="Section gid to insert after")


class ListSectionsArgs(ToolArguments):
    project_id: Optional[str] = Field(None, description="Project gid (defaults to ASANA_PROJECT_ID)")


class AddTaskToSectionArgs(ToolArguments):
    section_id: str = Field(min_length=1, description="Section gid")
    task_id: str = Field(min_length=1, description="Task gid")


# Dependency schemas
class DependencyArgs(ToolArguments):
    task_id: str = Field(min_length=1, description="Task gid")
    dependency_ids: list[Annotated[str, Field(min_length=1)]] = Field(
        min_length=1, description="Gids of the prerequisite tasks"
    )
