"""asana-mcp CLI entry point.

Each sub-command starts the MCP gateway as a child process, invokes one tool
and prints the rendered result on stdout. Protocol errors and connection
failures go to stderr and exit with status 1.
"""

import asyncio
import json
import sys
from typing import Any, Optional

import click

from asana_mcp import __version__
from asana_mcp.client import DEFAULT_TIMEOUT, SERVER_MODULE, InvocationClient, get_real_python_path, invoke
from asana_mcp.config import configure_logging


def _split_ids(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def run_tool(ctx: click.Context, tool: str, **arguments: Any) -> None:
    invoke_and_print(ctx, tool, arguments)


def invoke_and_print(ctx: click.Context, tool: str, arguments: dict[str, Any]) -> None:
    """Invoke a tool and print its text, exiting 1 on any failure."""
    timeout = ctx.obj["timeout"]
    try:
        result = asyncio.run(invoke(tool, arguments, timeout=timeout))
    except Exception as e:
        click.echo(f"Error: could not reach the Asana MCP server: {e}", err=True)
        ctx.exit(1)
    if not result.ok:
        click.echo(f"Error: {result.error.message}", err=True)
        ctx.exit(1)
    click.echo(result.text)


@click.group()
@click.version_option(__version__, prog_name="asana-mcp")
@click.option(
    "--timeout",
    envvar="ASANA_MCP_TIMEOUT",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds to wait for each tool response",
)
@click.option("--log-level", envvar="ASANA_MCP_LOG_LEVEL", default="WARNING", help="Log level for stderr diagnostics")
@click.pass_context
def cli(ctx: click.Context, timeout: float, log_level: str) -> None:
    """Client for interacting with the Asana MCP server."""
    configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["timeout"] = timeout


# Tasks

@cli.command("create-task")
@click.option("--name", required=True, help="Name of the task")
@click.option("--description", help="Description of the task")
@click.option("--due-date", help="Due date of the task (YYYY-MM-DD)")
@click.option("--assignee", help="Assignee of the task")
@click.option("--project", help="Project to add the task to")
@click.pass_context
def create_task(ctx, name, description, due_date, assignee, project):
    """Create a new Asana task."""
    run_tool(ctx, "create-task", name=name, description=description, dueDate=due_date, assignee=assignee, project=project)


@cli.command("list-tasks")
@click.option("--project-id", help="ID of the project to list tasks from")
@click.pass_context
def list_tasks(ctx, project_id):
    """List tasks in an Asana project."""
    run_tool(ctx, "list-tasks", projectId=project_id)


@cli.command("get-task")
@click.option("--task-id", required=True, help="ID of the task")
@click.pass_context
def get_task(ctx, task_id):
    """Show the details of an Asana task."""
    run_tool(ctx, "get-task", taskId=task_id)


@cli.command("update-task")
@click.option("--task-id", required=True, help="ID of the task to update")
@click.option("--name", help="New name of the task")
@click.option("--description", help="New description of the task")
@click.option("--due-date", help="New due date of the task")
@click.option("--assignee", help="New assignee of the task")
@click.option("--completed/--not-completed", default=None, help="Whether the task is completed")
@click.pass_context
def update_task(ctx, task_id, name, description, due_date, assignee, completed):
    """Update an existing Asana task."""
    run_tool(
        ctx,
        "update-task",
        taskId=task_id,
        name=name,
        description=description,
        dueDate=due_date,
        assignee=assignee,
        completed=completed,
    )


@cli.command("complete-task")
@click.option("--task-id", required=True, help="ID of the task to complete")
@click.pass_context
def complete_task(ctx, task_id):
    """Mark an Asana task as completed."""
    run_tool(ctx, "complete-task", taskId=task_id)


@cli.command("delete-task")
@click.option("--task-id", required=True, help="ID of the task to delete")
@click.pass_context
def delete_task(ctx, task_id):
    """Delete an Asana task."""
    run_tool(ctx, "delete-task", taskId=task_id)


# Projects and workspaces

@cli.command("create-project")
@click.option("--name", required=True, help="Name of the project")
@click.option("--notes", help="Notes for the project")
@click.option("--color", help="Color for the project")
@click.option("--public/--private", "is_public", default=None, help="Whether the project is public")
@click.option("--workspace-id", help="Workspace ID for the project")
@click.pass_context
def create_project(ctx, name, notes, color, is_public, workspace_id):
    """Create a new Asana project."""
    run_tool(
        ctx,
        "create-project",
        name=name,
        notes=notes,
        color=color,
        isPublic=is_public,
        workspaceId=workspace_id,
    )


@cli.command("list-projects")
@click.option("--workspace-id", help="Workspace to list projects from")
@click.pass_context
def list_projects(ctx, workspace_id):
    """List projects in an Asana workspace."""
    run_tool(ctx, "list-projects", workspaceId=workspace_id)


@cli.command("get-project")
@click.option("--project-id", required=True, help="ID of the project")
@click.pass_context
def get_project(ctx, project_id):
    """Show the details of an Asana project."""
    run_tool(ctx, "get-project", projectId=project_id)


@cli.command("update-project")
@click.option("--project-id", required=True, help="ID of the project to update")
@click.option("--name", help="New name of the project")
@click.option("--notes", help="New notes for the project")
@click.option("--color", help="New color for the project")
@click.option("--public/--private", "is_public", default=None, help="Whether the project is public")
@click.pass_context
def update_project(ctx, project_id, name, notes, color, is_public):
    """Update an Asana project."""
    run_tool(ctx, "update-project", projectId=project_id, name=name, notes=notes, color=color, isPublic=is_public)


@cli.command("delete-project")
@click.option("--project-id", required=True, help="ID of the project to delete")
@click.pass_context
def delete_project(ctx, project_id):
    """Delete an Asana project."""
    run_tool(ctx, "delete-project", projectId=project_id)


@cli.command("list-workspaces")
@click.pass_context
def list_workspaces(ctx):
    """List the workspaces visible to the configured token."""
    run_tool(ctx, "list-workspaces")


# Sections

@cli.command("create-section")
@click.option("--project-id", required=True, help="ID of the project to create the section in")
@click.option("--name", required=True, help="Name of the section")
@click.option("--insert-before", help="ID of the section to insert this section before")
@click.option("--insert-after", help="ID of the section to insert this section after")
@click.pass_context
def create_section(ctx, project_id, name, insert_before, insert_after):
    """Create a new section in an Asana project."""
    run_tool(
        ctx,
        "create-section",
        projectId=project_id,
        name=name,
        insertBefore=insert_before,
        insertAfter=insert_after,
    )


@cli.command("list-sections")
@click.option("--project-id", help="ID of the project to list sections from")
@click.pass_context
def list_sections(ctx, project_id):
    """List sections in an Asana project."""
    run_tool(ctx, "list-sections", projectId=project_id)


@cli.command("add-task-to-section")
@click.option("--section-id", required=True, help="ID of the section to add the task to")
@click.option("--task-id", required=True, help="ID of the task to add to the section")
@click.pass_context
def add_task_to_section(ctx, section_id, task_id):
    """Add a task to a section in Asana."""
    run_tool(ctx, "add-task-to-section", sectionId=section_id, taskId=task_id)


# Dependencies

@cli.command("add-dependencies")
@click.option("--task-id", required=True, help="ID of the task to add dependencies to")
@click.option("--dependency-ids", required=True, help="Comma-separated list of task IDs that the task depends on")
@click.pass_context
def add_dependencies(ctx, task_id, dependency_ids):
    """Add dependencies to a task (REQUIRES PREMIUM ASANA ACCOUNT)."""
    run_tool(ctx, "add-dependencies", taskId=task_id, dependencyIds=_split_ids(dependency_ids))


@cli.command("remove-dependencies")
@click.option("--task-id", required=True, help="ID of the task to remove dependencies from")
@click.option("--dependency-ids", required=True, help="Comma-separated list of task IDs to remove as dependencies")
@click.pass_context
def remove_dependencies(ctx, task_id, dependency_ids):
    """Remove dependencies from a task (REQUIRES PREMIUM ASANA ACCOUNT)."""
    run_tool(ctx, "remove-dependencies", taskId=task_id, dependencyIds=_split_ids(dependency_ids))


@cli.command("get-dependencies")
@click.option("--task-id", required=True, help="ID of the task to get dependencies for")
@click.pass_context
def get_dependencies(ctx, task_id):
    """Get dependencies for a task (REQUIRES PREMIUM ASANA ACCOUNT)."""
    run_tool(ctx, "get-dependencies", taskId=task_id)


# Generic commands

@cli.command("call")
@click.argument("tool")
@click.option("--args", "raw_args", default="{}", help="Tool arguments as a JSON object")
@click.pass_context
def call(ctx, tool, raw_args):
    """Invoke any registered TOOL with JSON arguments."""
    try:
        arguments = json.loads(raw_args)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args")
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")
    invoke_and_print(ctx, tool, arguments)


@cli.command("tools")
@click.pass_context
def tools(ctx):
    """List the tools the server registers."""

    async def _list():
        async with InvocationClient(timeout=ctx.obj["timeout"]) as client:
            return await client.list_tools()

    try:
        registered = asyncio.run(_list())
    except Exception as e:
        click.echo(f"Error: could not reach the Asana MCP server: {e}", err=True)
        ctx.exit(1)
    for tool in registered:
        click.echo(f"{tool.name}: {tool.description or ''}")


@cli.command("config")
@click.option("--token", default="YOUR_ACCESS_TOKEN", help="Asana personal access token to embed")
@click.option("--project-id", help="Default project ID (ASANA_PROJECT_ID)")
@click.option("--workspace-id", help="Default workspace ID (ASANA_WORKSPACE_ID)")
def config(token, project_id, workspace_id):
    """Print an mcpServers configuration block for desktop MCP clients."""
    env = {"ASANA_ACCESS_TOKEN": token}
    if project_id:
        env["ASANA_PROJECT_ID"] = project_id
    if workspace_id:
        env["ASANA_WORKSPACE_ID"] = workspace_id
    mcp_config = {
        "mcpServers": {
            "asana": {
                "command": get_real_python_path(),
                "args": ["-m", SERVER_MODULE],
                "env": env,
            }
        }
    }
    click.echo(json.dumps(mcp_config, indent=2))


def main(argv: Optional[list[str]] = None) -> None:
    """Console entry point. Usage errors exit 1, like every other failure."""
    try:
        code = cli.main(args=argv, prog_name="asana-mcp", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
