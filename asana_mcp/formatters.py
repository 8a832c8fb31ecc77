"""Markdown rendering of Asana records for tool results."""

import json
from typing import Any, Iterable, Sequence

NOTES_PREVIEW_LENGTH = 50


def markdown_table(title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render a titled table. The header row is always present, even with no rows."""
    lines = [f"## {title}", ""]
    lines.append("| " + " | ".join(headers) + " |")
    lines.append("|" + "|".join("---" for _ in headers) + "|")
    for row in rows:
        cells = [str(cell).replace("|", "\\|").replace("\n", " ") for cell in row]
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines) + "\n"


def preview_notes(notes: Any) -> str:
    if not notes:
        return "No notes"
    notes = str(notes)
    if len(notes) > NOTES_PREVIEW_LENGTH:
        return notes[:NOTES_PREVIEW_LENGTH] + "..."
    return notes


def format_tasks(tasks: list[dict], title: str = "Tasks") -> str:
    rows = [
        (
            task.get("gid", ""),
            task.get("name", ""),
            "✓" if task.get("completed") else "✗",
            task.get("due_on") or "No due date",
        )
        for task in tasks
    ]
    return markdown_table(title, ["ID", "Name", "Completed", "Due Date"], rows)


def format_projects(projects: list[dict], title: str = "Projects") -> str:
    rows = [(p.get("gid", ""), p.get("name", ""), preview_notes(p.get("notes"))) for p in projects]
    return markdown_table(title, ["ID", "Name", "Notes"], rows)


def format_sections(sections: list[dict], title: str = "Sections") -> str:
    return markdown_table(title, ["ID", "Name"], [(s.get("gid", ""), s.get("name", "")) for s in sections])


def format_workspaces(workspaces: list[dict], title: str = "Workspaces") -> str:
    return markdown_table(title, ["ID", "Name"], [(w.get("gid", ""), w.get("name", "")) for w in workspaces])


def format_dependencies(dependencies: list[dict]) -> str:
    summary = [{"id": d.get("gid"), "name": d.get("name"), "completed": d.get("completed")} for d in dependencies]
    return json.dumps(summary, indent=2)


def format_record(record: Any) -> str:
    return json.dumps(record, indent=2, default=str)
