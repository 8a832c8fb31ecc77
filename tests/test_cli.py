"""Tests for the asana-mcp command line client."""

import json

import pytest
from click.testing import CliRunner
from mcp.types import INVALID_PARAMS, ErrorData

from asana_mcp import cli as cli_module
from asana_mcp.cli import cli, main
from asana_mcp.client import InvocationResult


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def calls(monkeypatch):
    """Replace the gateway round trip with a recorder; tests set calls.result to steer the outcome."""

    class Recorder(list):
        result = None

    recorder = Recorder()

    async def fake_invoke(tool, arguments=None, timeout=None, params=None):
        recorder.append((tool, arguments, timeout))
        if isinstance(recorder.result, Exception):
            raise recorder.result
        return recorder.result or InvocationResult(tool=tool, texts=[f"{tool} ok"])

    monkeypatch.setattr(cli_module, "invoke", fake_invoke)
    monkeypatch.setattr(cli_module, "configure_logging", lambda level: None)
    return recorder


def test_create_task_maps_options(runner, calls):
    result = runner.invoke(cli, ["create-task", "--name", "Write release notes", "--due-date", "2025-04-01"])

    assert result.exit_code == 0
    assert result.output == "create-task ok\n"
    tool, arguments, timeout = calls[0]
    assert tool == "create-task"
    assert arguments["name"] == "Write release notes"
    assert arguments["dueDate"] == "2025-04-01"
    assert arguments["project"] is None
    assert timeout == 10.0


def test_dependency_ids_are_split(runner, calls):
    result = runner.invoke(cli, ["add-dependencies", "--task-id", "t1", "--dependency-ids", "a, b,,c"])

    assert result.exit_code == 0
    assert calls[0][1] == {"taskId": "t1", "dependencyIds": ["a", "b", "c"]}


def test_completed_flag_is_tri_state(runner, calls):
    runner.invoke(cli, ["update-task", "--task-id", "7"])
    runner.invoke(cli, ["update-task", "--task-id", "7", "--not-completed"])

    assert calls[0][1]["completed"] is None
    assert calls[1][1]["completed"] is False


def test_timeout_option(runner, calls):
    runner.invoke(cli, ["--timeout", "2.5", "list-workspaces"])
    assert calls[0][2] == 2.5


def test_protocol_error_exits_1(runner, calls):
    calls.result = InvocationResult(
        tool="delete-task",
        is_error=True,
        error=ErrorData(code=INVALID_PARAMS, message="Invalid arguments for tool delete-task"),
    )

    result = runner.invoke(cli, ["delete-task", "--task-id", "1"])

    assert result.exit_code == 1
    assert "Error: Invalid arguments for tool delete-task" in result.output


def test_unreachable_gateway_exits_1(runner, calls):
    calls.result = OSError("No such file or directory")

    result = runner.invoke(cli, ["list-tasks"])

    assert result.exit_code == 1
    assert "could not reach the Asana MCP server" in result.output


def test_remote_failure_text_is_not_an_exit_error(runner, calls):
    calls.result = InvocationResult(tool="delete-task", texts=["Error deleting task: Asana API Error (404): gone"])

    result = runner.invoke(cli, ["delete-task", "--task-id", "gone"])

    assert result.exit_code == 0
    assert "Asana API Error (404)" in result.output


def test_generic_call(runner, calls):
    result = runner.invoke(cli, ["call", "get-task", "--args", '{"taskId": "7"}'])

    assert result.exit_code == 0
    assert calls[0][:2] == ("get-task", {"taskId": "7"})


def test_generic_call_rejects_bad_json(runner, calls):
    result = runner.invoke(cli, ["call", "get-task", "--args", "[1, 2"])

    assert result.exit_code != 0
    assert calls == []


def test_missing_required_option(runner, calls):
    result = runner.invoke(cli, ["get-task"])

    assert result.exit_code != 0
    assert "--task-id" in result.output
    assert calls == []


def test_config_prints_mcp_servers_block(runner, calls, monkeypatch):
    monkeypatch.setattr(cli_module, "get_real_python_path", lambda: "/usr/bin/python3")

    result = runner.invoke(cli, ["config", "--token", "abc", "--project-id", "42"])

    config = json.loads(result.output)
    server = config["mcpServers"]["asana"]
    assert server["command"] == "/usr/bin/python3"
    assert server["args"] == ["-m", "asana_mcp.server"]
    assert server["env"] == {"ASANA_ACCESS_TOKEN": "abc", "ASANA_PROJECT_ID": "42"}
    assert calls == []


def test_main_usage_error_exits_1(calls):
    with pytest.raises(SystemExit) as exc_info:
        main(["no-such-command"])
    assert exc_info.value.code == 1


def test_main_tool_failure_exits_1(calls):
    calls.result = RuntimeError("spawn failed")

    with pytest.raises(SystemExit) as exc_info:
        main(["list-workspaces"])
    assert exc_info.value.code == 1


def test_main_success_exits_0(calls, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["list-workspaces"])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out == "list-workspaces ok\n"
