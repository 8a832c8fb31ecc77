"""Tests for settings resolution and logging setup."""

import logging
import sys

import pytest
from pydantic import ValidationError

from asana_mcp.config import ASANA_BASE_URL, DEFAULT_TIMEOUT, Settings, configure_logging, load_settings


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty cwd and home so no real token file leaks into the tests."""
    cwd = tmp_path / "cwd"
    home = tmp_path / "home"
    cwd.mkdir()
    home.mkdir()
    monkeypatch.chdir(cwd)
    return cwd, home


def test_env_token_wins_over_files(workdir):
    cwd, home = workdir
    (cwd / "asana.token").write_text("file-token\n")
    (home / ".asana.token").write_text("dot-token\n")

    settings = load_settings({"ASANA_ACCESS_TOKEN": "env-token"}, home=home)

    assert settings.access_token == "env-token"
    assert settings.token_source == "env"


def test_local_token_file_is_second(workdir):
    cwd, home = workdir
    (cwd / "asana.token").write_text("  file-token\n")
    (home / ".asana.token").write_text("dot-token\n")

    settings = load_settings({}, home=home)

    assert settings.access_token == "file-token"
    assert settings.token_source == "file"


def test_token_file_path_override(workdir, tmp_path):
    _, home = workdir
    token_path = tmp_path / "custom.token"
    token_path.write_text("custom-token")

    settings = load_settings({"ASANA_TOKEN_FILE": str(token_path)}, home=home)

    assert settings.access_token == "custom-token"
    assert settings.token_source == "file"


def test_dotfile_is_last_resort(workdir):
    _, home = workdir
    (home / ".asana.token").write_text("dot-token\n")

    settings = load_settings({}, home=home)

    assert settings.access_token == "dot-token"
    assert settings.token_source == "dotfile"


def test_no_token_anywhere(workdir):
    _, home = workdir

    settings = load_settings({}, home=home)

    assert settings.access_token is None
    assert settings.token_source is None
    assert settings.has_credentials is False


def test_placeholder_token_is_ignored(workdir):
    _, home = workdir

    settings = load_settings({"ASANA_ACCESS_TOKEN": "YOUR_ACCESS_TOKEN"}, home=home)

    assert settings.access_token is None


def test_defaults_and_overrides(workdir):
    _, home = workdir

    settings = load_settings(
        {
            "ASANA_ACCESS_TOKEN": "t",
            "ASANA_PROJECT_ID": " 1209708771942231 ",
            "ASANA_WORKSPACE_ID": "",
            "ASANA_TIMEOUT": "5",
            "ASANA_MCP_LOG_LEVEL": "debug",
        },
        home=home,
    )

    # ids stay opaque strings
    assert settings.default_project_id == "1209708771942231"
    assert settings.default_workspace_id is None
    assert settings.base_url == ASANA_BASE_URL
    assert settings.timeout == 5.0
    assert settings.log_level == "DEBUG"


def test_default_timeout(workdir):
    _, home = workdir
    assert load_settings({}, home=home).timeout == DEFAULT_TIMEOUT


def test_invalid_timeout_rejected(workdir):
    _, home = workdir
    with pytest.raises(ValueError, match="ASANA_TIMEOUT"):
        load_settings({"ASANA_TIMEOUT": "soon"}, home=home)


def test_settings_are_immutable():
    settings = Settings(access_token="t")
    with pytest.raises(ValidationError):
        settings.access_token = "other"


def test_configure_logging_targets_stderr():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("DEBUG")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
