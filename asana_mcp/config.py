"""
Process-wide configuration for the Asana MCP server and client.

Settings are resolved once at startup from the environment and local token
files, then handed to the Asana client and tool handlers. The object is frozen;
nothing mutates it after construction.

Environment Variables:
    ASANA_ACCESS_TOKEN: Personal access token (highest priority)
    ASANA_TOKEN_FILE: Path to a file holding the token (default: ./asana.token)
    ASANA_PROJECT_ID: Default project for task tools
    ASANA_WORKSPACE_ID: Default workspace for project tools
    ASANA_API_URL: Override for the Asana API base URL
    ASANA_TIMEOUT: HTTP timeout in seconds (default: 30)
    ASANA_MCP_LOG_LEVEL: Log level for stderr diagnostics (default: INFO)
"""

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ASANA_BASE_URL = "https://app.asana.com/api/1.0"
DEFAULT_TIMEOUT = 30.0
DEFAULT_TOKEN_FILE = "asana.token"
DOTFILE_NAME = ".asana.token"

# Values people leave behind in templates; never sent to Asana
INVALID_TOKENS = ["YOUR_ACCESS_TOKEN", "SET_YOUR_TOKEN_HERE", "PLACEHOLDER", "", "null", "None", "undefined"]


class Settings(BaseModel):
    """Immutable runtime configuration."""

    model_config = ConfigDict(frozen=True)

    access_token: Optional[str] = None
    token_source: Optional[str] = None
    default_project_id: Optional[str] = None
    default_workspace_id: Optional[str] = None
    base_url: str = ASANA_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return self.access_token is not None


def _clean_token(value: Optional[str], source: str) -> Optional[str]:
    if value is None:
        return None
    token = value.strip()
    if token in INVALID_TOKENS:
        logger.warning(f"Ignoring placeholder Asana token from {source}")
        return None
    return token


def _read_token_file(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Error reading token file {path}: {e}")
        return None


def resolve_token(environ: Mapping[str, str], home: Optional[Path] = None) -> tuple[Optional[str], Optional[str]]:
    """
    Find the Asana access token.

    Resolution order: ASANA_ACCESS_TOKEN, then the local token file
    (ASANA_TOKEN_FILE or ./asana.token), then ~/.asana.token.

    Returns:
        (token, source) where source is "env", "file", "dotfile" or None
    """
    token = _clean_token(environ.get("ASANA_ACCESS_TOKEN"), "ASANA_ACCESS_TOKEN")
    if token:
        return token, "env"

    token_file = Path(environ.get("ASANA_TOKEN_FILE", DEFAULT_TOKEN_FILE)).expanduser()
    token = _clean_token(_read_token_file(token_file), str(token_file))
    if token:
        logger.info(f"Using token from {token_file}")
        return token, "file"

    dotfile = (home or Path.home()) / DOTFILE_NAME
    token = _clean_token(_read_token_file(dotfile), str(dotfile))
    if token:
        logger.info(f"Using token from {dotfile}")
        return token, "dotfile"

    return None, None


def _optional_id(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None, home: Optional[Path] = None) -> Settings:
    """Build Settings from the environment (os.environ by default)."""
    if environ is None:
        environ = os.environ

    token, source = resolve_token(environ, home=home)

    raw_timeout = environ.get("ASANA_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"ASANA_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None

    return Settings(
        access_token=token,
        token_source=source,
        default_project_id=_optional_id(environ, "ASANA_PROJECT_ID"),
        default_workspace_id=_optional_id(environ, "ASANA_WORKSPACE_ID"),
        base_url=environ.get("ASANA_API_URL") or ASANA_BASE_URL,
        timeout=timeout,
        log_level=environ.get("ASANA_MCP_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """
    Send all diagnostics to stderr.

    stdout carries protocol messages (server) or rendered results (CLI), so
    no log record may ever reach it.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
