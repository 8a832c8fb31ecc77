"""Asana MCP - task and project management tools for LLM agents."""

__version__ = "1.0.0"
SERVER_NAME = "asana-tasks-manager"
