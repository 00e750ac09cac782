"""Error types shared by the WordPress client, the tool registry and the chat service."""

from typing import Any, Optional


class ConfigError(Exception):
    """Required configuration is missing or invalid. Raised at startup."""


class RemoteError(Exception):
    """An upstream call (LLM or WordPress) failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ToolArgumentError(Exception):
    """The model supplied arguments that don't match the tool's schema."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Invalid arguments for {tool_name}: {message}")
        self.tool_name = tool_name
