"""Tool declarations offered to the LLM and the table that executes them."""

import json
from typing import Any, Callable, Dict, List, Tuple, Type, Union

from pydantic import ValidationError

from config import Settings
from models.tools import (
    ToolName,
    ToolArguments,
    CreateDraftPostArgs,
    CreatePageArgs,
    GetSiteInfoArgs,
    SearchPostsArgs,
)
from services import wordpress_service
from services.errors import ConfigError, ToolArgumentError

UNKNOWN_FUNCTION_RESULT = {"error": "Unknown function"}


# Define available functions for LLM to call
AVAILABLE_FUNCTIONS: Dict[ToolName, Dict[str, Any]] = {
    ToolName.CREATE_DRAFT_POST: {
        "description": "Create a NEW WordPress blog post as a draft (safe).",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "content": {"type": "string", "description": "HTML content is allowed."}
            },
            "required": ["title", "content"]
        }
    },
    ToolName.CREATE_PAGE: {
        "description": "ACTUALLY creates a WordPress page in the dashboard. Use this tool immediately when asked to design/create a page. Do NOT return the HTML code to the user.",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "content": {"type": "string", "description": "The full, designed HTML content (with inline CSS) to be inserted into the WordPress page editor."},
                "status": {"type": "string", "enum": ["draft", "publish"], "description": "Default is draft."}
            },
            "required": ["title", "content"]
        }
    },
    ToolName.GET_SITE_INFO: {
        "description": "Get general information about this WordPress site (name, tagline, URL).",
        "parameters": {"type": "object", "properties": {}}
    },
    ToolName.SEARCH_POSTS: {
        "description": "Search existing posts on the website by keyword.",
        "parameters": {
            "type": "object",
            "properties": {
                "search": {"type": "string", "description": "Keywords to search for."}
            },
            "required": ["search"]
        }
    },
}


Handler = Callable[[Settings, Any], Union[Dict[str, Any], List[Dict[str, Any]]]]

DISPATCH_TABLE: Dict[ToolName, Tuple[Type[ToolArguments], Handler]] = {
    ToolName.CREATE_DRAFT_POST: (
        CreateDraftPostArgs,
        lambda settings, args: wordpress_service.create_draft_post(settings, args.title, args.content),
    ),
    ToolName.CREATE_PAGE: (
        CreatePageArgs,
        lambda settings, args: wordpress_service.create_page(settings, args.title, args.content, args.status),
    ),
    ToolName.GET_SITE_INFO: (
        GetSiteInfoArgs,
        lambda settings, args: wordpress_service.get_site_info(settings),
    ),
    ToolName.SEARCH_POSTS: (
        SearchPostsArgs,
        lambda settings, args: wordpress_service.search_posts(settings, args.search),
    ),
}


def get_function_definitions() -> List[Dict[str, Any]]:
    """Convert AVAILABLE_FUNCTIONS to OpenAI function calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": name.value,
                "description": func["description"],
                "parameters": func["parameters"]
            }
        }
        for name, func in AVAILABLE_FUNCTIONS.items()
    ]


def validate_registry(
    declarations: Dict[ToolName, Dict[str, Any]] = AVAILABLE_FUNCTIONS,
    dispatch: Dict[ToolName, Tuple[Type[ToolArguments], Handler]] = DISPATCH_TABLE,
) -> None:
    """Every declared tool must have exactly one handler, and vice versa."""
    declared = set(declarations)
    handled = set(dispatch)

    problems = []
    if declared - handled:
        problems.append("no handler for " + ", ".join(sorted(t.value for t in declared - handled)))
    if handled - declared:
        problems.append("no declaration for " + ", ".join(sorted(t.value for t in handled - declared)))
    if problems:
        raise ConfigError("Tool registry mismatch: " + "; ".join(problems))


def _parse_arguments(tool_name: str, raw_arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    if raw_arguments is None or raw_arguments == "":
        return {}
    if isinstance(raw_arguments, dict):
        return raw_arguments
    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError as e:
        raise ToolArgumentError(tool_name, f"arguments are not valid JSON ({e})")
    if not isinstance(arguments, dict):
        raise ToolArgumentError(tool_name, "arguments must be a JSON object")
    return arguments


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"]) or "arguments"
        parts.append(f"{field}: {item['msg']}")
    return "; ".join(parts)


def execute_tool(
    function_name: str,
    raw_arguments: Union[str, Dict[str, Any], None],
    settings: Settings,
) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Execute a function call from the LLM.

    Unknown names return UNKNOWN_FUNCTION_RESULT so the model can explain the
    situation. Invalid arguments raise ToolArgumentError before WordPress is
    contacted; WordPress failures (RemoteError) propagate to the caller.
    """
    try:
        tool = ToolName(function_name)
    except ValueError:
        print(f"[tool_registry] Unknown function requested: {function_name}")
        return dict(UNKNOWN_FUNCTION_RESULT)

    args_model, handler = DISPATCH_TABLE[tool]
    arguments = _parse_arguments(function_name, raw_arguments)

    try:
        args = args_model.model_validate(arguments)
    except ValidationError as e:
        raise ToolArgumentError(function_name, _describe_validation_error(e))

    print(f"[tool_registry] Executing {function_name}")
    return handler(settings, args)
