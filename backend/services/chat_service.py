"""Chat dispatcher: one user message, at most one WordPress tool call, one reply."""

import json
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from config import Settings
from models.tools import MAX_MESSAGE_LENGTH
from services.errors import RemoteError
from services.tool_registry import execute_tool, get_function_definitions

NO_RESPONSE_REPLY = "No response."


def build_system_instruction(settings: Settings) -> str:
    """Base identity and rules, plus the operator's CUSTOM_PROMPT when set."""
    base_instruction = f"""You are an intelligent agent managing a WordPress website at {settings.wp_base_url}.

CRITICAL RULES:
1. ACTIONS OVER TALK: If the user asks you to create/write/design something, YOU MUST CALL THE RELEVANT TOOL.
2. NO RAW HTML: Never output raw HTML, CSS, or code blocks in the chat response. The code must go strictly into the 'content' parameter of the 'wp_create_page' or 'wp_create_draft_post' tool.
3. CONFIRMATION ONLY: After calling a tool, simply confirm the action (e.g., "I created the page 'About Us'. You can see it in your dashboard.").

Capabilities:
- Create blog posts (drafts).
- DESIGN and CREATE Pages (Landing pages, About pages, etc.).
   * When asked for a landing page, generate specific, beautiful HTML with inline CSS and pass it DIRECTLY to the 'wp_create_page' tool.
- Look up site info and search content.

Start your response by using a tool if the user's request implies an action.
Always be helpful, concise, and proactive with design ideas."""

    if settings.custom_prompt:
        return f"{base_instruction}\n\nUSER CUSTOM INSTRUCTIONS:\n{settings.custom_prompt}"
    return base_instruction


def get_client(settings: Settings) -> OpenAI:
    # No retries anywhere: a failed round fails the request
    return OpenAI(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )


def _complete(client: OpenAI, settings: Settings, messages: List[Dict[str, Any]], **kwargs):
    try:
        return client.chat.completions.create(
            model=settings.gemini_model,
            messages=messages,
            **kwargs
        )
    except OpenAIError as e:
        raise RemoteError(f"LLM error: {e}", status_code=getattr(e, "status_code", None)) from e


def _first_message(response):
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    return choices[0].message


def _message_text(message) -> str:
    if message is None:
        return ""
    content = message.content
    if isinstance(content, list):
        chunks = [part.get("text") for part in content if isinstance(part, dict)]
        return "\n".join(chunk for chunk in chunks if chunk)
    return content or ""


def run_chat(message: str, settings: Settings, client: Optional[OpenAI] = None) -> str:
    """
    Answer one chat message.

    Round 1 asks the model with the WordPress tools attached. A plain answer is
    returned as-is. If the model requests a tool, only the first call is run,
    then round 2 sends the result back (no tools) for a short confirmation.
    """
    client = client or get_client(settings)
    user_message = message[:MAX_MESSAGE_LENGTH]
    system_message = {"role": "system", "content": build_system_instruction(settings)}
    user_turn = {"role": "user", "content": user_message}

    first = _complete(
        client,
        settings,
        [system_message, user_turn],
        tools=get_function_definitions(),
        tool_choice="auto",
    )
    assistant_message = _first_message(first)
    tool_calls = (getattr(assistant_message, "tool_calls", None) or []) if assistant_message else []

    if not tool_calls:
        return _message_text(assistant_message) or NO_RESPONSE_REPLY

    if len(tool_calls) > 1:
        print(f"[chat_service] Model requested {len(tool_calls)} tool calls, only the first is executed")

    tool_call = tool_calls[0]
    function_name = tool_call.function.name
    print(f"[chat_service] Model requested tool: {function_name}")

    result = execute_tool(function_name, tool_call.function.arguments, settings)

    # The tool result must immediately follow the call it answers
    second = _complete(
        client,
        settings,
        [
            system_message,
            user_turn,
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": tool_call.id,
                        "type": "function",
                        "function": {
                            "name": function_name,
                            "arguments": tool_call.function.arguments or "{}",
                        },
                    }
                ],
            },
            {
                "role": "tool",
                "tool_call_id": tool_call.id,
                "name": function_name,
                "content": json.dumps(result),
            },
        ],
    )

    return _message_text(_first_message(second)) or f"Action {function_name} completed."
