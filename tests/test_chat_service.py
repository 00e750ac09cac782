import json
from unittest.mock import patch

import pytest
from openai import OpenAIError

from helpers import FakeResponse, text_completion, tool_call, tool_completion
from services.chat_service import build_system_instruction, get_client, run_chat
from services.errors import RemoteError, ToolArgumentError

REQUEST = "services.wordpress_service.requests.request"


def test_plain_reply_is_returned_without_tool_call(settings, llm_client) -> None:
    llm_client.chat.completions.create.return_value = text_completion("Hello! How can I help with your site?")

    reply = run_chat("hi", settings, client=llm_client)

    assert reply == "Hello! How can I help with your site?"
    llm_client.chat.completions.create.assert_called_once()
    kwargs = llm_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.gemini_model
    assert kwargs["tool_choice"] == "auto"
    assert [t["function"]["name"] for t in kwargs["tools"]] == [
        "wp_create_draft_post",
        "wp_create_page",
        "wp_get_site_info",
        "wp_search_posts",
    ]
    assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]


@pytest.mark.parametrize("content", [None, ""])
def test_empty_model_reply_falls_back(settings, llm_client, content) -> None:
    llm_client.chat.completions.create.return_value = text_completion(content)

    assert run_chat("hi", settings, client=llm_client) == "No response."


@pytest.mark.parametrize("content", ["  Hello\n", "   "])
def test_model_reply_is_returned_unchanged(settings, llm_client, content) -> None:
    llm_client.chat.completions.create.return_value = text_completion(content)

    assert run_chat("hi", settings, client=llm_client) == content


def test_get_client_sets_timeout_and_disables_retries(settings) -> None:
    with patch("services.chat_service.OpenAI") as openai_cls:
        client = get_client(settings)

    assert client is openai_cls.return_value
    openai_cls.assert_called_once_with(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )


def test_long_message_is_truncated_to_limit(settings, llm_client) -> None:
    llm_client.chat.completions.create.return_value = text_completion("ok")

    run_chat("x" * 6000, settings, client=llm_client)

    user_message = llm_client.chat.completions.create.call_args.kwargs["messages"][1]
    assert user_message["content"] == "x" * 5000


def test_draft_post_tool_call_runs_one_post_and_feeds_result_back(settings, llm_client) -> None:
    call = tool_call("wp_create_draft_post", {"title": "Test", "content": "<p>Hello</p>"})
    llm_client.chat.completions.create.side_effect = [
        tool_completion(call),
        text_completion("I created the draft 'Test'."),
    ]
    created = {"id": 42, "link": "https://blog.example.com/?p=42", "status": "draft"}

    with patch(REQUEST, return_value=FakeResponse(201, created)) as mock_request:
        reply = run_chat("Write a post called Test", settings, client=llm_client)

    assert reply == "I created the draft 'Test'."
    mock_request.assert_called_once()
    assert mock_request.call_args.args[0] == "POST"
    assert mock_request.call_args.args[1].endswith("/wp-json/wp/v2/posts")
    assert mock_request.call_args.kwargs["json"]["status"] == "draft"

    second_kwargs = llm_client.chat.completions.create.call_args_list[1].kwargs
    assert "tools" not in second_kwargs
    messages = second_kwargs["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool"]
    assert messages[1]["content"] == "Write a post called Test"
    assert messages[2]["tool_calls"][0]["id"] == "call_1"
    assert messages[2]["tool_calls"][0]["function"]["name"] == "wp_create_draft_post"
    assert messages[3]["tool_call_id"] == "call_1"
    assert messages[3]["name"] == "wp_create_draft_post"
    assert json.loads(messages[3]["content"]) == created


def test_only_first_tool_call_is_executed(settings, llm_client) -> None:
    first = tool_call("wp_search_posts", {"search": "sale"}, call_id="call_a")
    second = tool_call("wp_create_draft_post", {"title": "T", "content": "C"}, call_id="call_b")
    llm_client.chat.completions.create.side_effect = [
        tool_completion(first, second),
        text_completion("Found nothing."),
    ]

    with patch(REQUEST, return_value=FakeResponse(200, [])) as mock_request:
        run_chat("search for sale and write a post", settings, client=llm_client)

    mock_request.assert_called_once()
    assert mock_request.call_args.args[0] == "GET"
    assistant = llm_client.chat.completions.create.call_args_list[1].kwargs["messages"][2]
    assert [c["id"] for c in assistant["tool_calls"]] == ["call_a"]


def test_unknown_tool_result_is_passed_to_second_round(settings, llm_client) -> None:
    llm_client.chat.completions.create.side_effect = [
        tool_completion(tool_call("wp_delete_site", {})),
        text_completion("I can't delete the site."),
    ]

    with patch(REQUEST) as mock_request:
        reply = run_chat("delete my site", settings, client=llm_client)

    assert reply == "I can't delete the site."
    mock_request.assert_not_called()
    tool_message = llm_client.chat.completions.create.call_args_list[1].kwargs["messages"][3]
    assert json.loads(tool_message["content"]) == {"error": "Unknown function"}


def test_empty_second_round_reply_confirms_action(settings, llm_client) -> None:
    llm_client.chat.completions.create.side_effect = [
        tool_completion(tool_call("wp_get_site_info", {})),
        text_completion(None),
    ]
    site = {"name": "Blog", "description": "", "url": "https://blog.example.com"}

    with patch(REQUEST, return_value=FakeResponse(200, site)):
        reply = run_chat("what is my site called?", settings, client=llm_client)

    assert reply == "Action wp_get_site_info completed."


def test_wordpress_failure_aborts_before_second_round(settings, llm_client) -> None:
    llm_client.chat.completions.create.return_value = tool_completion(
        tool_call("wp_create_page", {"title": "About", "content": "<h1>About</h1>"})
    )

    with patch(REQUEST, return_value=FakeResponse(403, {"code": "rest_forbidden"})):
        with pytest.raises(RemoteError, match="WP error 403"):
            run_chat("make an about page", settings, client=llm_client)

    llm_client.chat.completions.create.assert_called_once()


def test_invalid_tool_arguments_abort_before_wordpress(settings, llm_client) -> None:
    llm_client.chat.completions.create.return_value = tool_completion(
        tool_call("wp_create_draft_post", {"title": "No content"})
    )

    with patch(REQUEST) as mock_request:
        with pytest.raises(ToolArgumentError):
            run_chat("write a post", settings, client=llm_client)

    mock_request.assert_not_called()
    llm_client.chat.completions.create.assert_called_once()


def test_llm_failure_becomes_remote_error(settings, llm_client) -> None:
    llm_client.chat.completions.create.side_effect = OpenAIError("quota exceeded")

    with pytest.raises(RemoteError, match="LLM error: quota exceeded"):
        run_chat("hi", settings, client=llm_client)


def test_system_instruction_includes_site_and_custom_prompt(settings) -> None:
    plain = build_system_instruction(settings)
    assert "https://blog.example.com" in plain
    assert "USER CUSTOM INSTRUCTIONS" not in plain

    custom = build_system_instruction(settings.model_copy(update={"custom_prompt": "Always reply in Spanish."}))
    assert custom.endswith("\n\nUSER CUSTOM INSTRUCTIONS:\nAlways reply in Spanish.")
