"""Fakes for the OpenAI chat completion objects and requests responses."""

import json
from types import SimpleNamespace
from typing import Any, Optional


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def text_completion(content: Optional[str]):
    message = SimpleNamespace(role="assistant", content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def tool_call(name: str, arguments: Any, call_id: str = "call_1"):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def tool_completion(*calls):
    message = SimpleNamespace(role="assistant", content=None, tool_calls=list(calls))
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])
