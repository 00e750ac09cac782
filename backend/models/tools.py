"""Shared models for the chat API and the tool arguments the model sends."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

MAX_MESSAGE_LENGTH = 5000


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    message: str

    @field_validator("message")
    @classmethod
    def truncate_message(cls, value: str) -> str:
        # Long messages are cut, not rejected
        return value[:MAX_MESSAGE_LENGTH]


class ChatReply(BaseModel):
    reply: str


class ErrorReply(BaseModel):
    error: str


class ToolName(str, Enum):
    CREATE_DRAFT_POST = "wp_create_draft_post"
    CREATE_PAGE = "wp_create_page"
    GET_SITE_INFO = "wp_get_site_info"
    SEARCH_POSTS = "wp_search_posts"


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)


class CreateDraftPostArgs(ToolArguments):
    title: str
    content: str


class CreatePageArgs(ToolArguments):
    title: str
    content: str
    status: Literal["draft", "publish"] = "draft"


class GetSiteInfoArgs(ToolArguments):
    pass


class SearchPostsArgs(ToolArguments):
    search: str
