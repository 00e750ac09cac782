"""Chat endpoint: natural-language message in, agent reply out."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from config import Settings
from models.tools import ChatRequest, ChatReply, ErrorReply
from services.chat_service import run_chat

router = APIRouter()


@router.post(
    "/api/chat",
    response_model=ChatReply,
    responses={400: {"model": ErrorReply}, 500: {"model": ErrorReply}},
)
def chat(request: ChatRequest, http_request: Request):
    """
    Run one message through the agent.

    Declared sync so FastAPI runs it in the threadpool; the LLM and WordPress
    calls block. Any failure (LLM, WordPress, bad tool arguments) is a 500
    with the error text.
    """
    settings: Settings = http_request.app.state.settings
    llm_client = getattr(http_request.app.state, "llm_client", None)

    try:
        reply = run_chat(request.message, settings, client=llm_client)
        return ChatReply(reply=reply)
    except Exception as e:
        print(f"Error in chat: {str(e)}")
        return JSONResponse(status_code=500, content={"error": str(e)})
