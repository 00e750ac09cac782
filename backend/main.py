from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import OpenAI

from config import Settings, load_settings
from middleware.auth import require_basic_auth
from routes import chat
from services.chat_service import get_client
from services.tool_registry import validate_registry

PUBLIC_DIR = Path(__file__).resolve().parent / "public"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 with the same shape as other errors."""
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})


def create_app(settings: Optional[Settings] = None, llm_client: Optional[OpenAI] = None) -> FastAPI:
    """
    Build the app. Settings are loaded from the environment unless given;
    missing configuration or a registry mismatch raises ConfigError.
    """
    settings = settings or load_settings()
    validate_registry()

    app = FastAPI(title="WordPress AI Admin")
    app.state.settings = settings
    app.state.llm_client = llm_client or get_client(settings)

    app.middleware("http")(require_basic_auth)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(chat.router, tags=["Chat"])
    # Mounted last so /api routes take precedence
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")

    return app


if __name__ == "__main__":
    import uvicorn
    port = load_settings().port
    print(f"Server running on port {port}")
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=port)
