"""Process-wide settings, loaded once at startup from the environment."""

import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from services.errors import ConfigError

REQUIRED_VARS = (
    "GEMINI_API_KEY",
    "WP_BASE_URL",
    "WP_USER",
    "WP_APP_PASSWORD",
    "BASIC_AUTH_USER",
    "BASIC_AUTH_PASS",
)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    gemini_api_key: str
    gemini_model: str = DEFAULT_MODEL
    gemini_base_url: str = DEFAULT_LLM_BASE_URL
    llm_timeout_seconds: float = 60.0

    wp_base_url: str
    wp_user: str
    wp_app_password: str
    wp_timeout_seconds: float = 15.0

    basic_auth_user: str
    basic_auth_pass: str

    custom_prompt: Optional[str] = None
    port: int = 3000


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    When `environ` is None the process environment is used, after loading
    a .env file if present (OS-provided variables are not overridden).
    """
    if environ is None:
        load_dotenv(override=False)
        environ = os.environ

    missing = [name for name in REQUIRED_VARS if not environ.get(name)]
    if missing:
        raise ConfigError(f"Missing env vars: {', '.join(missing)}. Check .env")

    return Settings(
        gemini_api_key=environ["GEMINI_API_KEY"],
        gemini_model=environ.get("GEMINI_MODEL") or DEFAULT_MODEL,
        gemini_base_url=environ.get("GEMINI_BASE_URL") or DEFAULT_LLM_BASE_URL,
        llm_timeout_seconds=_number(environ, "LLM_TIMEOUT_SECONDS", 60.0, float),
        wp_base_url=environ["WP_BASE_URL"].rstrip("/"),
        wp_user=environ["WP_USER"],
        wp_app_password=environ["WP_APP_PASSWORD"],
        wp_timeout_seconds=_number(environ, "WP_TIMEOUT_SECONDS", 15.0, float),
        basic_auth_user=environ["BASIC_AUTH_USER"],
        basic_auth_pass=environ["BASIC_AUTH_PASS"],
        custom_prompt=environ.get("CUSTOM_PROMPT") or None,
        port=_number(environ, "PORT", 3000, int),
    )
