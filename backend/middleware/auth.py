"""Basic auth middleware protecting every route, including the static UI."""

import base64
import binascii
import secrets
from typing import Optional, Tuple

from fastapi import Request, status
from fastapi.responses import PlainTextResponse

from config import Settings

REALM = "AI Admin"


def parse_basic_credentials(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Decode an `Authorization: Basic ...` header into (username, password).

    Returns None when the header is missing, uses another scheme, or is not
    valid base64 of "user:pass". The password may itself contain colons.
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "basic" or not token:
        return None

    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return username, password


def is_authorized(authorization: Optional[str], settings: Settings) -> bool:
    credentials = parse_basic_credentials(authorization)
    if credentials is None:
        return False

    username, password = credentials
    # Evaluate both so timing doesn't reveal which one matched
    user_ok = secrets.compare_digest(username.encode("utf-8"), settings.basic_auth_user.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), settings.basic_auth_pass.encode("utf-8"))
    return user_ok and pass_ok


def auth_challenge() -> PlainTextResponse:
    return PlainTextResponse(
        "Auth required.",
        status_code=status.HTTP_401_UNAUTHORIZED,
        headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
    )


async def require_basic_auth(request: Request, call_next):
    """
    HTTP middleware: reject any request without the configured credentials.

    Usage:
        app.middleware("http")(require_basic_auth)

    Reads Settings from request.app.state.settings.
    """
    settings: Settings = request.app.state.settings
    if not is_authorized(request.headers.get("Authorization"), settings):
        return auth_challenge()
    return await call_next(request)
