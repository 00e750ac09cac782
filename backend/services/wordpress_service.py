"""WordPress REST API service for the tools the chat agent can call."""

import base64
import json
from typing import Dict, Any, List

import requests

from config import Settings
from services.errors import RemoteError


def get_auth_header(settings: Settings) -> Dict[str, str]:
    """Basic auth header built from the WordPress Application Password."""
    token = base64.b64encode(
        f"{settings.wp_user}:{settings.wp_app_password}".encode("utf-8")
    ).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def _api_url(settings: Settings, path: str) -> str:
    return f"{settings.wp_base_url}/wp-json{path}"


def _request(settings: Settings, method: str, url: str, **kwargs) -> requests.Response:
    print(f"[wordpress_service] {method} {url}")
    try:
        response = requests.request(method, url, timeout=settings.wp_timeout_seconds, **kwargs)
    except requests.RequestException as e:
        raise RemoteError(f"WP request failed: {e}") from e

    print(f"[wordpress_service] {method} {url} -> {response.status_code}")
    return response


def _json_or_raise(response: requests.Response) -> Any:
    try:
        data = response.json()
    except ValueError:
        data = None

    if not response.ok:
        body = json.dumps(data) if data is not None else response.text
        raise RemoteError(
            f"WP error {response.status_code}: {body}",
            status_code=response.status_code,
            body=data if data is not None else response.text,
        )

    if data is None:
        raise RemoteError(
            f"WP returned a non-JSON response ({response.status_code})",
            status_code=response.status_code,
            body=response.text,
        )
    return data


# ============================================================================
# CONTENT OPERATIONS
# ============================================================================

def _create_content(settings: Settings, endpoint: str, title: str, content: str, status: str) -> Dict[str, Any]:
    headers = {
        **get_auth_header(settings),
        "Content-Type": "application/json",
    }
    response = _request(
        settings,
        "POST",
        _api_url(settings, f"/wp/v2/{endpoint}"),
        headers=headers,
        json={"title": title, "content": content, "status": status},
    )
    data = _json_or_raise(response)

    return {
        "id": data.get("id"),
        "link": data.get("link"),
        "status": data.get("status"),
    }


def create_draft_post(settings: Settings, title: str, content: str) -> Dict[str, Any]:
    """Create a new blog post. Always saved as a draft."""
    return _create_content(settings, "posts", title, content, "draft")


def create_page(settings: Settings, title: str, content: str, status: str = "draft") -> Dict[str, Any]:
    """Create a page. Only published when status="publish" is passed explicitly."""
    return _create_content(settings, "pages", title, content, status)


# ============================================================================
# READ OPERATIONS
# ============================================================================

def get_site_info(settings: Settings) -> Dict[str, Any]:
    """Site name, tagline and URL from the REST discovery endpoint."""
    response = _request(settings, "GET", _api_url(settings, ""))
    data = _json_or_raise(response)

    return {
        "name": data.get("name"),
        "description": data.get("description"),
        "url": data.get("url"),
    }


def search_posts(settings: Settings, search: str) -> List[Dict[str, Any]]:
    """Search published posts by keyword."""
    # requests URL-encodes params
    response = _request(
        settings,
        "GET",
        _api_url(settings, "/wp/v2/posts"),
        params={"search": search},
    )
    data = _json_or_raise(response)
    if not isinstance(data, list):
        raise RemoteError(
            "WP returned an unexpected search response",
            status_code=response.status_code,
            body=data,
        )

    results = []
    for post in data:
        title = post.get("title") or {}
        results.append({
            "id": post.get("id"),
            "title": title.get("rendered") if isinstance(title, dict) else title,
            "link": post.get("link"),
        })
    return results
