from unittest.mock import MagicMock

import pytest

from config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="gemini-secret",
        wp_base_url="https://blog.example.com",
        wp_user="editor",
        wp_app_password="abcd efgh ijkl",
        basic_auth_user="admin",
        basic_auth_pass="s3cret",
    )


@pytest.fixture
def llm_client() -> MagicMock:
    return MagicMock()
