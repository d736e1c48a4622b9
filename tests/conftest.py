"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set here, before any test module imports
``app.core.config``, so settings are built from test-friendly values.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "5")
os.environ.setdefault("APP_RATE_LIMIT_INTERVAL_MS", "3600000")
os.environ.setdefault("APP_RATE_LIMIT_MAX_IDENTITIES", "100")
# Mail goes to the log unless a test opts into SMTP explicitly
os.environ.pop("MAIL_SMTP_HOST", None)

from typing import Callable

import pytest
from starlette.requests import Request


def build_request(
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
) -> Request:
    """Build a bare ASGI request carrying the given headers and cookies."""
    raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in (headers or {}).items()
    ]
    if cookies:
        cookie_header = "; ".join(f"{key}={value}" for key, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode("latin-1")))

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/mail",
        "query_string": b"",
        "headers": raw_headers,
    }
    return Request(scope)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request


@pytest.fixture
def valid_mail_body() -> dict[str, str]:
    return {
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "subject": "Project inquiry",
        "message": "Hello, I would like to talk about a new website.",
    }
