"""E2E test fixtures for Playwright.

The pytest-playwright plugin automatically provides:
  - page: A new browser page for each test
  - context: A new browser context for each test
  - browser: A browser instance (session scope)

Override base_url with --base-url on the CLI:
    pytest -m e2e --base-url http://localhost:8000
"""

from __future__ import annotations

import subprocess
from typing import Generator
from uuid import uuid4

import pytest
from playwright.sync_api import APIRequestContext, Playwright


@pytest.fixture(scope="session")
def base_url(request) -> str:
    """Use --base-url when given, otherwise the local dev server."""
    return request.config.getoption("base_url") or "http://localhost:8000"


@pytest.fixture(autouse=True)
def _use_db() -> None:
    """E2E tests talk to a running server over HTTP and never touch the test database."""


@pytest.fixture(scope="session")
def api_request_context(
    playwright: Playwright, base_url: str
) -> Generator[APIRequestContext, None, None]:
    context = playwright.request.new_context(base_url=base_url)
    yield context
    context.dispose()


def _run_manage_py(command: str) -> None:
    subprocess.run(
        ["python", "src/manage.py", "shell", "-c", command],
        check=True,
        capture_output=True,
        text=True,
    )


def _create_user(username: str, password: str, is_staff: bool = False) -> None:
    command = (
        "from django.contrib.auth import get_user_model; "
        "User = get_user_model(); "
        f"User.objects.filter(username={username!r}).delete(); "
        f"User.objects.create_user(username={username!r}, password={password!r}, "
        f"email={username + '@example.com'!r}, is_staff={is_staff!r})"
    )
    _run_manage_py(command)


def _delete_user(username: str) -> None:
    command = (
        "from django.contrib.auth import get_user_model; "
        "User = get_user_model(); "
        f"User.objects.filter(username={username!r}).delete()"
    )
    _run_manage_py(command)


def _credentials(prefix: str, is_staff: bool) -> Generator[tuple[str, str], None, None]:
    username = f"{prefix}_{uuid4().hex[:8]}"
    password = "testpass123"
    _create_user(username, password, is_staff=is_staff)
    try:
        yield username, password
    finally:
        _delete_user(username)


@pytest.fixture()
def auth_credentials() -> Generator[tuple[str, str], None, None]:
    """A throwaway shopper account."""
    yield from _credentials("e2eshopper", is_staff=False)


@pytest.fixture()
def admin_credentials() -> Generator[tuple[str, str], None, None]:
    """A throwaway staff account for catalog writes."""
    yield from _credentials("e2eadmin", is_staff=True)


def _obtain_token(context: APIRequestContext, username: str, password: str) -> str:
    response = context.post(
        "/api/v1/auth/token/",
        data={"username": username, "password": password},
    )
    assert response.status == 200
    return response.json()["access"]


@pytest.fixture()
def auth_token(api_request_context, auth_credentials) -> str:
    return _obtain_token(api_request_context, *auth_credentials)


@pytest.fixture()
def admin_token(api_request_context, admin_credentials) -> str:
    return _obtain_token(api_request_context, *admin_credentials)
