"""
Pytest config.

Pins the repo root on sys.path so `import relying_party` works whether or not the
project is installed, and provides a ready-to-use app/client pair.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from relying_party.auth.config import AuthConfig  # noqa: E402
from relying_party.auth.session import InMemorySessionStore  # noqa: E402


@pytest.fixture
def cfg() -> AuthConfig:
    return AuthConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        authority="https://login.example.test/common",
        session_secret="test-session-secret-for-testing-only",
        cookie_secret="test-cookie-secret-for-testing-only",
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def client(cfg, store):
    from fastapi.testclient import TestClient

    from relying_party.api.web import create_app

    return TestClient(create_app(cfg, store))
