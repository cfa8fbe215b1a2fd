from __future__ import annotations

import pytest

from strider_sandbox.server import create_app

from tests.utils import hello_world


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the host environment from leaking into config and port defaults."""
    for name in (
        "HTTP_PORT",
        "HOST",
        "STRIDER_DEBUG",
        "SANDBOX_ID",
        "STRIDER_CONFIG",
        "STRIDER_HANDLER",
        "STRIDER_MODEL",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def hello_app():
    return create_app(hello_world)
