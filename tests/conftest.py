"""
Shared test fixtures for pytest.

Provides common mocks and test data for all test modules:
- fake_settings: Test environment configuration with a throwaway uploads dir
- make_gateway: Factory for a Model Gateway mock that replays canned texts
- document_store: Empty in-memory store writing originals under tmp_path
- app / client: FastAPI app built from fake_settings and an HTTP client for it
"""

from __future__ import annotations

import os

# litellm fetches its model cost map over the network at import time; offline,
# that path deadlocks under pytest. Use the bundled local copy instead.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from promptlab.config import Settings, get_settings
from promptlab.documents.store import DocumentStore
from promptlab.llm.gateway import ModelGateway
from promptlab.llm.types import GenerationResult
from promptlab.main import create_app
from promptlab.telemetry.logging import clear_context


# ------------------------------------------------------------------ #
# Session-scoped: clear settings cache between test sessions
# ------------------------------------------------------------------ #

@pytest.fixture(autouse=True, scope="session")
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so test overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _clean_log_context():
    clear_context()
    yield
    clear_context()


# ------------------------------------------------------------------ #
# Settings
# ------------------------------------------------------------------ #

@pytest.fixture
def fake_settings(tmp_path) -> Settings:
    """Settings for the test environment, isolated from any local .env."""
    return Settings(
        _env_file=None,
        environment="test",
        llm_provider="google",
        llm_api_url="https://llm.test/v1beta/models/test-model:generateContent",
        llm_api_key="test-key",
        llm_model="test-model",
        llm_max_attempts=1,
        sandbox_timeout_ms=3000,
        uploads_dir=str(tmp_path / "uploads"),
    )


# ------------------------------------------------------------------ #
# Gateway mock
# ------------------------------------------------------------------ #

@pytest.fixture
def make_gateway() -> Callable[..., Mock]:
    """Return a factory building a gateway mock that answers with ``texts`` in order.

    Each text may also be a ready ``GenerationResult``. ``generate`` and
    ``generate_with_files`` share the same queue.
    """

    def _make(*texts: str | GenerationResult, usage: dict | None = None) -> Mock:
        results = [
            t if isinstance(t, GenerationResult) else GenerationResult(text=t, raw={"mock": True}, usage=usage)
            for t in texts
        ]
        queue = AsyncMock(side_effect=results)
        gateway = Mock(spec=ModelGateway)
        gateway.model_name = "test-model"
        gateway.provider = "google"
        gateway.generate = queue
        gateway.generate_with_files = queue
        return gateway

    return _make


# ------------------------------------------------------------------ #
# Documents
# ------------------------------------------------------------------ #

@pytest.fixture
def document_store(tmp_path) -> DocumentStore:
    return DocumentStore(tmp_path / "uploads")


# ------------------------------------------------------------------ #
# Application
# ------------------------------------------------------------------ #

@pytest.fixture
def app(fake_settings) -> FastAPI:
    return create_app(fake_settings)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client bound to the app without a network."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
