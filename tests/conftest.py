"""Shared fixtures: an isolated backend on tmp_path, served in-process over ASGI."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from folio.client.api import FolioApi
from folio.client.state import NotebookState
from folio.config import ServerConfig
from folio.server import app
from folio.storage.backend import Backend, reset_backend

BASE_URL = "http://test"


def make_api(owner: str = "alice") -> FolioApi:
    return FolioApi(BASE_URL, owner, transport=ASGITransport(app=app))  # type: ignore[arg-type]


@pytest.fixture
def backend(tmp_path: Path) -> Generator[Backend]:
    """Provide a fresh Backend and patch get_backend to return it."""
    backend = Backend(ServerConfig(data_dir=str(tmp_path), signing_secret="test-secret"))
    with patch("folio.server.get_backend", return_value=backend):
        yield backend
    reset_backend()


@pytest.fixture
async def client(backend: Backend) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url=BASE_URL) as c:
        yield c


@pytest.fixture
async def api(backend: Backend) -> AsyncGenerator[FolioApi]:
    async with make_api("alice") as api:
        yield api


@pytest.fixture
def state(api: FolioApi) -> NotebookState:
    return NotebookState(api)


@pytest.fixture
async def bob_api(backend: Backend) -> AsyncGenerator[FolioApi]:
    async with make_api("bob") as api:
        yield api
