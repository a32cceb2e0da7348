"""Shared fixtures for API tests."""

from __future__ import annotations

import httpx
import pytest

from borghi.api.app import app
from borghi.config import Settings
from borghi.persistence.village_registry import VillageRegistry
from borghi.runtime import build_runtime


class RecordingUploader:
    def __init__(self):
        self.calls: list[str] = []

    async def __call__(self, record):
        self.calls.append(record.id)


@pytest.fixture
def uploader():
    return RecordingUploader()


@pytest.fixture
def runtime(tmp_path, uploader):
    settings = Settings(data_dir=tmp_path / "data")
    return build_runtime(settings, registry=VillageRegistry.load(), upload=uploader)


@pytest.fixture
def test_app(runtime):
    app.state.runtime = runtime
    yield app
    del app.state.runtime


@pytest.fixture
async def client(test_app):
    """httpx AsyncClient wired to the test app."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
