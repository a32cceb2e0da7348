"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from borghi.contracts.village import Village


@pytest.fixture
def make_photo(tmp_path):
    """Factory for fake camera output files in a temporary cache dir."""
    cache = tmp_path / "camera-cache"
    cache.mkdir()
    counter = {"n": 0}

    def _make(name: str | None = None, content: bytes = b"\xff\xd8\xff fake jpeg") -> Path:
        counter["n"] += 1
        path = cache / (name or f"IMG_{counter['n']:04d}.jpg")
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def noli():
    return Village(
        id="liguria-noli", name="Noli", lat=44.2058, lng=8.4146,
        province_code="SV", region_id="liguria",
    )
