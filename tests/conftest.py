"""Shared test fixtures for Cordon."""

from collections.abc import Generator
from pathlib import Path

import pytest

from cordon.sandbox.config import SandboxConfig
from cordon.sandbox.runner import SandboxRunner
from cordon.settings import get_settings
from tests.helpers.scripts import write_script


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """Keep cached settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_bwrap(tmp_path: Path) -> Path:
    """An executable file standing in for the bwrap binary."""
    return write_script(tmp_path / "bwrap")


@pytest.fixture
def config(fake_bwrap: Path) -> SandboxConfig:
    """Default sandbox config pointing at the fake bwrap."""
    return SandboxConfig(binary=str(fake_bwrap))


@pytest.fixture
def runner(config: SandboxConfig) -> SandboxRunner:
    return SandboxRunner(config)
