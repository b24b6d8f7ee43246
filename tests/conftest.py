# tests/conftest.py

"""Shared pytest fixtures for all catalog engine tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so nothing blocks on a real delay."""
    with patch("time.sleep"):
        yield


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Keep logs and the local store out of the working tree."""
    with patch.object(Settings, "LOGS_DIR", tmp_path / "logs"), \
            patch.object(Settings, "DATA_DIR", tmp_path / "data"), \
            patch.object(
                Settings, "LOCAL_STORE_PATH", tmp_path / "data" / "local.db"
            ), \
            patch.object(Settings, "DATABASE_URL", ""):
        yield
