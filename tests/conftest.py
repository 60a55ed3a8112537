"""Shared pytest fixtures for gateway tests."""

from pathlib import Path

import pytest

from instant_ussd.config import Settings
from instant_ussd.session import clear_menus_served, configure_session_limits


@pytest.fixture(autouse=True)
def _reset_menus_served():
    """Every test starts without any menus served."""
    clear_menus_served()
    configure_session_limits()
    yield
    clear_menus_served()
    configure_session_limits()


@pytest.fixture
def temp_log_dir(tmp_path: Path) -> Path:
    """Create a temporary log directory."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def settings(temp_log_dir: Path) -> Settings:
    """Create settings with temporary log directory."""
    return Settings(log_root=temp_log_dir)
