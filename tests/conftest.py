"""Shared test fixtures for the clientconf test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "[mongodb]\\nhealth.enabled = false",
                "development.toml": "[mongodb]\\ntracing.enabled = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


@pytest.fixture
def use_config_dir(
    test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point CLIENTCONF_CONFIG_DIR at the test config directory."""
    monkeypatch.setenv("CLIENTCONF_CONFIG_DIR", str(test_config_dir))
    monkeypatch.setenv("CLIENTCONF_ENV", "test")
    return test_config_dir


@pytest.fixture(autouse=True)
def clean_clientconf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove CLIENTCONF_* variables inherited from the outer environment."""
    for name in list(os.environ):
        if name.upper().startswith("CLIENTCONF_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def clear_config_cache() -> Generator[None, None, None]:
    """Clear the configuration cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from clientconf.config import get_mongodb_config

    get_mongodb_config.cache_clear()
    yield
    get_mongodb_config.cache_clear()
