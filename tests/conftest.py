# tests/conftest.py
import pytest

from codeweaver.config import loader


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Points the config dir at a temp dir and clears the cached config around each test."""
    monkeypatch.setenv("CODEWEAVER_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("CODEWEAVER_MODEL", raising=False)
    monkeypatch.delenv("CODEWEAVER_LOG_LEVEL", raising=False)
    loader.reset_config_cache()
    yield tmp_path / "config"
    loader.reset_config_cache()
