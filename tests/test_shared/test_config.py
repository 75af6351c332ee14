"""
Tests for runtime settings.
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from shared.config import ROOT, Settings, load_settings

ENV_VARS = (
    "MARKETPLACE_DATA_DIR",
    "MARKETPLACE_LOG_LEVEL",
    "MARKETPLACE_DISPATCH_WORKERS",
    "MARKETPLACE_CURRENCY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Tests for loading settings from the environment."""

    def test_defaults(self, clean_env, tmp_path):
        settings = load_settings(env_file=tmp_path / "missing.env")

        assert settings.data_dir == ROOT / "data"
        assert settings.log_level == "INFO"
        assert settings.dispatch_workers == 4
        assert settings.currency == "BRL"

    def test_environment_overrides(self, clean_env, tmp_path):
        clean_env.setenv("MARKETPLACE_DATA_DIR", str(tmp_path))
        clean_env.setenv("MARKETPLACE_LOG_LEVEL", "debug")
        clean_env.setenv("MARKETPLACE_DISPATCH_WORKERS", "6")
        clean_env.setenv("MARKETPLACE_CURRENCY", "usd")

        settings = load_settings(env_file=tmp_path / "missing.env")

        assert settings.data_dir == Path(tmp_path)
        assert settings.log_level == "DEBUG"
        assert settings.dispatch_workers == 6
        assert settings.currency == "USD"

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MARKETPLACE_DISPATCH_WORKERS=2\n")

        settings = load_settings(env_file=env_file)

        try:
            assert settings.dispatch_workers == 2
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop("MARKETPLACE_DISPATCH_WORKERS", None)

    def test_negative_workers_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(dispatch_workers=-1)
