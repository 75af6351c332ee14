"""
Runtime settings for the marketplace engine.

Settings come from environment variables (optionally from a .env file in the
project root) and fall back to defaults that work for local demos and tests.

    MARKETPLACE_DATA_DIR          Directory with services.json / orders.json
    MARKETPLACE_LOG_LEVEL         Logging level for entry points (default INFO)
    MARKETPLACE_DISPATCH_WORKERS  Event bus worker threads (default 4); 0 = synchronous
    MARKETPLACE_CURRENCY          Currency code used when rendering prices
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ROOT = Path(__file__).resolve().parent.parent

DEFAULT_DISPATCH_WORKERS = 4


class Settings(BaseModel):
    """Validated runtime settings."""
    data_dir: Path = Field(default=ROOT / "data")
    log_level: str = Field(default="INFO")
    dispatch_workers: int = Field(default=DEFAULT_DISPATCH_WORKERS, ge=0)
    currency: str = Field(default="BRL", min_length=3, max_length=3)


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env file to load first. Defaults to ROOT/.env.
                  Variables already set in the environment win.
    """
    load_dotenv(env_file or ROOT / ".env")

    values: dict[str, object] = {}
    if os.getenv("MARKETPLACE_DATA_DIR"):
        values["data_dir"] = Path(os.environ["MARKETPLACE_DATA_DIR"])
    if os.getenv("MARKETPLACE_LOG_LEVEL"):
        values["log_level"] = os.environ["MARKETPLACE_LOG_LEVEL"].upper()
    if os.getenv("MARKETPLACE_DISPATCH_WORKERS"):
        values["dispatch_workers"] = os.environ["MARKETPLACE_DISPATCH_WORKERS"]
    if os.getenv("MARKETPLACE_CURRENCY"):
        values["currency"] = os.environ["MARKETPLACE_CURRENCY"].upper()
    return Settings(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
