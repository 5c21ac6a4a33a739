"""Process settings read from the environment.

All values are plain strings and default to ``""`` when unset; nothing is
validated at startup. ``.env`` files are loaded by the CLI (``python-dotenv``)
before :meth:`Settings.from_env` runs, never from here.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_DATA_DIR = ".cache"
DEFAULT_OPENAI_MODEL = "gpt-5"


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable credentials and URLs for the three external services."""

    bot_token: str = ""
    openai_api_key: str = ""
    actual_api_url: str = ""
    actual_api_token: str = ""
    actual_budget_id: str = ""
    actual_encryption_password: str = ""
    actual_data_dir: str = DEFAULT_DATA_DIR
    openai_model: str = DEFAULT_OPENAI_MODEL

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        source = os.environ if env is None else env
        return cls(
            bot_token=source.get("BOT_TOKEN", ""),
            openai_api_key=source.get("OPENAI_API_KEY", ""),
            actual_api_url=source.get("ACTUAL_API_URL", ""),
            actual_api_token=source.get("ACTUAL_API_TOKEN", ""),
            actual_budget_id=source.get("ACTUAL_BUDGET_ID", ""),
            actual_encryption_password=source.get("ACTUAL_ENCRYPTION_PASSWORD", ""),
            actual_data_dir=source.get("ACTUAL_DATA_DIR") or DEFAULT_DATA_DIR,
            openai_model=source.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        )
