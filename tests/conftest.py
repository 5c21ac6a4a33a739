"""Pytest configuration for test isolation.

The bot reads its settings from the process environment, and the CLI also
loads a local ``.env``. A developer's real credentials must never leak into a
test run, so every test starts with the bot's variables removed and with the
working directory set to the test's own temporary directory (no ``.env`` to
find there).
"""

from __future__ import annotations

from pathlib import Path

import pytest

_BOT_ENV_VARS = (
    "BOT_TOKEN",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "ACTUAL_API_URL",
    "ACTUAL_API_TOKEN",
    "ACTUAL_BUDGET_ID",
    "ACTUAL_ENCRYPTION_PASSWORD",
    "ACTUAL_DATA_DIR",
    "BUDGET_BOT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _BOT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
