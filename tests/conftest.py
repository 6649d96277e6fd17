from __future__ import annotations

import pytest

from forksh.config import Settings
from forksh.core.shell import Shell
from forksh.logging_utils import configure_logging


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "FORKSH_PROMPT",
        "FORKSH_LOG_LEVEL",
        "FORKSH_CREATE_MODE",
        "FORKSH_PARSE_ERROR_STATUS",
        "FORKSH_EXEC_FAILURE_STATUS",
        "FORKSH_EXIT_ON_SPAWN_FAILURE",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env in the invoking directory out of the settings.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PWD", str(tmp_path))
    monkeypatch.delenv("OLDPWD", raising=False)
    configure_logging("WARNING")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def shell(settings: Settings) -> Shell:
    return Shell(settings)
