"""Single external command execution."""

from __future__ import annotations

from loguru import logger

from forksh.config import Settings
from forksh.core.types import Stage
from forksh.process.redirect import apply_redirections
from forksh.process.spawn import exec_program, spawn, wait_for


def run_external(stage: Stage, settings: Settings) -> int:
    """Run one stage as a child process and return its exit code."""

    def _child() -> int:
        apply_redirections(stage, create_mode=settings.create_mode)
        return exec_program(stage.argv, failure_status=settings.exec_failure_status)

    pid = spawn(_child, label=stage.name)
    status = wait_for(pid)
    logger.debug("external.done name={} pid={} status={}", stage.name, pid, status)
    return status
