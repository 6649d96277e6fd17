"""Process creation, image replacement and reaping."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Callable
from typing import NoReturn

from loguru import logger

from forksh.errors import SpawnError
from forksh.logging_utils import report_error

SIGNAL_STATUS_BASE = 128
WAIT_FAILURE_STATUS = 1

# Python ignores these at startup; ignored dispositions survive exec.
_RESTORED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGPIPE", "SIGXFSZ") if hasattr(signal, name)
)


def spawn(child: Callable[[], int], *, label: str) -> int:
    """Fork and run ``child`` in the new process.

    ``child`` either replaces the process image or returns the status the
    child exits with. The child never returns into the caller's stack.
    """

    sys.stdout.flush()
    sys.stderr.flush()
    try:
        pid = os.fork()
    except OSError as exc:
        raise SpawnError(f"fork failed: {exc.strerror}") from exc

    if pid == 0:
        _run_child(child)
    logger.debug("process.spawn pid={} label={}", pid, label)
    return pid


def _run_child(child: Callable[[], int]) -> NoReturn:
    status = 1
    try:
        status = child()
    except Exception as exc:
        report_error(f"forksh: {exc}")
    finally:
        os._exit(status)


def exec_program(argv: list[str], *, failure_status: int, context: str = "") -> int:
    """Replace the process image with ``argv``.

    Only returns when the replacement failed, with the status to exit with.
    """

    for signum in _RESTORED_SIGNALS:
        signal.signal(signum, signal.SIG_DFL)
    try:
        os.execvp(argv[0], argv)
    except FileNotFoundError:
        reason = "command not found"
    except OSError as exc:
        reason = exc.strerror or str(exc)
    report_error(f"forksh: {context}{argv[0]}: {reason}")
    return failure_status


def exit_code(wait_status: int) -> int:
    """Extract the exit code from a raw wait status word."""

    if os.WIFSIGNALED(wait_status):
        return SIGNAL_STATUS_BASE + os.WTERMSIG(wait_status)
    if os.WIFEXITED(wait_status):
        return os.WEXITSTATUS(wait_status)
    return WAIT_FAILURE_STATUS


def wait_for(pid: int) -> int:
    """Block until child ``pid`` terminates and return its exit code."""

    try:
        reaped, wait_status = os.waitpid(pid, 0)
    except ChildProcessError as exc:
        report_error(f"forksh: wait for pid {pid} failed: {exc.strerror}")
        return WAIT_FAILURE_STATUS

    status = exit_code(wait_status)
    if reaped != pid:
        report_error(f"forksh: wait returned unexpected pid {reaped}")
    logger.debug("process.exit pid={} status={}", reaped, status)
    return status
