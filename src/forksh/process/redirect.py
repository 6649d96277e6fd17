"""File descriptor ownership and redirection."""

from __future__ import annotations

import os
from collections.abc import Iterable
from types import TracebackType

from loguru import logger

from forksh.core.types import OutputMode, Stage
from forksh.errors import RedirectionError, SpawnError

STDIN_FILENO = 0
STDOUT_FILENO = 1

_OUTPUT_FLAGS = {
    OutputMode.TRUNCATE: os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    OutputMode.APPEND: os.O_WRONLY | os.O_CREAT | os.O_APPEND,
}


class DescriptorSet:
    """Descriptors owned by one process, each closed exactly once.

    Leaving the ``with`` block closes whatever is still open, so every exit
    path releases the descriptors acquired through the set.
    """

    def __init__(self) -> None:
        self._open: dict[int, str] = {}

    def __enter__(self) -> DescriptorSet:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close_all()

    def __contains__(self, fd: int) -> bool:
        return fd in self._open

    def adopt(self, fd: int, label: str) -> int:
        self._open[fd] = label
        return fd

    def pipe(self, label: str) -> tuple[int, int]:
        try:
            read_fd, write_fd = os.pipe()
        except OSError as exc:
            raise SpawnError(f"pipe failed: {exc.strerror}") from exc
        self.adopt(read_fd, f"{label}:r")
        self.adopt(write_fd, f"{label}:w")
        return read_fd, write_fd

    def release(self, fd: int) -> int:
        """Stop tracking ``fd`` without closing it."""
        self._open.pop(fd)
        return fd

    def close(self, fd: int) -> None:
        label = self._open.pop(fd, None)
        if label is None:
            return
        try:
            os.close(fd)
        except OSError as exc:
            logger.debug("fd.close.error fd={} label={} error={}", fd, label, exc.strerror)

    def close_all(self, *, keep: Iterable[int] = ()) -> None:
        kept = set(keep)
        for fd in list(self._open):
            if fd not in kept:
                self.close(fd)


def open_input(path: str) -> int:
    try:
        return os.open(path, os.O_RDONLY)
    except OSError as exc:
        raise RedirectionError(path, exc.strerror or str(exc)) from exc


def open_output(path: str, mode: OutputMode, create_mode: int) -> int:
    flags = _OUTPUT_FLAGS.get(mode)
    if flags is None:
        raise ValueError(f"output mode {mode.value} does not open a file")
    try:
        return os.open(path, flags, create_mode)
    except OSError as exc:
        raise RedirectionError(path, exc.strerror or str(exc)) from exc


def redirect_onto(fd: int, target_fd: int) -> None:
    """Duplicate ``fd`` onto ``target_fd`` and close the original."""

    if fd == target_fd:
        os.set_inheritable(fd, True)
        return
    os.dup2(fd, target_fd)
    os.close(fd)


def apply_redirections(
    stage: Stage,
    *,
    create_mode: int,
    honor_input: bool = True,
    honor_output: bool = True,
) -> None:
    """Point the current process's stdin/stdout at the stage's files."""

    if honor_input and stage.input_source is not None:
        redirect_onto(open_input(stage.input_source), STDIN_FILENO)
    target = stage.output_target
    if honor_output and target is not None and stage.writes_file:
        redirect_onto(open_output(target, stage.output_mode, create_mode), STDOUT_FILENO)
