"""In-process builtin commands."""

from __future__ import annotations

import os
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from forksh.core.types import BuiltinResult
from forksh.errors import BuiltinError
from forksh.logging_utils import report_error

BuiltinHandler = Callable[[list[str], int], BuiltinResult]

USAGE_STATUS = 2


@dataclass(frozen=True)
class BuiltinDescriptor:
    """Builtin metadata and handler."""

    name: str
    description: str
    handler: BuiltinHandler


class BuiltinTable:
    """Exact-name mapping from builtin names to in-process handlers."""

    def __init__(self) -> None:
        self._builtins: dict[str, BuiltinDescriptor] = {}
        self._frozen = False

    def register(self, descriptor: BuiltinDescriptor) -> None:
        if self._frozen:
            raise BuiltinError(f"builtin table is frozen, cannot register {descriptor.name!r}")
        if descriptor.name in self._builtins:
            raise BuiltinError(f"duplicate builtin: {descriptor.name}")
        self._builtins[descriptor.name] = descriptor

    def freeze(self) -> BuiltinTable:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def has(self, name: str) -> bool:
        return name in self._builtins

    def get(self, name: str) -> BuiltinDescriptor | None:
        return self._builtins.get(name)

    def names(self) -> list[str]:
        return sorted(self._builtins)

    def descriptors(self) -> list[BuiltinDescriptor]:
        return [self._builtins[name] for name in self.names()]

    def run(self, name: str, argv: list[str], last_status: int) -> BuiltinResult:
        descriptor = self.get(name)
        if descriptor is None:
            raise KeyError(name)

        logger.debug("builtin.start name={} argv={}", name, argv)
        start = time.monotonic()
        try:
            return descriptor.handler(argv, last_status)
        finally:
            duration = time.monotonic() - start
            logger.debug("builtin.end name={} duration={:.3f}ms", name, duration * 1000)


def _exit_handler(argv: list[str], last_status: int) -> BuiltinResult:
    if len(argv) > 2:
        report_error("exit: too many arguments")
        return BuiltinResult(status=USAGE_STATUS)
    if len(argv) == 1:
        return BuiltinResult(status=last_status, exit_requested=True)
    try:
        code = int(argv[1])
    except ValueError:
        report_error(f"exit: {argv[1]}: numeric argument required")
        return BuiltinResult(status=USAGE_STATUS)
    return BuiltinResult(status=code, exit_requested=True)


def _cd_handler(argv: list[str], last_status: int) -> BuiltinResult:
    _ = last_status
    if len(argv) > 2:
        report_error("cd: too many arguments")
        return BuiltinResult(status=1)

    target = argv[1] if len(argv) > 1 else os.environ.get("HOME")
    if target is None:
        report_error("cd: HOME not set")
        return BuiltinResult(status=1)
    if target == "-":
        target = os.environ.get("OLDPWD")
        if target is None:
            report_error("cd: OLDPWD not set")
            return BuiltinResult(status=1)
        print(target)

    previous = os.getcwd()
    try:
        os.chdir(target)
    except OSError as exc:
        report_error(f"cd: {target}: {exc.strerror}")
        return BuiltinResult(status=1)
    os.environ["OLDPWD"] = previous
    os.environ["PWD"] = os.getcwd()
    return BuiltinResult(status=0)


def _pwd_handler(argv: list[str], last_status: int) -> BuiltinResult:
    _ = (argv, last_status)
    print(os.getcwd())
    sys.stdout.flush()
    return BuiltinResult(status=0)


def _status_handler(argv: list[str], last_status: int) -> BuiltinResult:
    _ = argv
    print(last_status)
    return BuiltinResult(status=last_status)


def _help_handler_for(table: BuiltinTable) -> BuiltinHandler:
    def _handler(argv: list[str], last_status: int) -> BuiltinResult:
        _ = (argv, last_status)
        for descriptor in table.descriptors():
            print(f"{descriptor.name}: {descriptor.description}")
        return BuiltinResult(status=0)

    return _handler


def build_builtin_table() -> BuiltinTable:
    """Create the frozen default builtin table."""

    table = BuiltinTable()
    table.register(BuiltinDescriptor("cd", "Change the working directory", _cd_handler))
    table.register(BuiltinDescriptor("exit", "Exit the shell with the given or last status", _exit_handler))
    table.register(BuiltinDescriptor("help", "List builtin commands", _help_handler_for(table)))
    table.register(BuiltinDescriptor("pwd", "Print the working directory", _pwd_handler))
    table.register(BuiltinDescriptor("status", "Print the last exit status", _status_handler))
    return table.freeze()
