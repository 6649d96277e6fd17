"""Shell command entry point."""

from __future__ import annotations

from loguru import logger

from forksh.builtin import BuiltinTable, build_builtin_table
from forksh.config import Settings
from forksh.core.commands import parse_input
from forksh.core.dispatcher import Dispatcher
from forksh.core.types import DispatchResult
from forksh.logging_utils import report_error


class Shell:
    """Parses input lines and dispatches them."""

    def __init__(self, settings: Settings, builtins: BuiltinTable | None = None) -> None:
        self.settings = settings
        self.builtins = builtins if builtins is not None else build_builtin_table()
        self.dispatcher = Dispatcher(self.builtins, settings)

    def dispatch_line(self, line: str, last_status: int) -> DispatchResult:
        """Run one input line.

        Blank lines keep ``last_status``. A parse error yields the configured
        parse error status without touching the exit flag.
        """
        pipeline, error = parse_input(line)
        if error is not None:
            report_error(f"forksh: parse error: {error.message}")
            return DispatchResult(status=self.settings.parse_error_status)
        if pipeline is None:
            return DispatchResult(status=last_status)

        try:
            return self.dispatcher.dispatch(pipeline, last_status)
        finally:
            logger.debug("dispatch.done stages={}", len(pipeline))
