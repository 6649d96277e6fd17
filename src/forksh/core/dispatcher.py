"""Dispatch of parsed pipelines to builtins or child processes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from forksh.builtin import BuiltinTable
from forksh.config import Settings
from forksh.core.types import DispatchResult, Pipeline
from forksh.errors import SpawnError
from forksh.logging_utils import report_error
from forksh.process.external import run_external
from forksh.process.pipeline import run_pipeline

SPAWN_FAILURE_STATUS = 1


class Command(Protocol):
    """A resolved pipeline ready to run."""

    def run(self, last_status: int) -> DispatchResult: ...


@dataclass(frozen=True)
class BuiltinCommand:
    """Builtin executed in the calling process."""

    table: BuiltinTable
    pipeline: Pipeline

    def run(self, last_status: int) -> DispatchResult:
        stage = self.pipeline.first
        if self.pipeline.is_pipeline or stage.input_source is not None or stage.output_target is not None:
            logger.debug("dispatch.builtin.ignored_plumbing name={} stages={}", stage.name, len(self.pipeline))
        result = self.table.run(stage.name, list(stage.argv), last_status)
        return DispatchResult(status=result.status, shell_should_exit=result.exit_requested)


@dataclass(frozen=True)
class ExternalCommand:
    """Single program run in one child process."""

    pipeline: Pipeline
    settings: Settings

    def run(self, last_status: int) -> DispatchResult:
        _ = last_status
        return DispatchResult(status=run_external(self.pipeline.first, self.settings))


@dataclass(frozen=True)
class PipelineCommand:
    """Stages run in child processes connected by pipes."""

    pipeline: Pipeline
    settings: Settings

    def run(self, last_status: int) -> DispatchResult:
        _ = last_status
        return DispatchResult(status=run_pipeline(self.pipeline, self.settings))


class Dispatcher:
    """Decide how a pipeline runs and run it."""

    def __init__(self, builtins: BuiltinTable, settings: Settings) -> None:
        self._builtins = builtins
        self._settings = settings

    def resolve(self, pipeline: Pipeline) -> Command:
        if self._builtins.has(pipeline.first.name):
            return BuiltinCommand(table=self._builtins, pipeline=pipeline)
        if pipeline.is_pipeline:
            return PipelineCommand(pipeline=pipeline, settings=self._settings)
        return ExternalCommand(pipeline=pipeline, settings=self._settings)

    def dispatch(self, pipeline: Pipeline, last_status: int) -> DispatchResult:
        command = self.resolve(pipeline)
        logger.debug("dispatch kind={} name={}", type(command).__name__, pipeline.first.name)
        try:
            return command.run(last_status)
        except SpawnError as exc:
            report_error(f"forksh: {exc}")
            if self._settings.exit_on_spawn_failure:
                raise
            return DispatchResult(status=SPAWN_FAILURE_STATUS)
