"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutputMode(Enum):
    """Where a stage's standard output goes."""

    NONE = "none"
    TRUNCATE = "truncate"
    APPEND = "append"
    PIPE = "pipe"


@dataclass(frozen=True)
class Stage:
    """One command within a pipeline."""

    argv: list[str]
    input_source: str | None = None
    output_target: str | None = None
    output_mode: OutputMode = OutputMode.NONE

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("stage argv must not be empty")
        if self.output_mode in (OutputMode.TRUNCATE, OutputMode.APPEND) and self.output_target is None:
            raise ValueError(f"output mode {self.output_mode.value} requires an output target")

    @property
    def name(self) -> str:
        return self.argv[0]

    @property
    def writes_file(self) -> bool:
        return self.output_target is not None and self.output_mode in (OutputMode.TRUNCATE, OutputMode.APPEND)


@dataclass(frozen=True)
class Pipeline:
    """Ordered stages of one input line, connected by pipes."""

    stages: list[Stage] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("pipeline must have at least one stage")
        for stage in self.stages[:-1]:
            if stage.output_mode is not OutputMode.PIPE:
                raise ValueError(f"stage {stage.name!r} is not the last stage but does not pipe")
        if self.stages[-1].output_mode is OutputMode.PIPE:
            raise ValueError("last stage cannot pipe")

    @property
    def first(self) -> Stage:
        return self.stages[0]

    @property
    def last(self) -> Stage:
        return self.stages[-1]

    @property
    def is_pipeline(self) -> bool:
        return len(self.stages) > 1

    def __len__(self) -> int:
        return len(self.stages)


@dataclass(frozen=True)
class BuiltinResult:
    """Outcome of one builtin handler."""

    status: int
    exit_requested: bool = False


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of dispatching one input line."""

    status: int
    shell_should_exit: bool = False
