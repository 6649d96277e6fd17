"""Core module for forksh."""

from .types import BuiltinResult, DispatchResult, OutputMode, Pipeline, Stage

__all__ = ["BuiltinResult", "DispatchResult", "OutputMode", "Pipeline", "Stage"]
