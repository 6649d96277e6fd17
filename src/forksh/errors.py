"""Application-level exception types for forksh."""

from __future__ import annotations


class ForkshError(Exception):
    """Base exception for forksh."""


class ConfigurationError(ForkshError):
    """Raised when settings are invalid."""


class DispatchError(ForkshError):
    """Base exception for command execution failures."""


class SpawnError(DispatchError):
    """Raised when a child process or pipe cannot be created."""


class RedirectionError(DispatchError):
    """Raised when a redirection target cannot be opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class BuiltinError(ForkshError):
    """Raised on builtin table misuse."""
