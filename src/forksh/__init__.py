"""forksh - a small fork/exec command interpreter."""

from .core.shell import Shell
from .core.types import DispatchResult

__version__ = "0.1.0"

__all__ = ["DispatchResult", "Shell"]
